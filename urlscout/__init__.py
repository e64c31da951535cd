"""URLScout - URL discovery for structured-data generation.

Finds the content URLs of a site from its sitemaps, falling back to a
polite breadth-first crawl, and streams them as they are found.
"""

__version__ = "1.0.0"
__author__ = "URLScout Team"
