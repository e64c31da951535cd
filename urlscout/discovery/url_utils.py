"""URL utilities - normalization, origin checks, depth and content filtering."""

import ipaddress
from urllib.parse import ParseResult, parse_qs, urlencode, urlparse, urlunparse

# Path fragments that almost never lead to schema-worthy content
EXCLUDED_PATH_PATTERNS = (
    "/wp-admin/",
    "/admin/",
    "/login",
    "/signin",
    "/signup",
    "/logout",
    "/cart",
    "/checkout",
    "/account",
    "/dashboard",
)

EXCLUDED_EXTENSIONS = (
    ".pdf",
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".css",
    ".js",
    ".xml",
    ".json",
)

_DEFAULT_PORTS = {"http": "80", "https": "443"}


def _normalize_netloc(scheme: str, netloc: str) -> str:
    netloc = netloc.lower()
    if ":" in netloc and not netloc.endswith("]"):
        host, port = netloc.rsplit(":", 1)
        if _DEFAULT_PORTS.get(scheme) == port:
            return host
    return netloc


def normalize_url(url: str) -> str:
    """Normalize a URL for consistent comparison.

    - Lowercases the scheme and host
    - Removes default ports (80, 443)
    - Removes trailing slashes from paths (except root)
    - Sorts query parameters
    - Removes fragment

    Args:
        url: URL to normalize.

    Returns:
        Normalized URL.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return url

    scheme = parsed.scheme.lower()
    netloc = _normalize_netloc(scheme, parsed.netloc)

    path = parsed.path
    if path and path != "/" and path.endswith("/"):
        path = path.rstrip("/")
    if not path:
        path = "/"

    query = ""
    if parsed.query:
        params = parse_qs(parsed.query, keep_blank_values=True)
        query = urlencode(sorted(params.items()), doseq=True)

    normalized = ParseResult(
        scheme=scheme,
        netloc=netloc,
        path=path,
        params="",
        query=query,
        fragment="",
    )

    return urlunparse(normalized)


def clean_url(url: str) -> str:
    """Reduce a URL to origin + path, dropping query string and fragment.

    Raises:
        ValueError: If the URL cannot be parsed.
    """
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    return urlunparse((scheme, _normalize_netloc(scheme, parsed.netloc), parsed.path or "/", "", "", ""))


def is_same_origin(url1: str, url2: str) -> bool:
    """Check if two URLs have the same origin.

    Same origin = same scheme + host + port.

    Args:
        url1: First URL.
        url2: Second URL.

    Returns:
        True if same origin.
    """
    try:
        parsed1 = urlparse(url1)
        parsed2 = urlparse(url2)
    except ValueError:
        return False

    scheme1 = parsed1.scheme.lower()
    scheme2 = parsed2.scheme.lower()

    if scheme1 != scheme2 or not parsed1.netloc:
        return False

    return _normalize_netloc(scheme1, parsed1.netloc) == _normalize_netloc(scheme2, parsed2.netloc)


def get_base_url(url: str) -> str:
    """Get the base URL (scheme + host).

    Args:
        url: Full URL.

    Returns:
        Base URL.
    """
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    return f"{scheme}://{_normalize_netloc(scheme, parsed.netloc)}"


def is_valid_url(url: str) -> bool:
    """Check if a string is a valid HTTP/HTTPS URL.

    Args:
        url: String to validate.

    Returns:
        True if valid URL.
    """
    try:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.hostname)
    except ValueError:
        return False


def is_probeable_host(host: str) -> bool:
    """Check whether a ``www.`` variant of *host* is worth probing.

    IP literals and single-label hosts such as ``localhost`` have no
    ``www.`` counterpart.
    """
    host = host.strip("[]")
    try:
        ipaddress.ip_address(host)
        return False
    except ValueError:
        pass
    return "." in host


def extract_path(url: str) -> str:
    """Extract just the path from a URL.

    Args:
        url: Full URL.

    Returns:
        Path component.
    """
    try:
        parsed = urlparse(url)
        return parsed.path or "/"
    except ValueError:
        return "/"


def url_depth(url: str) -> int:
    """Count the non-empty path segments of a URL.

    ``https://example.com/`` is depth 0, ``/blog/post-1/`` is depth 2.
    """
    return len([segment for segment in extract_path(url).split("/") if segment])


def is_content_url(url: str) -> bool:
    """Check whether a URL likely points at indexable page content.

    Admin, authentication, commerce-flow and static asset URLs are rejected.

    Args:
        url: Absolute URL.

    Returns:
        True if the URL should be crawled.
    """
    path = extract_path(url).lower()

    if any(pattern in path for pattern in EXCLUDED_PATH_PATTERNS):
        return False

    return not path.endswith(EXCLUDED_EXTENSIONS)
