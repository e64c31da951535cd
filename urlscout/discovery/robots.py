"""Robots.txt parsing and crawl policy."""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx

from urlscout.config import DEFAULT_AGENT_TOKEN

logger = logging.getLogger(__name__)


@dataclass
class RobotsRule:
    """A single Allow or Disallow line."""

    allow: bool
    pattern: str


@dataclass
class RobotsGroup:
    """Rules declared under one or more consecutive User-agent lines."""

    agents: list[str] = field(default_factory=list)
    rules: list[RobotsRule] = field(default_factory=list)
    crawl_delay: Optional[float] = None


@dataclass
class RobotsRules:
    """Parsed robots.txt rules."""

    groups: list[RobotsGroup]
    sitemaps: list[str]
    raw_content: str

    def rules_for(self, agent_token: str) -> list[RobotsRule]:
        """Return the rules that apply to *agent_token*.

        Groups naming the agent take precedence over ``*`` groups.
        """
        matched = _groups_for(self.groups, agent_token)
        return [rule for group in matched for rule in group.rules]

    def crawl_delay(self, agent_token: str) -> Optional[float]:
        delays = [g.crawl_delay for g in _groups_for(self.groups, agent_token) if g.crawl_delay]
        return max(delays) if delays else None


def _agent_matches(agent: str, token: str) -> bool:
    # "URLScout/1.0" in robots.txt names the same product as "URLScout"
    name = agent.split("/", 1)[0].strip()
    return bool(name) and name != "*" and name == token.split("/", 1)[0].strip()


def _groups_for(groups: list[RobotsGroup], agent_token: str) -> list[RobotsGroup]:
    token = agent_token.lower()
    specific = [g for g in groups if any(_agent_matches(a, token) for a in g.agents)]
    if specific:
        return specific
    return [g for g in groups if "*" in g.agents]


def parse_robots_content(content: str) -> RobotsRules:
    """Parse robots.txt content.

    Args:
        content: Raw robots.txt content.

    Returns:
        Parsed rules.
    """
    groups: list[RobotsGroup] = []
    sitemaps: list[str] = []
    current: Optional[RobotsGroup] = None
    in_agent_block = False

    for line in content.splitlines():
        line = line.split("#", 1)[0].strip()

        if not line or ":" not in line:
            continue

        directive, value = line.split(":", 1)
        directive = directive.strip().lower()
        value = value.strip()

        if directive == "user-agent":
            # Consecutive User-agent lines share one group
            if current is None or not in_agent_block:
                current = RobotsGroup()
                groups.append(current)
            current.agents.append(value.lower())
            in_agent_block = True
            continue

        if directive == "sitemap":
            # Sitemaps apply globally
            if value:
                sitemaps.append(value)
            continue

        in_agent_block = False
        if current is None:
            continue

        if directive in ("allow", "disallow"):
            # An empty Disallow allows everything, so it adds no rule
            if value:
                current.rules.append(RobotsRule(allow=directive == "allow", pattern=value))
        elif directive == "crawl-delay":
            try:
                current.crawl_delay = float(value)
            except ValueError:
                pass

    return RobotsRules(groups=groups, sitemaps=sitemaps, raw_content=content)


def is_path_allowed(path: str, rules: RobotsRules, agent_token: str = DEFAULT_AGENT_TOKEN) -> bool:
    """Check if a path is allowed by robots.txt rules.

    The longest matching pattern wins; on a tie Allow beats Disallow.

    Args:
        path: URL path (optionally with query) to check.
        rules: Parsed robots rules.
        agent_token: Crawler user-agent token.

    Returns:
        True if path is allowed.
    """
    best: Optional[tuple[int, bool]] = None

    for rule in rules.rules_for(agent_token):
        if _path_matches(path, rule.pattern):
            candidate = (len(rule.pattern), rule.allow)
            if best is None or candidate > best:
                best = candidate

    return True if best is None else best[1]


def _path_matches(path: str, pattern: str) -> bool:
    """Check if a path matches a robots.txt pattern.

    Supports wildcards (*) and end-of-string ($).

    Args:
        path: URL path.
        pattern: Robots.txt pattern.

    Returns:
        True if matches.
    """
    if not pattern:
        return False

    anchored = pattern.endswith("$")
    if anchored:
        pattern = pattern[:-1]

    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    if anchored:
        regex += "$"

    return re.match(regex, path) is not None


async def fetch_robots_txt(
    client: httpx.AsyncClient,
    base_url: str,
    timeout: float = 5.0,
) -> Optional[RobotsRules]:
    """Fetch and parse robots.txt.

    Args:
        client: HTTP client.
        base_url: Base URL of the target.
        timeout: Request timeout.

    Returns:
        Parsed rules or None if not found.
    """
    robots_url = urljoin(base_url, "/robots.txt")

    try:
        response = await client.get(robots_url, timeout=timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.info("No robots.txt at %s (%s), assuming crawling is allowed", robots_url, e)
        return None

    if response.status_code != 200:
        logger.info(
            "robots.txt at %s returned %s, assuming crawling is allowed",
            robots_url,
            response.status_code,
        )
        return None

    return parse_robots_content(response.text)


class RobotsPolicyChecker:
    """Decides whether an origin may be crawled at all."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        agent_token: str = DEFAULT_AGENT_TOKEN,
        timeout: float = 5.0,
    ):
        """Initialize policy checker.

        Args:
            client: HTTP client used to fetch robots.txt.
            agent_token: User-agent token matched against robots.txt groups.
            timeout: robots.txt fetch timeout in seconds.
        """
        self.client = client
        self.agent_token = agent_token
        self.timeout = timeout

    async def fetch(self, origin: str) -> Optional[RobotsRules]:
        """Fetch the origin's robots.txt, or None when unavailable."""
        return await fetch_robots_txt(self.client, origin, self.timeout)

    def allows(self, rules: Optional[RobotsRules], url: str) -> bool:
        """Evaluate *url* against already-fetched rules. Missing rules allow everything."""
        if rules is None:
            return True
        parsed = urlparse(url)
        path = parsed.path or "/"
        if parsed.query:
            path = f"{path}?{parsed.query}"
        return is_path_allowed(path, rules, self.agent_token)

    async def may_crawl(self, origin: str) -> bool:
        """Check whether the origin root may be crawled.

        Fails open: an unreachable or missing robots.txt means permission.
        """
        rules = await self.fetch(origin)
        allowed = self.allows(rules, urljoin(origin, "/"))
        if not allowed:
            logger.warning("Crawling %s is disallowed by robots.txt", origin)
        return allowed
