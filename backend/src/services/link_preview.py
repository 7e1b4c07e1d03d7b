"""Platform detection and best-effort previews for external recipe links."""
import ipaddress
import logging
import socket
from dataclasses import dataclass, field
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from models.enums import Platform

logger = logging.getLogger(__name__)

USER_AGENT = 'Mozilla/5.0 (compatible; RecipeShare/1.0)'
DEFAULT_TIMEOUT = 10.0

# Host fragment -> platform, checked in order
PLATFORM_HOSTS: tuple[tuple[str, Platform], ...] = (
    ('instagram.com', Platform.INSTAGRAM),
    ('tiktok.com', Platform.TIKTOK),
    ('youtube.com', Platform.YOUTUBE),
    ('youtu.be', Platform.YOUTUBE),
    ('pinterest.com', Platform.PINTEREST),
)


class SSRFBlockedError(Exception):
    """Raised when a URL targets a private/internal network address."""


def detect_platform(url: str) -> Platform:
    """
    Classify a URL by its host.

    Known social/video hosts map to their platform, any other parseable
    host is a website, and an unparseable URL is "other".
    """
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return Platform.OTHER
    if not hostname:
        return Platform.OTHER
    hostname = hostname.lower()
    for fragment, platform in PLATFORM_HOSTS:
        if fragment in hostname:
            return platform
    return Platform.WEBSITE


def is_private_ip(ip_str: str) -> bool:
    """Check if an IP address is private, loopback, or otherwise internal."""
    try:
        ip = ipaddress.ip_address(ip_str)
        return (
            ip.is_private
            or ip.is_loopback
            or ip.is_link_local
            or ip.is_multicast
            or ip.is_reserved
            or ip.is_unspecified
        )
    except ValueError:
        # Unparseable addresses are treated as internal
        return True


def validate_url_not_private(url: str) -> None:
    """
    Validate that a URL does not target a private/internal network.

    Resolves the hostname so a public name pointing at an internal IP is
    caught too.

    Raises:
        SSRFBlockedError: If the URL targets a private network.
        ValueError: If the URL is malformed or the host does not resolve.
    """
    hostname = urlparse(url).hostname
    if not hostname:
        raise ValueError(f"Invalid URL (no hostname): {url}")

    if hostname.lower() in ('localhost', 'localhost.localdomain'):
        raise SSRFBlockedError(f"Blocked request to localhost: {url}")

    try:
        addrinfo = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise ValueError(f"Could not resolve hostname: {hostname}") from e
    for _, _, _, _, sockaddr in addrinfo:
        ip_str = sockaddr[0]
        if is_private_ip(ip_str):
            raise SSRFBlockedError(
                f"Blocked request to private/internal address: {url} resolves to {ip_str}",
            )


@dataclass
class FetchResult:
    """Result of fetching a URL."""

    html: str | None
    final_url: str
    status_code: int | None
    error: str | None


@dataclass
class PageMetadata:
    """Preview fields extracted from a page's HTML."""

    title: str | None = None
    description: str | None = None
    thumbnail: str | None = None
    author: str | None = None


@dataclass
class LinkPreview:
    url: str
    final_url: str
    platform: Platform
    title: str
    description: str
    thumbnail: str | None = None
    metadata: dict[str, str | None] = field(default_factory=dict)
    error: str | None = None


async def fetch_url(url: str, timeout: float = DEFAULT_TIMEOUT) -> FetchResult:  # noqa: ASYNC109
    """
    Fetch raw HTML from a URL.

    Best-effort: failures come back as FetchResult.error rather than raising.
    Both the requested URL and the post-redirect URL must pass the private
    network check.
    """
    try:
        validate_url_not_private(url)
    except (SSRFBlockedError, ValueError) as e:
        return FetchResult(html=None, final_url=url, status_code=None, error=str(e))

    try:
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            headers={'User-Agent': USER_AGENT},
            http2=True,
        ) as client:
            response = await client.get(url)
    except httpx.TimeoutException:
        return FetchResult(html=None, final_url=url, status_code=None, error="Request timed out")
    except httpx.RequestError as e:
        return FetchResult(html=None, final_url=url, status_code=None, error=f"Request failed: {e}")

    final_url = str(response.url)
    try:
        validate_url_not_private(final_url)
    except (SSRFBlockedError, ValueError) as e:
        return FetchResult(
            html=None,
            final_url=final_url,
            status_code=response.status_code,
            error=f"Redirect blocked: {e}",
        )

    if not response.is_success:
        return FetchResult(
            html=None,
            final_url=final_url,
            status_code=response.status_code,
            error=f"HTTP {response.status_code}",
        )

    content_type = response.headers.get('content-type', '')
    if 'text/html' not in content_type.lower():
        return FetchResult(
            html=None,
            final_url=final_url,
            status_code=response.status_code,
            error=f"Non-HTML content type: {content_type}",
        )

    return FetchResult(
        html=response.text,
        final_url=final_url,
        status_code=response.status_code,
        error=None,
    )


def _meta_content(soup: BeautifulSoup, *selectors: dict[str, str]) -> str | None:
    """Return the first non-empty <meta content> among the selectors."""
    for attrs in selectors:
        tag = soup.find('meta', attrs=attrs)
        if tag and tag.get('content'):
            return tag['content'].strip()
    return None


def extract_metadata(html: str) -> PageMetadata:
    """
    Extract preview fields from HTML. Pure function with no I/O.

    Title: og:title, then <title>, then twitter:title. Social pages put the
    useful name in og:title and a generic site name in <title>.
    Description: og:description, then description, then twitter:description.
    Thumbnail: og:image, then twitter:image.
    Author: author meta, then article:author.
    """
    soup = BeautifulSoup(html, 'lxml')

    title = _meta_content(soup, {'property': 'og:title'})
    if not title:
        title_tag = soup.find('title')
        if title_tag and title_tag.string:
            title = title_tag.string.strip()
    if not title:
        title = _meta_content(soup, {'name': 'twitter:title'})

    return PageMetadata(
        title=title or None,
        description=_meta_content(
            soup,
            {'property': 'og:description'},
            {'name': 'description'},
            {'name': 'twitter:description'},
        ),
        thumbnail=_meta_content(soup, {'property': 'og:image'}, {'name': 'twitter:image'}),
        author=_meta_content(soup, {'name': 'author'}, {'property': 'article:author'}),
    )


async def build_link_preview(url: str) -> LinkPreview:
    """
    Preview a link before it is saved.

    Falls back to "Recipe from <host>" with an empty description when the
    page cannot be fetched or has no usable metadata.
    """
    platform = detect_platform(url)
    hostname = urlparse(url).hostname or url
    fallback_title = f"Recipe from {hostname}"

    result = await fetch_url(url)
    if result.html is None:
        logger.info("link_preview_fetch_failed", extra={"host": hostname, "error": result.error})
        return LinkPreview(
            url=url,
            final_url=result.final_url,
            platform=platform,
            title=fallback_title,
            description="",
            error=result.error,
        )

    metadata = extract_metadata(result.html)
    return LinkPreview(
        url=url,
        final_url=result.final_url,
        platform=platform,
        title=(metadata.title or fallback_title)[:200],
        description=(metadata.description or "")[:1000],
        thumbnail=metadata.thumbnail,
        metadata={"author": metadata.author},
    )
