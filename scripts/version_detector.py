#!/usr/bin/env python3
"""
Cursor Release Detection Module
Finds the newest Cursor AppImage download URL and derives its version.

Two interchangeable strategies are available:
  - "redirect": find the API download endpoint on the download page and follow
    its redirect chain to the real AppImage URL (no body is downloaded)
  - "scrape": take the first direct AppImage link on the download page
"""

import os
import re
import logging
import requests
from typing import Callable, Dict, List, Optional
from urllib.parse import urljoin, urlparse

from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from update_errors import ResolutionError, VersionResolutionError

DEFAULT_TIMEOUT = int(os.environ.get('CURSOR_HTTP_TIMEOUT', '15'))  # seconds

DOWNLOAD_PAGE_URL = os.environ.get('CURSOR_DOWNLOAD_PAGE', 'https://cursor.com/download')
API_URL_PATTERN = r'https://api2[.]cursor[.]sh/updates/download/golden/linux-x64/cursor/[^"]*'
ARTIFACT_URL_PATTERN = (
    r'^https://downloads[.]cursor[.]com/(?:[^"/]+/)*linux/x64/(?:appimage/)?'
    r'Cursor-[^/"]+-x86_64[.]AppImage$'
)
# Cursor-<version>-<arch>.<ext>
FILENAME_PATTERN = r'^Cursor-(.+)-x86_64\.AppImage$'

HREF_PATTERN = r'href\s*=\s*["\']([^"\']+)["\']'

DEFAULT_STRATEGY = os.environ.get('CURSOR_RESOLVE_STRATEGY', 'redirect')

VersionProvider = Callable[[], str]


def get_session(
    *,
    retries: int = 0,
    backoff_factor: float = 0.3,
    pool_connections: int = 2,
    pool_maxsize: int = 4,
) -> requests.Session:
    """Create a configured HTTP session with pooling and default headers.

    Args:
        retries: Retry attempts for transient errors (0: every call is made once)
        backoff_factor: Backoff factor for retry delays
        pool_connections: Connection pool size per host
        pool_maxsize: Max pooled connections

    Returns:
        Configured requests.Session
    """
    session = requests.Session()

    session.headers.update({
        'User-Agent': (
            'Mozilla/5.0 (X11; Linux x86_64) '
            'AppleWebKit/537.36 (KHTML, like Gecko) '
            'Chrome/120.0.0.0 Safari/537.36'
        ),
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.5',
        'Accept-Encoding': 'gzip, deflate',
    })

    retry = Retry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=frozenset(['HEAD', 'GET']),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        max_retries=retry,
    )
    session.mount('http://', adapter)
    session.mount('https://', adapter)

    return session


def extract_version_from_url(url: str) -> Optional[str]:
    """Return the version embedded in a Cursor-<version>-x86_64.AppImage filename."""
    filename = urlparse(url).path.rsplit('/', 1)[-1]
    m = re.match(FILENAME_PATTERN, filename)
    if m:
        return m.group(1)
    return None


def prompt_for_version() -> str:
    """Ask the operator for the version when it cannot be read from the URL."""
    try:
        return input("Please enter the new version number: ").strip()
    except EOFError:
        return ""


def fixed_version(version: str) -> VersionProvider:
    """Version provider that always answers with the given version."""
    return lambda: version


def resolve_version(url: str, provider: Optional[VersionProvider] = None) -> str:
    """
    Determine the version for a resolved artifact URL

    Args:
        url: Artifact URL
        provider: Fallback used when the filename does not match the pattern

    Returns:
        Non-empty version string

    Raises:
        VersionResolutionError: if neither the URL nor the provider yields a version
    """
    version = extract_version_from_url(url)
    if version:
        return version

    print("⚠️  Could not automatically determine new version from URL.")
    print("⚠️  The file name format may have changed.")
    logging.warning(f"Version pattern did not match {url}")
    provider = provider or prompt_for_version
    version = (provider() or "").strip()
    if not version:
        raise VersionResolutionError("Version number is required.")
    return version


class VersionDetector:
    """Discovers the newest Cursor AppImage URL"""

    def __init__(self, session: Optional[requests.Session] = None, page_url: str = DOWNLOAD_PAGE_URL):
        self.session = session or get_session()
        self.page_url = page_url

    def fetch_page(self) -> str:
        """Download the vendor's download page as text."""
        try:
            print(f"🔍 Finding latest AppImage URL from {self.page_url}...")
            response = self.session.get(self.page_url, timeout=DEFAULT_TIMEOUT)
            response.raise_for_status()
            return response.text
        except requests.RequestException as e:
            raise ResolutionError(f"Failed to fetch download page {self.page_url}: {e}")

    def find_links(self, content: str) -> List[str]:
        """Return every hyperlink target in document order."""
        return [urljoin(self.page_url, href) for href in re.findall(HREF_PATTERN, content, re.IGNORECASE)]

    def resolve_by_scrape(self) -> str:
        """First direct AppImage link on the download page."""
        content = self.fetch_page()
        for link in self.find_links(content):
            if re.match(ARTIFACT_URL_PATTERN, link):
                print(f"✅ Found latest URL: {link}")
                return link
        raise ResolutionError(
            "Could not find an AppImage link on the download page. "
            "The website structure may have changed."
        )

    def find_api_url(self, content: str) -> Optional[str]:
        m = re.search(API_URL_PATTERN, content)
        return m.group(0) if m else None

    def follow_redirect(self, api_url: str) -> Optional[str]:
        """Return the final Location of the redirect chain, without fetching a body."""
        try:
            response = self.session.head(api_url, timeout=DEFAULT_TIMEOUT, allow_redirects=True)
        except requests.RequestException as e:
            logging.debug(f"Redirect probe failed for {api_url}: {e}")
            return None

        location = None
        for hop in list(response.history) + [response]:
            target = hop.headers.get('Location')
            if target:
                location = urljoin(hop.url or api_url, target)
        return location

    def resolve_by_redirect(self) -> str:
        """Follow the API download endpoint to the real AppImage URL."""
        content = self.fetch_page()
        api_url = self.find_api_url(content)
        if not api_url:
            raise ResolutionError(
                "Could not find API download URL on the download page. "
                "The website structure may have changed."
            )
        print(f"ℹ️  Found API URL: {api_url}")

        url = self.follow_redirect(api_url)
        if not url:
            raise ResolutionError(
                "Could not follow redirect to find actual AppImage URL. "
                "The API endpoint may have changed."
            )
        print(f"✅ Found latest URL: {url}")
        return url


STRATEGIES: Dict[str, Callable[[VersionDetector], str]] = {
    'redirect': VersionDetector.resolve_by_redirect,
    'scrape': VersionDetector.resolve_by_scrape,
}


def get_resolver(strategy: str = DEFAULT_STRATEGY, detector: Optional[VersionDetector] = None) -> Callable[[], str]:
    """Return a zero-argument callable resolving the latest URL with the named strategy."""
    try:
        resolve = STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f"Unknown resolve strategy: {strategy!r} (expected one of {', '.join(STRATEGIES)})")
    detector = detector or VersionDetector()
    return lambda: resolve(detector)
