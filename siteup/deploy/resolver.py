"""
Repository reference resolution.

A repository URL is usable only if it answers HTTP 200 (after redirects)
and its last path segment yields a local checkout name:

    app.git          -> app
    app.tar.gz       -> app.tar
    my.app.v2.git    -> my.app.v2
    app              -> UnparsableRepositoryName
    a.b.c.d.git      -> UnparsableRepositoryName
"""

from typing import Optional
from urllib.parse import urlsplit

import httpx

from siteup.config import DEFAULT_CHECK_TIMEOUT
from siteup.core.models import RepositoryReference
from siteup.errors import UnparsableRepositoryName, UnreachableRepository
from siteup.logging import get_siteup_logger
from siteup.net import build_client

logger = get_siteup_logger(__name__)


def last_segment(url: str) -> str:
    path = urlsplit(url).path
    return path.split("/")[-1]


def canonical_id(url: str) -> str:
    """
    Derive the local checkout name from the URL's last path segment.

    Raises:
        UnparsableRepositoryName: segment has fewer than 2 or more than 4
            dot-separated components, or nothing before the suffix (".git")
    """
    segment = last_segment(url)
    parts = segment.split(".")

    # The last component is treated as a suffix and dropped
    if 2 <= len(parts) <= 4:
        name = ".".join(parts[:-1])
        if name:
            return name

    raise UnparsableRepositoryName(url, segment)


class RepositoryResolver:
    """
    Validates repository URLs and derives their canonical id.

    Example:
        ref = RepositoryResolver().resolve("https://github.com/org/blog-site.git")
        ref.canonical_id  # "blog-site"
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_CHECK_TIMEOUT,
    ):
        """
        Args:
            client: httpx client to check with (one is built per call if None)
            timeout: Reachability timeout in seconds when building a client
        """
        self.client = client
        self.timeout = timeout

    def fetch_status(self, url: str) -> int:
        """
        Return the final HTTP status for `url`, following redirects.

        Raises:
            UnreachableRepository: transport error, timeout or invalid URL
        """
        if self.client is not None:
            return self._fetch_status(self.client, url)

        with build_client(self.timeout) as client:
            return self._fetch_status(client, url)

    def _fetch_status(self, client: httpx.Client, url: str) -> int:
        try:
            with client.stream("GET", url) as response:
                return response.status_code
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UnreachableRepository(url, detail=str(e) or type(e).__name__) from e

    def resolve(self, url: str) -> RepositoryReference:
        """
        Check the repository is reachable, then name it.

        Raises:
            UnreachableRepository: final status is not exactly 200
            UnparsableRepositoryName: see canonical_id()
        """
        status = self.fetch_status(url)
        if status != 200:
            raise UnreachableRepository(url, status)

        ref = RepositoryReference(url=url, canonical_id=canonical_id(url))
        logger.info(f"Repository {url} is reachable, local name {ref.canonical_id}")
        return ref
