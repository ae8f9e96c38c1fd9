"""
Unit tests for repository reference resolution.

HTTP is served by httpx.MockTransport; nothing leaves the process.
"""

import httpx
import pytest

from siteup.deploy.resolver import canonical_id, last_segment
from siteup.errors import (
    EXIT_REPOSITORY,
    UnparsableRepositoryName,
    UnreachableRepository,
)

REPO = "https://github.com/org/blog-site.git"


class TestCanonicalId:

    @pytest.mark.parametrize("url,expected", [
        ("https://github.com/org/blog-site.git", "blog-site"),
        ("https://example.com/releases/app.tar.gz", "app.tar"),
        ("https://example.com/my.app.v2.git", "my.app.v2"),
        ("https://example.com/site.git?ref=main", "site"),
    ])
    def test_valid(self, url, expected):
        assert canonical_id(url) == expected

    @pytest.mark.parametrize("url", [
        "https://github.com/org/blog-site",
        "https://example.com/a.b.c.d.git",
        "https://example.com/repos/",
        "https://example.com/.git",
    ])
    def test_unparsable(self, url):
        with pytest.raises(UnparsableRepositoryName) as exc_info:
            canonical_id(url)
        assert exc_info.value.exit_code == EXIT_REPOSITORY

    def test_last_segment_ignores_query(self):
        assert last_segment("https://example.com/x/site.git?a=b") == "site.git"


class TestResolve:

    def test_reachable(self, mock_resolver, http_routes):
        http_routes[REPO] = 200

        ref = mock_resolver.resolve(REPO)

        assert ref.url == REPO
        assert ref.canonical_id == "blog-site"

    def test_not_found(self, mock_resolver, http_routes):
        http_routes[REPO] = 404

        with pytest.raises(UnreachableRepository) as exc_info:
            mock_resolver.resolve(REPO)

        assert exc_info.value.status == 404
        assert exc_info.value.exit_code == EXIT_REPOSITORY

    def test_only_exact_200_counts(self, mock_resolver, http_routes):
        http_routes[REPO] = 204

        with pytest.raises(UnreachableRepository):
            mock_resolver.resolve(REPO)

    def test_redirect_to_ok(self, mock_resolver, http_routes):
        moved = "https://git.example.com/org/blog-site.git"
        http_routes[REPO] = (301, moved)
        http_routes[moved] = 200

        # The name comes from the URL as given, not where it redirected
        assert mock_resolver.resolve(REPO).canonical_id == "blog-site"

    def test_redirect_to_missing(self, mock_resolver, http_routes):
        http_routes[REPO] = (302, "https://git.example.com/gone.git")

        with pytest.raises(UnreachableRepository) as exc_info:
            mock_resolver.resolve(REPO)

        assert exc_info.value.status == 404

    def test_connection_error(self, mock_resolver, http_routes):
        http_routes[REPO] = httpx.ConnectError("Name or service not known")

        with pytest.raises(UnreachableRepository) as exc_info:
            mock_resolver.resolve(REPO)

        assert exc_info.value.status is None
        assert "Name or service not known" in str(exc_info.value)

    def test_unreachable_wins_over_unparsable(self, mock_resolver, http_routes):
        url = "https://example.com/a.b.c.d.git"
        http_routes[url] = 404

        with pytest.raises(UnreachableRepository):
            mock_resolver.resolve(url)

    def test_reachable_but_unparsable(self, mock_resolver, http_routes):
        url = "https://github.com/org/blog-site"
        http_routes[url] = 200

        with pytest.raises(UnparsableRepositoryName):
            mock_resolver.resolve(url)
