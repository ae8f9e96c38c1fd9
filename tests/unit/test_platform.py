"""
Unit tests for platform detection and layout selection.
"""

import pytest

from siteup.core.platform import LAYOUTS, Platform, parse_os_release, detect_layout
from siteup.errors import EXIT_FAILURE, UnsupportedPlatform


class TestParseOsRelease:

    def test_quoted_and_bare_values(self):
        values = parse_os_release('ID="rocky"\nVERSION_ID=9.3\n# comment\n\nID_LIKE="rhel fedora"\n')
        assert values == {"ID": "rocky", "VERSION_ID": "9.3", "ID_LIKE": "rhel fedora"}

    def test_ignores_garbage_lines(self):
        assert parse_os_release("not a pair\n# ID=commented\n") == {}


class TestPlatformFamily:

    @pytest.mark.parametrize("distro,like,family", [
        ("ubuntu", (), "debian"),
        ("debian", (), "debian"),
        ("linuxmint", ("ubuntu", "debian"), "debian"),
        ("rocky", ("rhel", "centos", "fedora"), "redhat"),
        ("fedora", (), "redhat"),
        ("almalinux", (), "redhat"),
        ("somederivative", ("debian",), "debian"),
        ("alpine", (), None),
        ("arch", (), None),
    ])
    def test_family(self, distro, like, family):
        plat = Platform(system="Linux", distro=distro, version="", arch="x86_64", like=like)
        assert plat.family == family


class TestDetectLayout:

    def test_ubuntu_selects_debian_layout(self, make_host):
        plat, layout = detect_layout(make_host("ubuntu"))

        assert plat.distro == "ubuntu"
        assert plat.version == "22.04"
        assert plat.system == "Linux"
        assert plat.arch == "x86_64"
        assert layout is LAYOUTS["debian"]
        assert layout.package_manager == "apt"
        assert layout.docroot_base == "/var/www"

    def test_rocky_selects_redhat_layout(self, make_host):
        plat, layout = detect_layout(make_host("rocky"))

        assert plat.distro == "rocky"
        assert layout is LAYOUTS["redhat"]
        assert layout.package_manager == "dnf"
        assert layout.vhost_filename("blog") == "blog.conf"

    def test_unsupported_distribution(self, make_host):
        host = make_host("alpine")

        with pytest.raises(UnsupportedPlatform) as exc_info:
            detect_layout(host)

        assert "alpine" in str(exc_info.value)
        assert exc_info.value.exit_code == EXIT_FAILURE

    def test_missing_os_release(self, make_host):
        with pytest.raises(UnsupportedPlatform):
            detect_layout(make_host(None))

    def test_detection_does_not_mutate(self, make_host):
        host = make_host("ubuntu")
        detect_layout(host)

        assert host.commands == []
        assert host.shells == ["uname -s", "uname -m"]


class TestLayouts:

    def test_debian_index_files(self):
        assert LAYOUTS["debian"].index_files == (
            "index.html", "index.htm", "index.nginx-debian.html"
        )

    def test_debian_vhost_has_no_suffix(self):
        assert LAYOUTS["debian"].vhost_filename("blog") == "blog"

    def test_layouts_are_immutable(self):
        with pytest.raises(AttributeError):
            LAYOUTS["debian"].docroot_base = "/srv"
