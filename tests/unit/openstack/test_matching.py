"""Tests for image and flavor reference matching."""

import re

import pytest

from osprov.openstack.matching import compile_reference, find_matching
from tests.fixtures.openstack_resources import make_resource

CATALOG = [
    make_resource("1", "ubuntu-20.04"),
    make_resource("2", "Ubuntu-22.04"),
    make_resource("3", "1"),
    make_resource("abc-123", "centos-9"),
]


@pytest.mark.unit
class TestFindMatching:
    """Test lookup by id, exact name and regex."""

    def test_exact_id(self):
        assert find_matching(CATALOG, "abc-123").name == "centos-9"

    def test_exact_name(self):
        assert find_matching(CATALOG, "ubuntu-20.04").id == "1"

    def test_id_match_wins_over_name_match(self):
        """Test an id match anywhere beats an earlier-scanned name match."""
        assert find_matching(CATALOG, "1").name == "ubuntu-20.04"

    def test_non_string_reference(self):
        assert find_matching(CATALOG, 3).name == "1"

    def test_regex_returns_first_match(self):
        assert find_matching(CATALOG, "/ubuntu/").id == "1"

    def test_regex_searches_anywhere_in_name(self):
        assert find_matching(CATALOG, "/22\\.04/").id == "2"

    def test_regex_ignore_case_flag(self):
        assert find_matching(CATALOG, "/^UBUNTU-22/i").id == "2"

    def test_regex_is_case_sensitive_by_default(self):
        assert find_matching(CATALOG, "/^UBUNTU/") is None

    def test_no_match(self):
        assert find_matching(CATALOG, "debian-12") is None

    def test_empty_collection(self):
        assert find_matching([], "ubuntu") is None

    def test_lazy_collection_consumed_once(self):
        """Test paginated listings (generators) are supported."""
        listing = (item for item in CATALOG)

        assert find_matching(listing, "centos-9").id == "abc-123"

    def test_unnamed_items_skipped_by_regex(self):
        catalog = [make_resource("x", None), make_resource("y", "fedora")]

        assert find_matching(catalog, "/fed/").id == "y"


@pytest.mark.unit
class TestCompileReference:
    """Test /pattern/flags parsing."""

    def test_flags(self):
        regex = compile_reference("/a.b/imx")

        assert regex.pattern == "a.b"
        assert regex.flags & re.IGNORECASE
        assert regex.flags & re.DOTALL
        assert regex.flags & re.VERBOSE

    def test_slashes_inside_pattern(self):
        assert compile_reference("/images/ubuntu/").pattern == "images/ubuntu"

    def test_missing_closing_slash(self):
        assert compile_reference("/ubuntu").pattern == "ubuntu"

    def test_unsupported_flag(self):
        with pytest.raises(ValueError, match="Unsupported regex flag"):
            compile_reference("/ubuntu/q")

    def test_invalid_pattern(self):
        with pytest.raises(ValueError, match="Invalid regex"):
            compile_reference("/ubuntu[/")
