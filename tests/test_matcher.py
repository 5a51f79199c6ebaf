"""Tests for hostname → entry matching."""
import pytest

from securevault.models import VaultRecord
from securevault.matcher import match_domain, normalize_hostname


def _entry(platform: str) -> VaultRecord:
    return VaultRecord(platform=platform, username="bob", secret="p@ss")


@pytest.fixture
def github():
    return [_entry("Github")]


class TestNormalizeHostname:

    def test_strips_leading_www(self):
        assert normalize_hostname("www.github.com") == "github.com"

    def test_lowercases(self):
        assert normalize_hostname("  WWW.GitHub.COM ") == "github.com"

    def test_only_leading_www_removed(self):
        assert normalize_hostname("docs.www.example.com") == "docs.www.example.com"

    def test_empty(self):
        assert normalize_hostname("") == ""
        assert normalize_hostname(None) == ""


class TestMatchDomain:

    def test_exact_domain(self, github):
        assert match_domain(github, "github.com") is github[0]

    def test_www_domain(self, github):
        assert match_domain(github, "www.github.com") is github[0]

    def test_subdomain(self, github):
        assert match_domain(github, "gist.github.com") is github[0]

    def test_case_insensitive(self, github):
        assert match_domain(github, "GitHub.com") is github[0]

    def test_no_match(self, github):
        assert match_domain(github, "example.com") is None

    def test_host_contained_in_platform(self):
        """Bidirectional containment: a short host inside the platform name."""
        entries = [_entry("Mybank")]
        assert match_domain(entries, "bank") is entries[0]

    def test_dot_com_suffix_branch(self):
        """The hostname may match ``platform + '.com'`` only."""
        entries = [_entry("Git")]
        assert match_domain(entries, "it.com") is entries[0]

    def test_short_platform_false_positive(self):
        """Known limitation: 'git' matches 'github.com'."""
        entries = [_entry("Git")]
        assert match_domain(entries, "github.com") is entries[0]

    def test_first_entry_wins(self):
        entries = [_entry("Google"), _entry("Mail"), _entry("Gmail")]
        assert match_domain(entries, "mail.google.com") is entries[0]

    def test_list_order_decides(self):
        entries = [_entry("Mail"), _entry("Google")]
        assert match_domain(entries, "mail.google.com") is entries[0]

    def test_empty_inputs(self, github):
        assert match_domain([], "github.com") is None
        assert match_domain(github, "") is None
        assert match_domain(github, "www.") is None
