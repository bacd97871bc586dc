"""Tests for HTML report rendering and commit link derivation."""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from gitmon.core.report import (
    LINK_RULES,
    LinkRule,
    commit_url,
    render_commit_id,
    render_report,
    render_tables,
    trim_after_domain,
)
from gitmon.models.commit import CommitRecord

COMMIT_ID = "0123456789abcdef0123456789abcdef01234567"


def make_record(commit_id=COMMIT_ID, change_id=None, author="Alice", summary="Fix bug"):
    return CommitRecord(
        id=commit_id,
        authored_at=datetime(2024, 3, 4, 5, 6, 7, tzinfo=timezone.utc),
        author=author,
        summary=summary,
        change_id=change_id,
    )


class TestCommitUrl:
    def test_github(self):
        url = commit_url("https://github.com/owner/repo.git", make_record())
        assert url == f"https://github.com/owner/repo/commit/{COMMIT_ID}"

    def test_github_without_git_suffix(self):
        url = commit_url("https://github.com/owner/repo", make_record())
        assert url == f"https://github.com/owner/repo/commit/{COMMIT_ID}"

    def test_gitlab(self):
        url = commit_url("https://gitlab.com/group/repo.git", make_record())
        assert url == f"https://gitlab.com/group/repo/-/commit/{COMMIT_ID}.patch"

    def test_bitbucket(self):
        url = commit_url("https://bitbucket.org/team/repo.git", make_record())
        assert url == f"https://bitbucket.org/team/repo/commits/{COMMIT_ID}.patch"

    def test_gerrit_with_change_id(self):
        url = commit_url("https://gerrit.fd.io/r/vpp.git", make_record(change_id="Iabc123"))
        assert url == "https://gerrit.fd.io/r/q/Iabc123"

    def test_gerrit_without_change_id(self):
        assert commit_url("https://gerrit.fd.io/r/vpp", make_record()) is None

    def test_unknown_host(self):
        assert commit_url("https://git.example.org/repo.git", make_record()) is None

    def test_ssh_remote_has_no_link(self):
        assert commit_url("git@github.com:owner/repo.git", make_record()) is None

    def test_custom_rule_table(self):
        rules = [LinkRule("git.example.org", "{base}/c/{id}")]
        url = commit_url("https://git.example.org/repo.git", make_record(), rules)
        assert url == f"https://git.example.org/repo/c/{COMMIT_ID}"

    def test_first_matching_rule_wins(self):
        # A GitHub mirror of a Gerrit project still links to GitHub
        url = commit_url(
            "https://github.com/gerrit-mirror/repo.git", make_record(change_id="I1")
        )
        assert url == f"https://github.com/gerrit-mirror/repo/commit/{COMMIT_ID}"

    def test_default_rules_cover_known_hosts(self):
        assert [r.host for r in LINK_RULES] == [
            "github.com",
            "gitlab.com",
            "bitbucket.org",
            "gerrit",
        ]


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://gerrit.fd.io/r/vpp", "https://gerrit.fd.io"),
        ("https://review.example.com", "https://review.example.com"),
        ("review.example.com/r/project", "review.example.com"),
    ],
)
def test_trim_after_domain(url, expected):
    assert trim_after_domain(url) == expected


def test_render_commit_id_links_known_hosts():
    html = render_commit_id("https://github.com/owner/repo.git", make_record())
    assert html == (
        f'<a href="https://github.com/owner/repo/commit/{COMMIT_ID}">{COMMIT_ID}</a>'
    )


def test_render_commit_id_bare_for_unknown_hosts():
    html = render_commit_id("https://git.example.org/repo.git", make_record())
    assert html == COMMIT_ID
    assert "<a" not in html


def test_tables_skip_repositories_without_commits():
    aggregate = {
        "https://github.com/owner/empty.git": [],
        "https://github.com/owner/busy.git": [make_record()],
    }

    tables = render_tables(aggregate)

    assert "empty.git" not in tables
    assert tables.count("<h2>") == 1
    assert "<h2>Repository: https://github.com/owner/busy.git</h2>" in tables


def test_tables_keep_commit_order():
    records = [make_record("c" * 40, summary="third"), make_record("b" * 40, summary="second")]

    tables = render_tables({"https://git.example.org/repo.git": records})

    assert tables.index("third") < tables.index("second")
    assert tables.count("<tr>") == 3  # header plus two rows
    assert "<td>2024-03-04 05:06:07</td>" in tables


def test_tables_escape_commit_text():
    record = make_record(author="Eve <eve@example.com>", summary="Use <b> & co")

    tables = render_tables({"https://git.example.org/repo.git": [record]})

    assert "Eve &lt;eve@example.com&gt;" in tables
    assert "Use &lt;b&gt; &amp; co" in tables


def test_default_wrapper():
    html = render_report({"https://github.com/o/r.git": [make_record()]})

    assert html.startswith("<html><body><h1>Git Commit Report</h1>")
    assert html.endswith("</table></body></html>")


def test_template_placeholder_is_replaced():
    with tempfile.TemporaryDirectory() as temp_dir:
        template = Path(temp_dir) / "template.html"
        template.write_text("<html><body><p>Daily</p>{{tables}}</body></html>")

        html = render_report({"https://github.com/o/r.git": [make_record()]}, template)

    assert html.startswith("<html><body><p>Daily</p><h2>Repository:")
    assert "{{tables}}" not in html
    assert "Git Commit Report" not in html


def test_unreadable_template_falls_back_to_default():
    with tempfile.TemporaryDirectory() as temp_dir:
        missing = Path(temp_dir) / "missing.html"

        html = render_report({"https://github.com/o/r.git": [make_record()]}, missing)

    assert html.startswith("<html><body><h1>Git Commit Report</h1>")


def test_non_utf8_template_falls_back_to_default():
    with tempfile.TemporaryDirectory() as temp_dir:
        template = Path(temp_dir) / "template.html"
        template.write_bytes(b"<html>\xff\xfe caf\xe9 {{tables}}</html>")

        html = render_report({"https://github.com/o/r.git": [make_record()]}, template)

    assert html.startswith("<html><body><h1>Git Commit Report</h1>")
    assert "<h2>Repository: https://github.com/o/r.git</h2>" in html
