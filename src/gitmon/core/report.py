"""HTML report rendering for new commits."""

import html
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from gitmon.models.commit import CommitRecord

logger = logging.getLogger(__name__)

TEMPLATE_PLACEHOLDER = "{{tables}}"
DEFAULT_WRAPPER = "<html><body><h1>Git Commit Report</h1>{tables}</body></html>"
TABLE_HEADER = (
    '<h2>Repository: {repo}</h2><table border="1">'
    "<tr><th>ID</th><th>Date</th><th>Author</th><th>Message</th></tr>"
)
ROW = "<tr><td>{id}</td><td>{date}</td><td>{author}</td><td>{message}</td></tr>"


@dataclass(frozen=True)
class LinkRule:
    """Maps repositories whose URL contains ``host`` to a commit URL."""

    host: str
    template: str
    needs_change_id: bool = False

    def matches(self, repo_url: str, commit: CommitRecord) -> bool:
        if self.host not in repo_url:
            return False
        return commit.change_id is not None or not self.needs_change_id


# Checked in order; the first matching rule wins.
LINK_RULES: List[LinkRule] = [
    LinkRule("github.com", "{base}/commit/{id}"),
    LinkRule("gitlab.com", "{base}/-/commit/{id}.patch"),
    LinkRule("bitbucket.org", "{base}/commits/{id}.patch"),
    LinkRule("gerrit", "{origin}/r/q/{change_id}", needs_change_id=True),
]


def trim_after_domain(url: str) -> str:
    """Cut a URL after its authority, keeping any scheme."""
    scheme, sep, rest = url.partition("://")
    if not sep:
        scheme, rest = "", url
    host = rest.split("/", 1)[0]
    return f"{scheme}{sep}{host}"


def commit_url(
    repo_url: str, commit: CommitRecord, rules: Sequence[LinkRule] = LINK_RULES
) -> Optional[str]:
    """Get a browsable URL for a commit, or None if no rule applies."""
    base = repo_url.removesuffix(".git")
    for rule in rules:
        if rule.matches(repo_url, commit):
            url = rule.template.format(
                base=base,
                origin=trim_after_domain(base),
                id=commit.id,
                change_id=commit.change_id,
            )
            # SSH-style remotes do not give a usable web link
            return url if url.startswith("http") else None
    return None


def render_commit_id(
    repo_url: str, commit: CommitRecord, rules: Sequence[LinkRule] = LINK_RULES
) -> str:
    url = commit_url(repo_url, commit, rules)
    if url is None:
        return commit.id
    return f'<a href="{html.escape(url)}">{commit.id}</a>'


def render_tables(
    aggregate: Mapping[str, Sequence[CommitRecord]],
    rules: Sequence[LinkRule] = LINK_RULES,
) -> str:
    """Render one heading and table per repository that has commits."""
    parts: List[str] = []
    for repo_url, commits in aggregate.items():
        if not commits:
            continue
        parts.append(TABLE_HEADER.format(repo=html.escape(repo_url)))
        for commit in commits:
            parts.append(
                ROW.format(
                    id=render_commit_id(repo_url, commit, rules),
                    date=commit.display_date,
                    author=html.escape(commit.author),
                    message=html.escape(commit.summary),
                )
            )
        parts.append("</table>")
    return "".join(parts)


def _read_template(template_path: Optional[Path]) -> Optional[str]:
    if template_path is None:
        return None
    try:
        return Path(template_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Template %s unavailable, using default: %s", template_path, e)
        return None


def render_report(
    aggregate: Mapping[str, Sequence[CommitRecord]],
    template_path: Optional[Path] = None,
    rules: Sequence[LinkRule] = LINK_RULES,
) -> str:
    """Render the full HTML document for a run."""
    tables = render_tables(aggregate, rules)

    template = _read_template(template_path)
    if template is not None:
        return template.replace(TEMPLATE_PLACEHOLDER, tables)

    return DEFAULT_WRAPPER.format(tables=tables)

