"""Run orchestration: mirror, walk, render, deliver, persist.

Repositories are processed independently. A failure in one repository is
logged and recorded in the run report; it never stops the others and never
stages a watermark update for that repository.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from gitmon.core.cache import MirrorCache
from gitmon.core.config import (
    STATE_FILENAME,
    GitmonConfig,
    ensure_cache_root,
    expand_home,
    resolve_cache_root,
)
from gitmon.core.errors import DeliveryError, HistoryError, MirrorError
from gitmon.core.history import HistoryWalker
from gitmon.core.notifier import Destination, FileDestination, deliver
from gitmon.core.report import render_report
from gitmon.core.watermark import WatermarkStore
from gitmon.models.result import RepoResult, RunReport
from gitmon.models.state import WatermarkState

logger = logging.getLogger(__name__)


class GitMonitor:
    """Checks configured repositories for new commits and reports them."""

    def __init__(
        self,
        repos: Sequence[str],
        cache: MirrorCache,
        walker: HistoryWalker,
        store: WatermarkStore,
        template_path: Optional[Path] = None,
        max_commits: Optional[int] = None,
        jobs: int = 1,
        require_delivery: bool = False,
    ):
        # Same URL listed twice is checked once
        self.repos: List[str] = list(dict.fromkeys(repos))
        self.cache = cache
        self.walker = walker
        self.store = store
        self.template_path = template_path
        self.max_commits = max_commits
        self.jobs = max(1, jobs)
        self.require_delivery = require_delivery

    @classmethod
    def from_config(cls, config: GitmonConfig) -> "GitMonitor":
        """Wire up a monitor from the loaded configuration."""
        cache_root = ensure_cache_root(resolve_cache_root(config.cache_dir))
        template = expand_home(config.template_path) if config.template_path else None

        return cls(
            repos=config.repos,
            cache=MirrorCache(cache_root),
            walker=HistoryWalker(display_tz=config.display_tz()),
            store=WatermarkStore(cache_root / STATE_FILENAME),
            template_path=template,
            max_commits=config.max_commits,
            jobs=config.jobs,
            require_delivery=config.require_delivery,
        )

    def check_repo(self, url: str, last_seen: Optional[str]) -> RepoResult:
        """Mirror one repository and collect its new commits."""
        logger.debug("Checking remote repo: %s", url)
        try:
            local_path = self.cache.ensure_mirror(url)
        except MirrorError as e:
            logger.error("Failed to prepare repo %s: %s", url, e)
            return RepoResult(url=url, error=str(e))

        try:
            commits = self.walker.new_commits_since(local_path, last_seen, self.max_commits)
        except HistoryError as e:
            logger.error("Failed to read commits from %s: %s", url, e)
            return RepoResult(url=url, error=str(e))

        if not commits:
            logger.info("No new commits in %s", url)
        return RepoResult(url=url, commits=commits)

    def check_all(self, state: WatermarkState) -> List[RepoResult]:
        """Check every repository; results follow configuration order."""
        if self.jobs == 1 or len(self.repos) < 2:
            return [self.check_repo(url, state.get(url)) for url in self.repos]

        with ThreadPoolExecutor(max_workers=self.jobs) as pool:
            futures = [
                pool.submit(self.check_repo, url, state.get(url)) for url in self.repos
            ]
            return [future.result() for future in futures]

    def run(self, destination: Destination) -> RunReport:
        """Perform one complete monitoring pass."""
        state = self.store.load()
        report = RunReport()

        for result in self.check_all(state):
            if not result.ok:
                report.failures[result.url] = result.error
            elif result.commits:
                report.aggregate[result.url] = result.commits
                report.staged[result.url] = result.newest_id

        if not report.aggregate:
            logger.info("No new commits found.")
            return report

        report.html = render_report(report.aggregate, self.template_path)
        if isinstance(destination, FileDestination):
            report.output_path = destination.path

        try:
            deliver(report.html, destination)
            report.delivered = True
        except DeliveryError as e:
            logger.error("%s", e)
            report.delivery_error = str(e)

        if not report.delivered and self.require_delivery:
            logger.warning("Report not delivered; watermarks left unchanged")
            return report
        if not report.delivered:
            # Persisting here means these commits will not be reported again
            logger.warning(
                "Report not delivered; %d new commit(s) are still marked as seen",
                report.commit_count,
            )

        report.state_saved = self._persist(state, report.staged)
        return report

    def _persist(self, state: WatermarkState, staged: Dict[str, str]) -> bool:
        changed = False
        for url, commit_id in staged.items():
            changed = state.advance(url, commit_id) or changed
        if not changed:
            return False
        return self.store.save(state)
