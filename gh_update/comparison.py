from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

from .config import Options
from .graphql_client import GraphQLCommitter
from .library_client import LibraryFileUpdater
from .models import ApproachOutcome, CommitResult
from .rest_client import RestFileUpdater

_LOGGER = logging.getLogger(__name__)

APPROACH_TITLES = {
    "library": "PyGithub (high-level client)",
    "rest": "Direct REST API (httpx)",
    "graphql": "GraphQL API (multi-file commit)",
}

RECOMMENDATIONS = """\
1. PYGITHUB (high-level client)
   Pros:
   - Most mature and well-documented Python client
   - High-level abstraction, easy to use
   - Supports single file updates without checkout
   Cons:
   - Multiple API calls for multi-file updates
   - Less control over raw HTTP details
   Recommendation: BEST for most use cases

2. DIRECT REST API (httpx)
   Pros:
   - Maximum control and flexibility
   - No dependency on third-party client bugs
   - Can implement custom retry/rate-limit logic
   Cons:
   - More boilerplate code
   - Need to handle GitHub API changes manually
   Recommendation: Good for edge cases or custom needs

3. GRAPHQL API
   Pros:
   - Atomic multi-file commits (single operation)
   - More efficient for batch operations
   - Better rate limit utilization
   Cons:
   - More complex query construction
   - Overkill for single file updates
   Recommendation: Use for multi-file operations

CONCLUSION:
All three approaches update files WITHOUT checking out the repository.
- Use PyGithub for general use
- Use GraphQL for batch file operations
- Use direct REST for maximum control"""


class ComparisonRunner:
    """Runs the three update paths against one repository, one after another."""

    def __init__(self, options: Options) -> None:
        if not options.github_token:
            raise RuntimeError("A GitHub token is required")
        for field in ("owner", "repo", "file_path"):
            if not getattr(options, field):
                raise RuntimeError(f"Missing required option: {field}")
        self.options = options

    def run(self) -> list[ApproachOutcome]:
        _LOGGER.info("--- Test 1: PyGithub (high-level client) ---")
        outcomes = [self._timed("library", self._run_library)]
        _LOGGER.info("--- Test 2: Direct REST API with httpx ---")
        outcomes.append(self._timed("rest", self._run_rest))
        _LOGGER.info("--- Test 3: GraphQL API (for multi-file updates) ---")
        outcomes.append(self._timed("graphql", self._run_graphql))
        return outcomes

    def _timed(
        self, approach: str, step: Callable[[], tuple[list[CommitResult], list[str]]]
    ) -> ApproachOutcome:
        started = time.perf_counter()
        try:
            results, notes = step()
        except Exception as exc:  # noqa: BLE001
            duration_ms = int((time.perf_counter() - started) * 1000)
            _LOGGER.exception("Failed: %s", exc)
            return ApproachOutcome(
                approach=approach,
                success=False,
                duration_ms=duration_ms,
                error=str(exc),
            )
        duration_ms = int((time.perf_counter() - started) * 1000)
        commits = [result.sha for result in results]
        _LOGGER.info("Success! Commit SHA: %s", ", ".join(commits))
        _LOGGER.info("  Duration: %dms", duration_ms)
        for note in notes:
            _LOGGER.info("  %s", note)
        return ApproachOutcome(
            approach=approach,
            success=True,
            duration_ms=duration_ms,
            commits=commits,
            notes=notes,
        )

    def _stamp(self, label: str) -> str:
        return f"Updated via {label} at {int(time.time() * 1000)}"

    def _run_library(self) -> tuple[list[CommitResult], list[str]]:
        opts = self.options
        updater = LibraryFileUpdater(opts.github_token, base_url=opts.api_url, timeout=opts.timeout)
        try:
            result = updater.update_file(
                opts.owner, opts.repo, opts.file_path, opts.branch, self._stamp("PyGithub")
            )
        finally:
            updater.close()
        return [result], ["Memory efficient: YES (no checkout required)"]

    def _run_rest(self) -> tuple[list[CommitResult], list[str]]:
        opts = self.options
        updater = RestFileUpdater(opts.github_token, base_url=opts.api_url, timeout=opts.timeout)
        try:
            result = updater.update_file(
                opts.owner, opts.repo, opts.file_path, opts.branch, self._stamp("REST API")
            )
        finally:
            updater.close()
        return [result], [
            "Memory efficient: YES (no checkout required)",
            "Adaptability: HIGH (direct control over HTTP requests)",
        ]

    def _run_graphql(self) -> tuple[list[CommitResult], list[str]]:
        opts = self.options
        committer = GraphQLCommitter(
            opts.github_token, endpoint=opts.graphql_url, timeout=opts.timeout
        )
        try:
            result = committer.demonstrate_multi_file_update(opts.owner, opts.repo, opts.branch)
        finally:
            committer.close()
        return [result], ["Efficiency: HIGH (atomic multi-file commits)"]


def render_summary(outcomes: Sequence[ApproachOutcome]) -> str:
    """Format the results table followed by the fixed evaluation notes."""
    lines = [
        "=" * 47,
        "EVALUATION SUMMARY",
        "=" * 47,
        "",
        f"{'Approach':<34} {'Result':<7} {'Time':>8}  Commit",
        f"{'-' * 34} {'-' * 7} {'-' * 8}  {'-' * 12}",
    ]
    for outcome in outcomes:
        title = APPROACH_TITLES.get(outcome.approach, outcome.approach)
        status = "OK" if outcome.success else "FAILED"
        if outcome.success:
            detail = ", ".join(sha[:12] for sha in outcome.commits) or "-"
        else:
            detail = outcome.error or "unknown error"
        lines.append(f"{title:<34} {status:<7} {outcome.duration_ms:>6}ms  {detail}")
    lines.append("")
    lines.append(RECOMMENDATIONS)
    return "\n".join(lines)
