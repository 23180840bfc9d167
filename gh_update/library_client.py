from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence

from github import Auth, Github, GithubException
from github.Repository import Repository

from .config import DEFAULT_API_URL
from .models import CommitResult, RateLimitInfo

_LOGGER = logging.getLogger(__name__)


class LibraryFileUpdater:
    """Contents API access through PyGithub.

    PyGithub base64-encodes content itself, so text and bytes are handed over
    raw. Writes to existing files pass the SHA read just before.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30,
        github: Github | None = None,
    ) -> None:
        self._gh = github or Github(
            auth=Auth.Token(token), base_url=base_url.rstrip("/"), timeout=timeout
        )
        try:
            limits = self.rate_limit()
        except Exception:
            self._gh.close()
            raise
        _LOGGER.info("Connected to GitHub. Rate limit: %d/%d", limits.remaining, limits.limit)

    def _repository(self, owner: str, repo: str) -> Repository:
        return self._gh.get_repo(f"{owner}/{repo}")

    @staticmethod
    def _current_sha(repository: Repository, path: str, branch: str) -> str:
        existing = repository.get_contents(path, ref=branch)
        if isinstance(existing, list):
            raise GithubException(422, {"message": f"{path} is a directory"}, None)
        return existing.sha

    @staticmethod
    def _commit_result(response: dict[str, Any]) -> CommitResult:
        commit = response["commit"]
        return CommitResult(sha=commit.sha, url=commit.html_url)

    def update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        branch: str,
        content: str | bytes,
        message: str | None = None,
        sha: str | None = None,
    ) -> CommitResult:
        _LOGGER.info("Updating file: %s/%s/%s", owner, repo, path)
        repository = self._repository(owner, repo)
        current_sha = sha or self._current_sha(repository, path, branch)
        _LOGGER.info("Current file SHA: %s", current_sha)
        response = repository.update_file(
            path,
            message or f"Update {path} via PyGithub",
            content,
            current_sha,
            branch=branch,
        )
        result = self._commit_result(response)
        _LOGGER.info("File updated successfully. Commit: %s", result.sha)
        return result

    def create_file(
        self,
        owner: str,
        repo: str,
        path: str,
        branch: str,
        content: str | bytes,
        message: str | None = None,
    ) -> CommitResult:
        _LOGGER.info("Creating new file: %s/%s/%s", owner, repo, path)
        response = self._repository(owner, repo).create_file(
            path,
            message or f"Create {path} via PyGithub",
            content,
            branch=branch,
        )
        result = self._commit_result(response)
        _LOGGER.info("File created successfully. Commit: %s", result.sha)
        return result

    def update_binary_file(
        self,
        owner: str,
        repo: str,
        path: str,
        branch: str,
        data: bytes,
        message: str | None = None,
    ) -> CommitResult:
        _LOGGER.info("Updating binary file: %s/%s/%s (%d bytes)", owner, repo, path, len(data))
        return self.update_file(
            owner,
            repo,
            path,
            branch,
            bytes(data),
            message or f"Update binary file {path}",
        )

    def update_many_files(
        self,
        owner: str,
        repo: str,
        branch: str,
        paths: Sequence[str],
        contents: Sequence[str | bytes],
    ) -> list[CommitResult]:
        """Update files one after another, one commit each.

        Stops at the first failure; commits already made stay in place.
        """
        if len(paths) != len(contents):
            raise ValueError("File paths and contents must have the same length")
        total = len(paths)
        _LOGGER.info("Updating %d files sequentially", total)
        repository = self._repository(owner, repo)
        results: list[CommitResult] = []
        for index, (path, content) in enumerate(zip(paths, contents), start=1):
            try:
                response = repository.update_file(
                    path,
                    f"Update {path} (batch operation {index}/{total})",
                    content,
                    self._current_sha(repository, path, branch),
                    branch=branch,
                )
            except GithubException as exc:
                _LOGGER.error("Failed to update %s: %s", path, exc)
                raise
            results.append(self._commit_result(response))
            _LOGGER.info("Updated file %d/%d: %s", index, total, path)
        _LOGGER.info("All files updated successfully (in %d separate commits)", total)
        return results

    def delete_file(
        self,
        owner: str,
        repo: str,
        path: str,
        branch: str,
        message: str | None = None,
        sha: str | None = None,
    ) -> CommitResult:
        _LOGGER.info("Deleting file: %s/%s/%s", owner, repo, path)
        repository = self._repository(owner, repo)
        current_sha = sha or self._current_sha(repository, path, branch)
        response = repository.delete_file(
            path, message or f"Delete {path}", current_sha, branch=branch
        )
        result = self._commit_result(response)
        _LOGGER.info("File deleted successfully. Commit: %s", result.sha)
        return result

    def rate_limit(self) -> RateLimitInfo:
        remaining, limit = self._gh.rate_limiting
        reset = self._gh.rate_limiting_resettime
        return RateLimitInfo(
            remaining=remaining,
            limit=limit,
            reset=datetime.fromtimestamp(reset, tz=timezone.utc) if reset else None,
        )

    def close(self) -> None:
        self._gh.close()
