from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence
from urllib.parse import quote

import httpx

from .config import DEFAULT_API_URL
from .errors import GitHubApiError
from .models import CommitResult, RateLimitInfo, encode_content

_LOGGER = logging.getLogger(__name__)
API_VERSION = "2022-11-28"


class RestFileUpdater:
    """Contents API client built from explicit requests.

    Every write is a single commit. Updates and deletions first read the
    file's blob SHA and send it back, so GitHub rejects the write with 409
    when the file moved in between.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30,
        client: httpx.Client | None = None,
    ) -> None:
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }
        if client is None:
            client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)
        client.headers.update(headers)
        self._client = client

    @staticmethod
    def _contents_url(owner: str, repo: str, path: str) -> str:
        return f"/repos/{owner}/{repo}/contents/{quote(path.lstrip('/'))}"

    def _send(self, method: str, url: str, action: str, **kwargs: Any) -> dict[str, Any]:
        resp = self._client.request(method, url, **kwargs)
        if resp.is_error:
            raise GitHubApiError(
                f"Failed to {action}: {resp.status_code} - {resp.text or 'No error details'}",
                status_code=resp.status_code,
                body=resp.text,
            )
        return resp.json()

    @staticmethod
    def _commit_result(payload: dict[str, Any]) -> CommitResult:
        commit = payload["commit"]
        return CommitResult(sha=commit["sha"], url=commit.get("html_url"))

    def get_file_sha(self, owner: str, repo: str, path: str, branch: str) -> str:
        data = self._send(
            "GET",
            self._contents_url(owner, repo, path),
            "get file SHA",
            params={"ref": branch},
        )
        if isinstance(data, list):
            raise GitHubApiError(f"{path} is a directory, not a file")
        return data["sha"]

    def _put_content(
        self,
        owner: str,
        repo: str,
        path: str,
        branch: str,
        content: str | bytes,
        message: str,
        sha: str | None,
        action: str,
    ) -> CommitResult:
        body: dict[str, Any] = {
            "message": message,
            "content": encode_content(content),
            "branch": branch,
        }
        if sha:
            body["sha"] = sha
        data = self._send("PUT", self._contents_url(owner, repo, path), action, json=body)
        return self._commit_result(data)

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
        _LOGGER.info("Updating file via REST API: %s/%s/%s", owner, repo, path)
        current_sha = sha or self.get_file_sha(owner, repo, path, branch)
        _LOGGER.info("Current file SHA: %s", current_sha)
        result = self._put_content(
            owner,
            repo,
            path,
            branch,
            content,
            message or f"Update {path} via REST API",
            current_sha,
            "update file",
        )
        _LOGGER.info("File updated successfully via REST. Commit: %s", result.sha)
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
        _LOGGER.info("Creating new file via REST API: %s/%s/%s", owner, repo, path)
        result = self._put_content(
            owner,
            repo,
            path,
            branch,
            content,
            message or f"Create {path} via REST API",
            None,
            "create file",
        )
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
        if len(paths) != len(contents):
            raise ValueError("File paths and contents must have the same length")
        total = len(paths)
        _LOGGER.info("Updating %d files sequentially via REST API", total)
        results: list[CommitResult] = []
        for index, (path, content) in enumerate(zip(paths, contents), start=1):
            try:
                results.append(
                    self.update_file(
                        owner,
                        repo,
                        path,
                        branch,
                        content,
                        f"Update {path} (batch operation {index}/{total})",
                    )
                )
            except GitHubApiError as exc:
                _LOGGER.error("Failed to update %s: %s", path, exc)
                raise
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
        _LOGGER.info("Deleting file via REST API: %s/%s/%s", owner, repo, path)
        current_sha = sha or self.get_file_sha(owner, repo, path, branch)
        body = {
            "message": message or f"Delete {path} via REST API",
            "sha": current_sha,
            "branch": branch,
        }
        data = self._send(
            "DELETE", self._contents_url(owner, repo, path), "delete file", json=body
        )
        result = self._commit_result(data)
        _LOGGER.info("File deleted successfully. Commit: %s", result.sha)
        return result

    def check_rate_limit(self) -> RateLimitInfo:
        data = self._send("GET", "/rate_limit", "get rate limit")
        core = data["resources"]["core"]
        info = RateLimitInfo(
            remaining=core["remaining"],
            limit=core["limit"],
            reset=datetime.fromtimestamp(core["reset"], tz=timezone.utc),
        )
        _LOGGER.info("Rate limit: %d/%d remaining, reset at %s", info.remaining, info.limit, info.reset)
        return info

    def close(self) -> None:
        self._client.close()
