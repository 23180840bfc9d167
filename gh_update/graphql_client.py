from __future__ import annotations

import logging
import time
from typing import Any, Sequence

import httpx

from .config import DEFAULT_GRAPHQL_URL
from .errors import GitHubApiError, GraphQLError
from .models import CommitResult, FileChange

_LOGGER = logging.getLogger(__name__)

REPOSITORY_QUERY = """
query($owner: String!, $repo: String!, $branch: String!) {
  repository(owner: $owner, name: $repo) {
    id
    ref(qualifiedName: $branch) {
      target {
        ... on Commit {
          oid
        }
      }
    }
  }
}
"""

CREATE_COMMIT_MUTATION = """
mutation($input: CreateCommitOnBranchInput!) {
  createCommitOnBranch(input: $input) {
    commit {
      oid
      url
    }
  }
}
"""


class GraphQLCommitter:
    """Writes several file changes as one commit with ``createCommitOnBranch``.

    The mutation is guarded by ``expectedHeadOid``: GitHub rejects the whole
    commit if the branch head moved after it was read, so either every
    addition and deletion lands or none does.
    """

    def __init__(
        self,
        token: str,
        endpoint: str = DEFAULT_GRAPHQL_URL,
        timeout: float = 30,
        client: httpx.Client | None = None,
    ) -> None:
        self._endpoint = endpoint
        if client is None:
            client = httpx.Client(timeout=timeout)
        client.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            }
        )
        self._client = client

    def _execute(self, query: str, variables: dict[str, Any], action: str) -> dict[str, Any]:
        resp = self._client.post(
            self._endpoint, json={"query": query, "variables": variables}
        )
        if resp.is_error:
            raise GitHubApiError(
                f"Failed to {action}: {resp.status_code} - {resp.text or 'No error details'}",
                status_code=resp.status_code,
                body=resp.text,
            )
        payload = resp.json()
        if payload.get("errors"):
            raise GraphQLError(f"GraphQL errors: {payload['errors']}", payload["errors"])
        return payload.get("data") or {}

    def get_repository_info(self, owner: str, repo: str, branch: str) -> tuple[str, str]:
        """Return the repository node ID and the commit OID at the head of ``branch``."""
        data = self._execute(
            REPOSITORY_QUERY,
            {"owner": owner, "repo": repo, "branch": f"refs/heads/{branch}"},
            "get repository info",
        )
        repository = data.get("repository")
        if not repository:
            raise GraphQLError(f"Repository {owner}/{repo} not found")
        ref = repository.get("ref")
        if not ref:
            raise GraphQLError(f"Branch {branch} not found in {owner}/{repo}")
        return repository["id"], ref["target"]["oid"]

    @staticmethod
    def build_file_changes(changes: Sequence[FileChange]) -> dict[str, list[dict[str, str]]]:
        additions = [
            {"path": change.path, "contents": change.encoded_content()}
            for change in changes
            if not change.delete
        ]
        deletions = [{"path": change.path} for change in changes if change.delete]
        file_changes: dict[str, list[dict[str, str]]] = {}
        if additions:
            file_changes["additions"] = additions
        if deletions:
            file_changes["deletions"] = deletions
        return file_changes

    def create_atomic_commit(
        self,
        owner: str,
        repo: str,
        branch: str,
        message: str,
        changes: Sequence[FileChange],
        expected_head_oid: str | None = None,
    ) -> CommitResult:
        if not changes:
            raise ValueError("An atomic commit needs at least one file change")
        _LOGGER.info("Creating atomic commit with %d file changes", len(changes))

        if expected_head_oid is None:
            repo_id, expected_head_oid = self.get_repository_info(owner, repo, branch)
            _LOGGER.info("Repository ID: %s", repo_id)
        _LOGGER.info("Current HEAD: %s", expected_head_oid)

        commit_input = {
            "branch": {
                "repositoryNameWithOwner": f"{owner}/{repo}",
                "branchName": branch,
            },
            "message": {"headline": message},
            "fileChanges": self.build_file_changes(changes),
            "expectedHeadOid": expected_head_oid,
        }
        data = self._execute(
            CREATE_COMMIT_MUTATION, {"input": commit_input}, "create commit"
        )
        commit = (data.get("createCommitOnBranch") or {}).get("commit")
        if not commit:
            raise GraphQLError("createCommitOnBranch returned no commit")

        result = CommitResult(sha=commit["oid"], url=commit.get("url"))
        _LOGGER.info("Atomic commit created: %s (%s)", result.sha, result.url)
        return result

    def demonstrate_multi_file_update(self, owner: str, repo: str, branch: str) -> CommitResult:
        stamp = int(time.time() * 1000)
        changes = [
            FileChange(path=f"file{i}.txt", content=f"Content of file {i}\nUpdated at: {stamp}")
            for i in range(1, 4)
        ]
        _LOGGER.info(
            "Writing %d files in one atomic commit (the REST path needs %d commits)",
            len(changes),
            len(changes),
        )
        result = self.create_atomic_commit(
            owner,
            repo,
            branch,
            "Update multiple files atomically via GraphQL",
            changes,
        )
        _LOGGER.info("All %d files updated in single commit: %s", len(changes), result.sha)
        return result

    def close(self) -> None:
        self._client.close()
