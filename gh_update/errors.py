from __future__ import annotations

from typing import Any


class GitHubApiError(RuntimeError):
    """Raised when GitHub answers with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class GraphQLError(GitHubApiError):
    """Raised when a GraphQL response carries an ``errors`` list."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message, status_code=200)
        self.errors = errors or []
