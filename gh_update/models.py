from __future__ import annotations

import base64
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class FileChange(BaseModel):
    path: str
    content: str | bytes | None = None
    delete: bool = False

    @model_validator(mode="after")
    def _check_content(self) -> "FileChange":
        if self.delete and self.content is not None:
            raise ValueError(f"Deletion of {self.path} must not carry content")
        if not self.delete and self.content is None:
            raise ValueError(f"Change to {self.path} requires content")
        return self

    @classmethod
    def deletion(cls, path: str) -> "FileChange":
        return cls(path=path, delete=True)

    def raw_bytes(self) -> bytes:
        if isinstance(self.content, bytes):
            return self.content
        return (self.content or "").encode("utf-8")

    def encoded_content(self) -> str:
        return encode_content(self.raw_bytes())


def encode_content(data: str | bytes) -> str:
    """Base64 wire form of file content; text is UTF-8 encoded first."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("ascii")


class CommitResult(BaseModel):
    sha: str
    url: str | None = None


class RateLimitInfo(BaseModel):
    remaining: int
    limit: int
    reset: datetime | None = None


class ApproachOutcome(BaseModel):
    approach: Literal["library", "rest", "graphql"]
    success: bool
    duration_ms: int
    commits: list[str] = Field(default_factory=list)
    error: str | None = None
    notes: list[str] = Field(default_factory=list)
