from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, PositiveFloat, ValidationError

OPTIONS_PATH = Path(os.getenv("GH_UPDATE_OPTIONS_FILE", "./options.json"))
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"


class Options(BaseModel):
    github_token: str | None = None
    owner: str | None = None
    repo: str | None = None
    file_path: str | None = None
    branch: str = "main"
    api_url: str = DEFAULT_API_URL
    graphql_url: str = DEFAULT_GRAPHQL_URL
    timeout: PositiveFloat = 30
    log_level: str = Field(default="info", pattern=r"^(debug|info|warning|error)$")

    @property
    def repo_full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def public_config(self) -> dict[str, Any]:
        data = self.model_dump()
        data.pop("github_token", None)
        return data


def _load_raw_options(path: Path = OPTIONS_PATH) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    token = os.getenv("GITHUB_TOKEN")
    if token:
        overrides["github_token"] = token
    log_level = os.getenv("GH_UPDATE_LOG_LEVEL")
    if log_level:
        overrides["log_level"] = log_level.lower()
    return overrides


def load_options(path: Path = OPTIONS_PATH) -> Options:
    raw = _load_raw_options(path)
    raw.update(_env_overrides())
    try:
        return Options(**raw)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid options: {exc}") from exc
