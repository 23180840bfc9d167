"""In-memory GitHub endpoints served through httpx.MockTransport."""

import base64
import hashlib
import json

import httpx
import pytest

from gh_update.graphql_client import GraphQLCommitter
from gh_update.rest_client import RestFileUpdater

OWNER = "octo"
REPO = "spike"
BRANCH = "main"


def _blob_sha(data: bytes) -> str:
    return hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()


class FakeGitHubRepo:
    """Single-branch repository state shared by the fake endpoints."""

    def __init__(self, files=None):
        self.files = {}
        self.commits = []
        self.requests = []
        self.head = self._new_commit("initial")
        self.commits.clear()
        for path, data in (files or {}).items():
            self.files[path] = data if isinstance(data, bytes) else data.encode("utf-8")

    def sha_of(self, path):
        return _blob_sha(self.files[path])

    def _new_commit(self, message):
        oid = hashlib.sha1(f"{len(self.commits)}:{message}".encode()).hexdigest()
        self.commits.append({"oid": oid, "message": message})
        return oid

    def commit(self, message):
        self.head = self._new_commit(message)
        return self.head

    # REST contents API

    def rest_handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/rate_limit":
            return httpx.Response(
                200,
                json={"resources": {"core": {"remaining": 4990, "limit": 5000, "reset": 1700000000}}},
            )
        prefix = f"/repos/{OWNER}/{REPO}/contents/"
        if not path.startswith(prefix):
            return httpx.Response(404, json={"message": "Not Found"})
        file_path = path[len(prefix):]
        if request.method == "GET":
            return self._get(file_path)
        body = json.loads(request.content or b"{}")
        if request.method == "PUT":
            return self._put(file_path, body)
        if request.method == "DELETE":
            return self._delete(file_path, body)
        return httpx.Response(405)

    def _get(self, file_path):
        if file_path not in self.files:
            return httpx.Response(404, json={"message": "Not Found"})
        data = self.files[file_path]
        return httpx.Response(
            200,
            json={
                "path": file_path,
                "sha": self.sha_of(file_path),
                "content": base64.b64encode(data).decode("ascii"),
                "encoding": "base64",
            },
        )

    def _check_sha(self, file_path, body):
        if "sha" not in body:
            return httpx.Response(422, json={"message": '"sha" wasn\'t supplied.'})
        if body["sha"] != self.sha_of(file_path):
            return httpx.Response(
                409, json={"message": f"{file_path} does not match {body['sha']}"}
            )
        return None

    def _commit_payload(self, oid):
        return {"sha": oid, "html_url": f"https://github.com/{OWNER}/{REPO}/commit/{oid}"}

    def _put(self, file_path, body):
        exists = file_path in self.files
        if exists:
            rejected = self._check_sha(file_path, body)
            if rejected is not None:
                return rejected
        self.files[file_path] = base64.b64decode(body["content"])
        oid = self.commit(body["message"])
        return httpx.Response(
            200 if exists else 201,
            json={
                "content": {"path": file_path, "sha": self.sha_of(file_path)},
                "commit": self._commit_payload(oid),
            },
        )

    def _delete(self, file_path, body):
        if file_path not in self.files:
            return httpx.Response(404, json={"message": "Not Found"})
        rejected = self._check_sha(file_path, body)
        if rejected is not None:
            return rejected
        del self.files[file_path]
        oid = self.commit(body["message"])
        return httpx.Response(200, json={"content": None, "commit": self._commit_payload(oid)})

    # GraphQL API

    def graphql_handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        payload = json.loads(request.content)
        if "createCommitOnBranch" in payload["query"]:
            return self._create_commit(payload["variables"]["input"])
        variables = payload["variables"]
        if variables["repo"] != REPO:
            return httpx.Response(
                200,
                json={
                    "data": {"repository": None},
                    "errors": [{"type": "NOT_FOUND", "message": "Could not resolve to a Repository"}],
                },
            )
        ref = None
        if variables["branch"] == f"refs/heads/{BRANCH}":
            ref = {"target": {"oid": self.head}}
        return httpx.Response(
            200, json={"data": {"repository": {"id": "R_kgDOspike", "ref": ref}}}
        )

    def _create_commit(self, commit_input):
        if commit_input["expectedHeadOid"] != self.head:
            return httpx.Response(
                200,
                json={
                    "data": {"createCommitOnBranch": None},
                    "errors": [
                        {
                            "type": "STALE_DATA",
                            "message": f"Expected branch to point to \"{commit_input['expectedHeadOid']}\" but it did not.",
                        }
                    ],
                },
            )
        changes = commit_input["fileChanges"]
        for addition in changes.get("additions", []):
            self.files[addition["path"]] = base64.b64decode(addition["contents"])
        for deletion in changes.get("deletions", []):
            self.files.pop(deletion["path"], None)
        oid = self.commit(commit_input["message"]["headline"])
        return httpx.Response(
            200,
            json={
                "data": {
                    "createCommitOnBranch": {
                        "commit": {"oid": oid, "url": f"https://github.com/{OWNER}/{REPO}/commit/{oid}"}
                    }
                }
            },
        )


@pytest.fixture
def fake_repo():
    return FakeGitHubRepo(
        files={
            "README.md": "# Spike\n",
            "docs/guide.md": "guide v1\n",
            "logo.png": b"\x89PNG\r\n\x1a\n\x00\x01",
        }
    )


@pytest.fixture
def rest_updater(fake_repo):
    client = httpx.Client(
        base_url="https://api.github.com",
        transport=httpx.MockTransport(fake_repo.rest_handler),
    )
    updater = RestFileUpdater("test-token", client=client)
    yield updater
    updater.close()


@pytest.fixture
def graphql_committer(fake_repo):
    client = httpx.Client(transport=httpx.MockTransport(fake_repo.graphql_handler))
    committer = GraphQLCommitter("test-token", client=client)
    yield committer
    committer.close()
