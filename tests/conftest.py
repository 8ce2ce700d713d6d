import json
from unittest.mock import MagicMock

import httpx
import pytest
from openai import OpenAI

from gitea_reviewer.config import Settings
from gitea_reviewer.infrastructure import GiteaClient, LLMWorker

REPO_URL = "https://gitea.example.com/api/v1/repos/owner/repo"

SAMPLE_DIFF = """diff --git a/app.py b/app.py
index 83db48f..bf269f4 100644
--- a/app.py
+++ b/app.py
@@ -1,2 +1,3 @@
 def main():
     run()
+    cleanup()
"""

APPROVED_COMPLETION = json.dumps(
    {
        "body": "Looks good.",
        "comments": [
            {"body": "Consider a try/finally here.", "new_position": 3, "old_position": 0, "path": "app.py"}
        ],
        "event": "APPROVED",
    }
)


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path):
    monkeypatch.setenv("GITEA_REVIEWER_CONFIG", str(tmp_path / "config.yaml"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_settings():
    def _make(**overrides) -> Settings:
        values = {
            "gitea_token": "gitea-token",
            "gitea_username": "bot",
            "llm_base_url": "https://llm.example.com/v1",
            "llm_api_key": "llm-token",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def make_event():
    def _make(action="review_requested", reviewers=("bot",), requested_reviewer=None, number=7):
        payload = {
            "action": action,
            "pull_request": {
                "id": 100,
                "number": number,
                "title": "Fix bug",
                "requested_reviewers": [{"username": name} for name in reviewers],
            },
            "repository": {"name": "repo", "full_name": "owner/repo", "url": REPO_URL},
            "sender": {"login": "alice"},
        }
        if requested_reviewer is not None:
            payload["requested_reviewer"] = {"username": requested_reviewer}
        return payload

    return _make


def make_response(status_code=200, json_body=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text if json_body is None else json.dumps(json_body)
    resp.json.return_value = json_body
    return resp


@pytest.fixture
def gitea_session():
    """A ``requests.Session`` stand-in serving one PR's metadata and diff."""
    session = MagicMock()
    session.headers = {}

    def _get(url, timeout=None):
        if url == f"{REPO_URL}/pulls/7":
            return make_response(json_body={"title": "Fix bug", "body": "Fixes #1"})
        if url == f"{REPO_URL}/pulls/7.diff":
            return make_response(text=SAMPLE_DIFF)
        return make_response(status_code=404, text="not found")

    session.get.side_effect = _get
    session.post.return_value = make_response(json_body={"id": 1})
    return session


@pytest.fixture
def gitea(gitea_session):
    return GiteaClient("gitea-token", session=gitea_session)


def completion_payload(content):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "test-model",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


class LLMServer:
    """Records chat-completion requests and replies with a fixed response."""

    def __init__(self, status_code=200, content=APPROVED_COMPLETION, body=None):
        self.status_code = status_code
        self.content = content
        self.body = body
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": {"message": "boom"}})
        body = self.body if self.body is not None else completion_payload(self.content)
        return httpx.Response(200, json=body)


@pytest.fixture
def llm_server():
    return LLMServer()


@pytest.fixture
def make_llm(settings):
    def _make(server: LLMServer, worker_settings=None) -> LLMWorker:
        client = OpenAI(
            api_key="llm-token",
            base_url="https://llm.example.com/v1",
            max_retries=0,
            http_client=httpx.Client(transport=httpx.MockTransport(server)),
        )
        return LLMWorker(worker_settings or settings, client=client)

    return _make
