from unittest.mock import MagicMock

import pytest
import requests

from gitea_reviewer.infrastructure import GiteaClient
from gitea_reviewer.review import (
    InlineComment,
    OldFilePosition,
    PublishError,
    PullRequestContext,
    ReviewVerdict,
    UpstreamFetchError,
)

REPO_URL = "https://gitea.example.com/api/v1/repos/owner/repo"


def _response(status_code=200, text="", json_body=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    resp.json.return_value = json_body
    return resp


class TestFetchContext:
    def test_context_from_metadata_and_diff(self, gitea, gitea_session):
        context = gitea.get_pr_context(REPO_URL, 7)

        assert isinstance(context, PullRequestContext)
        assert context.title == "Fix bug"
        assert context.description == "Fixes #1"
        assert context.diff.startswith("diff --git a/app.py b/app.py")
        assert "+    cleanup()" in context.diff
        urls = [c.args[0] for c in gitea_session.get.call_args_list]
        assert urls == [f"{REPO_URL}/pulls/7", f"{REPO_URL}/pulls/7.diff"]

    def test_auth_header(self, gitea_session):
        GiteaClient("secret", session=gitea_session)
        assert gitea_session.headers["Authorization"] == "token secret"

    def test_timeout_passed(self, gitea_session):
        GiteaClient("secret", timeout=5, session=gitea_session).get_pr_diff(REPO_URL, 7)
        assert gitea_session.get.call_args.kwargs["timeout"] == 5

    def test_null_body_is_empty_description(self, gitea, gitea_session):
        gitea_session.get.side_effect = [
            _response(json_body={"title": "t", "body": None}),
            _response(text="diff"),
        ]
        assert gitea.get_pr_context(REPO_URL, 7).description == ""

    def test_metadata_non_200(self, gitea, gitea_session):
        gitea_session.get.side_effect = [_response(status_code=404)]
        with pytest.raises(UpstreamFetchError) as exc_info:
            gitea.get_pr_context(REPO_URL, 7)
        assert exc_info.value.status_code == 404
        assert gitea_session.get.call_count == 1

    def test_diff_non_200(self, gitea, gitea_session):
        gitea_session.get.side_effect = [
            _response(json_body={"title": "t", "body": "d"}),
            _response(status_code=500),
        ]
        with pytest.raises(UpstreamFetchError) as exc_info:
            gitea.get_pr_context(REPO_URL, 7)
        assert exc_info.value.status_code == 500

    def test_transport_failure(self, gitea, gitea_session):
        gitea_session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(UpstreamFetchError):
            gitea.get_pr_info(REPO_URL, 7)

    def test_metadata_not_json(self, gitea, gitea_session):
        resp = _response(text="<html>")
        resp.json.side_effect = ValueError("no json")
        gitea_session.get.side_effect = [resp]
        with pytest.raises(UpstreamFetchError):
            gitea.get_pr_info(REPO_URL, 7)


class TestPostReview:
    REVIEW = ReviewVerdict(
        body="summary",
        comments=[InlineComment(body="gone?", path="a.py", position=OldFilePosition(line=4))],
        event="REQUEST_CHANGES",
    )

    def test_posts_gitea_payload(self, gitea, gitea_session):
        gitea.post_review(REPO_URL, 7, self.REVIEW)

        call = gitea_session.post.call_args
        assert call.args[0] == f"{REPO_URL}/pulls/7/reviews"
        assert call.kwargs["json"] == {
            "body": "summary",
            "comments": [{"body": "gone?", "path": "a.py", "new_position": 0, "old_position": 4}],
            "event": "REQUEST_CHANGES",
        }

    def test_non_200_carries_body(self, gitea, gitea_session):
        gitea_session.post.return_value = _response(status_code=422, text="invalid position")
        with pytest.raises(PublishError) as exc_info:
            gitea.post_review(REPO_URL, 7, self.REVIEW)
        assert exc_info.value.status_code == 422
        assert exc_info.value.body == "invalid position"
        assert "invalid position" in str(exc_info.value)

    def test_transport_failure(self, gitea, gitea_session):
        gitea_session.post.side_effect = requests.Timeout("slow")
        with pytest.raises(PublishError):
            gitea.post_review(REPO_URL, 7, self.REVIEW)


class TestFromSettings:
    def test_tls_toggle(self, make_settings):
        client = GiteaClient.from_settings(make_settings(insecure_skip_tls_verify=True, gitea_timeout=12))
        assert client.session.verify is False
        assert client.timeout == 12
        assert client.session.headers["Authorization"] == "token gitea-token"
