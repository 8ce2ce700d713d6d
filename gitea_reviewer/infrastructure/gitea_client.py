import logging
from typing import Optional

import requests

from gitea_reviewer.config import Settings
from gitea_reviewer.review.errors import PublishError, UpstreamFetchError
from gitea_reviewer.review.models import PullRequestContext, ReviewVerdict

logger = logging.getLogger(__name__)


class GiteaClient:
    def __init__(
        self,
        token: str,
        timeout: float = 30.0,
        verify: bool = True,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"token {token}"})
        self.session.verify = verify

    @classmethod
    def from_settings(cls, settings: Settings) -> "GiteaClient":
        return cls(
            settings.gitea_token,
            timeout=settings.gitea_timeout,
            verify=settings.verify_tls,
        )

    def _get(self, url: str) -> requests.Response:
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamFetchError(f"GET {url} failed: {e}") from e

        if resp.status_code != 200:
            raise UpstreamFetchError(
                f"GET {url} returned {resp.status_code}",
                status_code=resp.status_code,
            )
        return resp

    def get_pr_info(self, repo_url: str, number: int) -> dict:
        url = f"{repo_url}/pulls/{number}"
        logger.info("Fetching PR metadata from Gitea: %s", url)

        resp = self._get(url)
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamFetchError(f"PR metadata from {url} is not JSON") from e
        if not isinstance(data, dict):
            raise UpstreamFetchError(f"PR metadata from {url} is not an object")
        return data

    def get_pr_diff(self, repo_url: str, number: int) -> str:
        url = f"{repo_url}/pulls/{number}.diff"
        logger.info("Fetching diff from Gitea: %s", url)
        return self._get(url).text

    def get_pr_context(self, repo_url: str, number: int) -> PullRequestContext:
        info = self.get_pr_info(repo_url, number)
        return PullRequestContext(
            title=info.get("title") or "",
            description=info.get("body") or "",
            diff=self.get_pr_diff(repo_url, number),
        )

    def post_review(self, repo_url: str, number: int, review: ReviewVerdict) -> None:
        url = f"{repo_url}/pulls/{number}/reviews"

        try:
            resp = self.session.post(url, json=review.to_gitea(), timeout=self.timeout)
        except requests.RequestException as e:
            raise PublishError(f"POST {url} failed: {e}") from e

        if resp.status_code != 200:
            raise PublishError(
                f"failed to post review: {resp.status_code} - {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )
