from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _Payload(BaseModel):
    """Webhook fragment decoded leniently: JSON nulls fall back to defaults."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Reviewer(_Payload):
    username: str = ""
    login: str = ""

    @property
    def name(self) -> str:
        return self.username or self.login


class PullRequestRef(_Payload):
    id: int = 0
    number: int = 0
    title: str = ""
    html_url: str = ""
    diff_url: str = ""
    requested_reviewers: List[Reviewer] = Field(default_factory=list)

    @field_validator("requested_reviewers", mode="before")
    @classmethod
    def _skip_null_reviewers(cls, value):
        if isinstance(value, list):
            return [reviewer for reviewer in value if reviewer is not None]
        return value


class RepositoryRef(_Payload):
    name: str = ""
    full_name: str = ""
    url: str = ""


class Sender(_Payload):
    login: str = ""


class ReviewRequestEvent(_Payload):
    """Gitea ``pull_request`` webhook payload.

    Gitea reports the requested reviewer either in
    ``pull_request.requested_reviewers`` or in the top-level
    ``requested_reviewer`` depending on the hook; both are kept.
    """

    action: str = ""
    pull_request: PullRequestRef = Field(default_factory=PullRequestRef)
    requested_reviewer: Optional[Reviewer] = None
    repository: RepositoryRef = Field(default_factory=RepositoryRef)
    sender: Sender = Field(default_factory=Sender)


class HealthResponse(BaseModel):
    api: str
    llm_model: str
    reviewer: str
