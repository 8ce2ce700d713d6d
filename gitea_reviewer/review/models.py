from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ReviewDecision(str, Enum):
    APPROVED = "APPROVED"
    REQUEST_CHANGES = "REQUEST_CHANGES"


class PullRequestContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    diff: str = ""


class NewFilePosition(BaseModel):
    """Line in the post-change file: an added or context line."""

    model_config = ConfigDict(frozen=True)

    side: Literal["new"] = "new"
    line: int = 0


class OldFilePosition(BaseModel):
    """Line in the pre-change file: a deleted line."""

    model_config = ConfigDict(frozen=True)

    side: Literal["old"] = "old"
    line: int


LinePosition = Annotated[
    Union[NewFilePosition, OldFilePosition],
    Field(discriminator="side"),
]


class InlineComment(BaseModel):
    """A review comment anchored to one side of a file diff.

    On the wire the anchor is the flat ``new_position``/``old_position`` pair
    used by the model output and the Gitea reviews API. Internally exactly
    one side is kept. A comment that only carries ``old_position`` targets the
    old file; everything else targets the new file.
    """

    body: str = ""
    path: str = ""
    position: LinePosition = Field(default_factory=NewFilePosition)

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data):
        if not isinstance(data, dict):
            return data
        position = data.get("position")
        if isinstance(position, (NewFilePosition, OldFilePosition)):
            return data
        if isinstance(position, dict) and position.get("side") in ("new", "old"):
            return data

        data = dict(data)
        data.pop("position", None)
        new_position = data.pop("new_position", None) or 0
        old_position = data.pop("old_position", None) or 0
        if old_position and not new_position:
            data["position"] = {"side": "old", "line": old_position}
        else:
            data["position"] = {"side": "new", "line": new_position}
        return data

    @property
    def new_position(self) -> int:
        return self.position.line if isinstance(self.position, NewFilePosition) else 0

    @property
    def old_position(self) -> int:
        return self.position.line if isinstance(self.position, OldFilePosition) else 0

    def to_gitea(self) -> dict:
        return {
            "body": self.body,
            "path": self.path,
            "new_position": self.new_position,
            "old_position": self.old_position,
        }


class ReviewVerdict(BaseModel):
    body: str
    comments: List[InlineComment] = Field(default_factory=list)
    event: str

    @field_validator("comments", mode="before")
    @classmethod
    def _null_comments(cls, value):
        return [] if value is None else value

    @property
    def decision(self) -> Optional[ReviewDecision]:
        try:
            return ReviewDecision(self.event.strip().upper())
        except ValueError:
            return None

    def to_gitea(self) -> dict:
        return {
            "body": self.body,
            "comments": [comment.to_gitea() for comment in self.comments],
            "event": self.event,
        }
