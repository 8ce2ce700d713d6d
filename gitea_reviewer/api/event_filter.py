from typing import Iterator

from gitea_reviewer.api.schemas import ReviewRequestEvent

REVIEW_REQUESTED = "review_requested"
WILDCARD = "*"


def requested_reviewer_names(event: ReviewRequestEvent) -> Iterator[str]:
    for reviewer in event.pull_request.requested_reviewers:
        yield reviewer.name
    if event.requested_reviewer is not None:
        yield event.requested_reviewer.name


def is_review_request(event: ReviewRequestEvent) -> bool:
    return event.action.lower() == REVIEW_REQUESTED


def should_review(event: ReviewRequestEvent, configured_username: str) -> bool:
    """Return True when ``event`` asks ``configured_username`` for a review.

    ``*`` accepts every review request. An empty username never matches.
    """
    if not is_review_request(event):
        return False

    if configured_username == WILDCARD:
        return True

    if not configured_username:
        return False

    wanted = configured_username.lower()
    return any(name.lower() == wanted for name in requested_reviewer_names(event))
