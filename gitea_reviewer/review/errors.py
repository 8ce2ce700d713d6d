from typing import Optional


class ReviewError(Exception):
    """Base class for failures after an event has been accepted for review."""

    stage: str = "review"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class UpstreamFetchError(ReviewError):
    stage = "fetch_context"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LLMCallError(ReviewError):
    stage = "request_completion"


class ParseError(ReviewError):
    stage = "normalize_response"


class ExtractionError(ParseError):
    """No review-shaped JSON object could be located in the completion."""


class PublishError(ReviewError):
    stage = "publish_review"

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
