from .errors import (
    ExtractionError,
    LLMCallError,
    ParseError,
    PublishError,
    ReviewError,
    UpstreamFetchError,
)
from .models import (
    InlineComment,
    NewFilePosition,
    OldFilePosition,
    PullRequestContext,
    ReviewDecision,
    ReviewVerdict,
)
from .normalizer import ResponseNormalizer
from .prompts import ComposedPrompt, PromptComposer

__all__ = [
    "ComposedPrompt",
    "ExtractionError",
    "InlineComment",
    "LLMCallError",
    "NewFilePosition",
    "OldFilePosition",
    "ParseError",
    "PromptComposer",
    "PublishError",
    "PullRequestContext",
    "ResponseNormalizer",
    "ReviewDecision",
    "ReviewError",
    "ReviewVerdict",
    "UpstreamFetchError",
]
