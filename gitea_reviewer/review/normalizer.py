"""Turn a free-form LLM completion into a ``ReviewVerdict``.

Models are asked for a bare JSON object, but many wrap it in a markdown
fence or surround it with prose. Normalization runs an ordered chain of
strategies: the first one that yields a valid verdict wins, and the error of
the last one is raised when none does.
"""
import logging
import re
from typing import Iterable, List, Optional, Protocol

from pydantic import ValidationError

from gitea_reviewer.review.errors import ExtractionError, ParseError
from gitea_reviewer.review.models import ReviewVerdict

logger = logging.getLogger(__name__)

# Optional leading ```/```json fence, then everything from a `{"body":` object
# start through the last `}` before an optional trailing fence.
REVIEW_JSON_REGEX = re.compile(
    r'(?:^```(?:json)?)?\s*(\{\s*"body"\s*:[\s\S]*\})(?:\s*```$)?',
    re.IGNORECASE,
)


class NormalizationStrategy(Protocol):
    name: str

    def __call__(self, raw: str) -> ReviewVerdict: ...


def _decode(text: str, stage: str) -> ReviewVerdict:
    try:
        return ReviewVerdict.model_validate_json(text)
    except ValidationError as e:
        raise ParseError(f"completion is not a valid review: {e}", stage=stage) from e


class DirectDecode:
    name = "direct_decode"

    def __call__(self, raw: str) -> ReviewVerdict:
        return _decode(raw, self.name)


class FencedExtraction:
    name = "fenced_extraction"

    def __init__(self, pattern: re.Pattern = REVIEW_JSON_REGEX):
        self.pattern = pattern

    def __call__(self, raw: str) -> ReviewVerdict:
        match = self.pattern.search(raw)
        if match is None:
            raise ExtractionError(
                "failed to extract json from LLM response", stage=self.name
            )
        return _decode(match.group(1), self.name)


class ResponseNormalizer:
    def __init__(self, strategies: Optional[Iterable[NormalizationStrategy]] = None):
        self.strategies: List[NormalizationStrategy] = list(
            strategies if strategies is not None else (DirectDecode(), FencedExtraction())
        )
        if not self.strategies:
            raise ValueError("at least one normalization strategy is required")

    def normalize(self, raw: str) -> ReviewVerdict:
        last_error: Optional[ParseError] = None

        for strategy in self.strategies:
            try:
                verdict = strategy(raw)
            except ParseError as e:
                if last_error is None:
                    logger.warning(
                        "Failed to decode raw LLM response (%s); attempting fallback extraction",
                        strategy.name,
                    )
                last_error = e
                continue

            logger.debug("Normalized LLM response via %s", strategy.name)
            return verdict

        raise last_error
