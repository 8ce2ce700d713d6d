import logging
from enum import Enum
from typing import Optional, TypedDict

from langgraph.graph import END, StateGraph
from lmnr import observe

from gitea_reviewer.api.event_filter import should_review
from gitea_reviewer.api.schemas import ReviewRequestEvent
from gitea_reviewer.config import Settings
from gitea_reviewer.infrastructure import GiteaClient, LLMWorker
from gitea_reviewer.review import (
    ComposedPrompt,
    PromptComposer,
    PullRequestContext,
    ResponseNormalizer,
    ReviewError,
    ReviewVerdict,
)

logger = logging.getLogger(__name__)

REVIEW_BANNER = """## Automated Code Review

{body}

*This review was automatically generated by the code review bot.*
"""


class PipelineStage(str, Enum):
    RECEIVED = "received"
    REJECTED = "rejected"
    ACCEPTED = "accepted"
    CONTEXT_FETCHED = "context_fetched"
    PROMPT_COMPOSED = "prompt_composed"
    COMPLETION_OBTAINED = "completion_obtained"
    NORMALIZED = "normalized"
    PUBLISHED = "published"


class ReviewState(TypedDict):
    event: ReviewRequestEvent
    stage: PipelineStage
    context: Optional[PullRequestContext]
    prompt: Optional[ComposedPrompt]
    completion: str
    verdict: Optional[ReviewVerdict]
    error: Optional[ReviewError]


def wrap_review(verdict: ReviewVerdict) -> ReviewVerdict:
    return verdict.model_copy(update={"body": REVIEW_BANNER.format(body=verdict.body)})


def _next_or_end(state: ReviewState) -> str:
    if state.get("error") or state["stage"] == PipelineStage.REJECTED:
        return "end"
    return "next"


def create_review_workflow(
    settings: Settings,
    gitea: GiteaClient,
    llm: LLMWorker,
    composer: Optional[PromptComposer] = None,
    normalizer: Optional[ResponseNormalizer] = None,
):
    composer = composer or PromptComposer(settings)
    normalizer = normalizer or ResponseNormalizer()

    @observe(name="filter_event_step")
    def filter_event(state: ReviewState) -> ReviewState:
        event = state["event"]

        if not should_review(event, settings.gitea_username):
            logger.info(
                "Ignoring action %r for PR #%d (reviewer filter: %r)",
                event.action,
                event.pull_request.number,
                settings.gitea_username,
            )
            state["stage"] = PipelineStage.REJECTED
            return state

        logger.info(
            "Processing PR #%d: %s", event.pull_request.number, event.pull_request.title
        )
        state["stage"] = PipelineStage.ACCEPTED
        return state

    @observe(name="fetch_context_step")
    def fetch_context(state: ReviewState) -> ReviewState:
        event = state["event"]
        try:
            state["context"] = gitea.get_pr_context(
                event.repository.url, event.pull_request.number
            )
            state["stage"] = PipelineStage.CONTEXT_FETCHED
        except ReviewError as e:
            state["error"] = e
        return state

    @observe(name="compose_prompt_step")
    def compose_prompt(state: ReviewState) -> ReviewState:
        state["prompt"] = composer.compose(state["context"])
        state["stage"] = PipelineStage.PROMPT_COMPOSED
        return state

    @observe(name="request_completion_step")
    def request_completion(state: ReviewState) -> ReviewState:
        logger.info("Requesting review from LLM")
        try:
            state["completion"] = llm.complete(state["prompt"])
            state["stage"] = PipelineStage.COMPLETION_OBTAINED
        except ReviewError as e:
            state["error"] = e
        return state

    @observe(name="normalize_response_step")
    def normalize_response(state: ReviewState) -> ReviewState:
        try:
            state["verdict"] = normalizer.normalize(state["completion"])
            state["stage"] = PipelineStage.NORMALIZED
        except ReviewError as e:
            state["error"] = e
        return state

    @observe(name="publish_review_step")
    def publish_review(state: ReviewState) -> ReviewState:
        event = state["event"]
        review = wrap_review(state["verdict"])

        logger.info("Posting reply")
        try:
            gitea.post_review(event.repository.url, event.pull_request.number, review)
            state["verdict"] = review
            state["stage"] = PipelineStage.PUBLISHED
        except ReviewError as e:
            state["error"] = e
        return state

    workflow = StateGraph(ReviewState)

    steps = [
        ("filter_event", filter_event),
        ("fetch_context", fetch_context),
        ("compose_prompt", compose_prompt),
        ("request_completion", request_completion),
        ("normalize_response", normalize_response),
        ("publish_review", publish_review),
    ]
    for name, node in steps:
        workflow.add_node(name, node)

    workflow.set_entry_point("filter_event")
    for (name, _), (next_name, _) in zip(steps, steps[1:]):
        workflow.add_conditional_edges(name, _next_or_end, {"next": next_name, "end": END})
    workflow.add_edge("publish_review", END)

    return workflow.compile()


class ReviewPipeline:
    """Runs one webhook event through the review workflow.

    Each stage is attempted once. ``run`` returns the final state when the
    event was rejected or the review was published, and raises the
    ``ReviewError`` of the failing stage otherwise.
    """

    def __init__(
        self,
        settings: Settings,
        gitea: Optional[GiteaClient] = None,
        llm: Optional[LLMWorker] = None,
    ):
        self.settings = settings
        self.gitea = gitea or GiteaClient.from_settings(settings)
        self.llm = llm or LLMWorker(settings)
        self.workflow = create_review_workflow(settings, self.gitea, self.llm)

    def run(self, event: ReviewRequestEvent) -> ReviewState:
        initial_state: ReviewState = {
            "event": event,
            "stage": PipelineStage.RECEIVED,
            "context": None,
            "prompt": None,
            "completion": "",
            "verdict": None,
            "error": None,
        }

        result = self.workflow.invoke(initial_state)

        error = result.get("error")
        if error is not None:
            logger.error(
                "Review of PR #%d failed at %s (last completed stage: %s): %s",
                event.pull_request.number,
                error.stage,
                result["stage"].value,
                error,
            )
            raise error

        return result
