import logging

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from gitea_reviewer.api.schemas import HealthResponse, ReviewRequestEvent
from gitea_reviewer.review.errors import ReviewError
from gitea_reviewer.workflows import PipelineStage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
def root(request: Request):
    return {
        "service": request.app.state.settings.app_name,
        "status": "running",
    }


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request):
    settings = request.app.state.settings
    return HealthResponse(
        api="ok",
        llm_model=settings.llm_model,
        reviewer=settings.gitea_username or "(not configured)",
    )


@router.post("/webhook", response_class=PlainTextResponse)
async def gitea_webhook(request: Request):
    raw_body = await request.body()

    try:
        event = ReviewRequestEvent.model_validate_json(raw_body)
    except ValidationError as e:
        logger.warning("Error unmarshaling webhook payload: %s", e)
        return PlainTextResponse("Bad request", status_code=400)

    pipeline = request.app.state.pipeline
    try:
        result = await run_in_threadpool(pipeline.run, event)
    except ReviewError:
        return PlainTextResponse("Internal server error", status_code=500)

    number = event.pull_request.number
    if result["stage"] == PipelineStage.REJECTED:
        return PlainTextResponse(f"Ignored event for PR #{number}")

    return PlainTextResponse(f"Successfully processed PR #{number}")
