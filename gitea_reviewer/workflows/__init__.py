from .review_workflow import (
    PipelineStage,
    ReviewPipeline,
    ReviewState,
    create_review_workflow,
    wrap_review,
)

__all__ = [
    "PipelineStage",
    "ReviewPipeline",
    "ReviewState",
    "create_review_workflow",
    "wrap_review",
]
