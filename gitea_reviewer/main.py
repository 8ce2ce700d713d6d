import argparse
import logging
from typing import Optional

from fastapi import FastAPI
from lmnr import Laminar

from gitea_reviewer.api.routes import router
from gitea_reviewer.config import Settings, load_settings
from gitea_reviewer.workflows import ReviewPipeline

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings, pipeline: Optional[ReviewPipeline] = None) -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="AI-powered Gitea pull request reviewer",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.pipeline = pipeline or ReviewPipeline(settings)

    app.include_router(router)
    return app


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="gitea-reviewer")
    p.add_argument("--config", default=None, help="Path to the YAML configuration file")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument(
        "--insecure-skip-tls",
        action="store_true",
        help="Skip TLS verification on outbound connections",
    )
    return p.parse_args(argv)


def main(argv=None) -> None:
    import uvicorn

    args = parse_args(argv)

    overrides = {}
    if args.debug:
        overrides["debug"] = True
    if args.insecure_skip_tls:
        overrides["insecure_skip_tls_verify"] = True
    settings = load_settings(args.config, **overrides)

    configure_logging(settings)
    if settings.debug:
        logger.debug("%r", settings.model_dump(exclude={"gitea_token", "llm_api_key"}))
    if not settings.gitea_username:
        logger.warning("gitea_username is not set; every review request will be ignored")

    if settings.lmnr_project_api_key:
        Laminar.initialize(project_api_key=settings.lmnr_project_api_key)

    logger.info("Server starting on port %d", settings.port)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
