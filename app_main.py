"""Application entry point for the ExamRank service."""

from __future__ import annotations

from exam_app.config.settings import settings
from exam_app.core.exam_manager import ExamManager
from exam_app.core.sample_data import seed_sample_data
from exam_app.server.api_server import run_api_server
from exam_app.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, load demo data if enabled, and serve the API."""
    settings.validate()
    logger = configure_logging(settings.LOG_LEVEL)
    logger.info("Starting ExamRank on %s:%s", settings.HOST, settings.PORT)

    exam_manager = ExamManager()
    if settings.SEED_SAMPLE_DATA:
        seed_sample_data(exam_manager)

    run_api_server(
        exam_manager=exam_manager,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
