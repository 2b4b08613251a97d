"""
Configuration settings for the exam application.
"""

import os

from exam_app.constants.exam_constants import DEFAULT_EXAM_DURATION_SECONDS
from exam_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT


class Settings:
    """Application settings loaded from environment."""

    # Server
    HOST: str = os.environ.get("EXAM_HOST", DEFAULT_HOST)
    PORT: int = int(os.environ.get("EXAM_PORT", DEFAULT_PORT))

    # Logging
    LOG_LEVEL: str = os.environ.get("EXAM_LOG_LEVEL", "INFO")

    # Placeholder admin credentials; there is no real authentication.
    ADMIN_USERNAME: str = os.environ.get("EXAM_ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD: str = os.environ.get("EXAM_ADMIN_PASSWORD", "admin")

    # Exams
    EXAM_DURATION_SECONDS: int = int(os.environ.get("EXAM_DURATION_SECONDS", DEFAULT_EXAM_DURATION_SECONDS))
    SEED_SAMPLE_DATA: bool = os.environ.get("EXAM_SEED_SAMPLE_DATA", "True").lower() == "true"

    def validate(self):
        """Validate critical settings."""
        if not 0 < self.PORT < 65536:
            raise ValueError(f"EXAM_PORT must be a valid TCP port, got {self.PORT}")
        if self.EXAM_DURATION_SECONDS <= 0:
            raise ValueError("EXAM_DURATION_SECONDS must be a positive integer")
        if not self.ADMIN_USERNAME or not self.ADMIN_PASSWORD:
            raise ValueError("EXAM_ADMIN_USERNAME and EXAM_ADMIN_PASSWORD must not be empty")
        return True


# Global settings instance
settings = Settings()
