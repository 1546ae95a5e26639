"""
Configuration management for the subscriptions tool.
"""

import os
from typing import Optional

from pubsub_subscriptions.exceptions import ConfigurationError

PROJECT_ENV_VAR = "GOOGLE_CLOUD_PROJECT"


class Config:
    """Configuration class for tool settings."""

    # Google Cloud Pub/Sub Configuration
    PUBSUB_EMULATOR_HOST: Optional[str] = os.getenv("PUBSUB_EMULATOR_HOST")

    # Resource names used by the demo run
    TOPIC_NAME: str = os.getenv("TOPIC_NAME", "example-topic")
    SUBSCRIPTION_NAME: str = os.getenv("SUBSCRIPTION_NAME", "example-subscription")
    ACK_DEADLINE_SECONDS: int = int(os.getenv("ACK_DEADLINE_SECONDS", "10"))

    # Publish/pull cycle
    MESSAGE_COUNT: int = int(os.getenv("MESSAGE_COUNT", "10"))
    PULL_TIMEOUT_SECONDS: float = float(os.getenv("PULL_TIMEOUT_SECONDS", "10"))
    PUBLISH_TIMEOUT_SECONDS: float = float(os.getenv("PUBLISH_TIMEOUT_SECONDS", "30"))

    # Service Configuration
    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "pubsub_subscriptions")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def get_project_id(cls) -> str:
        """Get the target project ID.

        The environment is read again on every call so a value exported after
        import is still honoured.

        Raises:
            ConfigurationError: If GOOGLE_CLOUD_PROJECT is unset or empty.
        """
        project_id = os.getenv(PROJECT_ENV_VAR)
        if not project_id:
            raise ConfigurationError(
                f"{PROJECT_ENV_VAR} environment variable must be set."
            )
        return project_id
