"""Runtime configuration loaded from the environment."""

import os
from typing import Literal
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_SANDBOX_TEMPLATE = "sarkfickz793gssodcmg"
DEFAULT_SANDBOX_TIMEOUT_SECONDS = 60 * 30
DEFAULT_WORKSPACES_DIR = os.path.join(os.path.expanduser("~"), ".appforge", "workspaces")


def is_localhost_url(url: str) -> bool:
    """Check if URL is a localhost address."""
    if not url:
        return False
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        return False
    return hostname in ("localhost", "127.0.0.1", "::1") or hostname.startswith("127.")


class AppForgeConfig(BaseModel):
    """Settings for the agent run pipeline.

    Build with ``AppForgeConfig.from_env()`` to read ``APPFORGE_*`` variables
    (and a local ``.env`` file) the same way the worker does at startup.
    """

    sandbox_env: Literal["e2b", "local"] = "e2b"
    sandbox_template: str = DEFAULT_SANDBOX_TEMPLATE
    sandbox_timeout_seconds: int = Field(default=DEFAULT_SANDBOX_TIMEOUT_SECONDS, gt=0)
    e2b_api_key: str | None = None
    workspaces_dir: str = DEFAULT_WORKSPACES_DIR

    provider: str = "openai"
    model: str = "gpt-4.1"
    temperature: float | None = 0.1
    auxiliary_model: str = "gpt-4o-mini"
    max_iterations: int = Field(default=15, gt=0)
    history_limit: int = Field(default=5, ge=0)

    api_url: str = "http://localhost:3000"
    api_key: str | None = None
    store: Literal["memory", "http"] = "memory"
    max_attempts: int = Field(default=3, ge=1)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "AppForgeConfig":
        """Create a config from environment variables.

        Args:
            dotenv: Load a ``.env`` file from the working directory first (default: True)
        """
        if dotenv:
            load_dotenv()

        env_map = {
            "sandbox_env": "APPFORGE_SANDBOX_ENV",
            "sandbox_template": "APPFORGE_SANDBOX_TEMPLATE",
            "sandbox_timeout_seconds": "APPFORGE_SANDBOX_TIMEOUT",
            "e2b_api_key": "E2B_API_KEY",
            "workspaces_dir": "APPFORGE_WORKSPACES_DIR",
            "provider": "APPFORGE_LLM_PROVIDER",
            "model": "APPFORGE_MODEL",
            "temperature": "APPFORGE_TEMPERATURE",
            "auxiliary_model": "APPFORGE_AUXILIARY_MODEL",
            "max_iterations": "APPFORGE_MAX_ITERATIONS",
            "history_limit": "APPFORGE_HISTORY_LIMIT",
            "api_url": "APPFORGE_API_URL",
            "api_key": "APPFORGE_API_KEY",
            "store": "APPFORGE_STORE",
            "max_attempts": "APPFORGE_MAX_ATTEMPTS",
        }
        values = {}
        for field_name, env_var in env_map.items():
            value = os.getenv(env_var)
            if value is not None and value != "":
                values[field_name] = value
        # Pydantic coerces the string values to the declared field types
        return cls.model_validate(values)
