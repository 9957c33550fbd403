"""
Client Configuration — validated settings for the Secret Service client.

Reads optional overrides from environment variables:
    SECRET_SERVICE_BUS = SESSION | SYSTEM | <D-Bus address>
    SECRET_SERVICE_ALGORITHM = plain | dh
    SECRET_SERVICE_WINDOW_ID = <window id passed to prompts>
    SECRET_SERVICE_PROMPT_POLICY = queue | fail

The crypto backend is chosen separately, once per process, through
SECRET_SERVICE_CRYPTO_BACKEND (see :mod:`secret_service.crypto`).
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator

from .models import CryptoAlgorithm

logger = logging.getLogger("secret_service")

PROMPT_POLICIES = ("queue", "fail")


class ClientConfig(BaseModel):
    """Validated client configuration."""

    bus: str = Field(default="SESSION", min_length=1)
    algorithm: CryptoAlgorithm = Field(default=CryptoAlgorithm.DH)
    window_id: str = Field(default="")
    prompt_policy: str = Field(default="queue")

    @field_validator("bus")
    @classmethod
    def validate_bus(cls, v: str) -> str:
        """Accept the well-known bus names or an explicit address."""
        if v.upper() in ("SESSION", "SYSTEM"):
            return v.upper()
        if ":" not in v:
            raise ValueError(
                f"Bus must be SESSION, SYSTEM or a D-Bus address, got {v!r}"
            )
        return v

    @field_validator("algorithm", mode="before")
    @classmethod
    def validate_algorithm(cls, v):
        """Allow the short names ``plain`` and ``dh``."""
        return CryptoAlgorithm.from_name(v)

    @field_validator("prompt_policy")
    @classmethod
    def validate_prompt_policy(cls, v: str) -> str:
        """Validate the prompt concurrency policy is supported."""
        v = v.lower()
        if v not in PROMPT_POLICIES:
            raise ValueError(f"Unsupported prompt policy: {v}")
        return v

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create ClientConfig by loading values from environment.

        Returns:
            Populated ClientConfig instance.
        """
        config = cls(
            bus=os.environ.get("SECRET_SERVICE_BUS", "SESSION"),
            algorithm=os.environ.get("SECRET_SERVICE_ALGORITHM", "dh"),
            window_id=os.environ.get("SECRET_SERVICE_WINDOW_ID", ""),
            prompt_policy=os.environ.get("SECRET_SERVICE_PROMPT_POLICY", "queue"),
        )
        logger.debug(
            "Loaded client config: bus=%s algorithm=%s prompt_policy=%s",
            config.bus, config.algorithm.name, config.prompt_policy,
        )
        return config
