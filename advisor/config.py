"""Engine configuration."""

import os
from dataclasses import dataclass

from advisor.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 5


@dataclass
class EngineConfig:
    """Limits applied by the conversation engine to every turn."""

    max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS
    tool_timeout: float = 30.0  # seconds per tool call
    model_timeout: float = 120.0  # seconds per model round trip

    def __post_init__(self) -> None:
        if self.max_tool_rounds < 0:
            raise ValueError("max_tool_rounds cannot be negative")
        if self.tool_timeout <= 0 or self.model_timeout <= 0:
            raise ValueError("Timeouts must be positive")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from ADVISOR_* environment variables."""
        config = cls(
            max_tool_rounds=int(os.getenv("ADVISOR_MAX_TOOL_ROUNDS", DEFAULT_MAX_TOOL_ROUNDS)),
            tool_timeout=float(os.getenv("ADVISOR_TOOL_TIMEOUT", "30")),
            model_timeout=float(os.getenv("ADVISOR_MODEL_TIMEOUT", "120")),
        )
        logger.debug(f"Engine config loaded from environment: {config}")
        return config
