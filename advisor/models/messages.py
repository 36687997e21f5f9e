"""Message and message-part models shared by the engine and the view layer."""

import json
import re
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from cuid2 import cuid_wrapper
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from advisor.models.rich_content import RichContent
from advisor.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()

MessageRole = Literal["user", "model", "tool-log"]


class TextPart(BaseModel):
    """Plain text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str


class ToolCallPart(BaseModel):
    """A tool invocation requested by the model."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tool_call"] = "tool_call"
    name: str
    args: dict[str, Any] = Field(default_factory=dict)
    call_id: str | None = None


class ToolResultPart(BaseModel):
    """The outcome of a dispatched tool call."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tool_result"] = "tool_result"
    name: str
    response: dict[str, Any]
    call_id: str | None = None

    @property
    def is_error(self) -> bool:
        return "error" in self.response


class RichContentPart(BaseModel):
    """A structured visualization payload."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["rich_content"] = "rich_content"
    payload: RichContent


Part = Annotated[TextPart | ToolCallPart | ToolResultPart | RichContentPart, Field(discriminator="kind")]


def _now() -> datetime:
    return datetime.now(UTC)


def generate_message_id() -> str:
    """Generate a unique message identifier."""
    return f"msg_{cuid()}"


class Message(BaseModel):
    """One immutable turn in the conversation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_message_id)
    role: MessageRole
    parts: tuple[Part, ...]
    timestamp: datetime = Field(default_factory=_now)
    metadata: dict[str, Any] | None = None

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role="user", parts=(TextPart(text=text),))

    @classmethod
    def model(cls, parts: Iterable[Part], metadata: dict[str, Any] | None = None) -> "Message":
        return cls(role="model", parts=tuple(parts), metadata=metadata)

    @classmethod
    def tool_log(cls, results: Iterable[ToolResultPart], metadata: dict[str, Any] | None = None) -> "Message":
        return cls(role="tool-log", parts=tuple(results), metadata=metadata)

    @property
    def text(self) -> str:
        """All text parts joined by newlines."""
        return "\n".join(part.text for part in self.parts if isinstance(part, TextPart))

    @property
    def tool_calls(self) -> list[ToolCallPart]:
        return [part for part in self.parts if isinstance(part, ToolCallPart)]

    @property
    def tool_results(self) -> list[ToolResultPart]:
        return [part for part in self.parts if isinstance(part, ToolResultPart)]


_rich_content_adapter: TypeAdapter[Any] = TypeAdapter(RichContent)

RICH_CONTENT_BLOCK = re.compile(r"```rich_content\s*\n(?P<body>.*?)\n?```", re.DOTALL)


def extract_rich_content(text: str) -> tuple[str, list[RichContentPart]]:
    """Pull fenced ``rich_content`` JSON blocks out of model text.

    Blocks that are not valid JSON objects with a ``type`` tag stay in the text.

    Returns:
        The remaining text (stripped) and the parsed rich content parts in order
    """
    parts: list[RichContentPart] = []

    def _replace(match: re.Match[str]) -> str:
        body = match.group("body")
        try:
            raw = json.loads(body)
            if not isinstance(raw, dict) or "type" not in raw:
                return match.group(0)
            parts.append(RichContentPart(payload=_rich_content_adapter.validate_python(raw)))
            return ""
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring malformed rich content block: {e}")
            return match.group(0)

    remaining = RICH_CONTENT_BLOCK.sub(_replace, text)
    return remaining.strip(), parts


def build_model_parts(text: str | None, tool_calls: Sequence[ToolCallPart] = ()) -> list[Part]:
    """Build the parts of a model message: text, rich content, then tool calls in request order."""
    parts: list[Part] = []
    if text:
        remaining, rich_parts = extract_rich_content(text)
        if remaining:
            parts.append(TextPart(text=remaining))
        parts.extend(rich_parts)
    parts.extend(tool_calls)
    return parts
