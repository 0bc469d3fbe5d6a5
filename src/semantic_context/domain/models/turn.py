"""Conversation turn models.

A turn is write-once: instances are frozen and the stores never update them
in place. ``role`` is the discriminator, so code that receives a ``Turn``
can branch on the concrete class instead of probing optional fields.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from semantic_context.domain.models.utils import from_epoch, to_epoch, utc_now

ASSISTANT_ID_PREFIX = "assistant_"


class TurnRole(str, Enum):
    """Who produced the turn."""

    USER = "user"
    ASSISTANT = "assistant"


class TurnBase(BaseModel):
    """Fields shared by every turn."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Platform message id, unique within the store")
    content: str
    channel_id: str = Field(min_length=1)
    guild_id: str = Field(min_length=1)
    vector: list[float] | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def has_vector(self) -> bool:
        return bool(self.vector)

    def to_neo4j_properties(self) -> dict[str, Any]:
        """Convert to a flat Neo4j-compatible property dict."""
        props = self.model_dump(exclude_none=True)
        props["created_at"] = to_epoch(self.created_at)
        return props

    @classmethod
    def from_neo4j_record(cls, record: dict[str, Any]) -> "Turn":
        """Rebuild the right turn class from a stored node."""
        data = dict(record)
        if isinstance(data.get("created_at"), int | float):
            data["created_at"] = from_epoch(data["created_at"])
        return turn_adapter.validate_python(data)


class UserTurn(TurnBase):
    """A message written by a person on the chat platform."""

    role: Literal["user"] = TurnRole.USER.value
    author_id: str = Field(min_length=1)
    author_name: str

    def speaker(self, assistant_name: str = "Assistant") -> str:
        return self.author_name

    def __str__(self) -> str:
        return f"UserTurn(id={self.id}, author={self.author_name}, content='{self.content[:50]}')"


class AssistantTurn(TurnBase):
    """A reply generated by the language model."""

    role: Literal["assistant"] = TurnRole.ASSISTANT.value
    reply_to_author_id: str | None = Field(
        default=None,
        description="Author of the user turn this reply answers",
    )

    def speaker(self, assistant_name: str = "Assistant") -> str:
        return assistant_name

    def __str__(self) -> str:
        return f"AssistantTurn(id={self.id}, content='{self.content[:50]}')"


Turn = Annotated[UserTurn | AssistantTurn, Field(discriminator="role")]

turn_adapter: TypeAdapter[UserTurn | AssistantTurn] = TypeAdapter(Turn)


def assistant_turn_id(user_turn_id: str) -> str:
    """Id of the assistant turn answering ``user_turn_id``."""
    return f"{ASSISTANT_ID_PREFIX}{user_turn_id}"


def matches_author(turn: UserTurn | AssistantTurn, author_id: str) -> bool:
    """Whether a turn belongs to ``author_id``'s side of the conversation."""
    if isinstance(turn, UserTurn):
        return turn.author_id == author_id
    return turn.reply_to_author_id == author_id
