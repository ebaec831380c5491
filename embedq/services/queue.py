"""Queue client — read, delete and send pgmq messages.

Wraps the ``pgmq`` SQL functions. Library errors are translated into the
queue error types so the reconciler never sees asyncpg exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import asyncpg
from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from embedq.services.database import Database
from embedq.services.errors import MalformedMessageError, QueueDeleteError, QueueReadError


@dataclass(frozen=True)
class QueueMessage:
    """One in-flight delivery. ``message`` is the raw JSON payload."""

    message_id: int
    message: Any
    read_count: int = 1


class MessagePayload(BaseModel):
    """Expected payload shape: ``{"record_id": ..., "text": ...}``.

    ``id`` is accepted as an alias for ``record_id``; integer ids become strings.
    """

    record_id: str = Field(min_length=1, validation_alias=AliasChoices("record_id", "id"))
    text: str

    @field_validator("record_id", mode="before")
    @classmethod
    def _int_id_to_str(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class QueueClient:
    """pgmq-backed queue bound to a single queue name."""

    def __init__(self, db: Database, queue_name: str):
        self.db = db
        self.queue_name = queue_name

    async def read(self, n: int, visibility_timeout: int) -> list[QueueMessage]:
        """Read up to ``n`` messages, hiding them for ``visibility_timeout`` seconds."""
        try:
            rows = await self.db.fetch(
                "SELECT msg_id, read_ct, message FROM pgmq.read($1, $2, $3)",
                self.queue_name,
                visibility_timeout,
                n,
            )
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise QueueReadError(f"Failed to read from queue {self.queue_name}: {e}") from e
        return [
            QueueMessage(message_id=r["msg_id"], message=r["message"], read_count=r["read_ct"])
            for r in rows
        ]

    async def delete(self, message_id: int) -> None:
        """Delete (acknowledge) a message. Raises QueueDeleteError on failure."""
        try:
            deleted = await self.db.fetchval(
                "SELECT pgmq.delete($1, $2::bigint)", self.queue_name, message_id
            )
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise QueueDeleteError(f"Failed to delete message {message_id}: {e}") from e
        if not deleted:
            raise QueueDeleteError(
                f"Message {message_id} not found in queue {self.queue_name}"
            )

    async def send(self, payload: dict) -> int:
        """Enqueue a payload. Returns the new message id."""
        return await self.db.fetchval(  # type: ignore[no-any-return]
            "SELECT pgmq.send($1, $2::jsonb)", self.queue_name, payload
        )


def parse_payload(msg: QueueMessage) -> MessagePayload:
    """Validate a message payload. Raises MalformedMessageError."""
    if not isinstance(msg.message, dict):
        raise MalformedMessageError(
            f"Message {msg.message_id} payload is {type(msg.message).__name__}, expected object"
        )
    try:
        payload = MessagePayload.model_validate(msg.message)
    except ValidationError as e:
        raise MalformedMessageError(
            f"Message {msg.message_id} payload is invalid: {e.error_count()} error(s)"
        ) from e
    if not payload.text.strip():
        raise MalformedMessageError(f"Message {msg.message_id} has empty text")
    return payload
