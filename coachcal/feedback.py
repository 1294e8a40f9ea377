"""User-facing feedback channel.

Operations never raise into the UI layer; instead they post a short
``UserMessage`` to a sink the UI renders as a toast or banner.
"""

import logging
from enum import Enum
from typing import Optional, Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class MessageLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class UserMessage(BaseModel):
    """A single message shown to the user."""

    title: str
    description: str = ""
    level: MessageLevel = MessageLevel.INFO


class MessageSink(Protocol):
    def show(self, message: UserMessage) -> None: ...


class MessageLog:
    """Sink that keeps every message in order. Used by tests and headless callers."""

    def __init__(self) -> None:
        self.messages: list[UserMessage] = []

    def show(self, message: UserMessage) -> None:
        logger.debug("User message [%s] %s: %s", message.level.value, message.title, message.description)
        self.messages.append(message)

    @property
    def last(self) -> Optional[UserMessage]:
        return self.messages[-1] if self.messages else None

    def errors(self) -> list[UserMessage]:
        return [m for m in self.messages if m.level == MessageLevel.ERROR]

    def clear(self) -> None:
        self.messages.clear()
