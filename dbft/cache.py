"""Storage for consensus messages that arrive ahead of the current epoch."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from dbft.types import MessageType


@dataclass
class Inbox:
    """Messages of one height, keyed by validator index."""

    prepare: dict[int, Any] = field(default_factory=dict)
    ch_views: dict[int, Any] = field(default_factory=dict)
    pre_commit: dict[int, Any] = field(default_factory=dict)
    commit: dict[int, Any] = field(default_factory=dict)


class MessageCache:
    """Messages from future heights and views, grouped by height."""

    def __init__(self) -> None:
        self.mail: dict[int, Inbox] = {}

    def get_height(self, height: int) -> Inbox | None:
        """Remove and return the inbox for ``height``, or None if there is none."""
        return self.mail.pop(height, None)

    def add_message(self, message: Any) -> None:
        """Store ``message``; recovery messages only reserve an inbox for their height."""
        inbox = self.mail.setdefault(message.height, Inbox())
        msg_type = message.type
        if msg_type in (MessageType.PREPARE_REQUEST, MessageType.PREPARE_RESPONSE):
            bucket = inbox.prepare
        elif msg_type == MessageType.CHANGE_VIEW:
            bucket = inbox.ch_views
        elif msg_type == MessageType.PRE_COMMIT:
            bucket = inbox.pre_commit
        elif msg_type == MessageType.COMMIT:
            bucket = inbox.commit
        else:
            return
        bucket[message.validator_index] = message