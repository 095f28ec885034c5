"""Consensus state of a dBFT node for the current height and view."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from dbft.config import Config

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _unix_nanos(moment: Any) -> int:
    """Nanoseconds since the Unix epoch for a datetime or a raw nanosecond count."""
    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            moment = moment.astimezone()
        delta = moment - _EPOCH
        return (delta.days * 86400 + delta.seconds) * 10**9 + delta.microseconds * 1000
    return int(moment)


@dataclass
class HeightView:
    """A block height and consensus view pair."""

    height: int
    view: int


class Context:
    """Everything dBFT knows about the current epoch.

    Payload lists are indexed by validator; an empty slot is ``None``.
    """

    def __init__(self, config: Config) -> None:
        self.config = config

        self.priv: Any = None
        self.pub: Any = None

        self._pre_block: Any = None
        self._pre_header: Any = None
        self._block: Any = None
        self._header: Any = None
        # Set once the block (pre-block) callback has been invoked at this height.
        self.block_processed = False
        self.pre_block_processed = False

        self.block_index = 0
        self.view_number = 0
        self.validators: list = []
        self.my_index = -1
        self.primary_index = 0

        self.prev_hash: Any = None

        self.timestamp = 0
        self.nonce = 0
        # None until a proposal is known for the current epoch.
        self.transaction_hashes: Optional[list] = None
        self.missing_transactions: list = []
        self.transactions: dict = {}

        self.preparation_payloads: list = []
        self.pre_commit_payloads: list = []
        self.commit_payloads: list = []
        self.change_view_payloads: list = []
        self.last_change_view_payloads: list = []
        self.last_seen_message: list[Optional[HeightView]] = []

        self.last_block_timestamp = 0
        self.last_block_time: Optional[datetime] = None
        self.last_block_index = 0

    @property
    def n(self) -> int:
        """Total number of validators."""
        return len(self.validators)

    @property
    def f(self) -> int:
        """Number of validators that may be faulty."""
        return (len(self.validators) - 1) // 3

    @property
    def m(self) -> int:
        """Number of validators that must function correctly."""
        return len(self.validators) - self.f

    def get_primary_index(self, view_number: int) -> int:
        """Index of the primary node for ``view_number`` at the current height."""
        return (self.block_index - view_number) % len(self.validators)

    def is_primary(self) -> bool:
        """Whether this node is primary for the current height and view."""
        return self.my_index == self.primary_index

    def is_backup(self) -> bool:
        """Whether this node is a backup for the current height and view."""
        return self.my_index >= 0 and not self.is_primary()

    def watch_only(self) -> bool:
        """Whether this node takes no active part in consensus."""
        return self.my_index < 0 or self.config.watch_only()

    def count_committed(self) -> int:
        """Number of Commit or PreCommit messages received in any view."""
        return sum(
            1
            for commit, pre_commit in zip(self.commit_payloads, self.pre_commit_payloads)
            if commit is not None or pre_commit is not None
        )

    def count_failed(self) -> int:
        """Number of silent nodes in this view that have not committed earlier."""
        count = 0
        for i, seen in enumerate(self.last_seen_message):
            if self.commit_payloads[i] is not None or self.pre_commit_payloads[i] is not None:
                continue
            if seen is None or seen.height < self.block_index or seen.view < self.view_number:
                count += 1
        return count

    def request_sent_or_received(self) -> bool:
        """Whether the PrepareRequest was sent or received in this epoch."""
        return self.preparation_payloads[self.primary_index] is not None

    def response_sent(self) -> bool:
        """Whether this node sent a Prepare message in this epoch."""
        return not self.watch_only() and self.preparation_payloads[self.my_index] is not None

    def pre_commit_sent(self) -> bool:
        """Whether this node sent a PreCommit."""
        return not self.watch_only() and self.pre_commit_payloads[self.my_index] is not None

    def commit_sent(self) -> bool:
        """Whether this node sent a Commit."""
        return not self.watch_only() and self.commit_payloads[self.my_index] is not None

    def block_sent(self) -> bool:
        """Whether the block was formed and processed at the current height."""
        return self.block_processed

    def view_changing(self) -> bool:
        """Whether this node is in the process of changing view."""
        if self.watch_only():
            return False
        message = self.change_view_payloads[self.my_index]
        return message is not None and message.payload.new_view_number > self.view_number

    def not_accepting_payloads_due_to_view_changing(self) -> bool:
        """Whether new payloads must be refused because of a view change."""
        return self.view_changing() and not self.more_than_f_nodes_committed_or_lost()

    def more_than_f_nodes_committed_or_lost(self) -> bool:
        """Whether more than F nodes have committed or are unreachable."""
        return self.count_committed() + self.count_failed() > self.f

    @property
    def header(self) -> Any:
        """Current header, or None if not constructed yet."""
        return self._header

    @property
    def pre_header(self) -> Any:
        """Current pre-header, or None if not constructed yet."""
        return self._pre_header

    @property
    def pre_block(self) -> Any:
        """Current pre-block, or None if not constructed yet."""
        return self._pre_block

    def reset(self, view: int, ts: int) -> None:
        """Prepare the state for ``view``; view 0 starts a new height."""
        self.my_index = -1
        self.last_block_timestamp = ts

        if view == 0:
            self.prev_hash = self.config.current_block_hash()
            self.block_index = self.config.current_height() + 1
            self.validators = list(self.config.get_validators())
            n = len(self.validators)
            self.last_change_view_payloads = [None] * n
            self.last_seen_message = [None] * n
            self.block_processed = False
            self.pre_block_processed = False
        else:
            self.last_change_view_payloads = [
                message
                if message is not None and message.payload.new_view_number >= view
                else None
                for message in self.change_view_payloads[: len(self.validators)]
            ]

        self.my_index, self.priv, self.pub = self.config.get_key_pair(self.validators)

        self._block = None
        self._pre_block = None
        self._header = None
        self._pre_header = None

        n = len(self.validators)
        self.change_view_payloads = [None] * n
        if view == 0:
            self.pre_commit_payloads = [None] * n
            self.commit_payloads = [None] * n
        self.preparation_payloads = [None] * n

        self.transactions = {}
        self.transaction_hashes = None
        self.missing_transactions = []
        self.primary_index = self.get_primary_index(view)
        self.view_number = view

        if self.my_index >= 0:
            self.last_seen_message[self.my_index] = HeightView(self.block_index, self.view_number)

    def fill(self) -> None:
        """Fill in a new proposal when this node is the speaker."""
        transactions = list(self.config.get_verified())
        self.nonce = secrets.randbits(64)
        self.transaction_hashes = [tx.hash for tx in transactions]
        self.transactions.update((tx.hash, tx) for tx in transactions)

        self.timestamp = max(
            self.last_block_timestamp + self.config.timestamp_increment,
            self._get_timestamp(),
        )

    def _get_timestamp(self) -> int:
        increment = self.config.timestamp_increment
        return _unix_nanos(self.config.timer.now()) // increment * increment

    def _proposed_transactions(self) -> list:
        return [self.transactions.get(h) for h in self.transaction_hashes or ()]

    def create_block(self) -> Any:
        """Return the block for the current epoch, building it once if possible."""
        if self._block is None:
            block = self.make_header()
            if block is None:
                return None
            self._block = block
            # Called even with anti-MEV enabled: it signals block finalization.
            block.set_transactions(self._proposed_transactions())
        return self._block

    def create_pre_block(self) -> Any:
        """Return the pre-block for the current epoch, building it once if possible."""
        if self._pre_block is None:
            pre_block = self.make_pre_header()
            if pre_block is None:
                return None
            self._pre_block = pre_block
            pre_block.set_transactions(self._proposed_transactions())
        return self._pre_block

    def is_anti_mev_extension_enabled(self) -> bool:
        """Whether the anti-MEV extension applies at the current height."""
        return self.config.anti_mev_enabled_at(self.block_index)

    def make_header(self) -> Any:
        """Return the header for the current epoch, or None if it can't be built yet."""
        if self._header is None:
            if not self.request_sent_or_received():
                return None
            # With anti-MEV the pre-block must be processed before a block exists.
            if self.is_anti_mev_extension_enabled() and not self.pre_block_processed:
                return None
            self._header = self.config.new_block_from_context(self)
        return self._header

    def make_pre_header(self) -> Any:
        """Return the pre-header for the current epoch, or None if it can't be built yet."""
        if self._pre_header is None:
            if not self.request_sent_or_received():
                return None
            self._pre_header = self.config.new_pre_block_from_context(self)
        return self._pre_header

    def has_all_transactions(self) -> bool:
        """Whether every proposed transaction has been received."""
        return len(self.transaction_hashes or ()) == len(self.transactions)