"""Message types, view change reasons and the interfaces dBFT works with."""

from __future__ import annotations

import enum
from typing import Any, Hashable, Protocol, Sequence, runtime_checkable

# Hashes identify payloads, blocks and transactions. Any hashable value with a
# meaningful ``str`` will do; equal objects must have equal hashes and
# different objects different ones.
Hash = Hashable
PublicKey = Any
PrivateKey = Any


class MessageType(enum.IntEnum):
    """Type of a dBFT consensus message."""

    CHANGE_VIEW = 0x00
    PREPARE_REQUEST = 0x20
    PREPARE_RESPONSE = 0x21
    PRE_COMMIT = 0x31
    COMMIT = 0x30
    RECOVERY_REQUEST = 0x40
    RECOVERY_MESSAGE = 0x41

    @classmethod
    def _missing_(cls, value: object) -> MessageType | None:
        if isinstance(value, int) and 0 <= value <= 0xFF:
            member = int.__new__(cls, value)
            member._name_ = f"UNKNOWN_{value:02X}"
            member._value_ = value
            return member
        return None

    def __str__(self) -> str:
        name = _MESSAGE_TYPE_NAMES.get(int(self))
        if name is None:
            return f"UNKNOWN({int(self):02x})"
        return name


_MESSAGE_TYPE_NAMES = {
    MessageType.CHANGE_VIEW: "ChangeView",
    MessageType.PREPARE_REQUEST: "PrepareRequest",
    MessageType.PREPARE_RESPONSE: "PrepareResponse",
    MessageType.COMMIT: "Commit",
    MessageType.PRE_COMMIT: "PreCommit",
    MessageType.RECOVERY_REQUEST: "RecoveryRequest",
    MessageType.RECOVERY_MESSAGE: "RecoveryMessage",
}


class ChangeViewReason(enum.IntEnum):
    """Reason code carried by a ChangeView message."""

    TIMEOUT = 0x00
    CHANGE_AGREEMENT = 0x01
    TX_NOT_FOUND = 0x02
    TX_REJECTED_BY_POLICY = 0x03
    TX_INVALID = 0x04
    BLOCK_REJECTED_BY_POLICY = 0x05
    UNKNOWN = 0xFF

    @classmethod
    def _missing_(cls, value: object) -> ChangeViewReason | None:
        if isinstance(value, int) and 0 <= value <= 0xFF:
            member = int.__new__(cls, value)
            member._name_ = f"REASON_{value}"
            member._value_ = value
            return member
        return None

    def __str__(self) -> str:
        name = _REASON_NAMES.get(int(self))
        if name is None:
            return f"ChangeViewReason({int(self)})"
        return name


_REASON_NAMES = {
    ChangeViewReason.TIMEOUT: "Timeout",
    ChangeViewReason.CHANGE_AGREEMENT: "ChangeAgreement",
    ChangeViewReason.TX_NOT_FOUND: "TxNotFound",
    ChangeViewReason.TX_REJECTED_BY_POLICY: "TxRejectedByPolicy",
    ChangeViewReason.TX_INVALID: "TxInvalid",
    ChangeViewReason.BLOCK_REJECTED_BY_POLICY: "BlockRejectedByPolicy",
    ChangeViewReason.UNKNOWN: "Unknown",
}


@runtime_checkable
class Block(Protocol):
    """A block agreed on by dBFT."""

    @property
    def hash(self) -> Hash: ...

    @property
    def prev_hash(self) -> Hash: ...

    @property
    def merkle_root(self) -> Hash: ...

    @property
    def index(self) -> int: ...

    @property
    def signature(self) -> bytes: ...

    @property
    def transactions(self) -> Sequence[Any]: ...

    def set_transactions(self, transactions: Sequence[Any]) -> None:
        """Set the block's transactions; with anti-MEV enabled this also finalizes the block."""
        ...

    def sign(self, key: PrivateKey) -> None:
        """Sign the block with ``key``, raising on failure."""
        ...

    def verify(self, key: PublicKey, signature: bytes) -> None:
        """Raise if ``signature`` is not a valid signature of the block by ``key``."""
        ...


@runtime_checkable
class ChangeView(Protocol):
    """Body of a ChangeView message."""

    @property
    def new_view_number(self) -> int: ...

    @property
    def reason(self) -> ChangeViewReason: ...


@runtime_checkable
class Commit(Protocol):
    """Body of a Commit message."""

    @property
    def signature(self) -> bytes: ...


@runtime_checkable
class ConsensusMessage(Protocol):
    """A consensus message: its view, type and typed body."""

    @property
    def view_number(self) -> int: ...

    @property
    def type(self) -> MessageType: ...

    @property
    def payload(self) -> Any: ...


@runtime_checkable
class ConsensusPayload(ConsensusMessage, Protocol):
    """A consensus message as exchanged between nodes."""

    validator_index: int

    @property
    def height(self) -> int: ...

    @property
    def hash(self) -> Hash: ...