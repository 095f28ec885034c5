"""Configuration of a dBFT instance: callbacks and working parameters."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Optional

DEFAULT_SECONDS_PER_BLOCK = timedelta(seconds=15)
# Nanoseconds in a millisecond: timestamps are rounded to millisecond precision.
DEFAULT_TIMESTAMP_INCREMENT = 1_000_000

_logger = logging.getLogger("dbft")
_logger.addHandler(logging.NullHandler())


class ConfigError(ValueError):
    """Raised when a configuration lacks a required setting or is inconsistent."""


class _Constant:
    """Callable that returns a fixed value whatever it is called with."""

    __slots__ = ("_value",)

    def __init__(self, value: Any) -> None:
        self._value = value

    def __call__(self, *_args: Any, **_kwargs: Any) -> Any:
        return self._value

    def __repr__(self) -> str:
        return f"_Constant({self._value!r})"


_RETURN_NONE = _Constant(None)
_ACCEPT = _Constant(True)


_REQUIRED = (
    "get_key_pair",
    "timer",
    "current_height",
    "current_block_hash",
    "get_validators",
    "new_block_from_context",
    "new_consensus_payload",
    "new_prepare_request",
    "new_prepare_response",
    "new_change_view",
    "new_commit",
    "new_recovery_request",
    "new_recovery_message",
)

_ANTI_MEV_ONLY = (
    "new_pre_block_from_context",
    "process_pre_block",
    "new_pre_commit",
)


@dataclass
class Config:
    """Initialization and working parameters for dBFT.

    Callbacks left as ``None`` must be supplied by the user; ``validate``
    reports the first one missing. Verification callbacks raise to reject.
    """

    logger: logging.Logger = field(default_factory=lambda: _logger)
    timer: Any = None
    seconds_per_block: timedelta = DEFAULT_SECONDS_PER_BLOCK
    timestamp_increment: int = DEFAULT_TIMESTAMP_INCREMENT
    # Height from which the anti-MEV extension is enabled; -1 disables it.
    anti_mev_extension_enabling_height: int = -1

    get_key_pair: Optional[Callable[[list], tuple]] = None
    new_pre_block_from_context: Optional[Callable[[Any], Any]] = None
    new_block_from_context: Optional[Callable[[Any], Any]] = None
    request_tx: Callable[..., None] = _RETURN_NONE
    stop_tx_flow: Callable[[], None] = _RETURN_NONE
    get_tx: Callable[[Any], Any] = _RETURN_NONE
    get_verified: Callable[[], list] = list
    verify_pre_block: Callable[[Any], bool] = _ACCEPT
    verify_block: Callable[[Any], bool] = _ACCEPT
    broadcast: Callable[[Any], None] = _RETURN_NONE
    process_pre_block: Optional[Callable[[Any], None]] = None
    process_block: Callable[[Any], None] = _RETURN_NONE
    get_block: Callable[[Any], Any] = _RETURN_NONE
    watch_only: Callable[[], bool] = bool
    current_height: Optional[Callable[[], int]] = None
    current_block_hash: Optional[Callable[[], Any]] = None
    get_validators: Optional[Callable[..., list]] = None

    new_consensus_payload: Optional[Callable[[Any, Any, Any], Any]] = None
    new_prepare_request: Optional[Callable[[int, int, list], Any]] = None
    new_prepare_response: Optional[Callable[[Any], Any]] = None
    new_change_view: Optional[Callable[[int, Any, int], Any]] = None
    new_pre_commit: Optional[Callable[[bytes], Any]] = None
    new_commit: Optional[Callable[[bytes], Any]] = None
    new_recovery_request: Optional[Callable[[int], Any]] = None
    new_recovery_message: Optional[Callable[[], Any]] = None

    verify_prepare_request: Callable[[Any], None] = _RETURN_NONE
    verify_prepare_response: Callable[[Any], None] = _RETURN_NONE
    verify_pre_commit: Callable[[Any], None] = _RETURN_NONE
    verify_commit: Callable[[Any], None] = _RETURN_NONE

    def validate(self) -> None:
        """Raise ConfigError if a required setting is missing or inconsistent."""
        for name in _REQUIRED:
            if getattr(self, name) is None:
                raise ConfigError(f"{name} is not set")
        if self.anti_mev_extension_enabling_height >= 0:
            for name in _ANTI_MEV_ONLY:
                if getattr(self, name) is None:
                    raise ConfigError(f"{name} is not set")
        else:
            for name in _ANTI_MEV_ONLY:
                if getattr(self, name) is not None:
                    raise ConfigError(
                        f"{name} is set, but anti_mev_extension_enabling_height "
                        "is not specified"
                    )

    def anti_mev_enabled_at(self, height: int) -> bool:
        """Whether the anti-MEV extension is enabled at block ``height``."""
        start = self.anti_mev_extension_enabling_height
        return start >= 0 and start <= height