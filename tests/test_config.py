from datetime import timedelta

import pytest

from dbft.config import Config, ConfigError

_STEPS = [
    ("timer", "timer", object()),
    ("current_height", "current_height", lambda: 0),
    ("current_block_hash", "current_block_hash", lambda: b"\x00" * 32),
    ("get_validators", "get_validators", lambda *txs: ["pub"]),
    ("new_block_from_context", "new_block_from_context", lambda ctx: None),
    ("new_consensus_payload", "new_consensus_payload", lambda ctx, t, m: None),
    ("new_prepare_request", "new_prepare_request", lambda ts, nonce, hashes: None),
    ("new_prepare_response", "new_prepare_response", lambda h: None),
    ("new_change_view", "new_change_view", lambda view, reason, ts: None),
    ("new_commit", "new_commit", lambda sig: None),
    ("new_recovery_request", "new_recovery_request", lambda ts: None),
    ("new_recovery_message", "new_recovery_message", lambda: None),
]


def _full_kwargs():
    kwargs = {"get_key_pair": lambda pubs: (-1, None, None)}
    for _, name, value in _STEPS:
        kwargs[name] = value
    return kwargs


def test_without_keys():
    with pytest.raises(ConfigError, match="get_key_pair"):
        Config().validate()


@pytest.mark.parametrize("count", range(len(_STEPS)))
def test_missing_required_in_order(count):
    kwargs = {"get_key_pair": lambda pubs: (-1, None, None)}
    for _, name, value in _STEPS[:count]:
        kwargs[name] = value
    missing = _STEPS[count][0]
    with pytest.raises(ConfigError, match=missing):
        Config(**kwargs).validate()


def test_with_all_defaults():
    cfg = Config(**_full_kwargs())
    cfg.validate()
    assert cfg.get_tx("anything") is None
    assert cfg.get_verified() == []
    assert cfg.verify_block("block") is True
    assert cfg.verify_pre_block("block") is True
    assert cfg.get_block("hash") is None
    assert cfg.watch_only() is False
    assert cfg.process_block("block") is None
    assert cfg.request_tx("a", "b") is None


def test_default_parameters():
    cfg = Config()
    assert cfg.seconds_per_block == timedelta(seconds=15)
    assert cfg.timestamp_increment == 1_000_000
    assert cfg.anti_mev_extension_enabling_height == -1


@pytest.mark.parametrize(
    "missing", ["new_pre_block_from_context", "process_pre_block", "new_pre_commit"]
)
def test_anti_mev_requires_callbacks(missing):
    kwargs = _full_kwargs()
    kwargs["anti_mev_extension_enabling_height"] = 0
    for name in ("new_pre_block_from_context", "process_pre_block", "new_pre_commit"):
        if name != missing:
            kwargs[name] = lambda *args: None
    with pytest.raises(ConfigError, match=missing):
        Config(**kwargs).validate()


def test_anti_mev_complete_config_validates():
    kwargs = _full_kwargs()
    kwargs.update(
        anti_mev_extension_enabling_height=0,
        new_pre_block_from_context=lambda ctx: None,
        process_pre_block=lambda b: None,
        new_pre_commit=lambda data: None,
    )
    cfg = Config(**kwargs)
    cfg.validate()
    assert cfg.anti_mev_enabled_at(0) is True


@pytest.mark.parametrize(
    "name", ["new_pre_block_from_context", "process_pre_block", "new_pre_commit"]
)
def test_anti_mev_callback_without_height(name):
    kwargs = _full_kwargs()
    kwargs[name] = lambda *args: None
    with pytest.raises(ConfigError, match="is not specified"):
        Config(**kwargs).validate()


@pytest.mark.parametrize(
    "start, height, expected",
    [(-1, 0, False), (-1, 100, False), (0, 0, True), (0, 5, True), (10, 5, False), (10, 10, True)],
)
def test_anti_mev_enabled_at(start, height, expected):
    cfg = Config(anti_mev_extension_enabling_height=start)
    assert cfg.anti_mev_enabled_at(height) is expected