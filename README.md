# dbft

Building blocks for a delegated Byzantine Fault Tolerance (dBFT) consensus
node, with optional support for the anti-MEV extension, which adds a
PreCommit phase. The package holds the message vocabulary, the node
configuration, a cache for messages from future heights and the per-epoch
consensus state with its quorum rules. It does no networking, cryptography or
storage. Your application supplies these through callbacks on `Config` and
through its own block and payload objects.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

### `dbft.types`

- `MessageType` is an `IntEnum` of the message codes:
  - `CHANGE_VIEW` (0x00)
  - `PREPARE_REQUEST` (0x20)
  - `PREPARE_RESPONSE` (0x21)
  - `COMMIT` (0x30)
  - `PRE_COMMIT` (0x31)
  - `RECOVERY_REQUEST` (0x40)
  - `RECOVERY_MESSAGE` (0x41)

  `str()` gives names such as `"PrepareRequest"`. A byte value that is not a
  known code still converts, and prints as `UNKNOWN(xx)`.
- `ChangeViewReason` is an `IntEnum` of the view change reasons:
  - `TIMEOUT`
  - `CHANGE_AGREEMENT`
  - `TX_NOT_FOUND`
  - `TX_REJECTED_BY_POLICY`
  - `TX_INVALID`
  - `BLOCK_REJECTED_BY_POLICY`
  - `UNKNOWN` (0xFF)

  `str()` gives names such as `"Timeout"`.
- `Block`, `ChangeView`, `Commit`, `ConsensusMessage` and `ConsensusPayload`
  are runtime-checkable `Protocol`s that describe the objects your application
  provides. For example, a block has `hash`, `prev_hash`, `merkle_root`,
  `index`, `signature`, `transactions`, `set_transactions()`, `sign()` and
  `verify()`. A block's `verify()` raises when a signature is invalid.

### `dbft.config`

`Config` is a dataclass of working parameters and callbacks. The defaults are:

- a 15-second `seconds_per_block`
- a millisecond `timestamp_increment` (1,000,000 ns)
- `anti_mev_extension_enabling_height = -1`, which disables the extension
- no-op or accepting callbacks wherever a callback is optional

`Config.validate()` raises `ConfigError`, a subclass of `ValueError`, when:

- a required setting is missing. The required settings are `get_key_pair`,
  `timer`, `current_height`, `current_block_hash`, `get_validators`,
  `new_block_from_context` and the payload constructors.
- the anti-MEV callbacks (`new_pre_block_from_context`, `process_pre_block`,
  `new_pre_commit`) do not agree with `anti_mev_extension_enabling_height`.
  They are required when the extension is enabled and rejected when it is
  disabled.

`Config.anti_mev_enabled_at(height)` tells whether the extension applies at a
given height.

### `dbft.cache`

`MessageCache` keeps payloads that arrive ahead of the node. It stores them as
one `Inbox` per height. An inbox has four buckets, `prepare`, `ch_views`,
`pre_commit` and `commit`, each keyed by validator index.

- `add_message(message)` files a payload in its inbox. A recovery message only
  reserves an inbox for its height.
- `get_height(height)` removes the inbox for that height and returns it, or
  returns `None` if there is none.

### `dbft.context`

`Context(config)` holds the state of the current height and view:

- validators
- own index
- primary index
- proposal (timestamp, nonce, transaction hashes)
- per-validator payload lists
- last seen `HeightView` per validator

It provides:

- Quorum figures, as properties: `n`, `f = (n - 1) // 3` and `m = n - f`.
- Primary selection: `get_primary_index(view)` returns `(height - view) mod n`.
- Role queries: `is_primary()`, `is_backup()` and `watch_only()`.
- Progress queries:
  - `request_sent_or_received()`, `response_sent()`, `pre_commit_sent()`, `commit_sent()` and `block_sent()`
  - `view_changing()`, `count_committed()` and `count_failed()`
  - `more_than_f_nodes_committed_or_lost()` and `not_accepting_payloads_due_to_view_changing()`
  - `has_all_transactions()` and `is_anti_mev_extension_enabled()`
- `reset(view, ts)` prepares a new view. View 0 starts a new height, taken from
  `config.current_height() + 1`.
- `fill()` builds a proposal when this node is the speaker. It uses
  `config.get_verified()`, takes a random nonce and sets a timestamp that is
  never below the last block timestamp plus `timestamp_increment`.
- Block construction happens at most once per epoch:
  - `make_header()` and `make_pre_header()` call your constructors once the PrepareRequest is known.
  - `create_block()` and `create_pre_block()` also attach the proposed transactions.
  - The results are available as the `header`, `pre_header` and `pre_block` properties.

## Example

```python
from dbft.config import Config, ConfigError
from dbft.context import Context

validators = ["pub-0", "pub-1", "pub-2", "pub-3"]
config = Config(
    current_height=lambda: 4,
    current_block_hash=lambda: "hash-4",
    get_validators=lambda *txs: validators,
    get_key_pair=lambda pubs: (1, None, pubs[1]),
)

try:
    config.validate()
except ConfigError as exc:
    print("incomplete configuration:", exc)  # timer is not set

ctx = Context(config)
ctx.reset(0, 0)
print(ctx.block_index, ctx.n, ctx.f, ctx.m)  # 5 4 1 3
print(ctx.is_primary())                      # True: (5 - 0) % 4 == 1
```

## What this package does not do

The package contains no component that drives consensus. Nothing in it:

- reacts to incoming payloads or timeouts
- sends PrepareRequest, PrepareResponse, ChangeView, Commit or recovery messages
- calls `process_block` or `process_pre_block`

It also ships no timer, no network transport and no block or payload
implementations. Your application builds these on top of `Context`, `Config`
and `MessageCache`.