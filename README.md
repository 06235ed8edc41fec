# dexkit

Building blocks for working with an on-chain central-limit order book:

- **Crit-bit slabs** (`dexkit.slab`, `dexkit.critbit`): a fixed-size node
  arena laid out byte for byte in a writable buffer, and the crit-bit tree of
  resting orders stored in it, keyed by 128-bit order ids.
- **Fee tiers** (`dexkit.fees`): taker fees, maker rebates and referrer
  rebates computed in 64.64 fixed point.
- **Token instructions** (`dexkit.token_instruction`): packing, unpacking and
  building token-program instructions with their account lists.
- **Errors** (`dexkit.errors`): exchange error codes, program errors and
  encoded assertion failures.
- **Keys and accounts** (`dexkit.pubkey`): 32-byte public keys, base58
  encoding, and an account-owner check.
- **Client configuration** (`dexkit.cluster`, `dexkit.context`,
  `dexkit.paths`): cluster names and endpoints, default file locations, and
  the YAML configuration file read by client tools.

## Installation

```
pip install dexkit
```

For running the test suite:

```
pip install "dexkit[test]"
pytest
```

## Fees

```python
from dexkit.fees import FeeTier, fee_tier_from_balances, referrer_rebate

tier = fee_tier_from_balances(srm_held=250_000_000, msrm_held=0)  # FeeTier.SRM2
fee = tier.taker_fee(1_000_000)          # rounded up
rebate = tier.maker_rebate(1_000_000)    # rounded down
to_referrer = referrer_rebate(fee)       # one fifth of the fee
net = tier.remove_taker_fee(1_000_000 + fee)
```

Holding at least one MSRM always gives `FeeTier.MSRM`; otherwise the tier is
chosen by SRM balance in native units (six decimals), from `BASE` up to
`SRM6`. Quantities must fit in an unsigned 64-bit integer, or `ValueError`
is raised. `fee_bps` and `rebate_bps` give the underlying 64.64 rates.

## Order-book slabs

`dexkit.slab.Slab` wraps a byte buffer: a 32-byte header followed by 72-byte
nodes. A `bytearray` or writable `memoryview` is used in place; `bytes` are
copied. It hands out node handles with `insert`, frees them with `remove`,
and reads or overwrites live nodes with `get` and `set`. `insert` raises
`OverflowError` when the buffer is full, and `assert_minimum_capacity` raises
`DexError(DexErrorCode.SLAB_TOO_SMALL)` when there is not room for the given
number of orders.

`dexkit.critbit.CritbitSlab` keeps a crit-bit tree of `LeafNode` values in a
slab. The upper 64 bits of a leaf's key are its price, so the minimum and
maximum leaves are the best prices of a book side.

```python
from dexkit.critbit import CritbitSlab, SlabOutOfSpace
from dexkit.fees import FeeTier
from dexkit.slab import LeafNode

book = CritbitSlab(bytearray(80_000))
leaf = LeafNode(
    owner_slot=0,
    key=(100 << 64) | 1,
    owner=(1, 2, 3, 4),
    quantity=10,
    fee_tier=FeeTier.BASE,
    client_order_id=7,
)
handle, replaced = book.insert_leaf(leaf)  # replaced is the old leaf with this key, if any
best = book.find_min()                     # handle of the lowest key, or None
leaves = book.traverse()                   # all leaves in ascending key order
removed = book.remove_by_key(leaf.key)     # the removed LeafNode, or None
```

`insert_leaf` raises `SlabOutOfSpace` when the arena has no room.
`remove_min` and `remove_max` remove the extreme leaves, `find_by_key`
looks a key up, and `check_invariants` raises `ValueError` if the tree or
the free list is inconsistent.

## Token instructions

```python
from dexkit.pubkey import Pubkey, parse_pubkey
from dexkit.token_instruction import transfer, unpack_token_instruction

program = parse_pubkey("11111111111111111111111111111111")
source, destination, owner = (Pubkey(bytes([n]) * 32) for n in (1, 2, 3))
ix = transfer(program, source, destination, owner, [], amount=500)
assert unpack_token_instruction(ix.data).amount == 500
```

Every packed instruction is 24 bytes: a tag byte, its arguments, then zero
fill. Builders exist for `initialize_mint`, `initialize_account`,
`initialize_multisig`, `transfer`, `approve`, `revoke`, `set_owner`,
`mint_to`, `burn` and `close_account`. Invalid input raises
`dexkit.errors.ProgramError`.

## Errors

```python
from dexkit.errors import DexError, DexErrorCode, SourceFileId, check_assert

err = DexError(DexErrorCode.SLAB_TOO_SMALL)
err.to_program_error()          # custom program error 0x20

check_assert(True, 120, SourceFileId.CRITBIT)   # passes
check_assert(False, 120, SourceFileId.CRITBIT)  # raises DexAssertionError
```

A `DexAssertionError` carries the line number in its lower 16 bits and the
source file id in the upper 8 bits of its custom code.
`dex_error_code_from_int` maps unknown values to `ASSERTION_ERROR`.

## Clusters and configuration

```python
from dexkit.cluster import parse_cluster
from dexkit.context import context_from_config

cluster = parse_cluster("devnet")   # also "d", or any http(s) URL
cluster.url()                       # the cluster's RPC endpoint
ctx = context_from_config()         # reads the default config file
keypair = ctx.wallet()              # 64 bytes read from the wallet file
```

The configuration file is YAML:

```yaml
wallet_path: /path/to/wallet.json
network:
  cluster: localnet
mints:
  srm: 11111111111111111111111111111111
  msrm: 11111111111111111111111111111111
programs:
  dex_pid: 11111111111111111111111111111111
  faucet_pid: 11111111111111111111111111111111
```

`wallet_path`, `network.cluster` and `programs.faucet_pid` are optional; the
`network`, `mints` and `programs` sections must be present. The wallet path
defaults to `dexkit.paths.default_wallet_path()`, the cluster to localnet,
and on devnet a known faucet program id is filled in. With no argument,
`context_from_config` reads `dexkit.paths.default_config_path()`.

## What this package does not do

It has no command-line tool and talks to no network: `Cluster.url()` only
names an endpoint, and nothing here sends transactions or queries accounts.
It builds and decodes token instructions but does not sign them, and it holds
no market state, matching engine, request or event queues.