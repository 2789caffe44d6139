# tokenstate

`tokenstate` holds the pieces of a token ledger that sit around its state
store:

- **`tokenstate.storage`**: the binary key and value layout for transactions,
  balances, assets, orders and cross-chain loans, with read, write, add and
  subtract helpers. Balances and loans that fall to zero are removed rather
  than stored as zero; an add that would overflow 64 bits, a subtraction that
  would go below zero, or a negative amount raises `InvalidBalanceError`.
- **`tokenstate.rpc_server`**: `JSONRPCServer`, which answers the `genesis`,
  `tx`, `asset`, `balance`, `orders` and `loan` methods on behalf of a
  `Controller` that supplies the chain's state.
- **`tokenstate.rpc_client`**: `JSONRPCClient`, which calls those methods over
  HTTP with `requests` and can poll until a balance is reached or a
  transaction is known.
- **`tokenstate.addresses`**: `address(public_key, hrp)` and
  `parse_address(text, hrp)`, converting 32-byte public keys to and from
  bech32 addresses.
- **`tokenstate.ids`**: `encode_id(raw)` and `decode_id(text)`, converting
  32-byte identifiers to and from base58 text with a 4-byte SHA-256 checksum.
- **`tokenstate.errors`**: `TxNotFoundError`, `AssetNotFoundError` and
  `InvalidBalanceError`, all subclasses of `TokenStateError`.

## State layout

| Key                                   | Value                                          |
|---------------------------------------|------------------------------------------------|
| `0x0` + tx id                         | timestamp, success flag, units                 |
| `0x0` + public key + asset            | balance                                        |
| `0x1` + asset                         | metadata length, metadata, supply, owner, warp |
| `0x2` + order tx id                   | in asset, in tick, out asset, out tick, remaining, owner |
| `0x3` + asset + destination chain     | loaned amount                                  |
| `0x4`                                 | height                                         |
| `0x5` + source chain + message id     | incoming warp message                          |
| `0x6` + tx id                         | outgoing warp message                          |

Integers are 64-bit big-endian (the timestamp is signed); the metadata length
is 16-bit big-endian, so metadata is limited to 65535 bytes. Transaction
records are metadata; every other key lives in chain state, which is why both
the transaction prefix and the balance prefix are `0x0`.

A state database is any mutable mapping from `bytes` to `bytes`, such as a
plain `dict`. The `*_from_state` functions instead take a read-state function:
it receives a list of keys and returns a list of values, `None` for a missing
key.

```python
from tokenstate import storage

db = {}
owner = bytes(32)
asset = bytes(32)

storage.add_balance(db, owner, asset, 100)
storage.sub_balance(db, owner, asset, 40)
assert storage.get_balance(db, owner, asset) == 60

storage.set_asset(db, asset, b"COIN", 60, owner, warp=False)
record = storage.get_asset(db, asset)      # AssetRecord, or None if missing
assert record.metadata == b"COIN"

assert storage.prefix_tx_key(bytes(32)) == b"\x00" + bytes(32)
assert storage.height_key() == b"\x04"
```

Lookups return `TransactionRecord`, `AssetRecord` or `OrderRecord`
dataclasses, or `None` when the record does not exist; balances and loans read
as zero when absent.

## Querying a node

```python
from tokenstate.rpc_client import JSONRPCClient

client = JSONRPCClient("http://localhost:9650/ext/bc/mychain", chain_id)

genesis = client.genesis()                 # fetched once, then cached
record = client.tx(tx_id)                  # TransactionRecord or None
info = client.asset(asset_id)              # AssetInfo or None
amount = client.balance(address, asset_id)
orders = client.orders(pair)
loaned = client.loan(asset_id, destination_chain_id)

client.wait_for_balance(address, asset_id, 5000)
succeeded = client.wait_for_transaction(tx_id)
```

The client appends `/tokenapi` to the URI it is given and sends methods as
`<namespace>.<method>`, with `tokenvm` as the default namespace. A `session`
may be passed to reuse a `requests.Session`. Identifiers are sent in the text
form of `tokenstate.ids`.

An unknown transaction or asset is reported as `None` rather than raised. An
error answer from the service, or a status other than 200, raises `RPCError`.

The wait methods poll every `poll_interval` seconds (1.0 by default). With
`timeout` left at `None` they wait indefinitely; set it to a number of seconds
to have them raise `TimeoutError` instead. `wait_for_transaction` returns
whether the transaction succeeded.

## Serving requests

Implement a `Controller` over your state and hand it, with the address
prefix, to `JSONRPCServer`:

```python
from tokenstate.rpc_server import JSONRPCServer

server = JSONRPCServer(controller, hrp)
response = server.handle(request)          # a decoded JSON-RPC request
```

`handle` takes an already decoded request object and returns the response
object. The method name may carry a namespace (`tokenvm.balance`) and is
matched without regard to case. Params may be an object or a one-element list
holding an object. Failures become JSON-RPC errors: `-32600` for a malformed
request, `-32601` for an unknown method, `-32602` for parameters that cannot
be decoded, and `-32000` for anything else, including "tx not found" and
"asset not found". Asset metadata is returned base64-encoded and owners as
addresses. `orders` asks the controller for at most 128 orders for a pair.

## What this package does not do

- It does not listen for HTTP: `JSONRPCServer.handle` works on decoded
  requests, and wiring it to a web server is left to the caller.
- It provides no database engine; the storage functions work on whatever
  mapping or read-state function they are given.
- It does not build, sign, submit or execute transactions, and it has no
  genesis format, fee rules or order book of its own; those come from the
  `Controller` and whatever produces the state.