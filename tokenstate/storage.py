"""Key layout and value encoding of the token chain state.

Metadata:
    0x0 + txID                  -> timestamp|success|units
State:
    0x0 + owner + asset         -> balance
    0x1 + asset                 -> metadataLen|metadata|supply|owner|warp
    0x2 + txID                  -> in|inTick|out|outTick|remaining|owner
    0x3 + asset + destination   -> amount
    0x4                         -> height
    0x5 + sourceChain + msgID   -> incoming warp
    0x6 + txID                  -> outgoing warp

A state database is any mutable mapping from bytes to bytes. A read-state
function takes a list of keys and returns a list of values, ``None`` where a
key is missing.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Callable, MutableMapping, Optional, Sequence

from .errors import InvalidBalanceError
from .ids import encode_id

ID_LEN = 32
PUBLIC_KEY_LEN = 32
MAX_UINT64 = (1 << 64) - 1

TX_PREFIX = 0x0
BALANCE_PREFIX = 0x0
ASSET_PREFIX = 0x1
ORDER_PREFIX = 0x2
LOAN_PREFIX = 0x3
HEIGHT_PREFIX = 0x4
INCOMING_WARP_PREFIX = 0x5
OUTGOING_WARP_PREFIX = 0x6

_FAILURE = 0x0
_SUCCESS = 0x1

_U16 = struct.Struct(">H")
_U64 = struct.Struct(">Q")
_TX_VALUE = struct.Struct(">qBQ")

StateDB = MutableMapping[bytes, bytes]
ReadState = Callable[[Sequence[bytes]], Sequence[Optional[bytes]]]


@dataclass(frozen=True)
class TransactionRecord:
    """Outcome of an accepted transaction."""

    timestamp: int
    success: bool
    units: int


@dataclass(frozen=True)
class AssetRecord:
    """Stored description of an asset."""

    metadata: bytes
    supply: int
    owner: bytes
    warp: bool


@dataclass(frozen=True)
class OrderRecord:
    """An open order on the exchange."""

    in_asset: bytes
    in_tick: int
    out_asset: bytes
    out_tick: int
    remaining: int
    owner: bytes


def _fixed(value: bytes, name: str, length: int = ID_LEN) -> bytes:
    value = bytes(value)
    if len(value) != length:
        raise ValueError(f"{name} must be {length} bytes, got {len(value)}")
    return value


def _uint64(value: int, name: str) -> bytes:
    if not 0 <= value <= MAX_UINT64:
        raise ValueError(f"{name} {value} does not fit in an unsigned 64-bit integer")
    return _U64.pack(value)


def _read_one(read_state: ReadState, key: bytes) -> Optional[bytes]:
    return read_state([key])[0]


def _decode_amount(value: Optional[bytes]) -> int:
    return 0 if value is None else _U64.unpack_from(value)[0]


# Transactions


def prefix_tx_key(tx_id: bytes) -> bytes:
    """Key of a transaction record."""
    return bytes([TX_PREFIX]) + _fixed(tx_id, "tx id")


def store_transaction(db: StateDB, tx_id: bytes, timestamp: int, success: bool, units: int) -> None:
    """Record the outcome of a transaction."""
    if not -(1 << 63) <= timestamp < (1 << 63):
        raise ValueError(f"timestamp {timestamp} does not fit in a signed 64-bit integer")
    _uint64(units, "units")
    db[prefix_tx_key(tx_id)] = _TX_VALUE.pack(timestamp, _SUCCESS if success else _FAILURE, units)


def get_transaction(db: StateDB, tx_id: bytes) -> Optional[TransactionRecord]:
    """Return a transaction's outcome, or ``None`` if it is not stored."""
    value = db.get(prefix_tx_key(tx_id))
    if value is None:
        return None
    timestamp, flag, units = _TX_VALUE.unpack_from(value)
    return TransactionRecord(timestamp=timestamp, success=flag != _FAILURE, units=units)


# Balances


def prefix_balance_key(public_key: bytes, asset: bytes) -> bytes:
    """Key of an account's balance in one asset."""
    return (
        bytes([BALANCE_PREFIX])
        + _fixed(public_key, "public key", PUBLIC_KEY_LEN)
        + _fixed(asset, "asset")
    )


def get_balance(db: StateDB, public_key: bytes, asset: bytes) -> int:
    """Balance of an account; zero when no record exists."""
    return _decode_amount(db.get(prefix_balance_key(public_key, asset)))


def get_balance_from_state(read_state: ReadState, public_key: bytes, asset: bytes) -> int:
    """Balance read through a read-state function, as used to serve queries."""
    return _decode_amount(_read_one(read_state, prefix_balance_key(public_key, asset)))


def set_balance(db: StateDB, public_key: bytes, asset: bytes, balance: int) -> None:
    """Write an account's balance."""
    db[prefix_balance_key(public_key, asset)] = _uint64(balance, "balance")


def delete_balance(db: StateDB, public_key: bytes, asset: bytes) -> None:
    """Remove an account's balance record."""
    db.pop(prefix_balance_key(public_key, asset), None)


def add_balance(db: StateDB, public_key: bytes, asset: bytes, amount: int) -> None:
    """Increase a balance, refusing to overflow."""
    key = prefix_balance_key(public_key, asset)
    balance = _decode_amount(db.get(key))
    new_balance = balance + amount
    if amount < 0 or new_balance > MAX_UINT64:
        raise InvalidBalanceError(
            f"could not add balance (asset={encode_id(asset)}, bal={balance}, "
            f"addr={bytes(public_key).hex()}, amount={amount})"
        )
    db[key] = _U64.pack(new_balance)


def sub_balance(db: StateDB, public_key: bytes, asset: bytes, amount: int) -> None:
    """Decrease a balance, deleting the record when it reaches zero."""
    key = prefix_balance_key(public_key, asset)
    balance = _decode_amount(db.get(key))
    new_balance = balance - amount
    if amount < 0 or new_balance < 0:
        raise InvalidBalanceError(
            f"could not subtract balance (asset={encode_id(asset)}, bal={balance}, "
            f"addr={bytes(public_key).hex()}, amount={amount})"
        )
    if new_balance == 0:
        db.pop(key, None)
    else:
        db[key] = _U64.pack(new_balance)


# Assets


def prefix_asset_key(asset: bytes) -> bytes:
    """Key of an asset record."""
    return bytes([ASSET_PREFIX]) + _fixed(asset, "asset")


def _decode_asset(value: Optional[bytes]) -> Optional[AssetRecord]:
    if value is None:
        return None
    (metadata_len,) = _U16.unpack_from(value)
    offset = _U16.size
    metadata = bytes(value[offset : offset + metadata_len])
    offset += metadata_len
    (supply,) = _U64.unpack_from(value, offset)
    offset += _U64.size
    owner = bytes(value[offset : offset + PUBLIC_KEY_LEN])
    offset += PUBLIC_KEY_LEN
    return AssetRecord(metadata=metadata, supply=supply, owner=owner, warp=value[offset] == 0x1)


def get_asset_from_state(read_state: ReadState, asset: bytes) -> Optional[AssetRecord]:
    """Asset read through a read-state function; ``None`` if missing."""
    return _decode_asset(_read_one(read_state, prefix_asset_key(asset)))


def get_asset(db: StateDB, asset: bytes) -> Optional[AssetRecord]:
    """Asset record, or ``None`` if it does not exist."""
    return _decode_asset(db.get(prefix_asset_key(asset)))


def set_asset(
    db: StateDB,
    asset: bytes,
    metadata: bytes,
    supply: int,
    owner: bytes,
    warp: bool,
) -> None:
    """Write an asset record."""
    metadata = bytes(metadata)
    if len(metadata) > 0xFFFF:
        raise ValueError("metadata is longer than 65535 bytes")
    db[prefix_asset_key(asset)] = (
        _U16.pack(len(metadata))
        + metadata
        + _uint64(supply, "supply")
        + _fixed(owner, "owner", PUBLIC_KEY_LEN)
        + bytes([0x1 if warp else 0x0])
    )


def delete_asset(db: StateDB, asset: bytes) -> None:
    """Remove an asset record."""
    db.pop(prefix_asset_key(asset), None)


# Orders


def prefix_order_key(tx_id: bytes) -> bytes:
    """Key of an order, named by the transaction that created it."""
    return bytes([ORDER_PREFIX]) + _fixed(tx_id, "tx id")


def set_order(
    db: StateDB,
    tx_id: bytes,
    in_asset: bytes,
    in_tick: int,
    out_asset: bytes,
    out_tick: int,
    supply: int,
    owner: bytes,
) -> None:
    """Write an order record."""
    db[prefix_order_key(tx_id)] = (
        _fixed(in_asset, "in asset")
        + _uint64(in_tick, "in tick")
        + _fixed(out_asset, "out asset")
        + _uint64(out_tick, "out tick")
        + _uint64(supply, "supply")
        + _fixed(owner, "owner", PUBLIC_KEY_LEN)
    )


def get_order(db: StateDB, order: bytes) -> Optional[OrderRecord]:
    """Order record, or ``None`` if it does not exist."""
    value = db.get(prefix_order_key(order))
    if value is None:
        return None
    offset = 0
    in_asset = bytes(value[offset : offset + ID_LEN])
    offset += ID_LEN
    (in_tick,) = _U64.unpack_from(value, offset)
    offset += _U64.size
    out_asset = bytes(value[offset : offset + ID_LEN])
    offset += ID_LEN
    out_tick, remaining = struct.unpack_from(">QQ", value, offset)
    offset += 2 * _U64.size
    owner = bytes(value[offset : offset + PUBLIC_KEY_LEN])
    return OrderRecord(
        in_asset=in_asset,
        in_tick=in_tick,
        out_asset=out_asset,
        out_tick=out_tick,
        remaining=remaining,
        owner=owner,
    )


def delete_order(db: StateDB, order: bytes) -> None:
    """Remove an order record."""
    db.pop(prefix_order_key(order), None)


# Loans


def prefix_loan_key(asset: bytes, destination: bytes) -> bytes:
    """Key of the amount of an asset lent to a destination chain."""
    return bytes([LOAN_PREFIX]) + _fixed(asset, "asset") + _fixed(destination, "destination")


def get_loan_from_state(read_state: ReadState, asset: bytes, destination: bytes) -> int:
    """Loan read through a read-state function; zero when missing."""
    return _decode_amount(_read_one(read_state, prefix_loan_key(asset, destination)))


def get_loan(db: StateDB, asset: bytes, destination: bytes) -> int:
    """Amount lent; zero when no record exists."""
    return _decode_amount(db.get(prefix_loan_key(asset, destination)))


def set_loan(db: StateDB, asset: bytes, destination: bytes, amount: int) -> None:
    """Write a loan amount."""
    db[prefix_loan_key(asset, destination)] = _uint64(amount, "amount")


def add_loan(db: StateDB, asset: bytes, destination: bytes, amount: int) -> None:
    """Increase a loan, refusing to overflow."""
    loan = get_loan(db, asset, destination)
    new_loan = loan + amount
    if amount < 0 or new_loan > MAX_UINT64:
        raise InvalidBalanceError(
            f"could not add loan (asset={encode_id(asset)}, "
            f"destination={encode_id(destination)}, amount={amount})"
        )
    set_loan(db, asset, destination, new_loan)


def sub_loan(db: StateDB, asset: bytes, destination: bytes, amount: int) -> None:
    """Decrease a loan, deleting the record when it reaches zero."""
    loan = get_loan(db, asset, destination)
    new_loan = loan - amount
    if amount < 0 or new_loan < 0:
        raise InvalidBalanceError(
            f"could not subtract loan (asset={encode_id(asset)}, "
            f"destination={encode_id(destination)}, amount={amount})"
        )
    if new_loan == 0:
        db.pop(prefix_loan_key(asset, destination), None)
    else:
        set_loan(db, asset, destination, new_loan)


# Chain bookkeeping keys


def height_key() -> bytes:
    """Key under which the chain height is kept."""
    return bytes([HEIGHT_PREFIX])


def incoming_warp_key_prefix(source_chain_id: bytes, msg_id: bytes) -> bytes:
    """Key of an incoming cross-chain message."""
    return (
        bytes([INCOMING_WARP_PREFIX])
        + _fixed(source_chain_id, "source chain id")
        + _fixed(msg_id, "message id")
    )


def outgoing_warp_key_prefix(tx_id: bytes) -> bytes:
    """Key of an outgoing cross-chain message."""
    return bytes([OUTGOING_WARP_PREFIX]) + _fixed(tx_id, "tx id")