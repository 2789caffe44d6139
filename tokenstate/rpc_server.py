"""JSON-RPC service answering queries about token chain state."""

from __future__ import annotations

import base64
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence

from .addresses import address, parse_address
from .errors import AssetNotFoundError, TxNotFoundError
from .ids import EMPTY_ID, decode_id
from .storage import AssetRecord, TransactionRecord

JSONRPC_ENDPOINT = "/tokenapi"
ORDERS_TO_SEND = 128

VERSION = (0, 0, 1)
VERSION_STRING = "v{}.{}.{}".format(*VERSION)

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
SERVER_ERROR = -32000


class Controller(Protocol):
    """What the service needs from the running chain."""

    def genesis(self) -> Any:
        """The chain's genesis, in a JSON-serialisable form."""

    def get_transaction(self, tx_id: bytes) -> Optional[TransactionRecord]:
        """Outcome of a transaction, or ``None`` if unknown."""

    def get_asset_from_state(self, asset: bytes) -> Optional[AssetRecord]:
        """An asset record, or ``None`` if it does not exist."""

    def get_balance_from_state(self, public_key: bytes, asset: bytes) -> int:
        """Balance of an account in one asset."""

    def orders(self, pair: str, limit: int) -> Sequence[Any]:
        """Up to ``limit`` open orders of a trading pair, JSON-serialisable."""

    def get_loan_from_state(self, asset: bytes, destination: bytes) -> int:
        """Amount of an asset lent to a destination chain."""


class InvalidParamsError(ValueError):
    """The parameters of a request could not be decoded."""


class _RequestError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code


def _id_param(args: Mapping[str, Any], key: str) -> bytes:
    value = args.get(key)
    if value is None:
        return EMPTY_ID
    if not isinstance(value, str):
        raise InvalidParamsError(f"{key} must be a string")
    try:
        return decode_id(value)
    except ValueError as exc:
        raise InvalidParamsError(f"{key}: {exc}") from None


def _str_param(args: Mapping[str, Any], key: str) -> str:
    value = args.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidParamsError(f"{key} must be a string")
    return value


def _normalise_params(params: Any) -> Mapping[str, Any]:
    if params is None:
        return {}
    if isinstance(params, list) and len(params) == 1:
        params = params[0]
    if isinstance(params, Mapping):
        return params
    raise InvalidParamsError("params must be an object")


class JSONRPCServer:
    """Answers token queries against a controller."""

    def __init__(self, controller: Controller, hrp: str) -> None:
        self.controller = controller
        self.hrp = hrp
        self._methods: dict[str, Callable[[Mapping[str, Any]], dict]] = {
            "genesis": lambda _args: self.genesis(),
            "tx": self.tx,
            "asset": self.asset,
            "balance": self.balance,
            "orders": self.orders,
            "loan": self.loan,
        }

    def genesis(self) -> dict:
        return {"genesis": self.controller.genesis()}

    def tx(self, args: Mapping[str, Any]) -> dict:
        record = self.controller.get_transaction(_id_param(args, "txId"))
        if record is None:
            raise TxNotFoundError()
        return {"timestamp": record.timestamp, "success": record.success, "units": record.units}

    def asset(self, args: Mapping[str, Any]) -> dict:
        record = self.controller.get_asset_from_state(_id_param(args, "asset"))
        if record is None:
            raise AssetNotFoundError()
        return {
            "metadata": base64.b64encode(record.metadata).decode("ascii"),
            "supply": record.supply,
            "owner": address(record.owner, self.hrp),
            "warp": record.warp,
        }

    def balance(self, args: Mapping[str, Any]) -> dict:
        public_key = parse_address(_str_param(args, "address"), self.hrp)
        amount = self.controller.get_balance_from_state(public_key, _id_param(args, "asset"))
        return {"amount": amount}

    def orders(self, args: Mapping[str, Any]) -> dict:
        return {"orders": list(self.controller.orders(_str_param(args, "pair"), ORDERS_TO_SEND))}

    def loan(self, args: Mapping[str, Any]) -> dict:
        amount = self.controller.get_loan_from_state(
            _id_param(args, "asset"), _id_param(args, "destination")
        )
        return {"amount": amount}

    def handle(self, request: Any) -> dict:
        """Serve one decoded JSON-RPC request and return the response object."""
        request_id = request.get("id") if isinstance(request, Mapping) else None
        try:
            if not isinstance(request, Mapping) or not isinstance(request.get("method"), str):
                raise _RequestError(INVALID_REQUEST, "invalid request")
            name = request["method"].rpartition(".")[2]
            handler = self._methods.get(name.lower())
            if handler is None:
                raise _RequestError(METHOD_NOT_FOUND, f"method {request['method']!r} not found")
            result = handler(_normalise_params(request.get("params")))
        except _RequestError as exc:
            return self._error(request_id, exc.code, str(exc))
        except InvalidParamsError as exc:
            return self._error(request_id, INVALID_PARAMS, str(exc))
        except Exception as exc:  # every failure is reported to the caller
            return self._error(request_id, SERVER_ERROR, str(exc))
        return {"jsonrpc": "2.0", "result": result, "id": request_id}

    @staticmethod
    def _error(request_id: Any, code: int, message: str) -> dict:
        return {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": request_id}