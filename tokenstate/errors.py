"""Exceptions raised by the token state layer and its RPC surface."""

from __future__ import annotations


class TokenStateError(Exception):
    """Base class for all token state errors."""

    message = "token state error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        text = self.message if detail is None else f"{self.message}: {detail}"
        super().__init__(text)


class TxNotFoundError(TokenStateError, LookupError):
    """The requested transaction is not known."""

    message = "tx not found"


class AssetNotFoundError(TokenStateError, LookupError):
    """The requested asset does not exist."""

    message = "asset not found"


class InvalidBalanceError(TokenStateError, ValueError):
    """A balance or loan update would overflow or go below zero."""

    message = "invalid balance"