"""Token ledger state layout, JSON-RPC request handling, HTTP client, addresses and ids."""

__version__ = "0.0.1"

__all__ = ["addresses", "errors", "ids", "rpc_client", "rpc_server", "storage"]