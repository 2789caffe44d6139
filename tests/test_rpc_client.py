import json

import pytest
import responses

from tokenstate import storage
from tokenstate.addresses import address
from tokenstate.rpc_client import AssetInfo, JSONRPCClient, RPCError
from tokenstate.rpc_server import ORDERS_TO_SEND, JSONRPCServer

HRP = "token"
URI = "http://node.example.com"
CHAIN = bytes([1]) * 32
TX_ID = bytes([7]) * 32
ASSET = bytes([9]) * 32
DEST = bytes([4]) * 32
OWNER = bytes([3]) * 32


class FakeController:
    def __init__(self):
        self.db = {}
        self.book = {}
        self.limits = []
        self.genesis_value = {"symbol": "TKN"}

    def _read(self, keys):
        return [self.db.get(k) for k in keys]

    def genesis(self):
        return self.genesis_value

    def get_transaction(self, tx_id):
        return storage.get_transaction(self.db, tx_id)

    def get_asset_from_state(self, asset):
        return storage.get_asset_from_state(self._read, asset)

    def get_balance_from_state(self, public_key, asset):
        return storage.get_balance_from_state(self._read, public_key, asset)

    def orders(self, pair, limit):
        self.limits.append(limit)
        return self.book.get(pair, [])

    def get_loan_from_state(self, asset, destination):
        return storage.get_loan_from_state(self._read, asset, destination)


@pytest.fixture
def node():
    controller = FakeController()
    server = JSONRPCServer(controller, HRP)
    hooks = []

    def callback(request):
        for hook in hooks:
            hook()
        reply = server.handle(json.loads(request.body))
        return 200, {"Content-Type": "application/json"}, json.dumps(reply)

    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add_callback(responses.POST, URI + "/tokenapi", callback=callback)
        yield controller, rsps, hooks


@pytest.fixture
def client():
    cli = JSONRPCClient(URI + "/", CHAIN)
    cli.poll_interval = 0
    return cli


def test_trailing_slash_and_method_name(node, client):
    controller, rsps, _ = node
    storage.set_balance(controller.db, OWNER, ASSET, 5)
    assert client.balance(address(OWNER, HRP), ASSET) == 5
    request = rsps.calls[0].request
    assert request.url == URI + "/tokenapi"
    assert json.loads(request.body)["method"] == "tokenvm.balance"


def test_genesis_is_cached(node, client):
    controller, rsps, _ = node
    assert client.genesis() == controller.genesis_value
    assert client.genesis() == controller.genesis_value
    assert len(rsps.calls) == 1


def test_tx_found(node, client):
    controller, _, _ = node
    storage.store_transaction(controller.db, TX_ID, 99, True, 12)
    assert client.tx(TX_ID) == storage.TransactionRecord(timestamp=99, success=True, units=12)


def test_tx_missing(node, client):
    assert client.tx(TX_ID) is None


def test_asset_round_trip(node, client):
    controller, _, _ = node
    storage.set_asset(controller.db, ASSET, b"coin", 15, OWNER, False)
    assert client.asset(ASSET) == AssetInfo(
        metadata=b"coin", supply=15, owner=address(OWNER, HRP), warp=False
    )


def test_asset_missing(node, client):
    assert client.asset(ASSET) is None


def test_balance_bad_address(node, client):
    with pytest.raises(RPCError):
        client.balance("not-an-address", ASSET)


def test_orders(node, client):
    controller, _, _ = node
    controller.book["x-y"] = [{"remaining": 4}]
    assert client.orders("x-y") == [{"remaining": 4}]
    assert controller.limits == [ORDERS_TO_SEND]


def test_loan(node, client):
    controller, _, _ = node
    storage.set_loan(controller.db, ASSET, DEST, 110)
    assert client.loan(ASSET, DEST) == 110
    assert client.loan(DEST, ASSET) == 0


def test_wait_for_transaction_polls_until_found(node, client):
    controller, rsps, hooks = node
    seen = []

    def store_on_third_call():
        seen.append(1)
        if len(seen) == 3:
            storage.store_transaction(controller.db, TX_ID, 1, False, 2)

    hooks.append(store_on_third_call)
    assert client.wait_for_transaction(TX_ID) is False
    assert len(rsps.calls) == 3


def test_wait_for_balance_already_met(node, client):
    controller, rsps, _ = node
    storage.set_balance(controller.db, OWNER, ASSET, 50)
    client.wait_for_balance(address(OWNER, HRP), ASSET, 50)
    assert len(rsps.calls) == 1


def test_wait_for_balance_times_out(node, client):
    client.timeout = 0
    with pytest.raises(TimeoutError):
        client.wait_for_balance(address(OWNER, HRP), ASSET, 1)


def test_bad_status_raises():
    cli = JSONRPCClient(URI, CHAIN)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URI + "/tokenapi", status=500)
        with pytest.raises(RPCError, match="500"):
            cli.loan(ASSET, DEST)