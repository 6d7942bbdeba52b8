"""
JSON-RPC client tests.

Requests are served by ``httpx.MockTransport`` so no node is needed.
"""

import json

import httpx
import pytest

from evmequiv.constants import ACCOUNT_CODE_STORAGE_ADDRESS, OPCODE_COST_TOPIC
from evmequiv.crypto.address import code_storage_slot_for, normalize_address
from evmequiv.crypto.hashing import blob_hash
from evmequiv.exceptions import (
    ChainClientError,
    MalformedResponseError,
    NodeUnreachableError,
    RPCResponseError,
)
from evmequiv.rpc.client import ChainClient, JsonRpcClient
from evmequiv.verifier import verify_deployed


URL = "http://node.test:3050"
ADDRESS = "0x1111111111111111111111111111111111111111"
TX_HASH = "0x" + "aa" * 32


class FakeNode:
    """Answers JSON-RPC requests from a method → result table."""

    def __init__(self, results=None, errors=None):
        self.results = results or {}
        self.errors = errors or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        method = body["method"]
        if method in self.errors:
            payload = {"jsonrpc": "2.0", "id": body["id"], "error": self.errors[method]}
        else:
            payload = {"jsonrpc": "2.0", "id": body["id"], "result": self.results.get(method)}
        return httpx.Response(200, json=payload)


def make_client(handler) -> JsonRpcClient:
    transport = httpx.MockTransport(handler)
    return JsonRpcClient(URL, client=httpx.AsyncClient(transport=transport))


class TestStorageReads:

    @pytest.mark.asyncio
    async def test_get_storage_at_request(self):
        tag = blob_hash(b"\x60\x00")
        node = FakeNode({"eth_getStorageAt": "0x" + tag.hex()})
        client = make_client(node)

        slot = code_storage_slot_for(ADDRESS)
        value = await client.get_storage_at(ACCOUNT_CODE_STORAGE_ADDRESS, slot)

        assert value == tag
        request = node.requests[0]
        assert request["jsonrpc"] == "2.0"
        assert request["method"] == "eth_getStorageAt"
        assert request["params"] == [
            normalize_address(ACCOUNT_CODE_STORAGE_ADDRESS),
            "0x" + slot.hex(),
            "latest",
        ]

    @pytest.mark.asyncio
    async def test_short_value_is_left_padded(self):
        client = make_client(FakeNode({"eth_getStorageAt": "0x01"}))
        value = await client.get_storage_at(ACCOUNT_CODE_STORAGE_ADDRESS, bytes(32))
        assert value == bytes(31) + b"\x01"

    @pytest.mark.asyncio
    async def test_oversized_value(self):
        client = make_client(FakeNode({"eth_getStorageAt": "0x" + "00" * 33}))
        with pytest.raises(MalformedResponseError):
            await client.get_storage_at(ACCOUNT_CODE_STORAGE_ADDRESS, bytes(32))

    @pytest.mark.asyncio
    async def test_non_hex_value(self):
        client = make_client(FakeNode({"eth_getStorageAt": "0xzz"}))
        with pytest.raises(MalformedResponseError):
            await client.get_storage_at(ACCOUNT_CODE_STORAGE_ADDRESS, bytes(32))

    @pytest.mark.asyncio
    async def test_verifier_over_json_rpc(self):
        blob = bytes.fromhex("602a60005260206000f3")
        client = make_client(FakeNode({"eth_getStorageAt": "0x" + blob_hash(blob).hex()}))
        result = await verify_deployed(client, ADDRESS, blob)
        assert result.matched


class TestErrors:
    """Transport, protocol and payload failures map to distinct errors."""

    @pytest.mark.asyncio
    async def test_rpc_error_object(self):
        node = FakeNode(errors={"eth_getStorageAt": {"code": -32602, "message": "invalid params"}})
        client = make_client(node)
        with pytest.raises(RPCResponseError) as exc_info:
            await client.get_storage_at(ADDRESS, bytes(32))
        assert exc_info.value.code == -32602
        assert exc_info.value.method == "eth_getStorageAt"
        assert "invalid params" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_http_status_error(self):
        client = make_client(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(NodeUnreachableError, match="503"):
            await client.get_storage_at(ADDRESS, bytes(32))

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(refuse)
        with pytest.raises(NodeUnreachableError):
            await client.get_storage_at(ADDRESS, bytes(32))

    @pytest.mark.asyncio
    async def test_connection_error_reaches_verifier_caller(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ChainClientError):
            await verify_deployed(make_client(refuse), ADDRESS, b"\x00")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        client = make_client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(MalformedResponseError):
            await client.get_storage_at(ADDRESS, bytes(32))

    @pytest.mark.asyncio
    async def test_undecodable_body(self):
        client = make_client(lambda request: httpx.Response(200, content=b"\xff\xfa\xfb{{"))
        with pytest.raises(MalformedResponseError) as exc_info:
            await client.get_storage_at(ADDRESS, bytes(32))
        assert isinstance(exc_info.value, ChainClientError)

    @pytest.mark.asyncio
    async def test_missing_result(self):
        client = make_client(lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1}))
        with pytest.raises(MalformedResponseError):
            await client.get_storage_at(ADDRESS, bytes(32))


class TestTransactions:

    @pytest.mark.asyncio
    async def test_send_raw_transaction(self):
        node = FakeNode({"eth_sendRawTransaction": TX_HASH})
        client = make_client(node)
        assert await client.send_raw_transaction(b"\x02\xf8") == TX_HASH
        assert node.requests[0]["params"] == ["0x02f8"]

    @pytest.mark.asyncio
    async def test_get_transaction_logs(self):
        receipt = {
            "transactionHash": TX_HASH,
            "status": "0x1",
            "gasUsed": "0x5208",
            "contractAddress": None,
            "logs": [
                {
                    "address": ADDRESS,
                    "topics": [OPCODE_COST_TOPIC.upper().replace("0X", "0x")],
                    "data": "0x" + (1).to_bytes(32, "big").hex() + (3).to_bytes(32, "big").hex(),
                    "logIndex": "0x0",
                    "transactionHash": TX_HASH,
                }
            ],
        }
        client = make_client(FakeNode({"eth_getTransactionReceipt": receipt}))
        logs = await client.get_transaction_logs(TX_HASH)
        assert len(logs) == 1
        assert logs[0].topic0 == OPCODE_COST_TOPIC
        assert logs[0].log_index == 0
        assert len(logs[0].data) == 64

        full = await client.get_transaction_receipt(TX_HASH)
        assert full.succeeded
        assert full.gas_used == 21000

    @pytest.mark.asyncio
    async def test_pending_receipt(self):
        client = make_client(FakeNode({"eth_getTransactionReceipt": None}))
        assert await client.get_transaction_receipt(TX_HASH) is None
        with pytest.raises(RPCResponseError, match="no receipt"):
            await client.get_transaction_logs(TX_HASH)

    @pytest.mark.asyncio
    async def test_get_code(self):
        client = make_client(FakeNode({"eth_getCode": "0x602a60005260206000f3"}))
        assert await client.get_code(ADDRESS) == bytes.fromhex("602a60005260206000f3")


class TestClientLifecycle:

    @pytest.mark.asyncio
    async def test_request_ids_increase(self):
        node = FakeNode({"eth_getCode": "0x"})
        client = make_client(node)
        await client.get_code(ADDRESS)
        await client.get_code(ADDRESS)
        assert [r["id"] for r in node.requests] == [1, 2]

    @pytest.mark.asyncio
    async def test_borrowed_client_stays_open(self):
        http = httpx.AsyncClient(transport=httpx.MockTransport(FakeNode({"eth_getCode": "0x"})))
        async with JsonRpcClient(URL, client=http) as client:
            await client.get_code(ADDRESS)
        assert not http.is_closed
        await http.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self):
        client = JsonRpcClient(URL)
        async with client:
            pass
        assert client.client.is_closed

    def test_is_chain_client(self):
        assert issubclass(JsonRpcClient, ChainClient)
