"""Tests for the JSON-RPC ledger client."""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from drive.auth import derive_keypair, verify_signature
from drive.exceptions import BroadcastRejectedError, LedgerRPCError, NetworkError
from ledger.client import HttpLedgerClient, parse_authority, parse_history, signing_bytes

NODES = ["http://node-a.test", "http://node-b.test"]


def rpc_result(request, result):
    body = json.loads(request.content)
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def make_client(handler, nodes=NODES, max_retries=0):
    return HttpLedgerClient(nodes, max_retries=max_retries, transport=httpx.MockTransport(handler))


ACCOUNT_RECORD = {
    "name": "alice",
    "owner": {"weight_threshold": 1, "key_auths": [["LDKowner", 1]]},
    "active": {"weight_threshold": 1, "key_auths": []},
    "posting": {"weight_threshold": 1, "key_auths": [["LDKposting", 1], ["LDKsecond", 2]]},
}


class TestParsing:
    def test_parse_authority(self):
        authority = parse_authority(ACCOUNT_RECORD)

        assert authority["posting"] == [("LDKposting", 1), ("LDKsecond", 2)]
        assert authority["active"] == []
        assert authority["owner"] == [("LDKowner", 1)]

    def test_parse_authority_missing_roles(self):
        assert parse_authority({"name": "x"}) == {"owner": [], "active": [], "posting": []}

    def test_parse_history_drops_malformed_rows(self):
        rows = [
            [7, {"timestamp": "2024-01-01T00:00:00", "op": ["custom_json", {"id": "hive-drive"}]}],
            ["bad"],
            [8, {"timestamp": "2024-01-01T00:00:03"}],
        ]

        records = parse_history(rows)

        assert len(records) == 1
        assert records[0].sequence == 7
        assert records[0].op_type == "custom_json"


class TestRequests:
    @pytest.mark.asyncio
    async def test_get_authority(self):
        seen = []

        def handler(request):
            body = json.loads(request.content)
            seen.append(body)
            return rpc_result(request, [ACCOUNT_RECORD])

        client = make_client(handler)
        authority = await client.get_authority("alice")
        await client.aclose()

        assert seen[0]["method"] == "condenser_api.get_accounts"
        assert seen[0]["params"] == [["alice"]]
        assert ("LDKposting", 1) in authority["posting"]

    @pytest.mark.asyncio
    async def test_get_authority_unknown_account(self):
        client = make_client(lambda request: rpc_result(request, []))
        assert await client.get_authority("nobody") is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_get_account_history(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content)["params"])
            return rpc_result(request, [
                [0, {"timestamp": "2024-01-01T00:00:00", "op": ["custom_json", {"id": "hive-drive", "json": "{}"}]}],
            ])

        client = make_client(handler)
        records = await client.get_account_history("alice", 50)
        await client.aclose()

        assert seen == [["alice", -1, 50]]
        assert records[0].op_payload["json"] == "{}"


class TestFailover:
    @pytest.mark.asyncio
    async def test_server_error_fails_over(self):
        hosts = []

        def handler(request):
            hosts.append(request.url.host)
            if request.url.host == "node-a.test":
                return httpx.Response(503)
            return rpc_result(request, [])

        client = make_client(handler)
        await client.get_authority("alice")
        await client.aclose()

        assert hosts == ["node-a.test", "node-b.test"]

    @pytest.mark.asyncio
    async def test_connect_error_fails_over(self):
        def handler(request):
            if request.url.host == "node-a.test":
                raise httpx.ConnectError("refused", request=request)
            return rpc_result(request, [ACCOUNT_RECORD])

        client = make_client(handler)
        assert await client.get_authority("alice") is not None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_all_nodes_down(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)
        with pytest.raises(NetworkError):
            await client.get_account_history("alice", 10)
        await client.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [httpx.ReadError, httpx.RemoteProtocolError, httpx.WriteError])
    async def test_transport_errors_fail_over(self, error):
        def handler(request):
            if request.url.host == "node-a.test":
                raise error("connection reset", request=request)
            return rpc_result(request, [ACCOUNT_RECORD])

        client = make_client(handler)
        assert await client.get_authority("alice") is not None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_read_error_on_every_node(self):
        def handler(request):
            raise httpx.ReadError("connection reset", request=request)

        client = make_client(handler)
        with pytest.raises(NetworkError):
            await client.get_account_history("alice", 10)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_non_object_body_fails_over(self):
        hosts = []

        def handler(request):
            hosts.append(request.url.host)
            if request.url.host == "node-a.test":
                return httpx.Response(200, json=["not", "an", "object"])
            return rpc_result(request, [])

        client = make_client(handler)
        assert await client.get_account_history("alice", 10) == []
        await client.aclose()

        assert hosts == ["node-a.test", "node-b.test"]

    @pytest.mark.asyncio
    async def test_non_object_body_everywhere(self):
        client = make_client(lambda request: httpx.Response(200, json=["not", "an", "object"]))
        with pytest.raises(NetworkError):
            await client.get_account_history("alice", 10)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_malformed_result_shapes(self):
        client = make_client(lambda request: rpc_result(request, {"unexpected": True}))
        with pytest.raises(NetworkError):
            await client.get_authority("alice")
        with pytest.raises(NetworkError):
            await client.get_account_history("alice", 10)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_retries_after_backoff(self, monkeypatch):
        sleep = AsyncMock()
        monkeypatch.setattr("ledger.client.asyncio.sleep", sleep)
        attempts = []

        def handler(request):
            attempts.append(request.url.host)
            if len(attempts) <= 2:
                return httpx.Response(500)
            return rpc_result(request, [])

        client = make_client(handler, max_retries=2)
        assert await client.get_account_history("alice", 10) == []
        await client.aclose()

        assert len(attempts) == 3
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rpc_error_does_not_fail_over(self):
        hosts = []

        def handler(request):
            hosts.append(request.url.host)
            body = json.loads(request.content)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32000, "message": "bad"}})

        client = make_client(handler)
        with pytest.raises(LedgerRPCError):
            await client.get_authority("alice")
        await client.aclose()

        assert hosts == ["node-a.test"]

    def test_requires_nodes(self):
        with pytest.raises(ValueError):
            HttpLedgerClient([])


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_broadcast_is_signed(self):
        keypair = derive_keypair("alice", "secret")
        captured = {}

        def handler(request):
            body = json.loads(request.content)
            captured.update(body)
            return rpc_result(request, {"id": "tx-1"})

        client = make_client(handler)
        transaction_id = await client.broadcast("hive-drive", '{"a":1}', ["alice"], keypair.private_key)
        await client.aclose()

        operation, envelope = captured["params"]
        assert transaction_id == "tx-1"
        assert captured["method"] == "drive_api.broadcast_custom_json"
        assert operation["id"] == "hive-drive"
        assert operation["required_posting_auths"] == ["alice"]
        assert envelope["public_key"] == keypair.public_key
        assert verify_signature(envelope["public_key"], signing_bytes(operation), envelope["signature"])

    @pytest.mark.asyncio
    async def test_rejected_broadcast(self):
        keypair = derive_keypair("alice", "secret")

        def handler(request):
            body = json.loads(request.content)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"message": "missing authority"}})

        client = make_client(handler)
        with pytest.raises(BroadcastRejectedError):
            await client.broadcast("hive-drive", "{}", ["alice"], keypair.private_key)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_broadcast_read_error_is_network_error(self):
        keypair = derive_keypair("alice", "secret")

        def handler(request):
            raise httpx.ReadError("connection reset", request=request)

        client = make_client(handler)
        with pytest.raises(NetworkError):
            await client.broadcast("hive-drive", "{}", ["alice"], keypair.private_key)
        await client.aclose()
