"""Unit tests for the RPC channel."""

import tempfile
from pathlib import Path

import pytest
import rpyc.utils.factory

from index_bootstrap.rpc import RpcResponse, RpycChannel


class TestRpcResponse:
    """Tests for interpreting service replies."""

    def test_ok_flag_is_used(self):
        assert RpcResponse.from_result({"ok": True, "projects": []}).ok
        assert not RpcResponse.from_result({"ok": False, "error": "nope"}).ok

    def test_error_is_kept_on_failure(self):
        assert RpcResponse.from_result({"ok": False, "error": "nope"}).error == "nope"

    def test_status_ok_counts_as_success(self):
        response = RpcResponse.from_result({"status": "ok"})
        assert response.ok
        assert response.result == {"status": "ok"}

    def test_other_status_is_failure(self):
        assert not RpcResponse.from_result({"status": "error"}).ok

    def test_non_mapping_is_failure(self):
        response = RpcResponse.from_result(["not", "a", "dict"])
        assert not response.ok
        assert "list" in response.error


class FakeRoot:
    def __init__(self):
        self.calls = []

    def exposed_list_projects(self):
        self.calls.append(("list_projects", {}))
        return {"ok": True, "projects": ({"root": "/a", "vcs_fingerprint": "1"},)}

    def exposed_ping(self, process_id):
        self.calls.append(("ping", {"process_id": process_id}))
        return {"status": "ok"}

    def exposed_register(self, **params):
        raise RuntimeError("service exploded")


class FakeConnection:
    def __init__(self, root):
        self.root = root
        self.closed = False

    def close(self):
        self.closed = True


class TestRpycChannel:
    """Tests for the rpyc transport adapter."""

    @pytest.fixture
    def connection(self, monkeypatch):
        conn = FakeConnection(FakeRoot())
        seen = {}

        def fake_unix_connect(path, config=None):
            seen["path"] = path
            seen["config"] = config
            return conn

        monkeypatch.setattr(rpyc.utils.factory, "unix_connect", fake_unix_connect)
        conn.seen = seen
        return conn

    @pytest.mark.asyncio
    async def test_calls_exposed_method_with_params(self, connection):
        channel = RpycChannel(Path("/run/test.sock"), request_timeout=3.0)

        response = await channel.request("ping", {"process_id": 7})

        assert response.ok
        assert connection.root.calls == [("ping", {"process_id": 7})]
        assert connection.seen["path"] == "/run/test.sock"
        assert connection.seen["config"]["sync_request_timeout"] == 3.0
        assert connection.closed

    @pytest.mark.asyncio
    async def test_result_is_copied_to_plain_builtins(self, connection):
        response = await RpycChannel(Path("/run/test.sock")).request("list_projects")

        assert response.result["projects"] == [{"root": "/a", "vcs_fingerprint": "1"}]

    @pytest.mark.asyncio
    async def test_remote_exception_becomes_failure(self, connection):
        response = await RpycChannel(Path("/run/test.sock")).request("register", {"root": "/a"})

        assert not response.ok
        assert "service exploded" in response.error
        assert connection.closed

    @pytest.mark.asyncio
    async def test_unknown_method_becomes_failure(self, connection):
        response = await RpycChannel(Path("/run/test.sock")).request("missing")
        assert not response.ok

    @pytest.mark.asyncio
    async def test_unreachable_socket_becomes_failure(self):
        with tempfile.TemporaryDirectory(prefix="ib", dir="/tmp") as tmpdir:
            channel = RpycChannel(Path(tmpdir) / "nobody.sock")

            response = await channel.request("ping", {"process_id": 1})

        assert not response.ok
        assert response.error
