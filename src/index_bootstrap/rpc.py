"""RPC channel to the index service.

The pipeline only depends on the ``RpcChannel`` protocol: one awaitable
``request(name, params)`` that never raises and reports failure through
``RpcResponse.ok``. ``RpycChannel`` is the default transport, talking to the
service over its Unix socket.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RpcResponse:
    """Outcome of one RPC request."""

    ok: bool
    result: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "RpcResponse":
        return cls(ok=False, error=error)

    @classmethod
    def from_result(cls, result: Any) -> "RpcResponse":
        """Interpret a raw service reply.

        A mapping carrying ``ok`` is taken at its word; a mapping with
        ``status == "ok"`` (the service's health-check shape) also counts as
        success. Anything else is a malformed reply.
        """
        if not isinstance(result, Mapping):
            return cls.failure(f"Unexpected response type: {type(result).__name__}")
        payload = dict(result)
        if "ok" in payload:
            ok = bool(payload["ok"])
        else:
            ok = payload.get("status") == "ok"
        return cls(ok=ok, result=payload, error=None if ok else payload.get("error"))


class RpcChannel(Protocol):
    """Request/response channel to the index service."""

    async def request(
        self, name: str, params: Optional[Mapping[str, Any]] = None
    ) -> RpcResponse:
        """Send request ``name`` and return its response. Must not raise."""
        ...


def _to_plain(value: Any) -> Any:
    """Copy rpyc netrefs into local builtins so nothing outlives the connection."""
    if isinstance(value, Mapping):
        return {str(k): _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


class RpycChannel:
    """RPyC transport over the service's Unix domain socket.

    Each request opens a short-lived connection in a worker thread, calls
    ``exposed_<name>(**params)`` on the service root and closes the connection.
    Transport failures come back as ``RpcResponse(ok=False)``.
    """

    def __init__(self, socket_path: Path, request_timeout: Optional[float] = 30.0):
        self.socket_path = socket_path
        self.request_timeout = request_timeout

    async def request(
        self, name: str, params: Optional[Mapping[str, Any]] = None
    ) -> RpcResponse:
        try:
            return await asyncio.to_thread(self._request_blocking, name, dict(params or {}))
        except Exception as e:
            logger.debug(f"RPC {name} failed: {e}")
            return RpcResponse.failure(str(e))

    def _request_blocking(self, name: str, params: Dict[str, Any]) -> RpcResponse:
        from rpyc.utils.factory import unix_connect

        conn = unix_connect(
            str(self.socket_path),
            config={
                "allow_public_attrs": True,
                "sync_request_timeout": self.request_timeout,
            },
        )
        try:
            method = getattr(conn.root, f"exposed_{name}")
            return RpcResponse.from_result(_to_plain(method(**params)))
        finally:
            conn.close()
