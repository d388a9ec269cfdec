"""RPC-backed collaborators for registering, refreshing and watching projects.

Each command translates dispatcher options into one request to the index
service. The service does the actual work; these only report whether it
accepted the request.
"""

import logging
from typing import Any, Dict, Mapping

from .rpc import RpcChannel

logger = logging.getLogger(__name__)

SCOPE_INCREMENTAL = "Incremental"


class _ServiceCommand:
    request_name = ""

    def __init__(self, rpc: RpcChannel):
        self.rpc = rpc

    def build_params(self, options: Mapping[str, Any]) -> Dict[str, Any]:
        return {"root": options["project_root"]}

    async def execute(self, options: Mapping[str, Any]) -> bool:
        response = await self.rpc.request(self.request_name, self.build_params(options))
        if not response.ok:
            logger.warning(
                f"{self.request_name} rejected for {options['project_root']}: {response.error}"
            )
        return response.ok


class SetupCommand(_ServiceCommand):
    """Registers a project with the service."""

    request_name = "register"

    def build_params(self, options: Mapping[str, Any]) -> Dict[str, Any]:
        params = super().build_params(options)
        params["manifest_path"] = options.get("manifest_path")
        params["index_path"] = options.get("index_path")
        return params


class RefreshCommand(_ServiceCommand):
    """Asks the service to rebuild the index, fully or incrementally."""

    request_name = "refresh"

    def build_params(self, options: Mapping[str, Any]) -> Dict[str, Any]:
        params = super().build_params(options)
        params["scope"] = options.get("scope") or SCOPE_INCREMENTAL
        return params


class WatchCommand(_ServiceCommand):
    """Starts file watching for a project. The service treats repeats as no-ops."""

    request_name = "watch"
