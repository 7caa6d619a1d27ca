"""
Build accessors from replica configuration and run one sync.

Replica configurations are the plain dictionaries produced by
``todosync.cli.settings.get_replica_configs``:

    {"name": "deployed", "type": "graphql", "url": ..., "api_key": ..., "auth_token": ...}
    {"name": "local", "type": "file", "path": "local-storage.json"}
"""

import logging
from contextlib import AsyncExitStack
from typing import Any

from todosync.accessors import GraphQLAccessor, JsonFileAccessor, ReplicaAccessor
from todosync.errors import ConfigurationError
from todosync.reconciler import CancelSignal, Reconciler, SyncMode
from todosync.report import SyncReport
from todosync.utils.metrics import SyncMetrics
from todosync.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


def build_accessor(config: dict[str, Any], request_timeout: float = 30.0) -> ReplicaAccessor:
    """
    Create the accessor a replica configuration describes

    Args:
        config: Replica configuration dictionary
        request_timeout: HTTP timeout for GraphQL replicas

    Raises:
        ConfigurationError: On an unknown type or a missing URL/path
    """
    kind = config.get("type", "graphql")
    name = config.get("name", kind)

    if kind == "file":
        if not config.get("path"):
            raise ConfigurationError(f"Replica '{name}' has no file path")
        return JsonFileAccessor(config["path"], name=name)

    if kind == "graphql":
        if not config.get("url"):
            raise ConfigurationError(f"Replica '{name}' has no GraphQL URL")
        return GraphQLAccessor(
            config["url"],
            name=name,
            api_key=config.get("api_key"),
            auth_token=config.get("auth_token"),
            request_timeout=request_timeout,
        )

    raise ConfigurationError(f"Unknown replica type '{kind}' for '{name}'")


async def run_sync(
    local_config: dict[str, Any],
    deployed_config: dict[str, Any],
    mode: SyncMode | str = SyncMode.TWO_WAY,
    retry_policy: RetryPolicy | None = None,
    metrics: SyncMetrics | None = None,
    cancel_event: CancelSignal | None = None,
) -> SyncReport:
    """
    Sync the local replica (A) with the deployed replica (B)

    Accessors are opened for the duration of the run and always closed.

    Raises:
        ConfigurationError: If a replica configuration is unusable
        ReadError: If either replica cannot be listed
    """
    retry_policy = retry_policy or RetryPolicy()
    request_timeout = retry_policy.timeout or 30.0

    local = build_accessor(local_config, request_timeout)
    deployed = build_accessor(deployed_config, request_timeout)

    async with AsyncExitStack() as stack:
        await stack.enter_async_context(local)
        await stack.enter_async_context(deployed)

        reconciler = Reconciler(local, deployed, retry_policy=retry_policy, metrics=metrics)
        return await reconciler.run(mode, cancel_event=cancel_event)
