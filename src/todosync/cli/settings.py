"""
Replica configuration, retry policy and observability setup for the CLI.

Every setting is resolved from the command line first, then from the
environment, then from defaults. Deployed-endpoint details fall back to the
``amplify_outputs.json`` file the Amplify toolchain writes.
"""

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Any

from todosync.errors import ConfigurationError
from todosync.utils.metrics import MetricsPublisher, SyncMetrics
from todosync.utils.retry import RetryPolicy
from todosync.utils.tracing import initialize_tracing

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_URL = "http://localhost:20002/graphql"
DEFAULT_LOCAL_API_KEY = "da2-fakeApiId123456"
DEFAULT_AMPLIFY_OUTPUTS = "amplify_outputs.json"


def _arg(args: argparse.Namespace, name: str) -> Any:
    return getattr(args, name, None)


def load_amplify_outputs(path: str | Path) -> dict[str, Any]:
    """
    Read the deployed GraphQL URL and API key from amplify_outputs.json

    Args:
        path: Path to amplify_outputs.json

    Returns:
        Dictionary with ``url`` and ``api_key`` (empty if the file is absent)

    Raises:
        ConfigurationError: If the file exists but cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        logger.debug(f"No Amplify outputs at {path}")
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            outputs = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read Amplify outputs {path}: {e}") from e

    if not isinstance(outputs, dict):
        raise ConfigurationError(f"Amplify outputs {path} is not a JSON object")

    data = outputs.get("data") or {}
    return {"url": data.get("url"), "api_key": data.get("api_key")}


def get_replica_configs(args: argparse.Namespace) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Resolve the local (A) and deployed (B) replica configurations

    Args:
        args: Parsed command-line arguments

    Returns:
        Tuple of (local_config, deployed_config)

    Raises:
        ConfigurationError: If the deployed endpoint URL cannot be found
    """
    local_file = _arg(args, "local_file") or os.getenv("LOCAL_STORAGE_FILE")
    if local_file:
        local_config = {"name": "local", "type": "file", "path": local_file}
    else:
        local_config = {
            "name": "local",
            "type": "graphql",
            "url": _arg(args, "local_url") or os.getenv("LOCAL_GRAPHQL_URL", DEFAULT_LOCAL_URL),
            "api_key": (
                _arg(args, "local_api_key")
                or os.getenv("LOCAL_API_KEY", DEFAULT_LOCAL_API_KEY)
            ),
            "auth_token": None,
        }

    deployed_config = {
        "name": "deployed",
        "type": "graphql",
        "url": _arg(args, "deployed_url") or os.getenv("DEPLOYED_GRAPHQL_URL"),
        "api_key": _arg(args, "deployed_api_key") or os.getenv("DEPLOYED_API_KEY"),
        "auth_token": _arg(args, "auth_token") or os.getenv("DEPLOYED_AUTH_TOKEN"),
    }

    if not deployed_config["url"] or not deployed_config["api_key"]:
        outputs_path = (
            _arg(args, "amplify_outputs")
            or os.getenv("AMPLIFY_OUTPUTS", DEFAULT_AMPLIFY_OUTPUTS)
        )
        outputs = load_amplify_outputs(outputs_path)
        deployed_config["url"] = deployed_config["url"] or outputs.get("url")
        deployed_config["api_key"] = deployed_config["api_key"] or outputs.get("api_key")

    if not deployed_config["url"]:
        raise ConfigurationError(
            "Deployed GraphQL URL not configured. Use --deployed-url, "
            "DEPLOYED_GRAPHQL_URL or amplify_outputs.json"
        )
    if not deployed_config["api_key"] and not deployed_config["auth_token"]:
        logger.warning("No API key or auth token for the deployed replica")

    return local_config, deployed_config


def get_retry_policy(args: argparse.Namespace) -> RetryPolicy:
    """
    Build the retry policy from arguments and environment

    Raises:
        ConfigurationError: If a value is not a valid number
    """
    def _resolve(name: str, env: str, default: str, cast):
        value = _arg(args, name)
        return value if value is not None else cast(os.getenv(env, default))

    try:
        return RetryPolicy(
            max_attempts=_resolve("max_attempts", "SYNC_MAX_ATTEMPTS", "3", int),
            base_delay=_resolve("retry_delay", "SYNC_RETRY_DELAY", "1.0", float),
            timeout=_resolve("timeout", "SYNC_TIMEOUT", "30", float),
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid retry settings: {e}") from e


def setup_observability(args: argparse.Namespace) -> SyncMetrics | None:
    """
    Start the metrics endpoint and span export when requested

    Returns:
        SyncMetrics bound to the global registry when --metrics-port is set
    """
    otlp_endpoint = _arg(args, "otlp_endpoint") or os.getenv("OTLP_ENDPOINT")
    if otlp_endpoint:
        initialize_tracing(otlp_endpoint=otlp_endpoint)

    port = _arg(args, "metrics_port")
    if not port:
        return None

    MetricsPublisher(port=port).start()
    return SyncMetrics()
