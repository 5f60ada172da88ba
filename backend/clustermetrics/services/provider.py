from __future__ import annotations

import asyncio
from typing import Any, Protocol

import structlog
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from clustermetrics.config import Settings
from clustermetrics.exceptions import ProviderUnavailable, StartupFailure
from clustermetrics.services.aggregation import NodeUsage
from clustermetrics.services.quantities import parse_cpu_to_mcores, parse_memory_to_bytes

logger = structlog.get_logger(__name__)


class NodeMetricsProvider(Protocol):
    """Source of live node usage and capacity.

    Both methods raise ``ProviderUnavailable`` on any transient failure.
    """

    async def list_node_usage(self) -> list[NodeUsage]: ...

    async def get_node_capacity(self, node_name: str) -> int: ...


def _load_client_config(settings: Settings) -> None:
    if settings.kube_in_cluster:
        config.load_incluster_config()
    else:
        config.load_kube_config(config_file=settings.kube_config_path, context=settings.kube_context)


class KubernetesMetricsProvider:
    """Reads node usage from metrics.k8s.io and node capacity from the core API."""

    def __init__(
        self,
        core_v1: client.CoreV1Api,
        custom_api: client.CustomObjectsApi,
        request_timeout: float | None = None,
    ) -> None:
        self._core_v1 = core_v1
        self._custom_api = custom_api
        self._request_timeout = request_timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> KubernetesMetricsProvider:
        try:
            _load_client_config(settings)
        except Exception as exc:
            logger.error(
                "kubernetes.config_load_failed",
                missing=isinstance(exc, ConfigException),
                in_cluster=settings.kube_in_cluster,
                error=str(exc),
            )
            raise StartupFailure(f"cannot load cluster config: {exc}") from exc

        api_client = client.ApiClient()
        logger.info(
            "kubernetes.client_ready",
            in_cluster=settings.kube_in_cluster,
            context=settings.kube_context or "default",
        )
        return cls(
            client.CoreV1Api(api_client),
            client.CustomObjectsApi(api_client),
            request_timeout=settings.kube_request_timeout_seconds,
        )

    async def list_node_usage(self) -> list[NodeUsage]:
        def _collect() -> Any:
            return self._custom_api.list_cluster_custom_object(
                group="metrics.k8s.io",
                version="v1beta1",
                plural="nodes",
                _request_timeout=self._request_timeout,
            )

        try:
            data = await asyncio.to_thread(_collect)
        except ApiException as exc:
            raise ProviderUnavailable(f"listing node metrics failed: {exc.status} {exc.reason}") from exc
        except Exception as exc:
            raise ProviderUnavailable(f"listing node metrics failed: {exc}") from exc

        if not isinstance(data, dict):
            raise ProviderUnavailable("malformed node metrics payload")
        items = data.get("items") or []
        if not isinstance(items, list):
            raise ProviderUnavailable("malformed node metrics payload")

        usages: list[NodeUsage] = []
        for item in items:
            if not isinstance(item, dict):
                raise ProviderUnavailable("malformed node metrics payload")
            meta = item.get("metadata") or {}
            usage = item.get("usage") or {}
            if not isinstance(meta, dict) or not isinstance(usage, dict):
                raise ProviderUnavailable("malformed node metrics payload")
            name = meta.get("name")
            if not name:
                continue
            usages.append(
                NodeUsage(
                    node_name=str(name),
                    cpu_used_mcores=parse_cpu_to_mcores(usage.get("cpu")),
                    memory_used_bytes=parse_memory_to_bytes(usage.get("memory")),
                )
            )
        return usages

    async def get_node_capacity(self, node_name: str) -> int:
        def _read() -> Any:
            return self._core_v1.read_node(name=node_name, _request_timeout=self._request_timeout)

        try:
            node = await asyncio.to_thread(_read)
        except ApiException as exc:
            raise ProviderUnavailable(f"reading node {node_name} failed: {exc.status} {exc.reason}") from exc
        except Exception as exc:
            raise ProviderUnavailable(f"reading node {node_name} failed: {exc}") from exc

        status = getattr(node, "status", None)
        capacity = (getattr(status, "capacity", None) or {}) if status else {}
        return parse_cpu_to_mcores(capacity.get("cpu"))
