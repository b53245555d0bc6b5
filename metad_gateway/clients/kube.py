"""Thin wrapper over the Kubernetes API returning gateway models."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.utils import parse_quantity
from urllib3.exceptions import HTTPError

from ..config import KubernetesConfig
from ..errors import ClusterError
from ..models import NamespaceInfo, NodeInfo, PodUsage, ServiceInfo, VolumeClaim

logger = logging.getLogger(__name__)


@dataclass
class ClusterClient:
    core: object
    custom: object
    metad_service_name: str = "nebula-metad"

    @classmethod
    def from_config(cls, cfg: KubernetesConfig) -> "ClusterClient":
        if cfg.in_cluster:
            try:
                config.load_incluster_config()
            except config.ConfigException:
                logger.warning("In-cluster config unavailable, falling back to kubeconfig")
                config.load_kube_config(config_file=cfg.kubeconfig_path)
        else:
            config.load_kube_config(config_file=cfg.kubeconfig_path)
        return cls(
            core=client.CoreV1Api(),
            custom=client.CustomObjectsApi(),
            metad_service_name=cfg.metad_service_name,
        )

    def metad_address(self, namespace: str) -> str:
        """Return the cluster IP of the instance's metad service."""
        service = self._call(
            f"read service {namespace}/{self.metad_service_name}",
            self.core.read_namespaced_service,
            self.metad_service_name,
            namespace,
        )
        cluster_ip = getattr(service.spec, "cluster_ip", None) if service.spec else None
        if not cluster_ip or cluster_ip == "None":
            raise ClusterError(f"service {self.metad_service_name} in {namespace} has no cluster IP")
        return cluster_ip

    def list_namespaces(self) -> List[NamespaceInfo]:
        namespaces = self._call("list namespaces", self.core.list_namespace)
        return [
            NamespaceInfo(
                name=item.metadata.name,
                terminating=item.metadata.deletion_timestamp is not None,
            )
            for item in namespaces.items
        ]

    def list_volume_claims(self, namespace: str) -> List[VolumeClaim]:
        claims = self._call(
            f"list persistent volume claims in {namespace}",
            self.core.list_namespaced_persistent_volume_claim,
            namespace,
        )
        result = []
        for item in claims.items:
            capacity = (item.status.capacity or {}) if item.status else {}
            result.append(
                VolumeClaim(
                    name=item.metadata.name,
                    capacity_bytes=_quantity(capacity.get("storage")),
                    created_at=item.metadata.creation_timestamp,
                )
            )
        return result

    def list_services(self, namespace: str) -> List[ServiceInfo]:
        services = self._call(f"list services in {namespace}", self.core.list_namespaced_service, namespace)
        return [
            ServiceInfo(
                name=item.metadata.name,
                service_type=(item.spec.type if item.spec else None) or "ClusterIP",
                created_at=item.metadata.creation_timestamp,
            )
            for item in services.items
        ]

    def list_nodes(self) -> List[NodeInfo]:
        nodes = self._call("list nodes", self.core.list_node)
        result = []
        for item in nodes.items:
            capacity = (item.status.capacity or {}) if item.status else {}
            result.append(
                NodeInfo(
                    name=item.metadata.name,
                    cpu_cores=_quantity(capacity.get("cpu")),
                    memory_bytes=_quantity(capacity.get("memory")),
                    created_at=item.metadata.creation_timestamp,
                )
            )
        return result

    def pod_usage(self, namespace: str) -> List[PodUsage]:
        """Per-pod CPU/memory usage from ``metrics.k8s.io``."""
        metrics = self._call(
            f"list pod metrics in {namespace}",
            self.custom.list_namespaced_custom_object,
            group="metrics.k8s.io",
            version="v1beta1",
            namespace=namespace,
            plural="pods",
        )
        result = []
        for item in metrics.get("items", []):
            cpu = 0
            memory = 0
            for container in item.get("containers", []):
                usage = container.get("usage", {})
                cpu += int(parse_quantity(usage.get("cpu", "0")) * 1000)
                memory += int(parse_quantity(usage.get("memory", "0")))
            result.append(PodUsage(pod_name=item["metadata"]["name"], cpu_millicores=cpu, memory_bytes=memory))
        return result

    def _call(self, what: str, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ApiException as exc:
            logger.error("Unable to %s: %s %s", what, exc.status, exc.reason)
            raise ClusterError(f"unable to {what}") from exc
        except HTTPError as exc:
            logger.error("Unable to %s: %s", what, exc)
            raise ClusterError(f"unable to {what}") from exc


def _quantity(value: Optional[str]) -> int:
    if not value:
        return 0
    return int(math.ceil(parse_quantity(value)))
