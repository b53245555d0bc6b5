"""Disk, CPU and memory usage reports built from Kubernetes and Prometheus."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from ..clients.kube import ClusterClient
from ..clients.prometheus import PrometheusClient
from ..errors import ClusterError, InternalError, MetricsQueryError
from ..models import ClusterCost, ComponentInfo, Disk, InstanceUsage, LoadBalancer, Machine, VolumeClaim
from .base import BaseService

logger = logging.getLogger(__name__)

MIB = 1024 * 1024
LOAD_BALANCER_TYPE = "LoadBalancer"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def go_duration(delta: timedelta) -> str:
    """Render an age the way Go's ``time.Duration`` prints it, at second precision."""
    total = int(delta.total_seconds())
    if total <= 0:
        return "0s"
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{minutes}m{seconds}s"
    return f"{seconds}s"


@dataclass
class UsageService(BaseService):
    cluster: ClusterClient
    metrics: PrometheusClient
    clock: Callable[[], datetime] = field(default=_utcnow)

    def instance_version(self, instance_id: str) -> List[ComponentInfo]:
        """Disk usage and version of the well-known components of an instance."""
        self.require_instance(instance_id)
        try:
            usage = self.metrics.volume_usage(instance_id)
            claims = {claim.name: claim for claim in self.cluster.list_volume_claims(instance_id)}
        except (MetricsQueryError, ClusterError) as exc:
            logger.error("Reading volume usage of %s failed: %s", instance_id, exc)
            raise InternalError(str(exc)) from exc

        report = self.config.report
        infos: List[ComponentInfo] = []
        for claim_name, component in report.component_claims.items():
            if claim_name not in usage:
                continue
            claim = claims.get(claim_name)
            infos.append(
                ComponentInfo(
                    component=component,
                    version=report.component_version,
                    disk_usage=usage[claim_name],
                    total_disk_space=claim.capacity_bytes if claim else 0,
                )
            )
        return infos

    def cluster_cost(self) -> ClusterCost:
        logger.info("Collecting cluster cost")
        try:
            cost = self._collect_cluster_cost()
        except (ClusterError, MetricsQueryError) as exc:
            logger.error("Cluster cost report aborted: %s", exc)
            raise InternalError(str(exc)) from exc
        logger.info(
            "Cluster cost collected: %d machines, %d instances, %d disks, %d load balancers",
            len(cost.machines),
            len(cost.instances),
            len(cost.disks),
            len(cost.load_balancers),
        )
        return cost

    def _collect_cluster_cost(self) -> ClusterCost:
        report = self.config.report
        marker = self.config.kubernetes.instance_namespace_marker
        now = self.clock()
        cost = ClusterCost(cluster_name=report.cluster_name)

        for namespace in self.cluster.list_namespaces():
            is_instance = marker in namespace.name
            if is_instance and namespace.terminating:
                continue

            claims = self.cluster.list_volume_claims(namespace.name)
            usage = self.metrics.volume_usage(namespace.name)
            disks = [self._disk(claim, usage.get(claim.name, 0), now) for claim in claims]

            if is_instance:
                pods = self.cluster.pod_usage(namespace.name)
                cost.instances.append(
                    InstanceUsage(
                        instance_name=namespace.name,
                        cpu=report.instance_cpu,
                        memory=report.instance_memory,
                        cpu_usage=sum(pod.cpu_millicores for pod in pods),
                        memory_usage=sum(pod.memory_bytes for pod in pods) // MIB,
                        disks=disks,
                    )
                )
            else:
                cost.disks.extend(disks)

            for service in self.cluster.list_services(namespace.name):
                if service.service_type == LOAD_BALANCER_TYPE:
                    cost.load_balancers.append(
                        LoadBalancer(duration=self._age(service.created_at, now), band=report.load_balancer_band)
                    )

        for node in self.cluster.list_nodes():
            cost.machines.append(
                Machine(
                    duration=self._age(node.created_at, now),
                    cpu=node.cpu_cores,
                    memory=node.memory_bytes // MIB,
                )
            )
        return cost

    def _disk(self, claim: VolumeClaim, used: int, now: datetime) -> Disk:
        return Disk(duration=self._age(claim.created_at, now), size=claim.capacity_bytes, usage=used)

    @staticmethod
    def _age(created_at: Optional[datetime], now: datetime) -> str:
        if created_at is None:
            return "0s"
        return go_duration(now - created_at)
