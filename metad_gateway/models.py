"""Data models shared across the gateway services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .roles import Role


@dataclass
class SpaceRef:
    space_id: int
    name: str


@dataclass
class RoleGrant:
    account: str
    space_id: int
    role: Role


# Kubernetes views -----------------------------------------------------------


@dataclass
class NamespaceInfo:
    name: str
    terminating: bool = False


@dataclass
class VolumeClaim:
    name: str
    capacity_bytes: int
    created_at: Optional[datetime] = None


@dataclass
class ServiceInfo:
    name: str
    service_type: str
    created_at: Optional[datetime] = None


@dataclass
class NodeInfo:
    name: str
    cpu_cores: int
    memory_bytes: int
    created_at: Optional[datetime] = None


@dataclass
class PodUsage:
    pod_name: str
    cpu_millicores: int
    memory_bytes: int


# Reports --------------------------------------------------------------------


@dataclass
class ComponentInfo:
    component: str
    version: str
    disk_usage: int = 0
    total_disk_space: int = 0
    commit_id: str = ""
    build_time: str = ""


@dataclass
class Machine:
    duration: str
    cpu: int
    memory: int


@dataclass
class Disk:
    duration: str
    size: int
    usage: int = 0


@dataclass
class LoadBalancer:
    duration: str
    band: int


@dataclass
class InstanceUsage:
    instance_name: str
    cpu: int
    memory: int
    cpu_usage: int = 0
    memory_usage: int = 0
    disks: List[Disk] = field(default_factory=list)


@dataclass
class ClusterCost:
    cluster_name: str = ""
    machines: List[Machine] = field(default_factory=list)
    disks: List[Disk] = field(default_factory=list)
    load_balancers: List[LoadBalancer] = field(default_factory=list)
    instances: List[InstanceUsage] = field(default_factory=list)
