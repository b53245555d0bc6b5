"""Shared fakes for the metad gateway tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from metad_gateway.api.server import create_app
from metad_gateway.config import GatewayConfig
from metad_gateway.errors import ClusterError, MetadAlreadyExists, MetadError, MetadSpaceNotFound
from metad_gateway.models import (
    NamespaceInfo,
    NodeInfo,
    PodUsage,
    RoleGrant,
    ServiceInfo,
    SpaceRef,
    VolumeClaim,
)
from metad_gateway.roles import ROOT_SPACE_ID, Role
from metad_gateway.runtime import GatewayRuntime

NOW = datetime(2024, 1, 2, 12, 0, 0, tzinfo=timezone.utc)


class FakeMetad:
    """In-memory metad shared by every client opened during a test."""

    def __init__(self) -> None:
        self.spaces: Dict[str, int] = {}
        self.users: List[str] = ["root"]
        self.grants: Dict[str, Dict[int, Role]] = {"root": {ROOT_SPACE_ID: Role.GOD}}
        self.failures: Dict[str, MetadError] = {}
        self.create_space_calls: List[dict] = []
        self.opened: List[tuple] = []
        self.closed = 0

    def add_space(self, name: str) -> int:
        space_id = len(self.spaces) + 1
        self.spaces[name] = space_id
        return space_id

    def add_user(self, account: str, **grants: Role) -> None:
        if account not in self.users:
            self.users.append(account)
        for space_name, role in grants.items():
            space_id = ROOT_SPACE_ID if space_name == "root" else self.spaces[space_name]
            self.grants.setdefault(account, {})[space_id] = role

    def fail(self, operation: str, error: MetadError) -> None:
        self.failures[operation] = error

    def factory(self, host: str, port: int, timeout_seconds: float) -> "FakeMetadClient":
        self.opened.append((host, port, timeout_seconds))
        return FakeMetadClient(self)


class FakeMetadClient:
    def __init__(self, metad: FakeMetad) -> None:
        self.metad = metad

    def _check(self, operation: str) -> None:
        error = self.metad.failures.get(operation)
        if error is not None:
            raise error

    def close(self) -> None:
        self.metad.closed += 1

    def list_spaces(self) -> List[SpaceRef]:
        self._check("list_spaces")
        return [SpaceRef(space_id=space_id, name=name) for name, space_id in self.metad.spaces.items()]

    def get_space_id(self, name: str) -> int:
        self._check("get_space_id")
        if name not in self.metad.spaces:
            raise MetadSpaceNotFound("get_space", "E_SPACE_NOT_FOUND")
        return self.metad.spaces[name]

    def create_space(self, name, partition_num, replica_factor, if_not_exists=True) -> None:
        self._check("create_space")
        self.metad.create_space_calls.append(
            {"name": name, "partition_num": partition_num, "replica_factor": replica_factor}
        )
        if name in self.metad.spaces:
            if if_not_exists:
                return
            raise MetadAlreadyExists("create_space", "E_EXISTED")
        self.metad.add_space(name)

    def list_users(self) -> List[str]:
        self._check("list_users")
        return list(self.metad.users)

    def create_user(self, account: str, if_not_exists: bool = False) -> None:
        self._check("create_user")
        if account in self.metad.users:
            if if_not_exists:
                return
            raise MetadAlreadyExists("create_user", "E_EXISTED")
        self.metad.users.append(account)

    def drop_user(self, account: str, if_exists: bool = False) -> None:
        self._check("drop_user")
        if account not in self.metad.users:
            raise MetadError("drop_user", "E_NOT_FOUND")
        self.metad.users.remove(account)
        self.metad.grants.pop(account, None)

    def get_user_roles(self, account: str) -> List[RoleGrant]:
        self._check("get_user_roles")
        grants = self.metad.grants.get(account, {})
        return [RoleGrant(account=account, space_id=space_id, role=role) for space_id, role in grants.items()]

    def grant_role(self, account: str, space_id: int, role: Role) -> None:
        self._check("grant_role")
        self.metad.grants.setdefault(account, {})[space_id] = role

    def revoke_role(self, account: str, space_id: int, role: Role) -> None:
        self._check("revoke_role")
        self.metad.grants.get(account, {}).pop(space_id, None)


class FakeCluster:
    """Stands in for ``ClusterClient``: metad lookup plus Kubernetes views."""

    def __init__(self) -> None:
        self.addresses: Dict[str, str] = {}
        self.namespaces: List[NamespaceInfo] = []
        self.claims: Dict[str, List[VolumeClaim]] = {}
        self.services: Dict[str, List[ServiceInfo]] = {}
        self.pods: Dict[str, List[PodUsage]] = {}
        self.nodes: List[NodeInfo] = []
        self.broken: set = set()

    def _check(self, operation: str) -> None:
        if operation in self.broken:
            raise ClusterError(f"unable to {operation}")

    def metad_address(self, namespace: str) -> str:
        self._check("metad_address")
        if namespace not in self.addresses:
            raise ClusterError(f"service nebula-metad in {namespace} not found")
        return self.addresses[namespace]

    def list_namespaces(self) -> List[NamespaceInfo]:
        self._check("list_namespaces")
        return list(self.namespaces)

    def list_volume_claims(self, namespace: str) -> List[VolumeClaim]:
        self._check("list_volume_claims")
        return list(self.claims.get(namespace, []))

    def list_services(self, namespace: str) -> List[ServiceInfo]:
        self._check("list_services")
        return list(self.services.get(namespace, []))

    def list_nodes(self) -> List[NodeInfo]:
        self._check("list_nodes")
        return list(self.nodes)

    def pod_usage(self, namespace: str) -> List[PodUsage]:
        self._check("pod_usage")
        return list(self.pods.get(namespace, []))


class FakeMetrics:
    def __init__(self) -> None:
        self.usage: Dict[str, Dict[str, int]] = {}
        self.error = None

    def volume_usage(self, namespace: str) -> Dict[str, int]:
        if self.error is not None:
            raise self.error
        return dict(self.usage.get(namespace, {}))


@pytest.fixture
def metad() -> FakeMetad:
    return FakeMetad()


@pytest.fixture
def cluster() -> FakeCluster:
    fake = FakeCluster()
    fake.addresses["nebula-a"] = "10.0.0.5"
    return fake


@pytest.fixture
def metrics() -> FakeMetrics:
    return FakeMetrics()


@pytest.fixture
def gateway_config() -> GatewayConfig:
    cfg = GatewayConfig.default()
    cfg.report.cluster_name = "test-cluster"
    return cfg


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def runtime(gateway_config, cluster, metrics, metad, now) -> GatewayRuntime:
    rt = GatewayRuntime.assemble(gateway_config, cluster=cluster, metrics=metrics, client_factory=metad.factory)
    rt.usage_service.clock = lambda: now
    return rt


@pytest.fixture
def api_client(runtime):
    with TestClient(create_app(runtime)) as client:
        yield client
