"""Configuration primitives for the metad gateway."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

ENV_PREFIX = "METAD_GATEWAY_"


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8880


@dataclass
class KubernetesConfig:
    in_cluster: bool = True
    kubeconfig_path: Optional[str] = None
    metad_service_name: str = "nebula-metad"
    # Namespaces whose name contains this marker are reported as instances.
    instance_namespace_marker: str = "nebula"


@dataclass
class MetadConfig:
    port: int = 44500
    timeout_seconds: float = 5.0
    partition_num: int = 3
    replica_factor: int = 1


@dataclass
class PrometheusConfig:
    base_url: str = "http://prometheus.kube-system:9090"
    timeout_seconds: float = 5.0


@dataclass
class AuthConfig:
    token: Optional[str] = None


@dataclass
class ReportConfig:
    cluster_name: str = ""
    component_claims: Dict[str, str] = field(default_factory=lambda: {
        "data-storaged-0": "storaged",
        "data-metad-0": "metad",
    })
    component_version: str = "v1.0.0"
    instance_cpu: int = 1000
    instance_memory: int = 1024
    load_balancer_band: int = 10


@dataclass
class ObservabilityConfig:
    log_level: str = "INFO"


@dataclass
class GatewayConfig:
    server: ServerConfig
    kubernetes: KubernetesConfig
    metad: MetadConfig
    prometheus: PrometheusConfig
    auth: AuthConfig
    report: ReportConfig
    observability: ObservabilityConfig

    @staticmethod
    def default() -> "GatewayConfig":
        return GatewayConfig(
            server=ServerConfig(),
            kubernetes=KubernetesConfig(),
            metad=MetadConfig(),
            prometheus=PrometheusConfig(),
            auth=AuthConfig(),
            report=ReportConfig(),
            observability=ObservabilityConfig(),
        )

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "GatewayConfig":
        """Build a config from ``METAD_GATEWAY_*`` variables on top of the defaults."""
        env = os.environ if environ is None else environ
        cfg = GatewayConfig.default()

        cfg.server.host = _env_str(env, "HOST", cfg.server.host)
        cfg.server.port = _env_int(env, "PORT", cfg.server.port)

        cfg.kubernetes.in_cluster = _env_bool(env, "IN_CLUSTER", cfg.kubernetes.in_cluster)
        cfg.kubernetes.kubeconfig_path = _env_str(env, "KUBECONFIG", cfg.kubernetes.kubeconfig_path)
        cfg.kubernetes.metad_service_name = _env_str(env, "METAD_SERVICE", cfg.kubernetes.metad_service_name)
        cfg.kubernetes.instance_namespace_marker = _env_str(
            env, "INSTANCE_NAMESPACE_MARKER", cfg.kubernetes.instance_namespace_marker
        )

        cfg.metad.port = _env_int(env, "METAD_PORT", cfg.metad.port)
        cfg.metad.timeout_seconds = _env_float(env, "METAD_TIMEOUT", cfg.metad.timeout_seconds)
        cfg.metad.partition_num = _env_int(env, "PARTITION_NUM", cfg.metad.partition_num)
        cfg.metad.replica_factor = _env_int(env, "REPLICA_FACTOR", cfg.metad.replica_factor)

        cfg.prometheus.base_url = _env_str(env, "PROMETHEUS_URL", cfg.prometheus.base_url)
        cfg.prometheus.timeout_seconds = _env_float(env, "PROMETHEUS_TIMEOUT", cfg.prometheus.timeout_seconds)

        cfg.auth.token = _env_str(env, "AUTH_TOKEN", cfg.auth.token) or None

        cfg.report.cluster_name = _env_str(env, "CLUSTER_NAME", cfg.report.cluster_name)
        cfg.report.component_version = _env_str(env, "COMPONENT_VERSION", cfg.report.component_version)

        cfg.observability.log_level = _env_str(env, "LOG_LEVEL", cfg.observability.log_level).upper()
        return cfg


def _env_str(env: Mapping[str, str], name: str, default: Optional[str]) -> Optional[str]:
    raw = env.get(ENV_PREFIX + name)
    if raw is None:
        return default
    return raw.strip()


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}
