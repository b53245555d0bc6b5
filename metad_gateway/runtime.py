"""Runtime wiring for the metad gateway."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .clients.connector import MetadConnector
from .clients.kube import ClusterClient
from .clients.prometheus import PrometheusClient
from .config import GatewayConfig
from .services.account_service import AccountService
from .services.space_service import SpaceService
from .services.usage_service import UsageService

logger = logging.getLogger(__name__)


@dataclass
class GatewayRuntime:
    config: GatewayConfig
    cluster: ClusterClient
    metrics: PrometheusClient
    connector: MetadConnector
    space_service: SpaceService
    account_service: AccountService
    usage_service: UsageService

    @classmethod
    def assemble(
        cls,
        config: GatewayConfig,
        *,
        cluster: ClusterClient,
        metrics: PrometheusClient,
        client_factory,
    ) -> "GatewayRuntime":
        """Wire services around already constructed collaborators."""
        connector = MetadConnector(
            locator=cluster,
            client_factory=client_factory,
            port=config.metad.port,
            timeout_seconds=config.metad.timeout_seconds,
        )
        return cls(
            config=config,
            cluster=cluster,
            metrics=metrics,
            connector=connector,
            space_service=SpaceService(config=config, connector=connector),
            account_service=AccountService(config=config, connector=connector),
            usage_service=UsageService(config=config, cluster=cluster, metrics=metrics),
        )

    @classmethod
    def bootstrap(cls, config: Optional[GatewayConfig] = None) -> "GatewayRuntime":
        """Connect to the real cluster, Prometheus and metad driver."""
        # The Thrift driver ships in the "metad" extra.
        from .clients.metad import ThriftMetadClient

        cfg = config or GatewayConfig.from_env()
        cluster = ClusterClient.from_config(cfg.kubernetes)
        metrics = PrometheusClient(base_url=cfg.prometheus.base_url, timeout=cfg.prometheus.timeout_seconds)
        logger.info(
            "Gateway runtime ready (metad port=%s, prometheus=%s)",
            cfg.metad.port,
            cfg.prometheus.base_url,
        )
        return cls.assemble(cfg, cluster=cluster, metrics=metrics, client_factory=ThriftMetadClient.open)
