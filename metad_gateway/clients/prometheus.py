"""Prometheus query helper for persistent volume usage."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict

import requests

from ..errors import MetricsQueryError

logger = logging.getLogger(__name__)

VOLUME_USAGE_QUERY = (
    'sum(kubelet_volume_stats_capacity_bytes{{namespace="{ns}"}}'
    '-kubelet_volume_stats_available_bytes{{namespace="{ns}"}})'
    "by(persistentvolumeclaim)"
)


@dataclass
class PrometheusClient:
    base_url: str
    timeout: float = 5.0
    http_client: object = requests

    def _url(self, suffix: str) -> str:
        base = self.base_url.rstrip("/")
        return f"{base}{suffix}"

    def query(self, expression: str) -> list:
        """Run an instant query and return the ``data.result`` vector."""
        try:
            response = self.http_client.get(
                self._url("/api/v1/query"),
                params={"query": expression},
                timeout=self.timeout,
            )
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Prometheus query %r failed: %s", expression, exc)
            raise MetricsQueryError(str(exc)) from exc

        if not isinstance(payload, dict) or payload.get("status") != "success":
            logger.error("Prometheus query %r returned %r", expression, payload)
            raise MetricsQueryError("query prometheus error")
        return (payload.get("data") or {}).get("result") or []

    def volume_usage(self, namespace: str) -> Dict[str, int]:
        """Used bytes per persistent volume claim in ``namespace``."""
        usage: Dict[str, int] = {}
        for sample in self.query(VOLUME_USAGE_QUERY.format(ns=namespace)):
            value = sample.get("value") or []
            if len(value) != 2:
                continue
            try:
                used = float(value[1])
            except (TypeError, ValueError):
                continue
            if math.isnan(used) or math.isinf(used):
                continue
            claim = (sample.get("metric") or {}).get("persistentvolumeclaim", "")
            usage[claim] = int(used)
        return usage
