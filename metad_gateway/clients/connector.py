"""Per-request metad connections scoped to a ``with`` block."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

logger = logging.getLogger(__name__)


@dataclass
class MetadConnector:
    """Resolves an instance to its metad address and opens a client for it.

    ``locator`` is anything with ``metad_address(instance_id)`` (the
    ``ClusterClient``); ``client_factory(host, port, timeout_seconds)`` returns
    an open client exposing ``close()``.
    """

    locator: object
    client_factory: Callable[[str, int, float], object]
    port: int = 44500
    timeout_seconds: float = 5.0

    @contextmanager
    def connect(self, instance_id: str) -> Iterator[object]:
        host = self.locator.metad_address(instance_id)
        client = self.client_factory(host, self.port, self.timeout_seconds)
        try:
            yield client
        finally:
            try:
                client.close()
            except OSError as exc:
                logger.warning("Closing metad connection for %s failed: %s", instance_id, exc)
