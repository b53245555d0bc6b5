"""HTTP gateway in front of the metad service of graph-database instances."""

from .config import GatewayConfig  # noqa: F401
from .runtime import GatewayRuntime  # noqa: F401
