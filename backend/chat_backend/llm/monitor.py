"""
Periodic reachability checks that keep server statuses current.
"""
import asyncio
import logging
from collections import Counter

from ..models.server import MonitorSummary, ServerRecord, ServerStatus, ServerStatusCheck
from ..services.servers import ServerRegistry
from .connection import ConnectionManager

logger = logging.getLogger(__name__)


class HealthMonitor:
    """Probes every registered server and records active/offline transitions."""

    def __init__(self, registry: ServerRegistry, connections: ConnectionManager, interval_seconds: int = 120):
        self.registry = registry
        self.connections = connections
        self.interval_seconds = interval_seconds

    def check_all_servers(self) -> MonitorSummary:
        """Run one pass over all servers. Errors are logged, never raised."""
        servers = []
        try:
            servers = self.registry.list_all()
            for server in servers:
                try:
                    self._reconcile(server)
                except Exception as e:
                    logger.error("Error checking server %d: %s", server.id, e, exc_info=True)
            servers = self.registry.list_all()
        except Exception as e:
            logger.error("Error checking server statuses: %s", e, exc_info=True)

        counts = Counter(server.status.value for server in servers)
        return MonitorSummary(server_count=len(servers), status_summary=dict(counts))

    def check_server(self, server_id: int) -> ServerStatusCheck:
        """Probe one server now and persist its status."""
        server = self.registry.get(server_id)
        reachable, status = self._reconcile(server)
        return ServerStatusCheck(server_id=server_id, reachable=reachable, status=status.value)

    def _reconcile(self, server: ServerRecord):
        reachable = self.connections.probe(server.id)
        new_status = ServerStatus.ACTIVE if reachable else ServerStatus.OFFLINE
        if server.status != new_status:
            self.registry.update_status(server.id, new_status)
            logger.info(
                "Server %d status changed from %s to %s",
                server.id, server.status.value, new_status.value,
            )
        return reachable, new_status

    async def run_forever(self) -> None:
        """Check all servers every interval until cancelled."""
        logger.info("Health monitor started, interval %ds", self.interval_seconds)
        while True:
            try:
                summary = await asyncio.to_thread(self.check_all_servers)
                logger.debug("Health check pass: %s", summary.status_summary)
            except Exception as e:
                logger.error("Health monitor pass failed: %s", e, exc_info=True)
            await asyncio.sleep(self.interval_seconds)
