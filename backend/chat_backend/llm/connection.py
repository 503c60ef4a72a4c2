"""
Connection handles for registered Ollama servers.

Handles are cached per server id for the life of the process. A cached handle
keeps the address it was built with, so changing a server's host or port does
not affect an already resolved handle. ``invalidate`` is the only eviction.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import requests

from ..errors import GenerationError, ServerNotFoundError
from ..models.server import ServerRecord
from ..services.servers import ServerRegistry

logger = logging.getLogger(__name__)

HEALTH_PATH = "/api/tags"


@dataclass(frozen=True)
class ConnectionHandle:
    """Reusable HTTP client configuration for one server."""
    server_id: int
    base_url: str
    headers: Dict[str, str]
    session: requests.Session = field(compare=False, repr=False)


def base_url_for(record: ServerRecord) -> str:
    return f"http://{record.host}:{record.port}"


def headers_for(record: ServerRecord) -> Dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if record.token:
        headers["Authorization"] = f"Bearer {record.token}"
    return headers


class ConnectionManager:
    """Resolves server records to cached connection handles."""

    def __init__(self, registry: ServerRegistry, probe_timeout: float = 5.0):
        self.registry = registry
        self.probe_timeout = probe_timeout
        self._handles: Dict[int, ConnectionHandle] = {}
        self._lock = threading.Lock()
        self._probe_session = requests.Session()

    def resolve(self, server_id: int) -> ConnectionHandle:
        """Return the cached handle for a server, building it on first use."""
        with self._lock:
            handle = self._handles.get(server_id)
            if handle is not None:
                return handle

            record = self.registry.get(server_id)
            session = requests.Session()
            headers = headers_for(record)
            session.headers.update(headers)
            handle = ConnectionHandle(
                server_id=record.id,
                base_url=base_url_for(record),
                headers=headers,
                session=session,
            )
            self._handles[server_id] = handle
            logger.debug("Created connection handle for server %d at %s", server_id, handle.base_url)
            return handle

    def resolve_default(self) -> ConnectionHandle:
        return self.resolve(self.registry.find_default().id)

    def resolve_optional(self, server_id: Optional[int] = None) -> ConnectionHandle:
        """Resolve an explicit server, or the default one when no id is given."""
        if server_id is None:
            return self.resolve_default()
        return self.resolve(server_id)

    def build_headers(self, server_id: int) -> Dict[str, str]:
        """JSON headers plus a bearer token when the server has one."""
        return headers_for(self.registry.get(server_id))

    def api_url(self, server_id: int, path: str) -> str:
        return self.resolve(server_id).base_url + path

    def default_api_url(self, path: str) -> str:
        return self.resolve_default().base_url + path

    def probe(self, server_id: int) -> bool:
        """Check reachability with a short GET. Never raises."""
        try:
            record = self.registry.get(server_id)
        except ServerNotFoundError:
            logger.debug("Probe skipped, server %d is not registered", server_id)
            return False

        url = base_url_for(record) + HEALTH_PATH
        try:
            response = self._probe_session.get(url, headers=headers_for(record), timeout=self.probe_timeout)
        except requests.RequestException as e:
            logger.debug("Probe of server %d at %s failed: %s", server_id, url, e)
            return False

        reachable = 200 <= response.status_code < 300
        logger.debug("Probe of server %d at %s returned %d", server_id, url, response.status_code)
        return reachable

    def invalidate(self, server_id: int) -> None:
        with self._lock:
            handle = self._handles.pop(server_id, None)
        if handle is not None:
            handle.session.close()

    def list_models(self, server_id: Optional[int] = None) -> List[str]:
        """Names of the models installed on a server."""
        handle = self.resolve_optional(server_id)
        try:
            response = handle.session.get(
                handle.base_url + HEALTH_PATH,
                headers=self.build_headers(handle.server_id),
                timeout=self.probe_timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise GenerationError(f"Failed to list models on server {handle.server_id}: {str(e)}")

        if not isinstance(data, dict):
            raise GenerationError(f"Unexpected model list from server {handle.server_id}")

        return [model.get("name", "") for model in data.get("models", [])]

    def close(self) -> None:
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.session.close()
        self._probe_session.close()
