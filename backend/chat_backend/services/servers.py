"""
Persisted registry of backend LLM servers.
"""
import logging
import uuid
from typing import List, Optional
from urllib.parse import urlparse

from sqlalchemy import select

from ..db.models import ChatServer
from ..db.session import Database
from ..errors import NoActiveServerError, ServerNotFoundError
from ..models.server import ServerRecord, ServerStatus

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 11434


def generate_token() -> str:
    return str(uuid.uuid4())


class ServerRegistry:
    """CRUD over server records. Every method returns detached ServerRecord copies."""

    def __init__(self, database: Database):
        self.database = database

    def create(
        self,
        host: str,
        port: int,
        token: Optional[str] = None,
        status: Optional[ServerStatus] = None,
    ) -> ServerRecord:
        """Register a server, generating a token and defaulting the status to active."""
        row = ChatServer(
            host=host,
            port=port,
            token=token or generate_token(),
            status=(status or ServerStatus.ACTIVE).value,
        )
        with self.database.session() as session:
            session.add(row)
            session.flush()
            record = ServerRecord.model_validate(row)

        logger.info("Registered server %d at %s:%d", record.id, record.host, record.port)
        return record

    def get(self, server_id: int) -> ServerRecord:
        with self.database.session() as session:
            return ServerRecord.model_validate(self._load(session, server_id))

    def list_all(self) -> List[ServerRecord]:
        with self.database.session() as session:
            rows = session.scalars(select(ChatServer).order_by(ChatServer.id)).all()
            return [ServerRecord.model_validate(row) for row in rows]

    def is_empty(self) -> bool:
        with self.database.session() as session:
            return session.scalars(select(ChatServer.id).limit(1)).first() is None

    def update_status(self, server_id: int, status: ServerStatus) -> ServerRecord:
        with self.database.session() as session:
            row = self._load(session, server_id)
            row.status = ServerStatus(status).value
            session.flush()
            return ServerRecord.model_validate(row)

    def update_token(self, server_id: int, token: Optional[str]) -> ServerRecord:
        with self.database.session() as session:
            row = self._load(session, server_id)
            row.token = token
            session.flush()
            return ServerRecord.model_validate(row)

    def regenerate_token(self, server_id: int) -> ServerRecord:
        return self.update_token(server_id, generate_token())

    def delete(self, server_id: int) -> None:
        with self.database.session() as session:
            session.delete(self._load(session, server_id))
        logger.info("Deleted server %d", server_id)

    def find_default(self) -> ServerRecord:
        """Return the first active server in id order."""
        with self.database.session() as session:
            row = session.scalars(
                select(ChatServer)
                .where(ChatServer.status == ServerStatus.ACTIVE.value)
                .order_by(ChatServer.id)
                .limit(1)
            ).first()
            if row is None:
                raise NoActiveServerError()
            return ServerRecord.model_validate(row)

    @staticmethod
    def _load(session, server_id: int) -> ChatServer:
        row = session.get(ChatServer, server_id)
        if row is None:
            raise ServerNotFoundError(server_id)
        return row


def parse_base_url(base_url: str):
    """Split a base URL into (host, port), falling back to localhost:11434."""
    host, port = DEFAULT_HOST, DEFAULT_PORT
    try:
        parsed = urlparse(base_url.strip())
        if parsed.hostname:
            host = parsed.hostname
        if parsed.port:
            port = parsed.port
    except ValueError:
        logger.warning("Could not parse base URL '%s', using %s:%d", base_url, host, port)
    return host, port


def bootstrap_default_server(registry: ServerRegistry, base_url: str) -> Optional[ServerRecord]:
    """Register the configured server when the registry is empty. No-op otherwise."""
    if not registry.is_empty():
        return None

    host, port = parse_base_url(base_url)
    record = registry.create(host, port, token=generate_token(), status=ServerStatus.ACTIVE)
    logger.info("Created default server from %s: %s:%d", base_url, host, port)
    return record
