"""
Wiring of all services for one application instance.
"""
from dataclasses import dataclass

from ..config import Settings
from ..db.session import Database
from ..document_processor.extractor import TextExtractor
from ..llm.connection import ConnectionManager
from ..llm.generation import ChatGenerator, FileAssistant, GenerationClient
from ..llm.monitor import HealthMonitor
from .auth import AuthService
from .chats import ChatService
from .files import FileService
from .messages import MessageService
from .servers import ServerRegistry
from .votes import VoteService


@dataclass
class Services:
    settings: Settings
    database: Database
    servers: ServerRegistry
    connections: ConnectionManager
    monitor: HealthMonitor
    extractor: TextExtractor
    auth: AuthService
    chats: ChatService
    messages: MessageService
    files: FileService
    votes: VoteService
    generation: GenerationClient
    file_assistant: FileAssistant
    chat_generator: ChatGenerator

    def close(self) -> None:
        self.connections.close()
        self.database.dispose()


def build_services(settings: Settings) -> Services:
    database = Database(settings.database_url, echo=settings.sql_echo)
    servers = ServerRegistry(database)
    connections = ConnectionManager(servers, probe_timeout=settings.probe_timeout_seconds)
    extractor = TextExtractor()
    generation = GenerationClient(
        connections,
        default_model=settings.default_model,
        timeout=settings.generation_timeout_seconds,
    )
    return Services(
        settings=settings,
        database=database,
        servers=servers,
        connections=connections,
        monitor=HealthMonitor(servers, connections, interval_seconds=settings.health_check_interval_seconds),
        extractor=extractor,
        auth=AuthService(database, settings.jwt_secret, settings.jwt_ttl_minutes),
        chats=ChatService(database, settings.default_model),
        messages=MessageService(database),
        files=FileService(database, extractor, settings.upload_dir),
        votes=VoteService(database),
        generation=generation,
        file_assistant=FileAssistant(generation),
        chat_generator=ChatGenerator(generation),
    )
