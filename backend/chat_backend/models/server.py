"""
Pydantic models for backend LLM server records.
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ServerStatus(str, Enum):
    """Reachability status of a registered server."""
    ACTIVE = "active"
    OFFLINE = "offline"


class ServerRecord(BaseModel):
    """A registered Ollama-compatible server."""
    id: int = Field(..., description="Server ID")
    host: str = Field(..., description="Host name or IP address")
    port: int = Field(..., description="TCP port")
    token: Optional[str] = Field(None, description="Bearer token sent to the server")
    status: ServerStatus = Field(default=ServerStatus.ACTIVE)

    model_config = ConfigDict(from_attributes=True)


class ServerCreate(BaseModel):
    """Request model for registering a server."""
    host: str = Field(..., min_length=1, max_length=255)
    port: int = Field(..., ge=1, le=65535)
    token: Optional[str] = Field(None, max_length=255)
    status: Optional[ServerStatus] = None


class StatusUpdate(BaseModel):
    status: ServerStatus


class TokenUpdate(BaseModel):
    token: Optional[str] = Field(None, max_length=255)


class TokenResponse(BaseModel):
    token: str


class ServerStatusCheck(BaseModel):
    """Result of probing a single server."""
    server_id: int
    reachable: bool
    status: str


class MonitorSummary(BaseModel):
    """Result of a full health-monitor pass."""
    server_count: int
    status_summary: Dict[str, int]
    message: str = "Status check completed for all servers"


class ModelListResponse(BaseModel):
    success: bool = True
    server_id: int
    models: List[str] = Field(default_factory=list)
