"""
API endpoints for managing backend Ollama servers.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends

from ..models.auth import UserRecord
from ..models.server import (
    ModelListResponse,
    MonitorSummary,
    ServerCreate,
    ServerRecord,
    ServerStatusCheck,
    StatusUpdate,
    TokenResponse,
    TokenUpdate,
)
from ..services.container import Services
from .deps import get_current_user, get_services

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.post("", response_model=ServerRecord, status_code=201)
def create_server(request: ServerCreate, services: Services = Depends(get_services)):
    """Register a server. A token is generated when none is given."""
    return services.servers.create(request.host, request.port, request.token, request.status)


@router.get("", response_model=List[ServerRecord])
def list_servers(services: Services = Depends(get_services)):
    return services.servers.list_all()


@router.post("/status/check-all", response_model=MonitorSummary)
def check_all_servers(services: Services = Depends(get_services)):
    """Probe every server now instead of waiting for the next monitor tick."""
    return services.monitor.check_all_servers()


@router.get("/default/status/check", response_model=ServerStatusCheck)
def check_default_server(services: Services = Depends(get_services)):
    return services.monitor.check_server(services.servers.find_default().id)


@router.get("/models", response_model=ModelListResponse)
def list_models(server_id: Optional[int] = None, services: Services = Depends(get_services)):
    """Models installed on a server, or on the default one."""
    server = services.servers.get(server_id) if server_id is not None else services.servers.find_default()
    return ModelListResponse(server_id=server.id, models=services.connections.list_models(server.id))


@router.get("/{server_id}", response_model=ServerRecord)
def get_server(server_id: int, services: Services = Depends(get_services)):
    return services.servers.get(server_id)


@router.delete("/{server_id}")
def delete_server(server_id: int, services: Services = Depends(get_services)):
    services.servers.delete(server_id)
    services.connections.invalidate(server_id)
    return {"success": True, "message": "Server deleted successfully"}


@router.put("/{server_id}/status", response_model=ServerRecord)
def update_status(server_id: int, request: StatusUpdate, services: Services = Depends(get_services)):
    return services.servers.update_status(server_id, request.status)


@router.put("/{server_id}/token", response_model=ServerRecord)
def update_token(server_id: int, request: TokenUpdate, services: Services = Depends(get_services)):
    return services.servers.update_token(server_id, request.token)


@router.post("/{server_id}/token/regenerate", response_model=TokenResponse)
def regenerate_token(server_id: int, services: Services = Depends(get_services)):
    return TokenResponse(token=services.servers.regenerate_token(server_id).token)


@router.get("/{server_id}/status/check", response_model=ServerStatusCheck)
def check_server(server_id: int, services: Services = Depends(get_services)):
    return services.monitor.check_server(server_id)
