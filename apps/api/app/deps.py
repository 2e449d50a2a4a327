from __future__ import annotations

from fastapi import Request

from app.errors import AuthenticationRequired
from app.service import KanbanService


def get_service(request: Request) -> KanbanService:
  return request.app.state.service


def _principal_from_header(request: Request) -> str | None:
  svc = get_service(request)
  raw = request.headers.get(svc.settings.principal_header)
  principal = (raw or "").strip()
  if not principal or principal == svc.settings.anonymous_principal:
    return None
  return principal


def get_caller(request: Request) -> str:
  principal = _principal_from_header(request)
  if principal is None:
    raise AuthenticationRequired("Not authenticated")
  return principal


def client_ip(request: Request) -> str | None:
  return request.client.host if request.client else None
