from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from app.deps import client_ip, get_caller, get_service
from app.errors import NotFound
from app.rate_limit import rate_limit_or_429
from app.schemas import InviteCodeOut, InviteDetailsOut, InviteOut, JoinOut, OkOut, invite_details_out, invite_out
from app.service import KanbanService

router = APIRouter(tags=["invites"])


@router.post("/boards/{board_id}/invites", response_model=InviteCodeOut)
async def generate_invite(board_id: int, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> InviteCodeOut:
  return InviteCodeOut(code=svc.generate_board_invite(caller, board_id))


@router.get("/boards/{board_id}/invites", response_model=list[InviteOut])
async def list_invites(board_id: int, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> list[InviteOut]:
  return [invite_out(i) for i in svc.get_board_invites(caller, board_id)]


@router.get("/invites/{code}", response_model=InviteDetailsOut)
async def invite_details(code: str, request: Request, svc: KanbanService = Depends(get_service)) -> InviteDetailsOut:
  ip = client_ip(request) or "unknown"
  rate_limit_or_429(
    request.app.state.limiter,
    key=f"invite:lookup:ip:{ip}",
    limit=int(svc.settings.rate_limit_invite_lookup_ip_per_minute),
  )
  details = svc.get_invite_details(code)
  if details is None:
    raise NotFound("Invite not found")
  return invite_details_out(details)


@router.post("/invites/{code}/join", response_model=JoinOut)
async def join_with_code(
  code: str,
  request: Request,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> JoinOut:
  ip = client_ip(request) or "unknown"
  rate_limit_or_429(
    request.app.state.limiter,
    key=f"invite:join:ip:{ip}",
    limit=int(svc.settings.rate_limit_invite_join_ip_per_minute),
  )
  return JoinOut(boardId=svc.join_board_with_code(caller, code))


@router.delete("/invites/{code}", response_model=OkOut)
async def revoke_invite(code: str, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> OkOut:
  return OkOut(ok=svc.revoke_invite(caller, code))
