from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from app.deps import get_caller, get_service
from app.errors import NotFound
from app.schemas import (
  BoardCreateIn,
  BoardDetailsOut,
  BoardOut,
  BoardUpdateIn,
  IdOut,
  MemberAddIn,
  MemberOut,
  OkOut,
  ProfileOut,
  TransferOwnershipIn,
  board_details_out,
  board_out,
  member_out,
  profile_out,
)
from app.service import KanbanService

router = APIRouter(prefix="/boards", tags=["boards"])


@router.get("", response_model=list[BoardOut])
async def list_boards(caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> list[BoardOut]:
  return [board_out(b) for b in svc.get_my_boards(caller)]


@router.post("", response_model=IdOut)
async def create_board(payload: BoardCreateIn, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> IdOut:
  return IdOut(id=svc.create_board(caller, payload.name))


@router.get("/{board_id}", response_model=BoardDetailsOut)
async def get_board(board_id: int, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> BoardDetailsOut:
  details = svc.get_board(caller, board_id)
  if details is None:
    raise NotFound("Board not found")
  return board_details_out(details)


@router.patch("/{board_id}", response_model=OkOut)
async def update_board(
  board_id: int,
  payload: BoardUpdateIn,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> OkOut:
  return OkOut(ok=svc.update_board(caller, board_id, payload.name))


@router.delete("/{board_id}", response_model=OkOut)
async def delete_board(board_id: int, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> OkOut:
  return OkOut(ok=svc.delete_board(caller, board_id))


@router.get("/{board_id}/export.csv")
async def export_board_csv(board_id: int, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> Response:
  text = svc.export_board_csv(caller, board_id)
  return Response(
    content=text.encode("utf-8"),
    media_type="text/csv; charset=utf-8",
    headers={"Content-Disposition": f'attachment; filename="board_{board_id}.csv"'},
  )


@router.get("/{board_id}/members", response_model=list[MemberOut])
async def list_members(board_id: int, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> list[MemberOut]:
  return [member_out(m) for m in svc.get_board_members(caller, board_id)]


@router.get("/{board_id}/members/profiles", response_model=list[ProfileOut])
async def list_member_profiles(
  board_id: int,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> list[ProfileOut]:
  return [profile_out(p) for p in svc.get_board_member_profiles(caller, board_id)]


@router.post("/{board_id}/members", response_model=OkOut)
async def add_member(
  board_id: int,
  payload: MemberAddIn,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> OkOut:
  return OkOut(ok=svc.invite_user_to_board(caller, board_id, payload.principal))


@router.delete("/{board_id}/members/{principal}", response_model=OkOut)
async def remove_member(
  board_id: int,
  principal: str,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> OkOut:
  return OkOut(ok=svc.remove_member(caller, board_id, principal))


@router.post("/{board_id}/leave", response_model=OkOut)
async def leave_board(board_id: int, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> OkOut:
  return OkOut(ok=svc.leave_board(caller, board_id))


@router.post("/{board_id}/transfer-ownership", response_model=OkOut)
async def transfer_ownership(
  board_id: int,
  payload: TransferOwnershipIn,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> OkOut:
  return OkOut(ok=svc.transfer_ownership(caller, board_id, payload.newOwnerId))
