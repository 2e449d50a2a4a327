from __future__ import annotations

from fastapi import APIRouter, Depends

from app.deps import get_caller, get_service
from app.schemas import IdOut, OkOut, TagIn, TagOut, tag_out
from app.service import KanbanService

router = APIRouter(tags=["tags"])


@router.get("/boards/{board_id}/tags", response_model=list[TagOut])
async def list_tags(board_id: int, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> list[TagOut]:
  return [tag_out(t) for t in svc.get_board_tags(caller, board_id)]


@router.post("/boards/{board_id}/tags", response_model=IdOut)
async def create_tag(
  board_id: int,
  payload: TagIn,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> IdOut:
  return IdOut(id=svc.create_tag(caller, board_id, payload.name, payload.color))


@router.patch("/tags/{tag_id}", response_model=OkOut)
async def update_tag(
  tag_id: int,
  payload: TagIn,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> OkOut:
  return OkOut(ok=svc.update_tag(caller, tag_id, payload.name, payload.color))


@router.delete("/tags/{tag_id}", response_model=OkOut)
async def delete_tag(tag_id: int, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> OkOut:
  return OkOut(ok=svc.delete_tag(caller, tag_id))
