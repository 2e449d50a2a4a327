from __future__ import annotations

from fastapi import APIRouter, Depends

from app.deps import get_caller, get_service
from app.schemas import CardCreateIn, CardMoveIn, CardReorderIn, CardUpdateIn, IdOut, OkOut
from app.service import KanbanService

router = APIRouter(tags=["cards"])


@router.post("/columns/{column_id}/cards", response_model=IdOut)
async def create_card(
  column_id: int,
  payload: CardCreateIn,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> IdOut:
  card_id = svc.create_card(
    caller,
    column_id,
    payload.title,
    payload.description,
    payload.tagIds,
    payload.assigneeId,
  )
  return IdOut(id=card_id)


@router.put("/cards/{card_id}", response_model=OkOut)
async def update_card(
  card_id: int,
  payload: CardUpdateIn,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> OkOut:
  return OkOut(ok=svc.update_card(caller, card_id, payload.title, payload.description, payload.tagIds, payload.assigneeId))


@router.delete("/cards/{card_id}", response_model=OkOut)
async def delete_card(card_id: int, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> OkOut:
  return OkOut(ok=svc.delete_card(caller, card_id))


@router.post("/cards/{card_id}/move", response_model=OkOut)
async def move_card(
  card_id: int,
  payload: CardMoveIn,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> OkOut:
  return OkOut(ok=svc.move_card(caller, card_id, payload.targetColumnId, payload.position))


@router.post("/columns/{column_id}/cards/reorder", response_model=OkOut)
async def reorder_cards(
  column_id: int,
  payload: CardReorderIn,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> OkOut:
  return OkOut(ok=svc.reorder_cards(caller, column_id, payload.cardIds))
