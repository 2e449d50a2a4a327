from __future__ import annotations

from fastapi import APIRouter, Depends

from app.deps import get_caller, get_service
from app.schemas import ColumnCreateIn, ColumnReorderIn, ColumnUpdateIn, IdOut, OkOut
from app.service import KanbanService

router = APIRouter(tags=["columns"])


@router.post("/boards/{board_id}/columns", response_model=IdOut)
async def create_column(
  board_id: int,
  payload: ColumnCreateIn,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> IdOut:
  return IdOut(id=svc.create_column(caller, board_id, payload.name))


@router.patch("/columns/{column_id}", response_model=OkOut)
async def update_column(
  column_id: int,
  payload: ColumnUpdateIn,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> OkOut:
  return OkOut(ok=svc.update_column(caller, column_id, payload.name))


@router.delete("/columns/{column_id}", response_model=OkOut)
async def delete_column(column_id: int, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> OkOut:
  return OkOut(ok=svc.delete_column(caller, column_id))


@router.post("/boards/{board_id}/columns/reorder", response_model=OkOut)
async def reorder_columns(
  board_id: int,
  payload: ColumnReorderIn,
  caller: str = Depends(get_caller),
  svc: KanbanService = Depends(get_service),
) -> OkOut:
  return OkOut(ok=svc.reorder_columns(caller, board_id, payload.columnIds))
