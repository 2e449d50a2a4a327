from __future__ import annotations

from fastapi import APIRouter, Depends

from app.deps import get_caller, get_service
from app.schemas import OkOut, ProfileIn, ProfileOut, UserSearchOut, profile_out, user_search_out
from app.service import KanbanService

router = APIRouter(tags=["profiles"])


@router.put("/profile", response_model=OkOut)
async def set_profile(payload: ProfileIn, caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> OkOut:
  return OkOut(ok=svc.set_user_profile(caller, payload.username, payload.email))


@router.get("/profile", response_model=ProfileOut | None)
async def get_profile(caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> ProfileOut | None:
  p = svc.get_user_profile(caller)
  return profile_out(p) if p else None


@router.get("/profile/exists")
async def has_profile(caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> dict:
  return {"exists": svc.has_user_profile(caller)}


@router.get("/users/lookup", response_model=UserSearchOut | None)
async def lookup_user(q: str = "", caller: str = Depends(get_caller), svc: KanbanService = Depends(get_service)) -> UserSearchOut | None:
  r = svc.lookup_user(caller, q)
  return user_search_out(r) if r else None


@router.get("/users/{principal}/profile", response_model=ProfileOut | None)
async def profile_by_principal(principal: str, svc: KanbanService = Depends(get_service)) -> ProfileOut | None:
  p = svc.get_user_profile_by_principal(principal)
  return profile_out(p) if p else None
