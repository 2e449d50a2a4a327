from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.trustedhost import TrustedHostMiddleware

from app.config import Settings, settings as default_settings
from app.errors import KanbanError
from app.rate_limit import RateLimiter
from app.routers.boards import router as boards_router
from app.routers.cards import router as cards_router
from app.routers.columns import router as columns_router
from app.routers.invites import router as invites_router
from app.routers.profiles import router as profiles_router
from app.routers.tags import router as tags_router
from app.service import KanbanService
from app.store import KanbanStore, load_store, save_store

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, service: KanbanService | None = None) -> FastAPI:
  cfg = settings or default_settings
  logging.basicConfig(level=cfg.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

  if service is None:
    store = load_store(cfg.state_file) if cfg.state_file else KanbanStore()
    service = KanbanService(store, settings=cfg)

  app = FastAPI(title="Sprintboard API", version="0.1.0")
  app.state.service = service
  app.state.limiter = RateLimiter()

  @app.exception_handler(KanbanError)
  async def _kanban_error_handler(request: Request, exc: KanbanError) -> JSONResponse:
    logger.debug("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})

  app.add_middleware(
    CORSMiddleware,
    allow_origins=cfg.cors_origin_list(),
    allow_origin_regex=cfg.cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
  )
  app.add_middleware(TrustedHostMiddleware, allowed_hosts=cfg.trusted_host_list())

  app.include_router(boards_router)
  app.include_router(columns_router)
  app.include_router(cards_router)
  app.include_router(tags_router)
  app.include_router(invites_router)
  app.include_router(profiles_router)

  @app.middleware("http")
  async def _security_headers_middleware(request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    return response

  @app.get("/health")
  async def health() -> dict:
    return {"ok": True}

  @app.get("/version")
  async def version() -> dict:
    return {"version": cfg.app_version, "buildSha": cfg.build_sha}

  @app.on_event("shutdown")
  async def _shutdown() -> None:
    if cfg.state_file:
      save_store(app.state.service.store, cfg.state_file)

  return app


app = create_app()
