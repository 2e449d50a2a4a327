from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

from app.config import Settings
from app.main import create_app
from app.service import KanbanService
from app.store import KanbanStore

ALICE = "aaaaa-aa"
BOB = "bbbbb-bb"
CAROL = "ccccc-cc"
ANONYMOUS = "2vxsx-fae"


class TickClock:
  """Deterministic clock: every call is one millisecond after the previous one."""

  def __init__(self) -> None:
    self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

  def __call__(self) -> datetime:
    self.now = self.now + timedelta(milliseconds=1)
    return self.now


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
  return Settings(state_file=None, log_level="DEBUG")


@pytest.fixture
def svc(test_settings: Settings) -> KanbanService:
  return KanbanService(KanbanStore(), settings=test_settings, clock=TickClock())


@pytest.fixture
def app(test_settings: Settings, svc: KanbanService):
  return create_app(settings=test_settings, service=svc)


@pytest.fixture
async def client(app) -> AsyncClient:
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c


def as_user(principal: str) -> dict[str, str]:
  return {"X-Principal": principal}


async def create_board(client: AsyncClient, principal: str, name: str = "Sprint 1") -> int:
  res = await client.post("/boards", json={"name": name}, headers=as_user(principal))
  assert res.status_code == 200, res.text
  return res.json()["id"]


async def board_columns(client: AsyncClient, principal: str, board_id: int) -> list[dict]:
  res = await client.get(f"/boards/{board_id}", headers=as_user(principal))
  assert res.status_code == 200, res.text
  return res.json()["columns"]
