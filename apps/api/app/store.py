from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, TypeVar

from app.models import Board, BoardInvite, BoardMember, Card, Column, Tag, UserProfile

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1
COUNTER_KINDS = ("board", "column", "card", "tag", "invite")

T = TypeVar("T")


class KanbanStore:
  """
  Keyed in-memory collections plus the secondary identifier indexes.

  Notes:
  - Point lookups are O(1) by primary key.
  - "Children of X" queries are full scans filtered by the parent id; fine for
    small/medium boards. A parent-id index would be the next step if that ever hurts.
  - Counters start at 1 and are never rewound, so freed ids are not reused.
  """

  def __init__(self) -> None:
    self.boards: dict[int, Board] = {}
    self.columns: dict[int, Column] = {}
    self.cards: dict[int, Card] = {}
    self.members: dict[tuple[int, str], BoardMember] = {}
    self.tags: dict[int, Tag] = {}
    self.invites: dict[int, BoardInvite] = {}
    self.profiles: dict[str, UserProfile] = {}
    self.username_index: dict[str, str] = {}
    self.email_index: dict[str, str] = {}
    self._next_ids: dict[str, int] = {k: 1 for k in COUNTER_KINDS}

  def next_id(self, kind: str) -> int:
    value = self._next_ids[kind]
    self._next_ids[kind] = value + 1
    return value

  # scans

  @staticmethod
  def _scan(rows: Iterable[T], pred: Callable[[T], bool]) -> list[T]:
    return [r for r in rows if pred(r)]

  def columns_of_board(self, board_id: int) -> list[Column]:
    return self._scan(self.columns.values(), lambda c: c.board_id == board_id)

  def cards_of_column(self, column_id: int) -> list[Card]:
    return self._scan(self.cards.values(), lambda c: c.column_id == column_id)

  def cards_of_board(self, board_id: int) -> list[Card]:
    return self._scan(self.cards.values(), lambda c: c.board_id == board_id)

  def members_of_board(self, board_id: int) -> list[BoardMember]:
    return self._scan(self.members.values(), lambda m: m.board_id == board_id)

  def tags_of_board(self, board_id: int) -> list[Tag]:
    return self._scan(self.tags.values(), lambda t: t.board_id == board_id)

  def invites_of_board(self, board_id: int) -> list[BoardInvite]:
    return self._scan(self.invites.values(), lambda i: i.board_id == board_id)

  def find_invite(self, code: str) -> BoardInvite | None:
    for inv in self.invites.values():
      if inv.invite_code == code:
        return inv
    return None

  def member(self, board_id: int, user_id: str) -> BoardMember | None:
    return self.members.get((board_id, user_id))

  # snapshot

  def to_snapshot(self) -> dict[str, Any]:
    def dt(v: datetime) -> str:
      return v.isoformat()

    return {
      "version": SNAPSHOT_VERSION,
      "counters": dict(self._next_ids),
      "boards": [
        {"id": b.id, "name": b.name, "ownerId": b.owner_id, "createdAt": dt(b.created_at)}
        for b in self.boards.values()
      ],
      "columns": [
        {"id": c.id, "boardId": c.board_id, "name": c.name, "position": c.position, "createdAt": dt(c.created_at)}
        for c in self.columns.values()
      ],
      "cards": [
        {
          "id": c.id,
          "columnId": c.column_id,
          "boardId": c.board_id,
          "title": c.title,
          "description": c.description,
          "tags": list(c.tags),
          "assigneeId": c.assignee_id,
          "position": c.position,
          "createdAt": dt(c.created_at),
          "updatedAt": dt(c.updated_at),
        }
        for c in self.cards.values()
      ],
      "members": [
        {"boardId": m.board_id, "userId": m.user_id, "role": m.role, "joinedAt": dt(m.joined_at)}
        for m in self.members.values()
      ],
      "tags": [{"id": t.id, "boardId": t.board_id, "name": t.name, "color": t.color} for t in self.tags.values()],
      "invites": [
        {"id": i.id, "boardId": i.board_id, "inviteCode": i.invite_code, "createdAt": dt(i.created_at)}
        for i in self.invites.values()
      ],
      "profiles": [
        {"userId": p.user_id, "username": p.username, "email": p.email, "createdAt": dt(p.created_at)}
        for p in self.profiles.values()
      ],
      "usernameIndex": dict(self.username_index),
      "emailIndex": dict(self.email_index),
    }

  @classmethod
  def from_snapshot(cls, data: dict[str, Any]) -> "KanbanStore":
    version = data.get("version")
    if version != SNAPSHOT_VERSION:
      raise ValueError(f"Unsupported snapshot version: {version!r}")
    dt = datetime.fromisoformat
    s = cls()
    for b in data.get("boards", []):
      s.boards[b["id"]] = Board(id=b["id"], name=b["name"], owner_id=b["ownerId"], created_at=dt(b["createdAt"]))
    for c in data.get("columns", []):
      s.columns[c["id"]] = Column(
        id=c["id"], board_id=c["boardId"], name=c["name"], position=c["position"], created_at=dt(c["createdAt"])
      )
    for c in data.get("cards", []):
      s.cards[c["id"]] = Card(
        id=c["id"],
        column_id=c["columnId"],
        board_id=c["boardId"],
        title=c["title"],
        description=c["description"],
        tags=list(c.get("tags") or []),
        assignee_id=c.get("assigneeId"),
        position=c["position"],
        created_at=dt(c["createdAt"]),
        updated_at=dt(c["updatedAt"]),
      )
    for m in data.get("members", []):
      s.members[(m["boardId"], m["userId"])] = BoardMember(
        board_id=m["boardId"], user_id=m["userId"], role=m["role"], joined_at=dt(m["joinedAt"])
      )
    for t in data.get("tags", []):
      s.tags[t["id"]] = Tag(id=t["id"], board_id=t["boardId"], name=t["name"], color=t["color"])
    for i in data.get("invites", []):
      s.invites[i["id"]] = BoardInvite(
        id=i["id"], board_id=i["boardId"], invite_code=i["inviteCode"], created_at=dt(i["createdAt"])
      )
    for p in data.get("profiles", []):
      s.profiles[p["userId"]] = UserProfile(
        user_id=p["userId"], username=p["username"], email=p["email"], created_at=dt(p["createdAt"])
      )
    s.username_index = dict(data.get("usernameIndex") or {})
    s.email_index = dict(data.get("emailIndex") or {})
    counters = data.get("counters") or {}
    for kind in COUNTER_KINDS:
      s._next_ids[kind] = max(1, int(counters.get(kind, 1)))
    return s


def load_store(path: str | Path) -> KanbanStore:
  p = Path(path)
  if not p.exists():
    logger.info("No snapshot at %s; starting with an empty store", p)
    return KanbanStore()
  store = KanbanStore.from_snapshot(json.loads(p.read_text(encoding="utf-8")))
  logger.info("Loaded snapshot from %s (%d boards, %d cards)", p, len(store.boards), len(store.cards))
  return store


def save_store(store: KanbanStore, path: str | Path) -> None:
  p = Path(path)
  p.parent.mkdir(parents=True, exist_ok=True)
  data = json.dumps(store.to_snapshot(), ensure_ascii=False)
  fd, tmp = tempfile.mkstemp(prefix=".snapshot-", suffix=".json", dir=str(p.parent))
  try:
    with os.fdopen(fd, "w", encoding="utf-8") as f:
      f.write(data)
    os.replace(tmp, p)
  except BaseException:
    if os.path.exists(tmp):
      os.unlink(tmp)
    raise
  logger.info("Saved snapshot to %s", p)
