from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

ROLE_OWNER = "owner"
ROLE_MEMBER = "member"


def utcnow() -> datetime:
  return datetime.now(timezone.utc)


@dataclass
class Board:
  id: int
  name: str
  owner_id: str
  created_at: datetime


@dataclass
class Column:
  id: int
  board_id: int
  name: str
  position: int
  created_at: datetime


@dataclass
class Card:
  id: int
  column_id: int
  # Denormalized so cascades and access checks need no column lookup.
  board_id: int
  title: str
  description: str
  position: int
  created_at: datetime
  updated_at: datetime
  tags: list[int] = field(default_factory=list)
  assignee_id: str | None = None


@dataclass
class BoardMember:
  board_id: int
  user_id: str
  role: str
  joined_at: datetime


@dataclass
class Tag:
  id: int
  board_id: int
  name: str
  color: str


@dataclass
class BoardInvite:
  id: int
  board_id: int
  invite_code: str
  created_at: datetime


@dataclass
class UserProfile:
  user_id: str
  username: str
  email: str
  created_at: datetime


@dataclass
class ColumnWithCards:
  column: Column
  cards: list[Card]


@dataclass
class BoardWithDetails:
  board: Board
  columns: list[ColumnWithCards]
  members: list[BoardMember]
  tags: list[Tag]


@dataclass
class InviteDetails:
  board_name: str
  member_count: int


@dataclass
class UserSearchResult:
  user_id: str
  username: str
