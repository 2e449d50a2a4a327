from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from app.models import (
  Board,
  BoardInvite,
  BoardMember,
  BoardWithDetails,
  Card,
  Column,
  InviteDetails,
  Tag,
  UserProfile,
  UserSearchResult,
)

# Request bodies only check shapes; domain rules live in KanbanService so HTTP and
# direct callers get the same ValidationFailed messages.


class IdOut(BaseModel):
  id: int


class OkOut(BaseModel):
  ok: bool = True


class BoardCreateIn(BaseModel):
  name: str


class BoardUpdateIn(BaseModel):
  name: str


class BoardOut(BaseModel):
  id: int
  name: str
  ownerId: str
  createdAt: datetime


class ColumnCreateIn(BaseModel):
  name: str


class ColumnUpdateIn(BaseModel):
  name: str


class ColumnReorderIn(BaseModel):
  columnIds: list[int]


class ColumnOut(BaseModel):
  id: int
  boardId: int
  name: str
  position: int
  createdAt: datetime


class CardCreateIn(BaseModel):
  title: str
  description: str = ""
  tagIds: list[int] = []
  assigneeId: str | None = None


class CardUpdateIn(BaseModel):
  title: str
  description: str
  tagIds: list[int]
  assigneeId: str | None


class CardMoveIn(BaseModel):
  targetColumnId: int
  position: int


class CardReorderIn(BaseModel):
  cardIds: list[int]


class CardOut(BaseModel):
  id: int
  columnId: int
  boardId: int
  title: str
  description: str
  tags: list[int]
  assigneeId: str | None = None
  position: int
  createdAt: datetime
  updatedAt: datetime


class ColumnWithCardsOut(BaseModel):
  column: ColumnOut
  cards: list[CardOut]


class MemberOut(BaseModel):
  boardId: int
  userId: str
  role: str
  joinedAt: datetime


class MemberAddIn(BaseModel):
  principal: str


class TransferOwnershipIn(BaseModel):
  newOwnerId: str


class TagIn(BaseModel):
  name: str
  color: str


class TagOut(BaseModel):
  id: int
  boardId: int
  name: str
  color: str


class BoardDetailsOut(BaseModel):
  board: BoardOut
  columns: list[ColumnWithCardsOut]
  members: list[MemberOut]
  tags: list[TagOut]


class InviteCodeOut(BaseModel):
  code: str


class InviteOut(BaseModel):
  id: int
  boardId: int
  inviteCode: str
  createdAt: datetime


class InviteDetailsOut(BaseModel):
  boardName: str
  memberCount: int


class JoinOut(BaseModel):
  boardId: int


class ProfileIn(BaseModel):
  username: str
  email: str


class ProfileOut(BaseModel):
  userId: str
  username: str
  email: str
  createdAt: datetime


class UserSearchOut(BaseModel):
  userId: str
  username: str


def board_out(b: Board) -> BoardOut:
  return BoardOut(id=b.id, name=b.name, ownerId=b.owner_id, createdAt=b.created_at)


def column_out(c: Column) -> ColumnOut:
  return ColumnOut(id=c.id, boardId=c.board_id, name=c.name, position=c.position, createdAt=c.created_at)


def card_out(c: Card) -> CardOut:
  return CardOut(
    id=c.id,
    columnId=c.column_id,
    boardId=c.board_id,
    title=c.title,
    description=c.description,
    tags=list(c.tags),
    assigneeId=c.assignee_id,
    position=c.position,
    createdAt=c.created_at,
    updatedAt=c.updated_at,
  )


def member_out(m: BoardMember) -> MemberOut:
  return MemberOut(boardId=m.board_id, userId=m.user_id, role=m.role, joinedAt=m.joined_at)


def tag_out(t: Tag) -> TagOut:
  return TagOut(id=t.id, boardId=t.board_id, name=t.name, color=t.color)


def board_details_out(d: BoardWithDetails) -> BoardDetailsOut:
  return BoardDetailsOut(
    board=board_out(d.board),
    columns=[ColumnWithCardsOut(column=column_out(cw.column), cards=[card_out(c) for c in cw.cards]) for cw in d.columns],
    members=[member_out(m) for m in d.members],
    tags=[tag_out(t) for t in d.tags],
  )


def invite_out(i: BoardInvite) -> InviteOut:
  return InviteOut(id=i.id, boardId=i.board_id, inviteCode=i.invite_code, createdAt=i.created_at)


def invite_details_out(d: InviteDetails) -> InviteDetailsOut:
  return InviteDetailsOut(boardName=d.board_name, memberCount=d.member_count)


def profile_out(p: UserProfile) -> ProfileOut:
  return ProfileOut(userId=p.user_id, username=p.username, email=p.email, createdAt=p.created_at)


def user_search_out(r: UserSearchResult) -> UserSearchOut:
  return UserSearchOut(userId=r.user_id, username=r.username)
