from __future__ import annotations

import re
from datetime import datetime
from typing import Callable, Iterable

from app.audit import write_audit
from app.config import Settings, settings as default_settings
from app.csv_export import board_cards_csv
from app.errors import AuthenticationRequired, AuthorizationDenied, Conflict, NotFound, ValidationFailed
from app.invites import generate_invite_code, normalize_invite_code
from app.models import (
  ROLE_MEMBER,
  ROLE_OWNER,
  Board,
  BoardInvite,
  BoardMember,
  BoardWithDetails,
  Card,
  Column,
  ColumnWithCards,
  InviteDetails,
  Tag,
  UserProfile,
  UserSearchResult,
  utcnow,
)
from app.ordering import append_position, apply_order, by_position, compact, shift_down
from app.store import KanbanStore

DEFAULT_COLUMNS = ("To Do", "In Progress", "Done")

_HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _key(value: str) -> str:
  return (value or "").strip().lower()


class KanbanService:
  """
  Every public operation of the board service.

  Calls run to completion one at a time (the API awaits nothing inside them), so each
  operation is atomic with respect to the others. All checks happen before the first
  write; a raised error leaves the store untouched.
  """

  def __init__(
    self,
    store: KanbanStore | None = None,
    *,
    settings: Settings | None = None,
    clock: Callable[[], datetime] = utcnow,
  ) -> None:
    self.store = store if store is not None else KanbanStore()
    self.settings = settings or default_settings
    self._clock = clock

  # identity gate / authorization

  def _require_caller(self, caller: str | None) -> str:
    principal = (caller or "").strip()
    if not principal or principal == self.settings.anonymous_principal:
      raise AuthenticationRequired("Anonymous callers are not allowed")
    return principal

  def is_member(self, board_id: int, principal: str) -> bool:
    return self.store.member(board_id, principal) is not None

  def is_owner(self, board_id: int, principal: str) -> bool:
    m = self.store.member(board_id, principal)
    return m is not None and m.role == ROLE_OWNER

  def _require_member(self, board_id: int, principal: str) -> None:
    if not self.is_member(board_id, principal):
      raise AuthorizationDenied("No board access")

  def _require_owner(self, board_id: int, principal: str) -> None:
    if not self.is_owner(board_id, principal):
      raise AuthorizationDenied("Only the board owner can do this")

  def _board_or_404(self, board_id: int) -> Board:
    b = self.store.boards.get(board_id)
    if not b:
      raise NotFound("Board not found", field="boardId")
    return b

  def _column_or_404(self, column_id: int) -> Column:
    c = self.store.columns.get(column_id)
    if not c:
      raise NotFound("Column not found", field="columnId")
    return c

  def _card_or_404(self, card_id: int) -> Card:
    c = self.store.cards.get(card_id)
    if not c:
      raise NotFound("Card not found", field="cardId")
    return c

  def _tag_or_404(self, tag_id: int) -> Tag:
    t = self.store.tags.get(tag_id)
    if not t:
      raise NotFound("Tag not found", field="tagId")
    return t

  # validation

  def _text(self, value: str | None, field: str, *, max_length: int, min_length: int = 1) -> str:
    txt = (value or "").strip()
    if not txt:
      raise ValidationFailed(f"{field} is required", field=field)
    if len(txt) < min_length:
      raise ValidationFailed(f"{field} must be at least {min_length} characters", field=field)
    if len(txt) > max_length:
      raise ValidationFailed(f"{field} must be at most {max_length} characters", field=field)
    return txt

  def _description(self, value: str | None) -> str:
    txt = value or ""
    if len(txt) > self.settings.max_card_description_length:
      raise ValidationFailed(
        f"description must be at most {self.settings.max_card_description_length} characters", field="description"
      )
    return txt

  def _color(self, value: str | None) -> str:
    color = (value or "").strip()
    if not _HEX_COLOR_RE.fullmatch(color):
      raise ValidationFailed("color must be a #RRGGBB hex value", field="color")
    return color

  def _board_tag_ids(self, board_id: int, tag_ids: Iterable[int] | None) -> list[int]:
    out: list[int] = []
    for tid in tag_ids or []:
      t = self.store.tags.get(tid)
      if t is None or t.board_id != board_id or tid in out:
        continue
      out.append(tid)
    return out

  def _validate_assignee(self, board_id: int, assignee_id: str | None) -> str | None:
    if assignee_id is None:
      return None
    principal = assignee_id.strip()
    if not principal:
      return None
    if not self.is_member(board_id, principal):
      raise ValidationFailed("Invalid assigneeId (must be a board member)", field="assigneeId")
    return principal

  def _target_principal(self, principal: str | None, field: str) -> str:
    p = (principal or "").strip()
    if not p or p == self.settings.anonymous_principal:
      raise ValidationFailed(f"{field} must be a non-anonymous principal", field=field)
    return p

  # boards

  def create_board(self, caller: str | None, name: str) -> int:
    me = self._require_caller(caller)
    name = self._text(name, "name", max_length=self.settings.max_board_name_length)
    now = self._clock()
    b = Board(id=self.store.next_id("board"), name=name, owner_id=me, created_at=now)
    self.store.boards[b.id] = b
    self.store.members[(b.id, me)] = BoardMember(board_id=b.id, user_id=me, role=ROLE_OWNER, joined_at=now)
    for idx, col_name in enumerate(DEFAULT_COLUMNS):
      col = Column(id=self.store.next_id("column"), board_id=b.id, name=col_name, position=idx, created_at=now)
      self.store.columns[col.id] = col
    write_audit(event_type="board.created", entity_type="Board", entity_id=b.id, board_id=b.id, actor_id=me, payload={"name": name})
    return b.id

  def get_my_boards(self, caller: str | None) -> list[Board]:
    me = self._require_caller(caller)
    board_ids = {m.board_id for m in self.store.members.values() if m.user_id == me}
    return sorted((self.store.boards[bid] for bid in board_ids if bid in self.store.boards), key=lambda b: b.id)

  def get_board(self, caller: str | None, board_id: int) -> BoardWithDetails | None:
    me = self._require_caller(caller)
    b = self.store.boards.get(board_id)
    if b is None:
      return None
    self._require_member(board_id, me)
    cards_by_column: dict[int, list[Card]] = {}
    for card in self.store.cards_of_board(board_id):
      cards_by_column.setdefault(card.column_id, []).append(card)
    columns = [
      ColumnWithCards(column=col, cards=by_position(cards_by_column.get(col.id, [])))
      for col in by_position(self.store.columns_of_board(board_id))
    ]
    return BoardWithDetails(
      board=b,
      columns=columns,
      members=self._sorted_members(board_id),
      tags=sorted(self.store.tags_of_board(board_id), key=lambda t: t.id),
    )

  def update_board(self, caller: str | None, board_id: int, name: str) -> bool:
    me = self._require_caller(caller)
    b = self._board_or_404(board_id)
    self._require_owner(board_id, me)
    name = self._text(name, "name", max_length=self.settings.max_board_name_length)
    b.name = name
    write_audit(event_type="board.updated", entity_type="Board", entity_id=b.id, board_id=b.id, actor_id=me, payload={"name": name})
    return True

  def delete_board(self, caller: str | None, board_id: int) -> bool:
    me = self._require_caller(caller)
    self._board_or_404(board_id)
    self._require_owner(board_id, me)
    del self.store.boards[board_id]
    # Independent scans per collection; there is no multi-collection rollback.
    removed = {
      "columns": self._drop(self.store.columns, lambda c: c.board_id == board_id),
      "cards": self._drop(self.store.cards, lambda c: c.board_id == board_id),
      "members": self._drop(self.store.members, lambda m: m.board_id == board_id),
      "tags": self._drop(self.store.tags, lambda t: t.board_id == board_id),
      "invites": self._drop(self.store.invites, lambda i: i.board_id == board_id),
    }
    write_audit(event_type="board.deleted", entity_type="Board", entity_id=board_id, board_id=board_id, actor_id=me, payload=removed)
    return True

  @staticmethod
  def _drop(collection: dict, pred: Callable) -> int:
    keys = [k for k, row in collection.items() if pred(row)]
    for k in keys:
      del collection[k]
    return len(keys)

  # columns

  def create_column(self, caller: str | None, board_id: int, name: str) -> int:
    me = self._require_caller(caller)
    self._board_or_404(board_id)
    self._require_member(board_id, me)
    name = self._text(name, "name", max_length=self.settings.max_column_name_length)
    col = Column(
      id=self.store.next_id("column"),
      board_id=board_id,
      name=name,
      position=append_position(self.store.columns_of_board(board_id)),
      created_at=self._clock(),
    )
    self.store.columns[col.id] = col
    write_audit(
      event_type="column.created", entity_type="Column", entity_id=col.id, board_id=board_id, actor_id=me,
      payload={"name": name, "position": col.position},
    )
    return col.id

  def update_column(self, caller: str | None, column_id: int, name: str) -> bool:
    me = self._require_caller(caller)
    col = self._column_or_404(column_id)
    self._require_member(col.board_id, me)
    col.name = self._text(name, "name", max_length=self.settings.max_column_name_length)
    write_audit(event_type="column.updated", entity_type="Column", entity_id=col.id, board_id=col.board_id, actor_id=me, payload={"name": col.name})
    return True

  def delete_column(self, caller: str | None, column_id: int) -> bool:
    me = self._require_caller(caller)
    col = self._column_or_404(column_id)
    self._require_member(col.board_id, me)
    del self.store.columns[column_id]
    removed_cards = self._drop(self.store.cards, lambda c: c.column_id == column_id)
    compact(self.store.columns_of_board(col.board_id))
    write_audit(
      event_type="column.deleted", entity_type="Column", entity_id=column_id, board_id=col.board_id, actor_id=me,
      payload={"name": col.name, "cards": removed_cards},
    )
    return True

  def reorder_columns(self, caller: str | None, board_id: int, column_ids: list[int]) -> bool:
    me = self._require_caller(caller)
    self._board_or_404(board_id)
    self._require_member(board_id, me)
    apply_order(self.store.columns_of_board(board_id), column_ids)
    write_audit(event_type="columns.reordered", entity_type="Board", entity_id=board_id, board_id=board_id, actor_id=me, payload={"columnIds": column_ids})
    return True

  # cards

  def create_card(
    self,
    caller: str | None,
    column_id: int,
    title: str,
    description: str = "",
    tag_ids: list[int] | None = None,
    assignee_id: str | None = None,
  ) -> int:
    me = self._require_caller(caller)
    col = self._column_or_404(column_id)
    self._require_member(col.board_id, me)
    title = self._text(title, "title", max_length=self.settings.max_card_title_length)
    description = self._description(description)
    assignee = self._validate_assignee(col.board_id, assignee_id)
    tags = self._board_tag_ids(col.board_id, tag_ids)

    # Newest card goes on top.
    shift_down(self.store.cards_of_column(column_id))
    now = self._clock()
    card = Card(
      id=self.store.next_id("card"),
      column_id=column_id,
      board_id=col.board_id,
      title=title,
      description=description,
      tags=tags,
      assignee_id=assignee,
      position=0,
      created_at=now,
      updated_at=now,
    )
    self.store.cards[card.id] = card
    write_audit(
      event_type="card.created", entity_type="Card", entity_id=card.id, board_id=card.board_id, actor_id=me,
      payload={"title": title, "columnId": column_id},
    )
    return card.id

  def update_card(
    self,
    caller: str | None,
    card_id: int,
    title: str,
    description: str = "",
    tag_ids: list[int] | None = None,
    assignee_id: str | None = None,
  ) -> bool:
    me = self._require_caller(caller)
    card = self._card_or_404(card_id)
    self._require_member(card.board_id, me)
    title = self._text(title, "title", max_length=self.settings.max_card_title_length)
    description = self._description(description)
    new_assignee = (assignee_id or "").strip() or None
    if new_assignee != card.assignee_id:
      new_assignee = self._validate_assignee(card.board_id, new_assignee)
    tags = self._board_tag_ids(card.board_id, tag_ids)

    card.title = title
    card.description = description
    card.tags = tags
    card.assignee_id = new_assignee
    card.updated_at = self._clock()
    write_audit(
      event_type="card.updated", entity_type="Card", entity_id=card.id, board_id=card.board_id, actor_id=me,
      payload={"title": title, "tags": tags, "assigneeId": new_assignee, "description": description[:500]},
    )
    return True

  def delete_card(self, caller: str | None, card_id: int) -> bool:
    me = self._require_caller(caller)
    card = self._card_or_404(card_id)
    self._require_member(card.board_id, me)
    del self.store.cards[card_id]
    compact(self.store.cards_of_column(card.column_id))
    write_audit(event_type="card.deleted", entity_type="Card", entity_id=card_id, board_id=card.board_id, actor_id=me, payload={"title": card.title})
    return True

  def move_card(self, caller: str | None, card_id: int, target_column_id: int, position: int) -> bool:
    """
    Put a card in `target_column_id` at `position` exactly as given.

    Siblings in the source and target columns are not renumbered; callers follow up with
    reorder_cards when they need dense positions again.
    """
    me = self._require_caller(caller)
    card = self._card_or_404(card_id)
    self._require_member(card.board_id, me)
    target = self._column_or_404(target_column_id)
    if target.board_id != card.board_id:
      raise ValidationFailed("Target column belongs to another board", field="targetColumnId")
    if position < 0:
      raise ValidationFailed("position must be >= 0", field="position")
    from_column = card.column_id
    card.column_id = target.id
    card.position = position
    card.updated_at = self._clock()
    write_audit(
      event_type="card.moved", entity_type="Card", entity_id=card.id, board_id=card.board_id, actor_id=me,
      payload={"fromColumnId": from_column, "toColumnId": target.id, "position": position},
    )
    return True

  def reorder_cards(self, caller: str | None, column_id: int, card_ids: list[int]) -> bool:
    me = self._require_caller(caller)
    col = self._column_or_404(column_id)
    self._require_member(col.board_id, me)
    changed = apply_order(self.store.cards_of_column(column_id), card_ids)
    now = self._clock()
    for card in changed:
      card.updated_at = now
    write_audit(
      event_type="cards.reordered", entity_type="Column", entity_id=column_id, board_id=col.board_id, actor_id=me,
      payload={"cardIds": card_ids, "changed": len(changed)},
    )
    return True

  # invites

  def generate_board_invite(self, caller: str | None, board_id: int) -> str:
    me = self._require_caller(caller)
    self._board_or_404(board_id)
    self._require_owner(board_id, me)
    now = self._clock()
    invite_id = self.store.next_id("invite")
    ts_ns = int(now.timestamp()) * 1_000_000_000 + now.microsecond * 1_000
    inv = BoardInvite(id=invite_id, board_id=board_id, invite_code=generate_invite_code(ts_ns, invite_id), created_at=now)
    self.store.invites[inv.id] = inv
    write_audit(event_type="invite.created", entity_type="BoardInvite", entity_id=inv.id, board_id=board_id, actor_id=me, payload={})
    return inv.invite_code

  def get_board_invites(self, caller: str | None, board_id: int) -> list[BoardInvite]:
    me = self._require_caller(caller)
    self._board_or_404(board_id)
    self._require_owner(board_id, me)
    return sorted(self.store.invites_of_board(board_id), key=lambda i: i.id)

  def revoke_invite(self, caller: str | None, code: str) -> bool:
    me = self._require_caller(caller)
    inv = self.store.find_invite(normalize_invite_code(code))
    if inv is None:
      raise NotFound("Invite not found", field="code")
    self._require_owner(inv.board_id, me)
    del self.store.invites[inv.id]
    write_audit(event_type="invite.revoked", entity_type="BoardInvite", entity_id=inv.id, board_id=inv.board_id, actor_id=me, payload={})
    return True

  def get_invite_details(self, code: str) -> InviteDetails | None:
    # Public: only the board name and head count are revealed.
    inv = self.store.find_invite(normalize_invite_code(code))
    if inv is None:
      return None
    b = self.store.boards.get(inv.board_id)
    if b is None:
      return None
    return InviteDetails(board_name=b.name, member_count=len(self.store.members_of_board(b.id)))

  def join_board_with_code(self, caller: str | None, code: str) -> int:
    me = self._require_caller(caller)
    inv = self.store.find_invite(normalize_invite_code(code))
    if inv is None:
      raise NotFound("Invalid or already used invite code", field="code")
    if inv.board_id not in self.store.boards:
      raise NotFound("Board not found", field="boardId")
    if self.is_member(inv.board_id, me):
      raise Conflict("Already a member of this board")
    self.store.members[(inv.board_id, me)] = BoardMember(board_id=inv.board_id, user_id=me, role=ROLE_MEMBER, joined_at=self._clock())
    del self.store.invites[inv.id]
    write_audit(event_type="invite.consumed", entity_type="BoardInvite", entity_id=inv.id, board_id=inv.board_id, actor_id=me, payload={})
    return inv.board_id

  # members

  def _sorted_members(self, board_id: int) -> list[BoardMember]:
    return sorted(self.store.members_of_board(board_id), key=lambda m: (m.joined_at, m.role != ROLE_OWNER))

  def invite_user_to_board(self, caller: str | None, board_id: int, target: str) -> bool:
    me = self._require_caller(caller)
    self._board_or_404(board_id)
    self._require_owner(board_id, me)
    principal = self._target_principal(target, "principal")
    if self.is_member(board_id, principal):
      raise Conflict("User is already a member of this board")
    self.store.members[(board_id, principal)] = BoardMember(board_id=board_id, user_id=principal, role=ROLE_MEMBER, joined_at=self._clock())
    write_audit(event_type="member.added", entity_type="BoardMember", entity_id=principal, board_id=board_id, actor_id=me, payload={})
    return True

  def remove_member(self, caller: str | None, board_id: int, target: str) -> bool:
    me = self._require_caller(caller)
    self._board_or_404(board_id)
    self._require_owner(board_id, me)
    principal = (target or "").strip()
    m = self.store.member(board_id, principal)
    if m is None:
      raise NotFound("User is not a member of this board", field="principal")
    if m.role == ROLE_OWNER:
      raise Conflict("The owner cannot be removed; transfer ownership first")
    del self.store.members[(board_id, principal)]
    write_audit(event_type="member.removed", entity_type="BoardMember", entity_id=principal, board_id=board_id, actor_id=me, payload={})
    return True

  def get_board_members(self, caller: str | None, board_id: int) -> list[BoardMember]:
    me = self._require_caller(caller)
    self._board_or_404(board_id)
    self._require_member(board_id, me)
    return self._sorted_members(board_id)

  def get_board_member_profiles(self, caller: str | None, board_id: int) -> list[UserProfile]:
    members = self.get_board_members(caller, board_id)
    return [self.store.profiles[m.user_id] for m in members if m.user_id in self.store.profiles]

  def leave_board(self, caller: str | None, board_id: int) -> bool:
    me = self._require_caller(caller)
    self._board_or_404(board_id)
    self._require_member(board_id, me)
    if self.is_owner(board_id, me):
      raise Conflict("The owner cannot leave; transfer ownership or delete the board")
    del self.store.members[(board_id, me)]
    write_audit(event_type="member.left", entity_type="BoardMember", entity_id=me, board_id=board_id, actor_id=me, payload={})
    return True

  def transfer_ownership(self, caller: str | None, board_id: int, new_owner: str) -> bool:
    me = self._require_caller(caller)
    b = self._board_or_404(board_id)
    self._require_owner(board_id, me)
    principal = (new_owner or "").strip()
    if principal == me:
      raise ValidationFailed("You already own this board", field="newOwnerId")
    target = self.store.member(board_id, principal)
    if target is None:
      raise NotFound("New owner must be a board member", field="newOwnerId")
    # demote and promote together so there is always exactly one owner
    self.store.members[(board_id, me)].role = ROLE_MEMBER
    target.role = ROLE_OWNER
    b.owner_id = principal
    write_audit(event_type="board.ownership.transferred", entity_type="Board", entity_id=board_id, board_id=board_id, actor_id=me, payload={"newOwnerId": principal})
    return True

  # tags

  def create_tag(self, caller: str | None, board_id: int, name: str, color: str) -> int:
    me = self._require_caller(caller)
    self._board_or_404(board_id)
    self._require_member(board_id, me)
    name = self._text(name, "name", max_length=self.settings.max_tag_name_length)
    color = self._color(color)
    t = Tag(id=self.store.next_id("tag"), board_id=board_id, name=name, color=color)
    self.store.tags[t.id] = t
    write_audit(event_type="tag.created", entity_type="Tag", entity_id=t.id, board_id=board_id, actor_id=me, payload={"name": name, "color": color})
    return t.id

  def update_tag(self, caller: str | None, tag_id: int, name: str, color: str) -> bool:
    me = self._require_caller(caller)
    t = self._tag_or_404(tag_id)
    self._require_member(t.board_id, me)
    name = self._text(name, "name", max_length=self.settings.max_tag_name_length)
    color = self._color(color)
    t.name = name
    t.color = color
    write_audit(event_type="tag.updated", entity_type="Tag", entity_id=t.id, board_id=t.board_id, actor_id=me, payload={"name": name, "color": color})
    return True

  def delete_tag(self, caller: str | None, tag_id: int) -> bool:
    me = self._require_caller(caller)
    t = self._tag_or_404(tag_id)
    self._require_member(t.board_id, me)
    # card.tags keeps the id; readers skip unknown tags
    del self.store.tags[tag_id]
    write_audit(event_type="tag.deleted", entity_type="Tag", entity_id=tag_id, board_id=t.board_id, actor_id=me, payload={"name": t.name})
    return True

  def get_board_tags(self, caller: str | None, board_id: int) -> list[Tag]:
    me = self._require_caller(caller)
    self._board_or_404(board_id)
    self._require_member(board_id, me)
    return sorted(self.store.tags_of_board(board_id), key=lambda t: t.id)

  # profiles

  def set_user_profile(self, caller: str | None, username: str, email: str) -> bool:
    me = self._require_caller(caller)
    username = self._text(
      username,
      "username",
      min_length=self.settings.min_username_length,
      max_length=self.settings.max_username_length,
    )
    email = self._text(email, "email", max_length=self.settings.max_email_length)
    if "@" not in email:
      raise ValidationFailed("email must be a valid address", field="email")
    ukey, ekey = _key(username), _key(email)
    owner = self.store.username_index.get(ukey)
    if owner is not None and owner != me:
      raise Conflict("Username is already taken", field="username")
    owner = self.store.email_index.get(ekey)
    if owner is not None and owner != me:
      raise Conflict("Email is already registered", field="email")

    existing = self.store.profiles.get(me)
    if existing is not None:
      self.store.username_index.pop(_key(existing.username), None)
      self.store.email_index.pop(_key(existing.email), None)
    self.store.profiles[me] = UserProfile(
      user_id=me,
      username=username,
      email=email,
      created_at=existing.created_at if existing is not None else self._clock(),
    )
    self.store.username_index[ukey] = me
    self.store.email_index[ekey] = me
    write_audit(
      event_type="profile.updated" if existing else "profile.created", entity_type="UserProfile", entity_id=me, actor_id=me,
      payload={"username": username},
    )
    return True

  def get_user_profile(self, caller: str | None) -> UserProfile | None:
    me = self._require_caller(caller)
    return self.store.profiles.get(me)

  def has_user_profile(self, caller: str | None) -> bool:
    me = self._require_caller(caller)
    return me in self.store.profiles

  def lookup_user(self, caller: str | None, search_text: str) -> UserSearchResult | None:
    self._require_caller(caller)
    key = _key(search_text)
    if not key:
      return None
    principal = self.store.username_index.get(key) or self.store.email_index.get(key)
    if principal is None:
      return None
    p = self.store.profiles.get(principal)
    if p is None:
      return None
    return UserSearchResult(user_id=p.user_id, username=p.username)

  def get_user_profile_by_principal(self, principal: str) -> UserProfile | None:
    return self.store.profiles.get((principal or "").strip())

  # export

  def export_board_csv(self, caller: str | None, board_id: int) -> str:
    me = self._require_caller(caller)
    self._board_or_404(board_id)
    self._require_member(board_id, me)
    return board_cards_csv(
      self.store.columns_of_board(board_id),
      self.store.cards_of_board(board_id),
      self.store.tags_of_board(board_id),
    )
