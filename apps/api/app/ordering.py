from __future__ import annotations

from typing import Iterable, Protocol, Sequence, TypeVar


class Positioned(Protocol):
  id: int
  position: int


P = TypeVar("P", bound=Positioned)


def by_position(rows: Iterable[P]) -> list[P]:
  # Equal positions only exist transiently after moveCard; id keeps the output stable.
  return sorted(rows, key=lambda r: (r.position, r.id))


def append_position(siblings: Iterable[Positioned]) -> int:
  max_pos = max((s.position for s in siblings), default=None)
  return (max_pos + 1) if max_pos is not None else 0


def shift_down(siblings: Iterable[P]) -> list[P]:
  """Make room at position 0 by moving every sibling one slot down."""
  shifted = []
  for s in siblings:
    s.position += 1
    shifted.append(s)
  return shifted


def apply_order(siblings: Sequence[P], ordered_ids: Iterable[int]) -> list[P]:
  """
  Rewrite sibling positions from a client-supplied id list.

  Ids that are unknown, foreign to this parent, or repeated are skipped. Siblings the
  client did not mention keep their relative order and follow the listed ones, so the
  result is always dense. Returns the rows whose position changed.
  """
  by_id = {s.id: s for s in siblings}
  ordered: list[P] = []
  seen: set[int] = set()
  for sid in ordered_ids:
    row = by_id.get(sid)
    if row is None or sid in seen:
      continue
    seen.add(sid)
    ordered.append(row)
  ordered.extend(s for s in by_position(siblings) if s.id not in seen)
  return _assign(ordered)


def compact(siblings: Sequence[P]) -> list[P]:
  """Close gaps left by a removal. Returns the rows whose position changed."""
  return _assign(by_position(siblings))


def _assign(ordered: list[P]) -> list[P]:
  changed = []
  for idx, row in enumerate(ordered):
    if row.position != idx:
      row.position = idx
      changed.append(row)
  return changed
