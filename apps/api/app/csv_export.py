from __future__ import annotations

import csv
import io
from typing import Iterable, Sequence

from app.models import Card, Column, Tag
from app.ordering import by_position

CSV_HEADER = ["Title", "Description", "Column", "Tags", "Assignee"]
TAG_SEPARATOR = "; "

# Leading characters spreadsheets treat as the start of a formula.
_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def neutralize_formula(value: str) -> str:
  if value and value[0] in _FORMULA_PREFIXES:
    return "'" + value
  return value


def board_cards_csv(columns: Sequence[Column], cards: Iterable[Card], tags: Iterable[Tag]) -> str:
  tag_names = {t.id: t.name for t in tags}
  cards_by_column: dict[int, list[Card]] = {}
  for c in cards:
    cards_by_column.setdefault(c.column_id, []).append(c)

  buf = io.StringIO(newline="")
  csv.writer(buf, lineterminator="\r\n").writerow(CSV_HEADER)
  w = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\r\n")
  for col in by_position(columns):
    for card in by_position(cards_by_column.get(col.id, [])):
      # tag ids of deleted tags are skipped
      names = [tag_names[tid] for tid in card.tags if tid in tag_names]
      row = [card.title, card.description, col.name, TAG_SEPARATOR.join(names), card.assignee_id or ""]
      w.writerow([neutralize_formula(v) for v in row])
  return buf.getvalue()
