from __future__ import annotations

import json
import logging
from typing import Any

from fastapi.encoders import jsonable_encoder

logger = logging.getLogger("app.audit")


def write_audit(
  *,
  event_type: str,
  entity_type: str,
  entity_id: int | str | None,
  board_id: int | None = None,
  actor_id: str | None = None,
  payload: dict[str, Any] | None = None,
) -> None:
  safe_payload = jsonable_encoder(payload or {})
  logger.info(
    "%s %s=%s board=%s actor=%s %s",
    event_type,
    entity_type,
    entity_id,
    board_id,
    actor_id,
    json.dumps(safe_payload, sort_keys=True, ensure_ascii=False),
    extra={
      "event_type": event_type,
      "entity_type": entity_type,
      "entity_id": entity_id,
      "board_id": board_id,
      "actor_id": actor_id,
      "payload": safe_payload,
    },
  )
