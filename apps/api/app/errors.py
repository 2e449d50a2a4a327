from __future__ import annotations


class KanbanError(Exception):
  """Base for every rejected call. Raised before any store write."""

  code = "error"
  status_code = 400

  def __init__(self, message: str, *, field: str | None = None) -> None:
    super().__init__(message)
    self.message = message
    self.field = field

  def to_detail(self) -> dict:
    detail = {"code": self.code, "message": self.message}
    if self.field:
      detail["field"] = self.field
    return detail


class AuthenticationRequired(KanbanError):
  code = "authentication_required"
  status_code = 401


class AuthorizationDenied(KanbanError):
  code = "authorization_denied"
  status_code = 403


class ValidationFailed(KanbanError):
  code = "validation_failed"
  status_code = 400


class NotFound(KanbanError):
  code = "not_found"
  status_code = 404


class Conflict(KanbanError):
  code = "conflict"
  status_code = 409
