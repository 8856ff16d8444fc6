# campus_connect/crud/ownership.py
"""
Owner-scoped lookups.

Mutations on owned rows are resolved through a single `id AND owner` predicate.
When that predicate matches nothing, a second lookup on id alone tells the
caller whether the row is missing or belongs to someone else.
"""
import enum
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from campus_connect.exceptions import AuthorizationError, NotFoundError


class MutationOutcome(str, enum.Enum):
    applied = "applied"
    not_found = "not_found"
    not_owner = "not_owner"


@dataclass
class OwnedMutation:
    outcome: MutationOutcome
    row: Optional[Any] = None

    @property
    def applied(self) -> bool:
        return self.outcome == MutationOutcome.applied


def find_owned(db: Session, model, row_id: int, owner_column, owner_id: int) -> OwnedMutation:
    row = db.query(model).filter(model.id == row_id, owner_column == owner_id).first()
    if row is not None:
        return OwnedMutation(MutationOutcome.applied, row)
    exists = db.query(model.id).filter(model.id == row_id).first()
    if exists is None:
        return OwnedMutation(MutationOutcome.not_found)
    return OwnedMutation(MutationOutcome.not_owner)


def raise_for_outcome(result: OwnedMutation, entity: str) -> Any:
    """Return the row for an applied mutation, raise the matching error otherwise."""
    if result.outcome == MutationOutcome.not_found:
        raise NotFoundError(f"{entity} not found")
    if result.outcome == MutationOutcome.not_owner:
        raise AuthorizationError(f"You do not own this {entity.lower()}")
    return result.row
