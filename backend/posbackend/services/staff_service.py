# Overview: Staff accounts (the people who ring up sales).

from __future__ import annotations

from sqlalchemy.orm import Session

from ..errors import ConflictError, NotFoundError
from ..models import Staff, STAFF_ROLES
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_staff
from .transaction import scoped_transaction

STAFF_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "role", "is_active"},
    required_on_create={"name", "email", "role"},
    choices={"role": STAFF_ROLES},
)


def _email_taken(session: Session, email: str, exclude_id: int | None = None) -> bool:
    query = session.query(Staff.id).filter(Staff.email == email)
    if exclude_id is not None:
        query = query.filter(Staff.id != exclude_id)
    return query.first() is not None


def list_staff(session: Session, active_only: bool = False) -> list[dict]:
    query = session.query(Staff)
    if active_only:
        query = query.filter(Staff.is_active.is_(True))
    return [s.to_dict() for s in query.order_by(Staff.id.asc()).all()]


def get_staff(session: Session, staff_id: int) -> dict:
    staff = session.get(Staff, staff_id)
    if staff is None:
        raise NotFoundError(f"Staff member with ID {staff_id} not found", kind="staff not found",
                            details={"staff_id": staff_id})
    return staff.to_dict()


def create_staff(session: Session, payload: dict) -> dict:
    patch = validate_payload(model=Staff, payload=payload, policy=STAFF_POLICY, partial=False)
    enforce_rules_staff(patch)
    with scoped_transaction(session):
        if _email_taken(session, patch["email"]):
            raise ConflictError(
                "Staff member with this email already exists",
                kind="duplicate email",
                details={"field": "email", "email": patch["email"]},
            )
        staff = Staff(**patch)
        session.add(staff)
        session.flush()
        result = staff.to_dict()
    return result


def update_staff(session: Session, staff_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Staff, payload=payload, policy=STAFF_POLICY, partial=True)
    enforce_rules_staff(patch)
    with scoped_transaction(session):
        staff = session.get(Staff, staff_id)
        if staff is None:
            raise NotFoundError(f"Staff member with ID {staff_id} not found", kind="staff not found",
                                details={"staff_id": staff_id})
        if patch.get("email") and _email_taken(session, patch["email"], exclude_id=staff_id):
            raise ConflictError(
                f"Email {patch['email']} is already in use by another staff member",
                kind="duplicate email",
                details={"field": "email", "email": patch["email"]},
            )
        for k, v in patch.items():
            setattr(staff, k, v)
        staff.updated_at = utcnow()
        session.flush()
        result = staff.to_dict()
    return result
