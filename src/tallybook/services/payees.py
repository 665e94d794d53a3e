"""Payee management scoped to one owner."""

from __future__ import annotations

import re
from typing import Any, Optional

from ..domain.patches import PayeePatch
from ..domain.values import clean_text, require_name
from ..errors import NotFound, ReferenceInUse, ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories.payee import SQLModelPayeeRepository
from ..infra.repositories.scoped import get_owned, name_taken, transaction_references
from ..logging_config import get_logger
from ..models._common import utcnow
from ..models.payee import Payee
from ..models.transaction import Transaction

logger = get_logger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _email(raw: Any) -> Optional[str]:
    email = clean_text(raw, max_length=255, field="email")
    if email is not None and not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email address", field="email")
    return email


class PayeeService:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory
        self.repo = SQLModelPayeeRepository(session_factory)

    def create_payee(
        self,
        *,
        user_id: int,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Payee:
        name = require_name(name)
        payee = Payee(
            user_id=user_id,
            name=name,
            email=_email(email),
            phone=clean_text(phone, max_length=32, field="phone"),
            address=clean_text(address, max_length=255, field="address"),
        )
        with self.session_factory() as session:
            if name_taken(session, Payee, name, user_id=user_id):
                raise ValidationError("Payee with this name already exists", field="name")
            session.add(payee)
            session.flush()
            logger.info("Payee created", extra={"user_id": user_id, "payee_id": payee.id})
            return payee

    def update_payee(self, *, user_id: int, payee_id: int, patch: PayeePatch) -> Payee:
        if patch.is_empty():
            raise ValidationError("No fields to update")
        with self.session_factory() as session:
            payee = get_owned(session, Payee, payee_id, user_id=user_id)
            if payee is None:
                raise NotFound("Payee not found", field="payee_id")
            if patch.is_set("name"):
                name = require_name(patch.name)
                if name_taken(session, Payee, name, user_id=user_id, exclude_id=payee_id):
                    raise ValidationError("Payee with this name already exists", field="name")
                payee.name = name
            if patch.is_set("email"):
                payee.email = _email(patch.email)
            if patch.is_set("phone"):
                payee.phone = clean_text(patch.phone, max_length=32, field="phone")
            if patch.is_set("address"):
                payee.address = clean_text(patch.address, max_length=255, field="address")
            payee.updated_at = utcnow()
            session.add(payee)
            session.flush()
            return payee

    def delete_payee(self, *, user_id: int, payee_id: int) -> None:
        with self.session_factory() as session:
            payee = get_owned(session, Payee, payee_id, user_id=user_id)
            if payee is None:
                raise NotFound("Payee not found", field="payee_id")
            if transaction_references(session, Transaction.payee_id, payee_id, user_id=user_id):
                raise ReferenceInUse("Cannot delete payee with existing transactions")
            session.delete(payee)
            logger.info("Payee deleted", extra={"user_id": user_id, "payee_id": payee_id})

    def get_payee(self, *, user_id: int, payee_id: int) -> Payee:
        payee = self.repo.get_by_id(payee_id, user_id=user_id)
        if payee is None:
            raise NotFound("Payee not found", field="payee_id")
        return payee

    def list_payees(self, *, user_id: int) -> list[Payee]:
        return self.repo.list_all(user_id=user_id)
