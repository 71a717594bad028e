"""session_scope commits or rolls back one operator action."""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from billing_kernel.db.engine import get_session_factory, session_scope
from billing_kernel.models.client import LegalEntity


class TestSessionScope:

    def test_rolls_back_and_reraises(self, db_tables, captured_logs):
        name = f"Rolled back {uuid4()}"
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(LegalEntity(name=name, usn_percent=Decimal("6"), created_by_id=uuid4()))
                session.flush()
                raise RuntimeError("operator action failed")

        with session_scope() as session:
            found = session.execute(
                select(LegalEntity.id).where(LegalEntity.name == name)
            ).scalar_one_or_none()
        assert found is None
        assert any(r["message"] == "transaction_rolled_back" for r in captured_logs())

    def test_factory_available_after_init(self, db_tables):
        session = get_session_factory()()
        try:
            assert session.bind is not None
        finally:
            session.close()
