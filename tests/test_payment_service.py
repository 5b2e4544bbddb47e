from unittest.mock import MagicMock, patch

import pytest
from sqlmodel import Session, select

from app.database import engine
from app.models.purchase import Purchase
from app.services.payment_service import (
    amount_covers,
    claim_confirmation,
    classify_book_type,
    mark_refunded,
    record_purchase,
)


@pytest.mark.parametrize("label,client_type,bundle,expected", [
    ("Bundle", "ebook", False, "bundle"),
    (" hardcopy book ", None, False, "hardcopy"),
    ("something else", "hardcopy", False, "hardcopy"),
    (None, None, True, "bundle"),
    (None, None, False, "ebook"),
    ("the bundle deal", None, False, "ebook"),
])
def test_classify_book_type(label, client_type, bundle, expected):
    assert classify_book_type(label, client_type, bundle) == expected


def test_amount_guard_uses_minor_units():
    assert amount_covers("ebook", 8900)
    assert not amount_covers("ebook", 8899)
    assert not amount_covers("hardcopy", 8900)
    assert amount_covers("hardcopy", 9900)


def _record(session, **overrides):
    values = dict(
        reference="ref_race",
        email="buyer@example.com",
        book_type="ebook",
        amount=89,
        currency="GHS",
    )
    values.update(overrides)
    return record_purchase(session, **values)


def test_record_purchase_once(session):
    first, created = _record(session)
    second, created_again = _record(session, source="webhook")

    assert created is True
    assert created_again is False
    assert second.id == first.id
    assert second.source == "verify"


def test_concurrent_insert_loses_gracefully(session):
    # the other path commits between our existence check and our insert
    with Session(engine) as other:
        _record(other, source="webhook")

    real_exec = session.exec
    calls = []

    def exec_missing_first(statement, *args, **kwargs):
        if not calls:
            calls.append(statement)
            return MagicMock(first=lambda: None)
        return real_exec(statement, *args, **kwargs)

    with patch.object(session, "exec", side_effect=exec_missing_first):
        purchase, created = _record(session)

    assert created is False
    assert purchase.source == "webhook"
    assert len(session.exec(select(Purchase)).all()) == 1


def test_mark_refunded_only_once(session):
    _record(session)

    assert mark_refunded(session, "ref_race").status == "refunded"
    assert mark_refunded(session, "ref_race") is None
    assert mark_refunded(session, "unknown") is None


def test_timestamps_are_timezone_aware(session):
    purchase, created = _record(session)

    assert created is True
    assert Purchase(reference="x", email="e", book_type="ebook", amount=1).created_at.tzinfo is not None
    assert session.exec(select(Purchase)).one().created_at is not None


def test_confirmation_is_claimed_once(session):
    purchase, _ = _record(session)

    assert purchase.confirmation_sent_at is None
    assert claim_confirmation(session, purchase) is True
    assert purchase.confirmation_sent_at is not None
    assert claim_confirmation(session, purchase) is False

    with Session(engine) as other:
        row = other.exec(select(Purchase)).one()
        assert claim_confirmation(other, row) is False
