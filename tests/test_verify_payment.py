from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import pytest
import requests
from sqlmodel import select

from app.config import settings
from app.main import app
from app.models.purchase import Purchase
from app.services.download_links import verify_download_link
from app.services.paystack_client import PaystackClient, get_paystack_client


def _transaction(
    reference="ref_123",
    status="success",
    amount=8900,
    currency="GHS",
    email="Buyer@Example.com",
    custom_fields=None,
):
    return {
        "reference": reference,
        "status": status,
        "amount": amount,
        "currency": currency,
        "customer": {"email": email, "first_name": "Ama", "last_name": "Mensah"},
        "metadata": {"custom_fields": custom_fields or []},
    }


def _response(body, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    return response


@pytest.fixture
def paystack():
    """PaystackClient over a fake HTTP session; set .get.return_value per test."""
    http = MagicMock()
    http.get.return_value = _response({"status": True, "message": "ok", "data": _transaction()})
    client = PaystackClient("sk_test_paystack_secret", http=http)
    app.dependency_overrides[get_paystack_client] = lambda: client
    yield http
    app.dependency_overrides.pop(get_paystack_client, None)


def test_successful_ebook_purchase(client, session, paystack, sent_emails):
    res = client.post("/verify-payment", json={
        "reference": "ref_123",
        "email": "buyer@example.com",
        "name": "Ama Mensah",
        "bookType": "ebook",
    })

    assert res.status_code == 200, res.text
    body = res.json()
    assert body["success"] is True
    assert body["bookType"] == "ebook"
    assert body["emailSent"] is True
    assert body["downloadUrl"].startswith("https://author.example/download?")

    args, kwargs = paystack.get.call_args
    assert args[0].endswith("/transaction/verify/ref_123")
    assert kwargs["headers"]["Authorization"] == "Bearer sk_test_paystack_secret"
    assert kwargs["timeout"] == settings.http_timeout_seconds

    purchase = session.exec(select(Purchase)).one()
    assert purchase.reference == "ref_123"
    assert purchase.email == "buyer@example.com"
    assert purchase.amount == 89
    assert purchase.source == "verify"

    assert sent_emails.call_args.kwargs["to"] == "buyer@example.com"


def test_identity_comes_from_gateway_not_body(client, paystack, sent_emails):
    res = client.post("/verify-payment", json={
        "reference": "ref_123",
        "email": "attacker@example.com",
        "bookType": "ebook",
    })

    assert res.status_code == 200
    query = parse_qs(urlparse(res.json()["downloadUrl"]).query)
    assert query["email"] == ["buyer@example.com"]

    link = verify_download_link(
        query["email"][0], query["product"][0], query["expires"][0], query["sig"][0]
    )
    assert link.product == "book"
    assert sent_emails.call_args.kwargs["to"] == "buyer@example.com"


def test_failed_transaction_issues_nothing(client, session, paystack, sent_emails):
    paystack.get.return_value = _response(
        {"status": True, "message": "ok", "data": _transaction(status="abandoned")}
    )

    res = client.post("/verify-payment", json={"reference": "ref_123", "bookType": "ebook"})

    assert res.status_code == 400
    body = res.json()
    assert body == {
        "success": False,
        "message": "Payment verification failed",
        "details": "Transaction status: abandoned",
    }
    assert session.exec(select(Purchase)).all() == []
    sent_emails.assert_not_called()


def test_gateway_rejection_is_declined(client, paystack):
    paystack.get.return_value = _response(
        {"status": False, "message": "Transaction reference not found"}, status_code=400
    )

    res = client.post("/verify-payment", json={"reference": "nope"})

    assert res.status_code == 400
    assert res.json()["details"] == "Transaction reference not found"


def test_gateway_unreachable_is_declined(client, paystack):
    paystack.get.side_effect = requests.ConnectionError("boom")

    res = client.post("/verify-payment", json={"reference": "ref_123"})

    assert res.status_code == 400
    assert res.json()["success"] is False


def test_underpaid_ebook_is_declined(client, session, paystack, sent_emails):
    paystack.get.return_value = _response(
        {"status": True, "message": "ok", "data": _transaction(amount=100)}
    )

    res = client.post("/verify-payment", json={"reference": "ref_123", "bookType": "ebook"})

    assert res.status_code == 400
    assert session.exec(select(Purchase)).all() == []


def test_wrong_currency_is_declined(client, paystack):
    paystack.get.return_value = _response(
        {"status": True, "message": "ok", "data": _transaction(currency="NGN")}
    )

    res = client.post("/verify-payment", json={"reference": "ref_123"})

    assert res.status_code == 400


def test_hardcopy_has_no_download_url(client, session, paystack, sent_emails):
    paystack.get.return_value = _response({
        "status": True,
        "message": "ok",
        "data": _transaction(amount=9900),
    })

    res = client.post("/verify-payment", json={
        "reference": "ref_123",
        "bookType": "hardcopy",
        "phone": "024 000 0000",
        "deliveryAddress": {"street": "1 Oxford St", "city": "Accra", "region": "Greater Accra"},
    })

    assert res.status_code == 200
    body = res.json()
    assert body["bookType"] == "hardcopy"
    assert "downloadUrl" not in body

    purchase = session.exec(select(Purchase)).one()
    assert purchase.delivery_address == "1 Oxford St, Accra, Greater Accra, Ghana"


def test_gateway_product_label_wins_over_body(client, paystack, sent_emails):
    paystack.get.return_value = _response({
        "status": True,
        "message": "ok",
        "data": _transaction(custom_fields=[
            {"variable_name": "product", "value": "Bundle", "display_name": "Product"},
        ]),
    })

    res = client.post("/verify-payment", json={"reference": "ref_123", "bookType": "ebook"})

    assert res.status_code == 200
    assert res.json()["bookType"] == "bundle"
    query = parse_qs(urlparse(res.json()["downloadUrl"]).query)
    assert query["product"] == ["bundle"]


def test_duplicate_verify_sends_one_email(client, session, paystack, sent_emails):
    first = client.post("/verify-payment", json={"reference": "ref_123"})
    second = client.post("/verify-payment", json={"reference": "ref_123"})

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["message"] == "Payment already processed"
    assert second.json()["emailSent"] is False
    assert "downloadUrl" in second.json()

    assert len(session.exec(select(Purchase)).all()) == 1
    user_mails = [c for c in sent_emails.call_args_list if c.kwargs["to"] == "buyer@example.com"]
    assert len(user_mails) == 1


def test_email_failure_still_returns_link(client, paystack):
    from unittest.mock import patch

    with patch("app.notifications.email_handlers.send_email", return_value=False):
        res = client.post("/verify-payment", json={"reference": "ref_123"})

    assert res.status_code == 200
    body = res.json()
    assert body["emailSent"] is False
    assert "downloadUrl" in body
    assert "could not confirm delivery" in body["message"]


def test_missing_reference_is_400(client, paystack):
    res = client.post("/verify-payment", json={"reference": "   "})
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_no_gateway_key_is_configuration_error(client, monkeypatch):
    monkeypatch.setattr(settings, "paystack_secret_key", "")

    res = client.post("/verify-payment", json={"reference": "ref_123"})

    assert res.status_code == 500
    assert res.json()["success"] is False


def test_dev_bypass_only_when_allowed(client, session, monkeypatch):
    monkeypatch.setattr(settings, "paystack_secret_key", "")
    monkeypatch.setattr(settings, "payment_dev_bypass", True)

    res = client.post("/verify-payment", json={
        "reference": "dev_1",
        "email": "dev@example.com",
        "bookType": "ebook",
    })

    assert res.status_code == 200
    body = res.json()
    assert body["message"].startswith("DEV MODE")
    assert "downloadUrl" in body
    assert session.exec(select(Purchase)).all() == []


def test_dev_bypass_refused_in_production(client, monkeypatch):
    monkeypatch.setattr(settings, "paystack_secret_key", "")
    monkeypatch.setattr(settings, "payment_dev_bypass", True)
    monkeypatch.setattr(settings, "env", "production")

    res = client.post("/verify-payment", json={"reference": "dev_1", "email": "dev@example.com"})

    assert res.status_code == 500


def test_dev_bypass_ignored_when_gateway_configured(client, paystack, monkeypatch, sent_emails):
    monkeypatch.setattr(settings, "payment_dev_bypass", True)

    res = client.post("/verify-payment", json={"reference": "ref_123"})

    assert res.status_code == 200
    assert not res.json()["message"].startswith("DEV MODE")
    paystack.get.assert_called_once()
