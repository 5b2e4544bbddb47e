import hashlib
import hmac

import pytest

from app.utils import signing

SECRET = "s" * 32


def test_sign_matches_hmac_sha256_over_joined_fields():
    expected = hmac.new(
        SECRET.encode(), b"a@b.com:book:1700000000000", hashlib.sha256
    ).hexdigest()
    assert signing.sign(["a@b.com", "book", "1700000000000"], SECRET) == expected


def test_sign_without_secret_raises():
    with pytest.raises(signing.MissingSecretError):
        signing.sign(["a", "b"], "")
    with pytest.raises(signing.MissingSecretError):
        signing.sign(["a", "b"], None)


def test_verify_accepts_own_signature():
    sig = signing.sign(["x", "y"], SECRET)
    assert signing.verify(["x", "y"], SECRET, sig) is True


@pytest.mark.parametrize("candidate", ["", None, "abc", "z" * 64, "é" * 64])
def test_verify_rejects_bad_candidates(candidate):
    assert signing.verify(["x", "y"], SECRET, candidate) is False


def test_verify_fails_closed_without_secret():
    sig = signing.sign(["x", "y"], SECRET)
    assert signing.verify(["x", "y"], "", sig) is False


def test_field_order_matters():
    sig = signing.sign(["x", "y"], SECRET)
    assert signing.verify(["y", "x"], SECRET, sig) is False


def test_different_secret_rejected():
    sig = signing.sign(["x", "y"], SECRET)
    assert signing.verify(["x", "y"], "t" * 32, sig) is False
