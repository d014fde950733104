from nubefeed.core.security import (
    compute_webhook_signature,
    sanitize_dict_for_logging,
    sanitize_string_for_logging,
    verify_webhook_signature,
)


def test_sanitize_dict_nested():
    data = {"access_token": "tok", "user_id": 1, "nested": {"client_secret": "s"}, "rows": [{"token": "t"}]}
    clean = sanitize_dict_for_logging(data)
    assert clean["access_token"] == "***REDACTED***"
    assert clean["user_id"] == 1
    assert clean["nested"]["client_secret"] == "***REDACTED***"
    assert clean["rows"][0]["token"] == "***REDACTED***"
    assert data["access_token"] == "tok"


def test_sanitize_string():
    assert sanitize_string_for_logging("Authentication: bearer abc.def-1") == "Authentication: bearer ***"
    assert "xyz" not in sanitize_string_for_logging('{"access_token": "xyz"}')
    assert sanitize_string_for_logging("") == ""


def test_webhook_signature():
    body = b'{"store_id":123,"event":"app/uninstalled"}'
    signature = compute_webhook_signature(body, "s3cret")
    assert verify_webhook_signature(body, signature, "s3cret")
    assert verify_webhook_signature(body, signature.upper(), "s3cret")
    assert not verify_webhook_signature(body + b" ", signature, "s3cret")
    assert not verify_webhook_signature(body, signature, "other")
    assert not verify_webhook_signature(body, None, "s3cret")
    assert not verify_webhook_signature(body, signature, "")
