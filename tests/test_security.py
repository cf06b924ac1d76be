from eventpros_api.app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_token_carries_claims():
    token = create_access_token({"sub": "host@example.co.nz", "role": "event_manager"})
    payload = decode_access_token(token)
    assert payload["sub"] == "host@example.co.nz"
    assert payload["role"] == "event_manager"
    assert "exp" in payload


def test_expired_token_rejected():
    token = create_access_token({"sub": "host@example.co.nz"}, expires_delta=-10)
    assert decode_access_token(token) is None


def test_tampered_token_rejected():
    token = create_access_token({"sub": "host@example.co.nz"})
    header, payload, signature = token.split(".")
    forged = create_access_token({"sub": "admin@example.co.nz"}).split(".")[1]
    assert decode_access_token(f"{header}.{forged}.{signature}") is None
    assert decode_access_token("not-a-token") is None


def test_password_hashing():
    hashed = hash_password("strongpassword")
    assert hashed != "strongpassword"
    assert verify_password("strongpassword", hashed)
    assert not verify_password("wrongpassword", hashed)
    assert not verify_password("strongpassword", None)
    assert hash_password("strongpassword") != hashed
