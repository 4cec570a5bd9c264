"""Bot key cipher tests."""

import base64

import pytest

from app.config import settings
from app.errors import AuthenticationError, ConfigError
from app.utils import crypto


def test_roundtrip_for_many_keys():
    for i in range(20):
        secret = crypto.generate_secret()
        encrypted = crypto.encrypt(secret, f"user-{i}", f"key-{i}")
        assert crypto.decrypt(encrypted, f"user-{i}", f"key-{i}") == secret


def test_ciphertext_is_bound_to_owner_and_key_id():
    encrypted = crypto.encrypt("s3cret", "u1", "k1")
    for owner, key_id in [("u2", "k1"), ("u1", "k2"), ("u2", "k2"), ("u1:k1", "")]:
        with pytest.raises(AuthenticationError):
            crypto.decrypt(encrypted, owner, key_id)


def test_tampered_ciphertext_is_rejected():
    encrypted = crypto.encrypt("s3cret", "u1", "k1")
    raw = bytearray(base64.b64decode(encrypted.ciphertext))
    raw[0] ^= 0x01
    tampered = crypto.EncryptedSecret(
        ciphertext=base64.b64encode(bytes(raw)).decode(),
        iv=encrypted.iv,
        auth_tag=encrypted.auth_tag,
    )
    with pytest.raises(AuthenticationError):
        crypto.decrypt(tampered, "u1", "k1")


def test_garbage_encoding_is_rejected():
    encrypted = crypto.EncryptedSecret(ciphertext="not base64!", iv="AAAA", auth_tag="AAAA")
    with pytest.raises(AuthenticationError):
        crypto.decrypt(encrypted, "u1", "k1")


def test_wrong_master_key_is_rejected(monkeypatch):
    encrypted = crypto.encrypt("s3cret", "u1", "k1")
    monkeypatch.setattr(settings, "bot_key_enc_key", "some-other-passphrase")
    with pytest.raises(AuthenticationError):
        crypto.decrypt(encrypted, "u1", "k1")


def test_fresh_iv_per_encryption():
    a = crypto.encrypt("same", "u1", "k1")
    b = crypto.encrypt("same", "u1", "k1")
    assert a.iv != b.iv
    assert a.ciphertext != b.ciphertext
    assert len(base64.b64decode(a.iv)) == crypto.IV_LENGTH
    assert len(base64.b64decode(a.auth_tag)) == crypto.TAG_LENGTH


def test_master_key_raw_or_derived():
    raw = "k" * 32
    assert crypto.derive_master_key(raw) == raw.encode()

    derived = crypto.derive_master_key("short passphrase")
    assert len(derived) == 32
    assert derived == crypto.derive_master_key("short passphrase")
    assert derived != crypto.derive_master_key("another passphrase")


def test_missing_master_key_is_config_error(monkeypatch):
    monkeypatch.setattr(settings, "bot_key_enc_key", "")
    with pytest.raises(ConfigError):
        crypto.encrypt("s3cret", "u1", "k1")


def test_decrypt_with_previous_key_version(monkeypatch):
    monkeypatch.setattr(settings, "bot_key_enc_key", "generation-one")
    monkeypatch.setattr(settings, "bot_key_enc_key_version", 1)
    encrypted = crypto.encrypt("s3cret", "u1", "k1")

    monkeypatch.setattr(settings, "bot_key_enc_key", "generation-two")
    monkeypatch.setattr(settings, "bot_key_enc_key_version", 2)
    monkeypatch.setattr(settings, "bot_key_previous_keys", {1: "generation-one"})

    assert crypto.current_key_version() == 2
    assert crypto.decrypt(encrypted, "u1", "k1", key_version=1) == "s3cret"
    with pytest.raises(AuthenticationError):
        crypto.decrypt(encrypted, "u1", "k1", key_version=2)
    with pytest.raises(ConfigError):
        crypto.decrypt(encrypted, "u1", "k1", key_version=3)


def test_hash_is_stable_sha256_hex():
    h = crypto.hash_secret("abc")
    assert h == crypto.hash_secret("abc")
    assert h == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    assert h != crypto.hash_secret("abd")


def test_generated_secrets_are_64_hex_chars():
    keys = {crypto.generate_secret() for _ in range(50)}
    assert len(keys) == 50
    for key in keys:
        assert len(key) == 64
        int(key, 16)
