"""AES-256-GCM encryption for bot keys at rest, plus the lookup fingerprint.

Ciphertext is bound to its row through AAD (``owner_id:credential_id``), so a
ciphertext copied onto another owner's row fails verification.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import secrets
from dataclasses import dataclass
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from app.config import settings
from app.errors import AuthenticationError, ConfigError

KEY_LENGTH = 32
IV_LENGTH = 12
TAG_LENGTH = 16
SECRET_BYTES = 32

_HKDF_SALT = b"bot-key-encryption"
_HKDF_INFO = b"bot-key-v1"


@dataclass(frozen=True)
class EncryptedSecret:
    ciphertext: str
    iv: str
    auth_tag: str


@lru_cache(maxsize=8)
def derive_master_key(secret: str) -> bytes:
    """Use a 32-byte secret as-is, otherwise stretch the passphrase with HKDF-SHA256."""
    if not secret:
        raise ConfigError("Missing bot key encryption secret")
    raw = secret.encode("utf-8")
    if len(raw) == KEY_LENGTH:
        return raw
    hkdf = HKDF(algorithm=hashes.SHA256(), length=KEY_LENGTH, salt=_HKDF_SALT, info=_HKDF_INFO)
    return hkdf.derive(raw)


def current_key_version() -> int:
    return settings.bot_key_enc_key_version


def _master_key(version: int | None = None) -> bytes:
    if version is None or version == settings.bot_key_enc_key_version:
        return derive_master_key(settings.bot_key_enc_key)
    previous = settings.bot_key_previous_keys.get(version)
    if previous is None:
        raise ConfigError(f"No master key configured for key version {version}")
    return derive_master_key(previous)


def _aad(owner_id: str, credential_id: str) -> bytes:
    return f"{owner_id}:{credential_id}".encode("utf-8")


def encrypt(raw_secret: str, owner_id: str, credential_id: str) -> EncryptedSecret:
    key = _master_key()
    iv = secrets.token_bytes(IV_LENGTH)
    sealed = AESGCM(key).encrypt(iv, raw_secret.encode("utf-8"), _aad(owner_id, credential_id))
    # AESGCM appends the tag to the ciphertext; it is stored in its own column
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return EncryptedSecret(
        ciphertext=base64.b64encode(ciphertext).decode("ascii"),
        iv=base64.b64encode(iv).decode("ascii"),
        auth_tag=base64.b64encode(tag).decode("ascii"),
    )


def decrypt(
    encrypted: EncryptedSecret,
    owner_id: str,
    credential_id: str,
    *,
    key_version: int | None = None,
) -> str:
    """Reverse :func:`encrypt`. Raises AuthenticationError on any verification failure."""
    key = _master_key(key_version)
    try:
        iv = base64.b64decode(encrypted.iv, validate=True)
        tag = base64.b64decode(encrypted.auth_tag, validate=True)
        ciphertext = base64.b64decode(encrypted.ciphertext, validate=True)
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, _aad(owner_id, credential_id))
    except (InvalidTag, binascii.Error, ValueError) as exc:
        raise AuthenticationError() from exc
    return plaintext.decode("utf-8")


def hash_secret(raw_secret: str) -> str:
    return hashlib.sha256(raw_secret.encode("utf-8")).hexdigest()


def generate_secret() -> str:
    return secrets.token_hex(SECRET_BYTES)
