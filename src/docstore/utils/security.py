from __future__ import annotations

import hashlib
import hmac
import re
import secrets

_ALGORITHM = "pbkdf2_sha256"
_ITERATIONS = 260_000
_SALT_BYTES = 16

_LOGIN_RE = re.compile(r"[a-zA-Z0-9]{8,}")
_UPPER_RE = re.compile(r"[A-Z]")
_LOWER_RE = re.compile(r"[a-z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SPECIAL_RE = re.compile(r"[^a-zA-Z0-9]")


def hash_password(password: str, *, iterations: int = _ITERATIONS) -> str:
    salt = secrets.token_bytes(_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{_ALGORITHM}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt_hex, digest_hex = encoded.split("$")
        if algorithm != _ALGORITHM:
            return False
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(digest_hex)
        rounds = int(iterations)
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(digest, expected)


def validate_login_format(login: str) -> bool:
    """Logins are at least 8 latin letters or digits."""
    return isinstance(login, str) and _LOGIN_RE.fullmatch(login) is not None


def validate_password_strength(password: str) -> bool:
    if not isinstance(password, str) or len(password) < 8:
        return False
    return all(p.search(password) for p in (_UPPER_RE, _LOWER_RE, _DIGIT_RE, _SPECIAL_RE))
