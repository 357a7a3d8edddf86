"""Password hashing.

bcrypt with cost 10. Only the first 72 bytes of a password take part in
the hash, so both functions truncate to that before calling the library.
"""

import bcrypt

BCRYPT_ROUNDS = 10
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode()


def verify_password(digest: str, password: str) -> bool:
    """Check a password against a stored digest. An empty digest never matches."""
    if not digest:
        return False
    try:
        return bcrypt.checkpw(_encode(password), digest.encode())
    except ValueError:
        return False
