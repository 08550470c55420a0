"""Argon2id hashing for OAuth client secrets.

Only the hash is persisted (`oauth_clients.client_secret_hash`); the
plaintext secret is returned once, by client registration.
"""

import argon2

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=65536,
    parallelism=1,
)


def hash_secret(secret: str) -> str:
    """Hash a freshly issued client secret for storage on the client record."""
    return _hasher.hash(secret)


def verify_secret(plain: str, hashed: str) -> bool:
    """Check a `client_secret` form value against the stored client hash.

    A mismatch and a stored value that is not an Argon2 hash both return
    False, so authentication reports them as the same invalid secret.
    """
    try:
        return _hasher.verify(hashed, plain)
    except (
        argon2.exceptions.VerificationError,
        argon2.exceptions.InvalidHashError,
    ):
        return False
