import bcrypt

from userpanel.core.config import settings

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def password_bytes(password: str) -> bytes:
    """UTF-8 encoded password cut to what bcrypt actually hashes"""
    return password.encode('utf-8')[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password_bytes(password), salt)
    return hashed.decode('utf-8')
