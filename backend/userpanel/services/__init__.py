from .password_service import hash_password, password_bytes, BCRYPT_MAX_BYTES

__all__ = ["hash_password", "password_bytes", "BCRYPT_MAX_BYTES"]
