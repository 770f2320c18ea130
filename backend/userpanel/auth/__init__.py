from .dependencies import require_session_token

__all__ = ["require_session_token"]
