from datetime import datetime, timezone
from typing import Dict, Any


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string, the format every table stores"""
    return datetime.now(timezone.utc).isoformat()


class BaseModel:
    """Base model class for store records"""

    # Columns stored as 0/1 that surface as booleans
    BOOLEAN_FIELDS: tuple = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        """Create instance from a store row, ignoring unknown columns"""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        for name in cls.BOOLEAN_FIELDS:
            if name in known and known[name] is not None:
                known[name] = bool(known[name])
        return cls(**known)

    def to_dict(self) -> Dict[str, Any]:
        """Convert instance to dictionary"""
        return {k: v for k, v in self.__dict__.items() if not k.startswith('_')}
