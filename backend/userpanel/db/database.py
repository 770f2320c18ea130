import re
import logging
import aiosqlite
from typing import Any, Dict, List, Optional

from userpanel.core.config import settings
from userpanel.db.schema import ALL_TABLES, INDEXES

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class StoreOperationError(Exception):
    """Raised when the backing store rejects or fails an operation"""
    pass


class DuplicateRecordError(StoreOperationError):
    """Raised when a write violates a uniqueness constraint"""
    pass


def _identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise StoreOperationError(f"Invalid identifier: {name!r}")
    return name


def _where(eq: Optional[Dict[str, Any]], gte: Optional[Dict[str, Any]]):
    clauses = []
    params: List[Any] = []
    for column, value in (eq or {}).items():
        clauses.append(f"{_identifier(column)} = ?")
        params.append(value)
    for column, value in (gte or {}).items():
        clauses.append(f"{_identifier(column)} >= ?")
        params.append(value)
    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


class Database:
    """
    Thin async wrapper over the sqlite store.

    Besides raw queries it exposes table-scoped select/insert/update/delete
    operations filtered by column equality, which is all the proxy needs.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None

    async def connect(self):
        """Create database connection"""
        if not self._connection:
            self._connection = await aiosqlite.connect(self.db_path)
            self._connection.row_factory = aiosqlite.Row

    async def disconnect(self):
        """Close database connection"""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def execute(self, query: str, params: tuple = ()):
        """Execute a query"""
        if not self._connection:
            await self.connect()
        try:
            return await self._connection.execute(query, params)
        except aiosqlite.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateRecordError(str(e)) from e
            raise StoreOperationError(str(e)) from e
        except aiosqlite.Error as e:
            raise StoreOperationError(str(e)) from e

    async def fetch_one(self, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        """Fetch one row"""
        cursor = await self.execute(query, params)
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def fetch_all(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """Fetch all rows"""
        cursor = await self.execute(query, params)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def commit(self):
        """Commit transaction"""
        if self._connection:
            await self._connection.commit()

    async def rollback(self):
        """Rollback transaction"""
        if self._connection:
            await self._connection.rollback()

    # Scoped operations

    async def select(
        self,
        table: str,
        columns: Optional[List[str]] = None,
        eq: Optional[Dict[str, Any]] = None,
        gte: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Select rows from one table"""
        column_sql = ", ".join(_identifier(c) for c in columns) if columns else "*"
        where_sql, params = _where(eq, gte)
        query = f"SELECT {column_sql} FROM {_identifier(table)}{where_sql}"
        if order_by:
            direction = "DESC" if descending else "ASC"
            query += f" ORDER BY {_identifier(order_by)} {direction}, id {direction}"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        return await self.fetch_all(query, tuple(params))

    async def select_one(self, table: str, eq: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Select a single row, None when nothing matches"""
        rows = await self.select(table, eq=eq, limit=1)
        return rows[0] if rows else None

    async def insert(self, table: str, values: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored"""
        columns = ", ".join(_identifier(c) for c in values.keys())
        placeholders = ", ".join(["?" for _ in values])
        try:
            cursor = await self.execute(
                f"INSERT INTO {_identifier(table)} ({columns}) VALUES ({placeholders})",
                tuple(values.values())
            )
            await self.commit()
        except StoreOperationError:
            await self.rollback()
            raise
        return await self.select_one(table, {"id": cursor.lastrowid})

    async def update(
        self, table: str, values: Dict[str, Any], eq: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        """Update matching rows and return them as stored"""
        set_clause = ", ".join(f"{_identifier(k)} = ?" for k in values.keys())
        where_sql, params = _where(eq, None)
        try:
            await self.execute(
                f"UPDATE {_identifier(table)} SET {set_clause}{where_sql}",
                tuple(values.values()) + tuple(params)
            )
            await self.commit()
        except StoreOperationError:
            await self.rollback()
            raise
        return await self.select(table, eq=eq)

    async def delete(self, table: str, eq: Dict[str, Any]) -> int:
        """Delete matching rows, returning how many were removed"""
        where_sql, params = _where(eq, None)
        try:
            cursor = await self.execute(
                f"DELETE FROM {_identifier(table)}{where_sql}", tuple(params)
            )
            await self.commit()
        except StoreOperationError:
            await self.rollback()
            raise
        return cursor.rowcount

    async def count(self, table: str, eq: Optional[Dict[str, Any]] = None) -> int:
        where_sql, params = _where(eq, None)
        row = await self.fetch_one(
            f"SELECT COUNT(*) AS count FROM {_identifier(table)}{where_sql}", tuple(params)
        )
        return row["count"] if row else 0


# Global database instance, None while the store is not configured
_db: Optional[Database] = None
_init_error: Optional[str] = None


def get_db() -> Optional[Database]:
    """Get the current database instance"""
    return _db


def get_init_error() -> Optional[str]:
    """Why the store failed to initialize, if it did"""
    return _init_error


async def create_tables(database: Database):
    """Create all database tables"""
    for table_sql in ALL_TABLES:
        await database.execute(table_sql)

    for index_sql in INDEXES:
        await database.execute(index_sql)

    await database.commit()


async def init_db(db_path: Optional[str] = None) -> Optional[Database]:
    """Open the store and make sure the schema exists"""
    global _db, _init_error

    db_path = db_path or settings.database_path
    if not db_path:
        _init_error = "DATABASE_URL is missing or not a sqlite+aiosqlite URL"
        logger.error(f"Store not configured: {_init_error}")
        _db = None
        return None

    database = Database(db_path)
    try:
        await database.connect()
        await create_tables(database)
    except (StoreOperationError, aiosqlite.Error, OSError) as e:
        _init_error = str(e)
        logger.error(f"Failed to open store at {db_path}: {e}")
        await database.disconnect()
        _db = None
        return None

    _db = database
    _init_error = None
    logger.info(f"Store ready at {db_path}")
    return _db


async def close_db():
    """Close the store connection"""
    global _db
    if _db:
        await _db.disconnect()
        _db = None
