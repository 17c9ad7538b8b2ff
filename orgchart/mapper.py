"""Reading and writing records through a SQLite connection."""

from __future__ import annotations

import re
import sqlite3
from typing import Any, Iterable

from .model import ModelError, Record

_PLACEHOLDER = re.compile(r"\$\d+")
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


class DatabaseError(Exception):
    """Raised when a database operation fails."""


class NotFoundError(DatabaseError):
    """Raised when a lookup by primary key matches no row."""


def _to_qmark(sql: str) -> str:
    return _PLACEHOLDER.sub("?", sql)


class Mapper:
    """Maps rows of one table to instances of a record class."""

    def __init__(self, connection: sqlite3.Connection, model: type[Record]) -> None:
        self.connection = connection
        self.model = model

    # helpers ----------------------------------------------------------

    def _query(self, sql: str, params: Iterable[Any] = ()) -> list[dict[str, Any]]:
        try:
            cursor = self.connection.cursor()
            cursor.execute(sql, tuple(params))
            names = [description[0] for description in cursor.description or ()]
            return [dict(zip(names, row)) for row in cursor.fetchall()]
        except sqlite3.Error as exc:
            raise DatabaseError(str(exc)) from exc

    def _write(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        try:
            cursor = self.connection.cursor()
            cursor.execute(sql, tuple(params))
            self.connection.commit()
            return cursor
        except sqlite3.Error as exc:
            self.connection.rollback()
            raise DatabaseError(str(exc)) from exc

    def _column_names(self) -> list[str]:
        return [col.name for col in self.model.COLUMNS]

    # operations -------------------------------------------------------

    def find_all(
        self,
        sort_field: str = "id",
        sort_order: str = "asc",
        offset: int = 0,
        limit: int = 25,
    ) -> list[Record]:
        """Rows ordered by sort_field, ascending only when sort_order is "asc"."""
        if sort_field not in self._column_names():
            raise DatabaseError(f"column {sort_field!r} does not exist")
        direction = "ASC" if sort_order == "asc" else "DESC"
        sql = (
            f"select * from {self.model.TABLE_NAME} "
            f"order by {sort_field} {direction} limit ? offset ?"
        )
        return [self.model.from_row(row) for row in self._query(sql, (int(limit), int(offset)))]

    def find_by_primary_key(self, key: Any) -> Record:
        """The row with the given primary key; NotFoundError when there is none."""
        rows = self._query(_to_qmark(self.model.sql_for_finding_by_primary_key()), (key,))
        if len(rows) != 1:
            raise NotFoundError(f"{len(rows)} rows found for {self.model.TABLE_NAME} {key!r}")
        return self.model.from_row(rows[0])

    def insert(self, record: Record) -> Record:
        """Insert the record's set columns and return the stored row."""
        dirty = set(record.update_columns())
        names = [name for name in record.insert_columns() if name in dirty]
        values = [record.get(name) if record.is_set(name) else None for name in names]
        table = self.model.TABLE_NAME
        if names:
            marks = ",".join("?" for _ in names)
            sql = f"insert into {table} ({','.join(names)}) values ({marks})"
        else:
            sql = f"insert into {table} default values"
        cursor = self._write(sql, values)
        _, need_selection = record.sql_for_inserting()
        if need_selection:
            return self.find_by_primary_key(cursor.lastrowid)
        return record

    def update(self, record: Record) -> int:
        """Write the record's changed columns; returns the number of rows changed."""
        columns = record.update_columns()
        if not columns:
            raise DatabaseError("no columns to update")
        try:
            key = record.primary_key()
        except ModelError as exc:
            raise DatabaseError(str(exc)) from exc
        assignments = ", ".join(f"{name} = ?" for name in columns)
        sql = (
            f"update {self.model.TABLE_NAME} set {assignments} "
            f"where {self.model.PRIMARY_KEY_NAME} = ?"
        )
        return self._write(sql, [*record.update_args(), key]).rowcount

    def delete_by_primary_key(self, key: Any) -> int:
        """Delete the row with the given key; returns the number of rows deleted."""
        sql = _to_qmark(self.model.sql_for_deleting_by_primary_key())
        return self._write(sql, (key,)).rowcount

    def find_persons(self, column: str, key: Any) -> list[dict[str, Any]]:
        """Rows of the person table whose column equals key, as dicts."""
        if not _IDENTIFIER.match(column):
            raise DatabaseError(f"invalid column name {column!r}")
        return self._query(f"select * from person where {column} = ?", (key,))