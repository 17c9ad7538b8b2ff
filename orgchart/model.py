"""Table records with dirty tracking, JSON conversion, validation and SQL text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Sequence

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


class ModelError(ValueError):
    """Raised when data does not fit a record's columns."""


@dataclass(frozen=True)
class _Column:
    name: str
    kind: str  # "int" or "str"
    db_type: str
    length: int
    auto: bool
    primary_key: bool
    not_null: bool


def _wrap_int32(value: int) -> int:
    return ((value - _INT32_MIN) % 2**32) + _INT32_MIN


def _json_as_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return _wrap_int32(value)
    if isinstance(value, float):
        return _wrap_int32(int(value))
    raise ModelError("Value is not convertible to Int64.")


def _json_as_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format(value, ".17g")
    raise ModelError("Value is not convertible to string.")


def _json_is_int(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return _INT32_MIN <= value <= _INT32_MAX
    if isinstance(value, float):
        return value.is_integer() and _INT32_MIN <= value <= _INT32_MAX
    return False


class Record:
    """A row of a table, described by the subclass's column metadata."""

    TABLE_NAME: ClassVar[str] = ""
    PRIMARY_KEY_NAME: ClassVar[str] = ""
    COLUMNS: ClassVar[tuple[_Column, ...]] = ()

    def __init__(self) -> None:
        self._values: dict[str, Any] = {col.name: None for col in self.COLUMNS}
        self._dirty: dict[str, bool] = {col.name: False for col in self.COLUMNS}

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self._values.items())
        return f"{type(self).__name__}({fields})"

    # construction -----------------------------------------------------

    @classmethod
    def _column(cls, name: str) -> _Column:
        for col in cls.COLUMNS:
            if col.name == name:
                return col
        raise ModelError(f"Unknown column {name!r} for table {cls.TABLE_NAME}")

    @staticmethod
    def _from_db(col: _Column, value: Any) -> Any:
        return int(value) if col.kind == "int" else str(value)

    @staticmethod
    def _from_json_value(col: _Column, value: Any) -> Any:
        return _json_as_int(value) if col.kind == "int" else _json_as_str(value)

    @classmethod
    def from_row(cls, row: Any) -> "Record":
        """Build a record from a database row, read by column name or position."""
        record = cls()
        if hasattr(row, "keys"):
            names = set(row.keys())
            for col in cls.COLUMNS:
                if col.name not in names:
                    raise ModelError(f"Column {col.name!r} is missing from the row")
                value = row[col.name]
                if value is not None:
                    record._values[col.name] = cls._from_db(col, value)
        else:
            values = list(row)
            if len(values) < len(cls.COLUMNS):
                raise ModelError("Invalid SQL result for this model")
            for col, value in zip(cls.COLUMNS, values):
                if value is not None:
                    record._values[col.name] = cls._from_db(col, value)
        return record

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Record":
        """Build a record from a JSON object; every present key marks its column dirty."""
        record = cls()
        for col in cls.COLUMNS:
            if col.name in data:
                record._dirty[col.name] = True
                if data[col.name] is not None:
                    record._values[col.name] = cls._from_json_value(col, data[col.name])
        return record

    @classmethod
    def _check_aliases(cls, aliases: Sequence[str]) -> None:
        if len(aliases) != len(cls.COLUMNS):
            raise ModelError("Bad masquerading vector")

    @classmethod
    def from_masqueraded_json(cls, data: Mapping[str, Any], aliases: Sequence[str]) -> "Record":
        """Build a record from a JSON object whose keys are column aliases."""
        cls._check_aliases(aliases)
        record = cls()
        for col, alias in zip(cls.COLUMNS, aliases):
            if alias and alias in data:
                record._dirty[col.name] = True
                if data[alias] is not None:
                    record._values[col.name] = cls._from_json_value(col, data[alias])
        return record

    def update_by_json(self, data: Mapping[str, Any]) -> None:
        """Overwrite columns present in data; the primary key is not marked dirty."""
        for col in self.COLUMNS:
            if col.name in data:
                if not col.primary_key:
                    self._dirty[col.name] = True
                if data[col.name] is not None:
                    self._values[col.name] = self._from_json_value(col, data[col.name])

    def update_by_masqueraded_json(self, data: Mapping[str, Any], aliases: Sequence[str]) -> None:
        """Overwrite columns present in data under their aliases."""
        self._check_aliases(aliases)
        for col, alias in zip(self.COLUMNS, aliases):
            if alias and alias in data:
                if not col.primary_key:
                    self._dirty[col.name] = True
                if data[alias] is not None:
                    self._values[col.name] = self._from_json_value(col, data[alias])

    # validation -------------------------------------------------------

    @classmethod
    def validate_for_creation(cls, data: Mapping[str, Any]) -> None:
        """Raise ModelError if data cannot create a new row."""
        for index, col in enumerate(cls.COLUMNS):
            if col.name in data:
                cls.validate_field(index, col.name, data[col.name], True)
            elif col.not_null and not col.auto:
                raise ModelError(f"The {col.name} column cannot be null")

    @classmethod
    def validate_masqueraded_for_creation(cls, data: Mapping[str, Any], aliases: Sequence[str]) -> None:
        """Raise ModelError if aliased data cannot create a new row."""
        cls._check_aliases(aliases)
        for index, (col, alias) in enumerate(zip(cls.COLUMNS, aliases)):
            if not alias:
                continue
            if alias in data:
                cls.validate_field(index, alias, data[alias], True)
            elif col.not_null and not col.auto:
                raise ModelError(f"The {alias} column cannot be null")

    @classmethod
    def validate_for_update(cls, data: Mapping[str, Any]) -> None:
        """Raise ModelError if data cannot update a row."""
        for index, col in enumerate(cls.COLUMNS):
            if col.name in data:
                cls.validate_field(index, col.name, data[col.name], False)
            elif col.primary_key:
                raise ModelError("The value of primary key must be set in the json object for update")

    @classmethod
    def validate_masqueraded_for_update(cls, data: Mapping[str, Any], aliases: Sequence[str]) -> None:
        """Raise ModelError if aliased data cannot update a row."""
        cls._check_aliases(aliases)
        for index, (col, alias) in enumerate(zip(cls.COLUMNS, aliases)):
            if alias and alias in data:
                cls.validate_field(index, alias, data[alias], False)
            elif col.primary_key:
                raise ModelError("The value of primary key must be set in the json object for update")

    @classmethod
    def validate_field(cls, index: int, field_name: str, value: Any, for_creation: bool) -> None:
        """Raise ModelError if value does not suit the column at index."""
        if not 0 <= index < len(cls.COLUMNS):
            raise ModelError("Internal error in the server")
        col = cls.COLUMNS[index]
        if value is None:
            if col.not_null:
                raise ModelError(f"The {field_name} column cannot be null")
            return
        if col.auto and col.primary_key and for_creation:
            raise ModelError("The automatic primary key cannot be set")
        if col.kind == "int":
            if not _json_is_int(value):
                raise ModelError(f"Type error in the {field_name} field")
        else:
            if not isinstance(value, str):
                raise ModelError(f"Type error in the {field_name} field")
            if col.length > 0 and len(value.encode("utf-8")) > col.length:
                raise ModelError(
                    f"String length exceeds limit for the {field_name} field "
                    f"(the maximum value is {col.length})"
                )

    # access -----------------------------------------------------------

    @classmethod
    def column_name(cls, index: int) -> str:
        """Name of the column at index."""
        if not 0 <= index < len(cls.COLUMNS):
            raise IndexError(f"column index {index} out of range")
        return cls.COLUMNS[index].name

    def get(self, column: str) -> Any:
        """Value of a column, or its type's default when null."""
        col = self._column(column)
        value = self._values[column]
        if value is None:
            return 0 if col.kind == "int" else ""
        return value

    def set(self, column: str, value: Any) -> None:
        """Set a column and mark it dirty."""
        col = self._column(column)
        self._values[column] = None if value is None else self._from_db(col, value)
        self._dirty[column] = True

    def is_set(self, column: str) -> bool:
        """Whether the column holds a non-null value."""
        self._column(column)
        return self._values[column] is not None

    def primary_key(self) -> Any:
        """Value of the primary key; raises ModelError when unset."""
        value = self._values.get(self.PRIMARY_KEY_NAME)
        if value is None:
            raise ModelError("The primary key is not set")
        return value

    def to_json(self) -> dict[str, Any]:
        """All columns as a JSON object, null for unset columns."""
        return {col.name: self._values[col.name] for col in self.COLUMNS}

    def to_masqueraded_json(self, aliases: Sequence[str]) -> dict[str, Any]:
        """Columns under their aliases; empty aliases are skipped, a bad list falls back to names."""
        if len(aliases) != len(self.COLUMNS):
            return self.to_json()
        return {alias: self._values[col.name] for col, alias in zip(self.COLUMNS, aliases) if alias}

    # SQL --------------------------------------------------------------

    @classmethod
    def insert_columns(cls) -> list[str]:
        """Columns that an insert may supply."""
        return [col.name for col in cls.COLUMNS if not col.auto]

    def update_columns(self) -> list[str]:
        """Dirty columns other than the primary key."""
        return [col.name for col in self.COLUMNS if not col.primary_key and self._dirty[col.name]]

    def update_args(self) -> list[Any]:
        """Values for update_columns, in the same order."""
        return [self._values[name] for name in self.update_columns()]

    def insert_args(self) -> list[Any]:
        """Values bound to the placeholders of sql_for_inserting."""
        return [
            self._values[col.name]
            for col in self.COLUMNS
            if not col.auto and self._dirty[col.name]
        ]

    def sql_for_inserting(self) -> tuple[str, bool]:
        """Insert statement and whether it returns the inserted row."""
        names: list[str] = []
        values: list[str] = []
        placeholder = 1
        need_selection = False
        for col in self.COLUMNS:
            if col.auto:
                names.append(col.name)
                values.append("default")
                need_selection = True
            elif self._dirty[col.name]:
                names.append(col.name)
                values.append(f"${placeholder}")
                placeholder += 1
        sql = f"insert into {self.TABLE_NAME} ({','.join(names)}) values ({','.join(values)}"
        sql += ") returning *" if need_selection else ")"
        return sql, need_selection

    @classmethod
    def sql_for_finding_by_primary_key(cls) -> str:
        """Select statement for one row by primary key."""
        return f"select * from {cls.TABLE_NAME} where {cls.PRIMARY_KEY_NAME} = $1"

    @classmethod
    def sql_for_deleting_by_primary_key(cls) -> str:
        """Delete statement for one row by primary key."""
        return f"delete from {cls.TABLE_NAME} where {cls.PRIMARY_KEY_NAME} = $1"


class Department(Record):
    """A row of the department table."""

    TABLE_NAME = "department"
    PRIMARY_KEY_NAME = "id"
    PERSON_FOREIGN_KEY = "department_id"
    COLUMNS = (
        _Column("id", "int", "integer", 4, True, True, True),
        _Column("name", "str", "character varying", 50, False, False, True),
    )