"""The job table's record."""

from __future__ import annotations

from .model import Record, _Column


class Job(Record):
    """A row of the job table."""

    TABLE_NAME = "job"
    PRIMARY_KEY_NAME = "id"
    PERSON_FOREIGN_KEY = "job_id"
    COLUMNS = (
        _Column("id", "int", "integer", 4, True, True, True),
        _Column("title", "str", "character varying", 50, False, False, True),
    )