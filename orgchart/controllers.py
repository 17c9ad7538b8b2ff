"""HTTP handlers for the department and job resources."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping

from .job import Job
from .mapper import DatabaseError, Mapper, NotFoundError
from .model import Department, ModelError, Record

logger = logging.getLogger(__name__)

DEFAULT_OFFSET = 0
DEFAULT_LIMIT = 25
DEFAULT_SORT_FIELD = "id"
DEFAULT_SORT_ORDER = "asc"


@dataclass(frozen=True)
class Response:
    """Status code and JSON body of a handler's answer; body None means no body."""

    status: int
    body: Any = None


@dataclass(frozen=True)
class Route:
    """One URL pattern bound to a handler method."""

    path: str
    method: str
    handler: str
    requires_login: bool


def _error(message: str, status: int) -> Response:
    return Response(status, {"error": message})


def _int_param(params: Mapping[str, Any], name: str, default: int) -> int:
    try:
        return int(params[name])
    except (KeyError, TypeError, ValueError):
        return default


def _str_param(params: Mapping[str, Any], name: str, default: str) -> str:
    value = params.get(name)
    return default if value is None else str(value)


class _ResourceController:
    """Create, read, update and delete for one table, plus its persons."""

    MODEL: ClassVar[type[Record]]
    EDITABLE: ClassVar[tuple[str, ...]] = ()
    ROUTES: ClassVar[tuple[Route, ...]] = ()

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection
        self.mapper = Mapper(connection, self.MODEL)

    def get(self, params: Mapping[str, Any] | None = None) -> Response:
        """A page of records, sorted as the query parameters ask."""
        params = params or {}
        offset = _int_param(params, "offset", DEFAULT_OFFSET)
        limit = _int_param(params, "limit", DEFAULT_LIMIT)
        sort_field = _str_param(params, "sort_field", DEFAULT_SORT_FIELD)
        sort_order = _str_param(params, "sort_order", DEFAULT_SORT_ORDER)
        try:
            records = self.mapper.find_all(sort_field, sort_order, offset, limit)
        except DatabaseError as exc:
            logger.error("%s", exc)
            return _error("database error", 500)
        return Response(200, [record.to_json() for record in records])

    def get_one(self, record_id: int) -> Response:
        """One record by id; 404 without a body when there is none."""
        try:
            record = self.mapper.find_by_primary_key(record_id)
        except NotFoundError:
            return Response(404)
        except DatabaseError as exc:
            logger.error("%s", exc)
            return _error("database error", 500)
        return Response(201, record.to_json())

    def create_one(self, payload: Mapping[str, Any] | None) -> Response:
        """Insert a record built from the payload and return it as stored."""
        if payload is None:
            return Response(400)
        try:
            record = self.MODEL.from_json(payload)
        except ModelError as exc:
            return _error(str(exc), 400)
        try:
            stored = self.mapper.insert(record)
        except DatabaseError as exc:
            logger.error("%s", exc)
            return _error("database error", 500)
        return Response(201, stored.to_json())

    def update_one(self, record_id: int, payload: Mapping[str, Any] | None) -> Response:
        """Overwrite the editable columns given in the payload."""
        payload = payload or {}
        try:
            record = self.mapper.find_by_primary_key(record_id)
        except DatabaseError:
            return _error("resource not found", 404)
        try:
            details = self.MODEL.from_json(payload)
        except ModelError as exc:
            return _error(str(exc), 400)
        for column in self.EDITABLE:
            if details.is_set(column):
                record.set(column, details.get(column))
        try:
            self.mapper.update(record)
        except DatabaseError as exc:
            logger.error("%s", exc)
            return _error("database error", 500)
        return Response(204)

    def delete_one(self, record_id: int) -> Response:
        """Delete the record with the given id."""
        try:
            self.mapper.delete_by_primary_key(record_id)
        except DatabaseError as exc:
            logger.error("%s", exc)
            return _error("database error", 500)
        return Response(204)

    def _get_persons(self, record_id: int) -> Response:
        try:
            record = self.mapper.find_by_primary_key(record_id)
        except DatabaseError:
            return _error("resource not found", 404)
        try:
            persons = self.mapper.find_persons(
                self.MODEL.PERSON_FOREIGN_KEY, record.primary_key()
            )
        except DatabaseError as exc:
            logger.error("%s", exc)
            return _error("database error", 500)
        if not persons:
            return _error("resource not found", 404)
        return Response(200, persons)


class DepartmentsController(_ResourceController):
    """Handlers under /departments."""

    MODEL = Department
    EDITABLE = ("name",)
    ROUTES = (
        Route("/departments", "GET", "get", False),
        Route("/departments/<int:department_id>", "GET", "get_one", False),
        Route("/departments", "POST", "create_one", True),
        Route("/departments/<int:department_id>", "PUT", "update_one", True),
        Route("/departments/<int:department_id>", "DELETE", "delete_one", True),
        Route(
            "/departments/<int:department_id>/persons",
            "GET",
            "get_department_persons",
            True,
        ),
    )

    def __init__(self, connection: sqlite3.Connection) -> None:
        super().__init__(connection)

    def get(self, params: Mapping[str, Any] | None = None) -> Response:
        """A page of departments."""
        return super().get(params)

    def get_one(self, department_id: int) -> Response:
        """One department by id."""
        return super().get_one(department_id)

    def create_one(self, payload: Mapping[str, Any] | None) -> Response:
        """Create a department."""
        return super().create_one(payload)

    def update_one(self, department_id: int, payload: Mapping[str, Any] | None) -> Response:
        """Rename a department."""
        return super().update_one(department_id, payload)

    def delete_one(self, department_id: int) -> Response:
        """Delete a department."""
        return super().delete_one(department_id)

    def get_department_persons(self, department_id: int) -> Response:
        """Persons working in a department."""
        return self._get_persons(department_id)


class JobsController(_ResourceController):
    """Handlers under /jobs."""

    MODEL = Job
    EDITABLE = ("title",)
    ROUTES = (
        Route("/jobs", "GET", "get", True),
        Route("/jobs/<int:job_id>", "GET", "get_one", True),
        Route("/jobs", "POST", "create_one", True),
        Route("/jobs/<int:job_id>", "PUT", "update_one", True),
        Route("/jobs/<int:job_id>", "DELETE", "delete_one", True),
        Route("/jobs/<int:job_id>/persons", "GET", "get_job_persons", True),
    )

    def __init__(self, connection: sqlite3.Connection) -> None:
        super().__init__(connection)

    def get(self, params: Mapping[str, Any] | None = None) -> Response:
        """A page of jobs."""
        return super().get(params)

    def get_one(self, job_id: int) -> Response:
        """One job by id."""
        return super().get_one(job_id)

    def create_one(self, payload: Mapping[str, Any] | None) -> Response:
        """Create a job."""
        return super().create_one(payload)

    def update_one(self, job_id: int, payload: Mapping[str, Any] | None) -> Response:
        """Retitle a job; 400 without a body when no JSON was sent."""
        if payload is None:
            return Response(400)
        return super().update_one(job_id, payload)

    def delete_one(self, job_id: int) -> Response:
        """Delete a job."""
        return super().delete_one(job_id)

    def get_job_persons(self, job_id: int) -> Response:
        """Persons holding a job."""
        return self._get_persons(job_id)