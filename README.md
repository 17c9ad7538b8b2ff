# orgchart

A small HTTP service, built on Flask, that keeps the departments and jobs
of an organisation chart in a SQLite database and serves them as JSON.

## Running the server

```
orgchart --config config.json
```

`orgchart` reads a JSON configuration file and starts the Flask server.
Without `--config` it reads `../config.json`. The configuration may hold
a `listeners` entry and a `db_clients` entry, each either an object or a
list whose first element is used:

```json
{
    "listeners": [{"address": "127.0.0.1", "port": 3000}],
    "db_clients": [{"filename": "orgchart.db"}]
}
```

The server listens on `127.0.0.1:3000` unless `listeners` says
otherwise. The database file is taken from `filename` (or `dbname`); when
neither is given an in-memory database is used, so nothing is kept
between runs. The `department`, `job` and `person` tables are created on
start-up if they do not exist.

## Endpoints

### Departments

| Method | Path                         | Result                                                  |
|--------|------------------------------|---------------------------------------------------------|
| GET    | `/departments`               | `200` with a list of departments                        |
| GET    | `/departments/<id>`          | `201` with the department, `404` with no body if none   |
| POST   | `/departments`               | `201` with the stored department                        |
| PUT    | `/departments/<id>`          | `204` after changing the name                           |
| DELETE | `/departments/<id>`          | `204`                                                   |
| GET    | `/departments/<id>/persons`  | `200` with the persons in the department                |

### Jobs

| Method | Path                  | Result                                             |
|--------|-----------------------|----------------------------------------------------|
| GET    | `/jobs`               | `200` with a list of jobs                          |
| GET    | `/jobs/<id>`          | `201` with the job, `404` with no body if none     |
| POST   | `/jobs`               | `201` with the stored job                          |
| PUT    | `/jobs/<id>`          | `204` after changing the title                     |
| DELETE | `/jobs/<id>`          | `204`                                              |
| GET    | `/jobs/<id>/persons`  | `200` with the persons holding the job             |

A department looks like `{"id": 1, "name": "Engineering"}` and a job like
`{"id": 1, "title": "Developer"}`. Persons are returned as the rows of the
`person` table.

The list endpoints accept these query parameters; a value that is not a
whole number falls back to the default:

| Parameter    | Default |
|--------------|---------|
| `offset`     | `0`     |
| `limit`      | `25`    |
| `sort_field` | `id`    |
| `sort_order` | `asc` (anything else sorts descending) |

Errors:

- POST without a JSON body, and PUT on `/jobs/<id>` without one, answer
  `400` with no body.
- PUT and the `/persons` endpoints answer `404` with
  `{"error": "resource not found"}` when the record does not exist; the
  `/persons` endpoints answer the same when no person matches.
- Database failures, including a `sort_field` that is not a column, a
  missing name or title on POST, or a PUT that changes nothing, answer
  `500` with `{"error": "database error"}`.
- DELETE answers `204` whether or not the record existed.

## Using it from Python

The application can be built from a configuration in code:

```python
from orgchart.app import create_app, load_config

app = create_app(load_config("config.json"))
```

The handlers can be used on their own. `DepartmentsController` and
`JobsController` in `orgchart.controllers` take a `sqlite3` connection and
return a `Response` with a `status` and a JSON `body` (`None` for no body):

```python
from orgchart.controllers import DepartmentsController

departments = DepartmentsController(connection)
response = departments.get({"limit": "10", "sort_order": "desc"})
```

The records live in `orgchart.model.Department` and `orgchart.job.Job`.
They are built with `from_json` or `from_row`, written out with `to_json`,
and keep track of which columns were changed so that only those are
written back. `validate_for_creation` and `validate_for_update` raise
`ModelError` for JSON that does not fit, including names or titles longer
than 50 bytes; the HTTP handlers do not call them. `orgchart.mapper.Mapper`
runs the queries for a record type and raises `NotFoundError` or
`DatabaseError` when they fail.

## What it does not do

- There is no login or authentication. Each route carries a
  `requires_login` flag, but nothing checks it; every endpoint is open.
- There are no endpoints for creating, changing or listing persons, and
  no user registration. Persons can only be read through the
  `/departments/<id>/persons` and `/jobs/<id>/persons` endpoints, so the
  `person` table has to be filled by other means.
- Only SQLite is supported as storage.