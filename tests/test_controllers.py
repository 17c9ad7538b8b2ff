import sqlite3

import pytest

from orgchart.controllers import DepartmentsController, JobsController, Response

SCHEMA = """
create table department (id integer primary key autoincrement, name varchar(50) not null);
create table job (id integer primary key autoincrement, title varchar(50) not null);
create table person (
    id integer primary key autoincrement,
    job_id integer not null,
    department_id integer not null,
    manager_id integer,
    first_name varchar(50) not null,
    last_name varchar(50) not null,
    hire_date text
);
"""


@pytest.fixture
def connection():
    conn = sqlite3.connect(":memory:")
    conn.executescript(SCHEMA)
    yield conn
    conn.close()


@pytest.fixture
def departments(connection):
    controller = DepartmentsController(connection)
    for name in ("Sales", "Engineering", "Support"):
        assert controller.create_one({"name": name}).status == 201
    return controller


@pytest.fixture
def jobs(connection):
    controller = JobsController(connection)
    for title in ("Manager", "Developer"):
        assert controller.create_one({"title": title}).status == 201
    return controller


def _add_person(connection, job_id, department_id, first_name):
    connection.execute(
        "insert into person (job_id, department_id, manager_id, first_name, last_name, hire_date)"
        " values (?, ?, NULL, ?, 'Doe', '2020-01-01')",
        (job_id, department_id, first_name),
    )
    connection.commit()


def test_get_lists_in_id_order(departments):
    resp = departments.get({})
    assert resp.status == 200
    assert [d["name"] for d in resp.body] == ["Sales", "Engineering", "Support"]
    assert [d["id"] for d in resp.body] == sorted(d["id"] for d in resp.body)


def test_get_descending_by_name(departments):
    resp = departments.get({"sort_field": "name", "sort_order": "desc"})
    names = [d["name"] for d in resp.body]
    assert names == sorted(names, reverse=True)


def test_get_limit_and_offset(departments):
    full = departments.get(None).body
    page = departments.get({"limit": "1", "offset": "1"}).body
    assert page == full[1:2]


def test_get_bad_limit_falls_back_to_default(departments):
    assert departments.get({"limit": "many"}).body == departments.get({}).body


def test_get_unknown_sort_field_is_database_error(departments):
    resp = departments.get({"sort_field": "nope"})
    assert resp == Response(500, {"error": "database error"})


def test_get_on_closed_connection_is_database_error(connection):
    controller = DepartmentsController(connection)
    connection.close()
    assert controller.get({}).body == {"error": "database error"}


def test_create_then_get_one(departments):
    created = departments.create_one({"name": "Legal"})
    assert created.status == 201
    assert created.body["name"] == "Legal"
    fetched = departments.get_one(created.body["id"])
    assert fetched.status == 201
    assert fetched.body == created.body


def test_create_without_name_is_database_error(departments):
    assert departments.create_one({}).status == 500


def test_create_without_payload_is_bad_request(departments):
    assert departments.create_one(None) == Response(400)


def test_get_one_missing_has_no_body(departments):
    assert departments.get_one(999) == Response(404)


def test_update_one_renames(departments):
    first = departments.get({}).body[0]
    resp = departments.update_one(first["id"], {"name": "Marketing"})
    assert resp == Response(204)
    assert departments.get_one(first["id"]).body == {"id": first["id"], "name": "Marketing"}


def test_update_one_missing(departments):
    resp = departments.update_one(999, {"name": "Marketing"})
    assert resp == Response(404, {"error": "resource not found"})


def test_update_one_without_changes_is_database_error(departments):
    first = departments.get({}).body[0]
    assert departments.update_one(first["id"], {}).status == 500


def test_delete_one(departments):
    first = departments.get({}).body[0]
    assert departments.delete_one(first["id"]) == Response(204)
    assert departments.get_one(first["id"]).status == 404
    assert len(departments.get({}).body) == 2


def test_delete_missing_still_no_content(departments):
    assert departments.delete_one(999).status == 204


def test_department_persons(connection, departments, jobs):
    dept_id = departments.get({}).body[0]["id"]
    job_id = jobs.get({}).body[0]["id"]
    _add_person(connection, job_id, dept_id, "Ann")
    _add_person(connection, job_id, dept_id + 1, "Bob")
    resp = departments.get_department_persons(dept_id)
    assert resp.status == 200
    assert [p["first_name"] for p in resp.body] == ["Ann"]
    assert all(p["department_id"] == dept_id for p in resp.body)


def test_department_persons_empty(departments):
    dept_id = departments.get({}).body[0]["id"]
    resp = departments.get_department_persons(dept_id)
    assert resp == Response(404, {"error": "resource not found"})


def test_department_persons_missing_department(departments):
    assert departments.get_department_persons(999).status == 404


def test_jobs_crud(jobs):
    created = jobs.create_one({"title": "Tester"})
    assert created.body["title"] == "Tester"
    assert jobs.update_one(created.body["id"], {"title": "Analyst"}).status == 204
    assert jobs.get_one(created.body["id"]).body["title"] == "Analyst"
    assert jobs.delete_one(created.body["id"]).status == 204
    assert jobs.get_one(created.body["id"]).status == 404


def test_jobs_update_without_json(jobs):
    job_id = jobs.get({}).body[0]["id"]
    assert jobs.update_one(job_id, None) == Response(400)


def test_job_persons(connection, departments, jobs):
    dept_id = departments.get({}).body[0]["id"]
    job_ids = [j["id"] for j in jobs.get({}).body]
    _add_person(connection, job_ids[1], dept_id, "Cid")
    resp = jobs.get_job_persons(job_ids[1])
    assert resp.status == 200
    assert [p["job_id"] for p in resp.body] == [job_ids[1]]
    assert jobs.get_job_persons(job_ids[0]).status == 404


def test_routes_mark_login_requirements(departments, jobs):
    public = [r for r in DepartmentsController.ROUTES if not r.requires_login]
    assert {(r.method, r.path) for r in public} == {
        ("GET", "/departments"),
        ("GET", "/departments/<int:department_id>"),
    }
    assert all(r.requires_login for r in JobsController.ROUTES)
    assert all(hasattr(JobsController, r.handler) for r in JobsController.ROUTES)

    list_departments = next(
        r for r in public if r.path == "/departments" and r.method == "GET"
    )
    resp = getattr(departments, list_departments.handler)({})
    assert resp.status == 200
    assert [d["name"] for d in resp.body] == ["Sales", "Engineering", "Support"]

    list_jobs = next(
        r for r in JobsController.ROUTES if r.path == "/jobs" and r.method == "GET"
    )
    resp = getattr(jobs, list_jobs.handler)({})
    assert resp.status == 200
    assert [j["title"] for j in resp.body] == ["Manager", "Developer"]