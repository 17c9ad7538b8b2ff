"""Application setup: configuration, database, routes and the command that serves them."""

from __future__ import annotations

import argparse
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

from flask import Flask, Response as FlaskResponse, jsonify, make_response, request

from .controllers import DepartmentsController, JobsController, Response, Route

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "../config.json"
DEFAULT_ADDRESS = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_DATABASE = ":memory:"
CONNECTION_KEY = "ORGCHART_CONNECTION"

_SCHEMA = """
create table if not exists department (
    id integer primary key autoincrement,
    name varchar(50) not null
);
create table if not exists job (
    id integer primary key autoincrement,
    title varchar(50) not null
);
create table if not exists person (
    id integer primary key autoincrement,
    job_id integer not null,
    department_id integer not null,
    manager_id integer,
    first_name varchar(50) not null,
    last_name varchar(50) not null,
    hire_date date not null default current_date
);
"""


def load_config(path: str | Path) -> dict[str, Any]:
    """Read a JSON configuration file; its top level must be an object."""
    with open(path, encoding="utf-8") as handle:
        config = json.load(handle)
    if not isinstance(config, dict):
        raise ValueError(f"configuration in {path} is not a JSON object")
    return config


def _first(config: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    entries = config.get(key) or []
    if isinstance(entries, Mapping):
        return entries
    return entries[0] if entries else {}


def _database_path(config: Mapping[str, Any]) -> str:
    client = _first(config, "db_clients")
    return str(client.get("filename") or client.get("dbname") or DEFAULT_DATABASE)


def _listener(config: Mapping[str, Any]) -> tuple[str, int]:
    listener = _first(config, "listeners")
    return str(listener.get("address", DEFAULT_ADDRESS)), int(listener.get("port", DEFAULT_PORT))


def _open_database(path: str) -> sqlite3.Connection:
    connection = sqlite3.connect(path, check_same_thread=False)
    connection.executescript(_SCHEMA)
    connection.commit()
    return connection


def _to_flask(response: Response) -> FlaskResponse:
    if response.body is None:
        result = make_response("", response.status)
    else:
        result = make_response(jsonify(response.body), response.status)
    return result


def _make_view(controller: Any, route: Route) -> Callable[..., FlaskResponse]:
    handler = getattr(controller, route.handler)

    def view(**kwargs: Any) -> FlaskResponse:
        ids = list(kwargs.values())
        if route.handler == "get":
            answer = handler(request.args)
        elif route.handler == "create_one":
            answer = handler(request.get_json(silent=True))
        elif route.handler == "update_one":
            answer = handler(*ids, request.get_json(silent=True))
        else:
            answer = handler(*ids)
        return _to_flask(answer)

    return view


def create_app(config: Mapping[str, Any] | None = None) -> Flask:
    """Build the Flask application with the department and job routes."""
    config = config or {}
    app = Flask(__name__)
    connection = _open_database(_database_path(config))
    app.config[CONNECTION_KEY] = connection
    host, port = _listener(config)
    app.config["ORGCHART_HOST"] = host
    app.config["ORGCHART_PORT"] = port

    for controller_class in (DepartmentsController, JobsController):
        controller = controller_class(connection)
        prefix = controller_class.__name__
        for route in controller_class.ROUTES:
            app.add_url_rule(
                route.path,
                endpoint=f"{prefix}.{route.handler}",
                view_func=_make_view(controller, route),
                methods=[route.method],
            )
    return app


def main(argv: Sequence[str] | None = None) -> int:
    """Load the configuration and serve the application."""
    parser = argparse.ArgumentParser(prog="orgchart", description="Serve the org chart API.")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="path of the JSON configuration")
    args = parser.parse_args(argv)

    logger.debug("Load config file")
    config = load_config(args.config)
    app = create_app(config)
    host = app.config["ORGCHART_HOST"]
    port = app.config["ORGCHART_PORT"]
    logger.debug("running on %s:%d", host, port)
    app.run(host=host, port=port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())