from __future__ import annotations

import json
import logging

from rowmapper.domain.models import User
from rowmapper.mapping.entity_manager import EntityManager
from rowmapper.mapping.statements import where
from rowmapper.utils.logging import JsonFormatter, _json_formatter

EXPECTED_ID = 10
EXPECTED_PARAM_COUNT = 1


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.table = "users"
    record.id = EXPECTED_ID

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["table"] == "users"
    assert payload["id"] == EXPECTED_ID
    assert "pathname" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"params": EXPECTED_PARAM_COUNT}

    payload = json.loads(_json_formatter(record))

    assert payload["params"] == EXPECTED_PARAM_COUNT
    assert "extra" not in payload


def test_json_formatter_class_matches_function() -> None:
    record = _record("statement")

    assert JsonFormatter().format(record) == _json_formatter(record)


def test_statements_are_logged_without_values(caplog, make_connection) -> None:
    conn = make_connection(rows=[])
    caplog.set_level(logging.DEBUG, logger="rowmapper")

    EntityManager(conn).find(User, where("username", "=", "secret-name"))

    [record] = [r for r in caplog.records if r.getMessage() == "Executing statement"]
    assert record.levelno == logging.DEBUG
    assert record.table == "users"
    assert record.sql == "SELECT * FROM users WHERE username = %s;"
    assert record.params == EXPECTED_PARAM_COUNT
    assert "secret-name" not in caplog.text


def test_insert_is_logged_with_new_id(caplog, make_connection) -> None:
    conn = make_connection(next_id=EXPECTED_ID)
    caplog.set_level(logging.INFO, logger="rowmapper")

    EntityManager(conn).persist(User(username="james", password="pw", age=32))

    inserted = [r for r in caplog.records if r.getMessage() == "Inserted users row"]
    assert [r.id for r in inserted] == [EXPECTED_ID]
