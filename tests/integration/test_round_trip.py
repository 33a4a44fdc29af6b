"""
Integration tests for the mapping engine against PostgreSQL.

These tests run against a real PostgreSQL instance and verify that:
1. Inserted records read back field-for-field
2. Filters narrow results the way the database evaluates them
3. Empty results and driver failures surface as their own error kinds

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os
from datetime import date

import pytest

from rowmapper.domain.models import User
from rowmapper.errors import ExecutionError, NotFoundError
from rowmapper.mapping.entity_manager import EntityManager
from rowmapper.mapping.statements import where

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


def _user(username: str, age: int, registered: date | None = None) -> User:
    return User(username=username, password="password", age=age, registration_date=registered)


@pytest.fixture
def em(clean_users_table) -> EntityManager:
    return EntityManager(clean_users_table, inline_literals=False)


@pytest.fixture
def seeded(em: EntityManager) -> list[User]:
    users = [
        _user("james", 32, date(2016, 11, 1)),
        _user("john", 17, date(2019, 5, 7)),
    ]
    for user in users:
        assert em.persist(user) is True
    return users


class TestWritePath:
    def test_insert_assigns_ids_in_order(self, seeded):
        assert [u.id for u in seeded] == [1, 2]

    def test_round_trip_preserves_fields(self, em, seeded):
        found = em.find_first(User, where("username", "=", "james"))

        assert found == seeded[0]

    def test_update_rewrites_existing_row(self, em, seeded):
        john = seeded[1]
        john.age = 18

        assert em.persist(john) is True

        assert em.find_first(User, where("id", "=", john.id)).age == 18
        assert len(em.find(User)) == 2

    def test_update_of_missing_row_reports_failure(self, em, seeded):
        ghost = _user("ghost", 50)
        ghost.id = 999

        assert em.persist(ghost) is False

    def test_inline_literals_round_trip_quotes(self, clean_users_table):
        em = EntityManager(clean_users_table, inline_literals=True)
        user = _user("O'Brien", 41, date(2017, 9, 4))

        em.persist(user)

        assert em.find_first(User, where("username", "=", "O'Brien")) == user


class TestReadPath:
    def test_find_on_empty_table_returns_empty_list(self, em):
        assert em.find(User) == []

    def test_find_first_on_empty_table_is_not_found(self, em):
        with pytest.raises(NotFoundError):
            em.find_first(User)

    def test_filter_selects_minors(self, em, seeded):
        found = em.find(User, where("age", "<", 18))

        assert [u.username for u in found] == ["john"]

    def test_raw_clause_selects_minors(self, em, seeded):
        found = em.find_unsafe(User, " where age < 18")

        assert [u.username for u in found] == ["john"]

    def test_find_first_without_filter_returns_first_inserted(self, em, seeded):
        assert em.find_first(User).id == 1

    def test_injection_shaped_value_is_bound_not_concatenated(self, em, seeded):
        assert em.find(User, where("username", "=", "x' OR '1'='1")) == []

    def test_injection_shaped_clause_is_passed_through(self, em, seeded):
        found = em.find_unsafe(User, "where username = 'x' OR '1'='1'")

        assert len(found) == 2

    def test_broken_clause_is_execution_error(self, em, seeded):
        with pytest.raises(ExecutionError):
            em.find_unsafe(User, "where no_such_column = 1")
