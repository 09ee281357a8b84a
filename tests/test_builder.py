import pytest
from sqlalchemy import select

from fastapi_extjs_filterable import InvalidArgument, QueryDescriptor
from fastapi_extjs_filterable.builder import (
    FilterPageParams,
    bind_conditions,
    build_query,
    qualify_order,
    references_table,
    to_page_params,
)
from tests.models import Address, Person


def test_scalar_placeholders_become_named_binds():
    clause = bind_conditions("people.id is not null and UPPER(email) like ? and age IN (?)", ["%BOB%", 30])
    assert str(clause) == "people.id is not null and UPPER(email) like :p0 and age IN (:p1)"


def test_colons_in_conditions_are_literal():
    clause = bind_conditions("created_at > '2024-01-01 10:00' and id = ?", [1])
    assert str(clause) == "created_at > '2024-01-01 10:00' and id = :p0"


def test_placeholder_count_must_match_values():
    with pytest.raises(InvalidArgument):
        bind_conditions("a = ? and b = ?", [1])


def test_list_values_expand(session):
    clause = bind_conditions("status IN (?)", [["active", "suspended"]])
    names = session.scalars(select(Person.full_name).where(clause).order_by(Person.id)).all()
    assert names == ["Alice", "Carol", "Dave", "Eve"]


def test_empty_list_matches_nothing(session):
    clause = bind_conditions("status IN (?)", [[]])
    assert session.scalars(select(Person).where(clause)).all() == []


def test_unknown_include_is_rejected():
    descriptor = QueryDescriptor(page=1, per_page=10, order="created_at", include=["friends"], condition="1 = 1")
    with pytest.raises(InvalidArgument) as exc:
        build_query(Person, descriptor)
    assert exc.value.key == "friends"


def test_page_params_allow_large_pages():
    params = to_page_params(QueryDescriptor(page=3, per_page=500, order="id", condition="1 = 1"))
    assert isinstance(params, FilterPageParams)
    assert (params.page, params.size) == (3, 500)


def test_references_table():
    assert references_table("people.id is not null and UPPER(addresses.description) like ?", "addresses")
    assert references_table('"Addresses".description IN (?)', "addresses")
    assert not references_table("people.id is not null and UPPER(email_addresses) like ?", "addresses")
    assert not references_table("old_addresses.id = ?", "addresses")


@pytest.mark.parametrize("order, qualified", [
    ("created_at", "people.created_at"),
    ("id DESC", "people.id DESC"),
    ("email ", "people.email "),
    ("addresses.description ASC", "addresses.description ASC"),
    ("nickname ASC", "nickname ASC"),
])
def test_qualify_order(order, qualified):
    assert qualify_order(Person, order) == qualified


def test_include_is_not_joined_unless_referenced():
    descriptor = QueryDescriptor(page=1, per_page=10, order="id", include=["address"], condition="people.id is not null")
    sql = str(build_query(Person, descriptor))
    assert "JOIN" not in sql
    assert "ORDER BY people.id" in sql


def test_many_to_one_include_is_joined_when_filtered():
    descriptor = QueryDescriptor(
        page=1, per_page=10, order="created_at", include=["address"],
        condition="people.id is not null and UPPER(addresses.description) like ?", values=["%YORK%"],
    )
    sql = str(build_query(Person, descriptor))
    assert "LEFT OUTER JOIN addresses" in sql
    assert "ORDER BY people.created_at" in sql


def test_collection_include_is_filtered_in_subquery():
    descriptor = QueryDescriptor(
        page=1, per_page=10, order="addresses.id", include=["people"],
        condition="addresses.id is not null and UPPER(people.full_name) like ?", values=["%E%"],
    )
    sql = str(build_query(Address, descriptor))
    assert "addresses.id IN (SELECT addresses.id" in sql
    assert sql.count("JOIN") == 1


def test_colons_in_order_are_escaped():
    descriptor = QueryDescriptor(page=1, per_page=10, order="people.full_name || ':x'", condition="1 = 1")
    assert "ORDER BY people.full_name || ':x'" in str(build_query(Person, descriptor))
