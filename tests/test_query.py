"""Tests for the query engine."""

from __future__ import annotations

import pytest

from mcp_records.models import QueryDescriptor, SortSpec
from mcp_records.query import execute, matches_filter, matches_search, strict_equal, stringify


def _record(**overrides: object) -> dict:
	record: dict = {"id": "r1", "name": "Test record", "status": "ACTIVE"}
	record.update(overrides)
	return record


def _ids(records: list[dict]) -> list[str]:
	return [r["id"] for r in records]


@pytest.fixture()
def people() -> list[dict]:
	return [
		_record(id="p1", name="Jane Smith", age=34, city="Oslo", active=True),
		_record(id="p2", name="John Doe", age=9, city="Bergen", active=False),
		_record(id="p3", name="Alice Smithers", age=100, city="Oslo", active=True),
		_record(id="p4", name="Bob Brown", age=34, active=False),
		_record(id="p5", name="Eve Black", age=51, city="Bergen", active=True),
	]


class TestIdentity:
	def test_empty_query_keeps_order(self, people: list[dict]) -> None:
		assert _ids(execute(people, QueryDescriptor())) == ["p1", "p2", "p3", "p4", "p5"]

	def test_none_query(self, people: list[dict]) -> None:
		assert execute(people, None) == people

	def test_returns_new_list(self, people: list[dict]) -> None:
		result = execute(people, {})
		assert result == people
		assert result is not people

	def test_empty_input(self) -> None:
		query = QueryDescriptor(search_term="x", filter={"a": 1}, sort=[SortSpec(field="a")], max_records=3)
		assert execute([], query) == []

	def test_idempotent_without_limit(self, people: list[dict]) -> None:
		query = QueryDescriptor(
			search_term="o",
			filter={"active": True},
			sort=[SortSpec(field="city", direction="desc")],
		)
		once = execute(people, query)
		assert execute(once, query) == once

	def test_input_not_mutated(self, people: list[dict]) -> None:
		before = [dict(p) for p in people]
		execute(people, QueryDescriptor(sort=[SortSpec(field="name", direction="desc")]))
		assert people == before


class TestSearch:
	def test_case_insensitive_substring(self, people: list[dict]) -> None:
		assert _ids(execute(people, {"searchTerm": "smith"})) == ["p1", "p3"]

	def test_matches_numbers_and_booleans(self, people: list[dict]) -> None:
		assert _ids(execute(people, {"searchTerm": "51"})) == ["p5"]
		assert matches_search({"flag": True}, "TRUE")
		assert matches_search({"ratio": 2.5}, "2.5")

	def test_fields_allowlist(self, people: list[dict]) -> None:
		assert _ids(execute(people, {"searchTerm": "oslo", "fields": ["name"]})) == []
		assert _ids(execute(people, {"searchTerm": "oslo", "fields": ["city"]})) == ["p1", "p3"]

	def test_empty_term_is_no_search(self, people: list[dict]) -> None:
		assert execute(people, {"searchTerm": ""}) == people

	def test_null_and_containers_never_match(self) -> None:
		records = [
			{"id": "a", "note": None},
			{"id": "b", "tags": ["needle"]},
			{"id": "c", "meta": {"k": "needle"}},
		]
		assert execute(records, {"searchTerm": "null"}) == []
		assert execute(records, {"searchTerm": "needle"}) == []

	def test_any_field_matching_admits_record(self) -> None:
		record = {"id": "x", "first": "nothing", "second": "Haystack"}
		assert matches_search(record, "stack")


class TestFilter:
	def test_exact_match_only(self) -> None:
		records = [_record(id="a", status="ACTIVE"), _record(id="b", status="active")]
		assert _ids(execute(records, {"filter": {"status": "active"}})) == ["b"]
		assert _ids(execute(records, {"filter": {"status": "ACTIVE"}})) == ["a"]

	def test_no_type_coercion(self) -> None:
		assert not matches_filter({"n": 1}, {"n": "1"})
		assert not matches_filter({"n": 1}, {"n": True})
		assert not matches_filter({"n": True}, {"n": 1})
		assert not matches_filter({"n": None}, {"n": 0})

	def test_int_and_float_are_one_number_type(self) -> None:
		assert matches_filter({"n": 1}, {"n": 1.0})

	def test_record_missing_filter_key_is_excluded(self, people: list[dict]) -> None:
		assert _ids(execute(people, {"filter": {"city": "Oslo"}})) == ["p1", "p3"]

	def test_all_keys_must_match(self, people: list[dict]) -> None:
		assert _ids(execute(people, {"filter": {"age": 34, "active": False}})) == ["p4"]

	def test_empty_filter_admits_everything(self, people: list[dict]) -> None:
		assert execute(people, {"filter": {}}) == people

	def test_structured_values(self) -> None:
		assert strict_equal({"a": [1, "x"]}, {"a": [1.0, "x"]})
		assert not strict_equal({"a": [1]}, {"a": [True]})
		assert not strict_equal([1, 2], [1, 2, 3])
		assert not strict_equal({"a": 1}, {"b": 1})


class TestSort:
	def test_stable_for_equal_keys(self) -> None:
		records = [
			{"id": "a", "g": 1},
			{"id": "b", "g": 0},
			{"id": "c", "g": 1},
			{"id": "d", "g": 0},
		]
		result = execute(records, {"sort": [{"field": "g"}]})
		assert _ids(result) == ["b", "d", "a", "c"]

	def test_desc_keeps_stability(self) -> None:
		records = [
			{"id": "a", "g": 1},
			{"id": "b", "g": 0},
			{"id": "c", "g": 1},
		]
		result = execute(records, {"sort": [{"field": "g", "direction": "desc"}]})
		assert _ids(result) == ["a", "c", "b"]

	def test_multi_key(self, people: list[dict]) -> None:
		query = {"sort": [{"field": "age"}, {"field": "name", "direction": "desc"}]}
		assert _ids(execute(people, query)) == ["p3", "p1", "p4", "p5", "p2"]

	def test_string_comparison_not_numeric(self, people: list[dict]) -> None:
		# "100" < "34" < "51" < "9" as strings
		assert [r["age"] for r in execute(people, {"sort": [{"field": "age"}]})] == [100, 34, 34, 51, 9]

	def test_missing_field_first_when_ascending(self, people: list[dict]) -> None:
		assert _ids(execute(people, {"sort": [{"field": "city"}]}))[0] == "p4"

	def test_missing_field_last_when_descending(self, people: list[dict]) -> None:
		assert _ids(execute(people, {"sort": [{"field": "city", "direction": "desc"}]}))[-1] == "p4"

	def test_equal_strings_fall_through_to_next_key(self) -> None:
		records = [{"id": "b", "v": 1}, {"id": "a", "v": "1"}]
		result = execute(records, {"sort": [{"field": "v"}, {"field": "id"}]})
		assert _ids(result) == ["a", "b"]

	def test_empty_sort_list_keeps_order(self, people: list[dict]) -> None:
		assert execute(people, {"sort": []}) == people

	def test_mixed_case_collates_alphabetically(self) -> None:
		records = [{"id": "c", "n": "cherry"}, {"id": "b", "n": "Banana"}, {"id": "a", "n": "apple"}]
		assert [r["n"] for r in execute(records, {"sort": [{"field": "n"}]})] == ["apple", "Banana", "cherry"]
		assert [r["n"] for r in execute(records, {"sort": [{"field": "n", "direction": "desc"}]})] == [
			"cherry", "Banana", "apple",
		]

	def test_accented_letters_sort_with_their_base_letter(self) -> None:
		records = [{"id": "1", "n": "zebra"}, {"id": "2", "n": "éclair"}, {"id": "3", "n": "dog"}]
		assert _ids(execute(records, {"sort": [{"field": "n"}]})) == ["3", "2", "1"]


class TestLimit:
	@pytest.mark.parametrize("max_records", [0, -1, None])
	def test_non_positive_or_absent_is_unbounded(self, people: list[dict], max_records: int | None) -> None:
		assert len(execute(people, QueryDescriptor(max_records=max_records))) == 5

	def test_truncates_after_sort(self, people: list[dict]) -> None:
		query = QueryDescriptor(sort=[SortSpec(field="name")], max_records=2)
		assert _ids(execute(people, query)) == ["p3", "p4"]

	def test_limit_larger_than_result(self, people: list[dict]) -> None:
		assert len(execute(people, {"maxRecords": 50})) == 5


class TestStages:
	def test_users_scenario(self) -> None:
		records = [
			{"id": "u1", "role": "admin"},
			{"id": "u2", "role": "user"},
			{"id": "u3", "role": "user"},
		]
		query = {"filter": {"role": "user"}, "sort": [{"field": "id", "direction": "desc"}]}
		assert execute(records, query) == [{"id": "u3", "role": "user"}, {"id": "u2", "role": "user"}]

	def test_search_then_filter_then_sort_then_limit(self, people: list[dict]) -> None:
		query = QueryDescriptor(
			search_term="o",
			filter={"active": False},
			sort=[SortSpec(field="name", direction="desc")],
			max_records=1,
		)
		assert _ids(execute(people, query)) == ["p2"]


class TestQueryDescriptor:
	def test_from_mapping_ignores_bad_shapes(self) -> None:
		query = QueryDescriptor.from_mapping({
			"searchTerm": 5,
			"fields": "name",
			"filter": ["x"],
			"sort": [{"field": "a", "direction": "sideways"}, {"nofield": 1}, "b"],
			"maxRecords": "3",
		})
		assert query.search_term is None
		assert query.fields is None
		assert query.filter is None
		assert [(s.field, s.direction) for s in query.sort] == [("a", "asc")]
		assert query.max_records is None

	def test_fractional_and_non_finite_limits(self) -> None:
		assert QueryDescriptor.from_mapping({"maxRecords": 2.7}).max_records == 2
		assert QueryDescriptor.from_mapping({"maxRecords": float("inf")}).max_records is None

	def test_round_trip_mapping(self) -> None:
		raw = {
			"searchTerm": "x",
			"fields": ["a"],
			"filter": {"b": 1},
			"sort": [{"field": "c", "direction": "desc"}],
			"maxRecords": 2,
		}
		assert QueryDescriptor.from_mapping(raw).to_mapping() == raw


class TestStringify:
	@pytest.mark.parametrize(
		("value", "expected"),
		[
			(True, "true"),
			(False, "false"),
			(None, "null"),
			(3, "3"),
			(3.0, "3"),
			(2.5, "2.5"),
			("text", "text"),
			([1, "a"], '[1,"a"]'),
			({"k": 1}, '{"k":1}'),
		],
	)
	def test_string_forms(self, value: object, expected: str) -> None:
		assert stringify(value) == expected
