"""Generic query engine over in-memory record collections.

A query runs four stages in a fixed order, each seeing only the records the
previous stage admitted:

1. search -- case-insensitive substring match on scalar field values
2. filter -- strict equality on every filter key
3. sort   -- stable multi-key sort, Unicode-collated string comparison
4. limit  -- truncate to max_records when positive

Records are plain JSON-compatible dicts. The helpers below pin down how each
value type is stringified and compared so results do not depend on Python's
looser defaults (True == 1, 1 == 1.0 across bool/int, and so on).
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from functools import cmp_to_key, lru_cache
from typing import Any

from pyuca import Collator

from mcp_records.models import QueryDescriptor, Record, SortSpec

_MISSING = object()


def stringify(value: Any) -> str:
	"""String form used for search and sort comparisons."""
	if value is None:
		return "null"
	if isinstance(value, bool):
		return "true" if value else "false"
	if isinstance(value, float):
		if math.isnan(value):
			return "NaN"
		if math.isinf(value):
			return "Infinity" if value > 0 else "-Infinity"
		if value.is_integer():
			return str(int(value))
		return repr(value)
	if isinstance(value, (int, str)):
		return str(value)
	if isinstance(value, (list, tuple, dict)):
		return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
	return str(value)


def _is_number(value: Any) -> bool:
	return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equal(a: Any, b: Any) -> bool:
	"""Equality without type coercion.

	Numbers compare by value regardless of int/float, but never equal a bool or
	a string. Lists and dicts compare element-wise with the same rules.
	"""
	if isinstance(a, bool) or isinstance(b, bool):
		return isinstance(a, bool) and isinstance(b, bool) and a is b
	if _is_number(a) or _is_number(b):
		return _is_number(a) and _is_number(b) and a == b
	if isinstance(a, str) or isinstance(b, str):
		return isinstance(a, str) and isinstance(b, str) and a == b
	if a is None or b is None:
		return a is None and b is None
	if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
		return len(a) == len(b) and all(strict_equal(x, y) for x, y in zip(a, b))
	if isinstance(a, Mapping) and isinstance(b, Mapping):
		if a.keys() != b.keys():
			return False
		return all(strict_equal(a[k], b[k]) for k in a)
	return type(a) is type(b) and a == b


def _searchable(value: Any) -> bool:
	return isinstance(value, (str, int, float))


def matches_search(record: Record, term: str, fields: Iterable[str] | None = None) -> bool:
	"""True when any eligible field contains term, ignoring case."""
	needle = term.casefold()
	allowed = set(fields) if fields is not None else None
	for key, value in record.items():
		if allowed is not None and key not in allowed:
			continue
		if _searchable(value) and needle in stringify(value).casefold():
			return True
	return False


def matches_filter(record: Record, criteria: Mapping[str, Any]) -> bool:
	"""True when every criteria key is present in record with a strictly equal value."""
	for key, expected in criteria.items():
		actual = record.get(key, _MISSING)
		if actual is _MISSING or not strict_equal(actual, expected):
			return False
	return True


@lru_cache(maxsize=1)
def _collator() -> Collator:
	# Loading the DUCET table is slow; build it once, on first sort.
	return Collator()


def collation_key(text: str) -> tuple[int, ...]:
	"""Unicode Collation Algorithm sort key: "apple" < "Banana" < "cherry"."""
	return _collator().sort_key(text)


def _compare_values(a: Any, b: Any, direction: str) -> int:
	if a is _MISSING and b is _MISSING:
		return 0
	if a is not _MISSING and b is not _MISSING and strict_equal(a, b):
		return 0
	# Missing values float to the front when ascending, to the back when descending.
	if a is _MISSING:
		return -1 if direction == "asc" else 1
	if b is _MISSING:
		return 1 if direction == "asc" else -1
	key_a = collation_key(stringify(a))
	key_b = collation_key(stringify(b))
	if key_a == key_b:
		return 0
	result = -1 if key_a < key_b else 1
	return result if direction == "asc" else -result


def _sort_key(specs: list[SortSpec]):
	def compare(a: Record, b: Record) -> int:
		for spec in specs:
			result = _compare_values(
				a.get(spec.field, _MISSING),
				b.get(spec.field, _MISSING),
				spec.direction,
			)
			if result != 0:
				return result
		return 0

	return cmp_to_key(compare)


def execute(
	records: Iterable[Record],
	query: QueryDescriptor | Mapping[str, Any] | None = None,
) -> list[Record]:
	"""Run a query over records and return the matching, ordered, bounded list.

	Pure and deterministic for a fixed (records, query) pair; the input is
	never mutated.

	Args:
		records: The candidate records, in their natural order.
		query: A QueryDescriptor, or an untyped camelCase query mapping.

	Returns:
		A new list holding the admitted records.
	"""
	if not isinstance(query, QueryDescriptor):
		query = QueryDescriptor.from_mapping(dict(query) if query else None)

	result = list(records)

	if query.search_term:
		result = [r for r in result if matches_search(r, query.search_term, query.fields)]

	if query.filter:
		result = [r for r in result if matches_filter(r, query.filter)]

	if query.sort:
		result = sorted(result, key=_sort_key(query.sort))

	if query.max_records is not None and query.max_records > 0:
		result = result[:query.max_records]

	return result
