#!/usr/bin/env python3
"""
Tests for the filter parser: allow-listing, renaming and date coercion.
"""

import copy
from datetime import datetime, timezone

import pytest

from docquery.exceptions import (
    DisallowedOperatorError, FilterValidationError, SchemaViolationError, UnknownPropertyError
)
from docquery.filters import FilterParser, PropertyRegistry
from docquery.models import CollectionQuery


JAN_1_2019 = datetime(2019, 1, 1, tzinfo=timezone.utc)


class TestKnownProperties:
    """Filters on exposed properties."""

    def test_plain_value(self, parser):
        assert parser.parse({"name": "image"}) == {"name": "image"}

    def test_numeric_value(self, parser):
        assert parser.parse({"id": 1}) == {"id": 1}

    def test_null_value_is_kept(self, parser):
        """A null filter value is valid and distinct from absence."""
        result = parser.parse({"id": None})
        assert "id" in result
        assert result["id"] is None

    def test_nested_allowed_operator(self, parser):
        assert parser.parse({"name": {"$regex": "^image/"}}) == {"name": {"$regex": "^image/"}}

    def test_property_inside_logical_operator(self, parser):
        result = parser.parse({"$or": [{"name": {"$regex": "^image/"}}]})
        assert result == {"$or": [{"name": {"$regex": "^image/"}}]}

    def test_empty_filter(self, parser):
        assert parser.parse({}) == {}

    def test_missing_filter(self, parser):
        assert parser.parse(None) == {}

    def test_input_is_not_modified(self, parser):
        raw = {"$and": [{"typeName": "x"}, {"created_at": {"$gte": "2019-01-01"}}]}
        snapshot = copy.deepcopy(raw)

        parser.parse(raw)

        assert raw == snapshot


class TestRenaming:
    """Public aliases map to canonical names."""

    def test_alias_is_renamed(self, parser):
        result = parser.parse({"typeName": {"$regex": "^image/"}})
        assert result == {"type_name": {"$regex": "^image/"}}

    def test_alias_renamed_inside_arrays(self, parser):
        result = parser.parse({"$and": [{"$or": [{"typeName": "a"}, {"name": "b"}]}]})
        assert result == {"$and": [{"$or": [{"type_name": "a"}, {"name": "b"}]}]}

    def test_identity_name_is_not_rewritten(self, parser):
        assert list(parser.parse({"name": "x"})) == ["name"]

    def test_parsing_canonical_filter_is_idempotent(self, parser):
        once = parser.parse({
            "$or": [
                {"typeName": {"$in": ["a", "b"]}},
                {"created_at": {"$lt": "2020-06-01T12:00:00Z"}},
            ]
        })
        twice = parser.parse(once)
        assert twice == once

    def test_alias_and_canonical_together_rejected(self, parser):
        with pytest.raises(SchemaViolationError):
            parser.parse({"typeName": "a", "type_name": "b"})


class TestDateCoercion:
    """Values of date properties become datetimes."""

    def test_operator_value_coerced(self, parser):
        result = parser.parse({"created_at": {"$gte": "2019-01-01"}})
        assert result == {"created_at": {"$gte": JAN_1_2019}}

    def test_scalar_value_coerced(self, parser):
        result = parser.parse({"created_at": "2019-01-01T00:00:00Z"})
        assert result == {"created_at": JAN_1_2019}

    def test_range_coerced(self, parser):
        result = parser.parse({"created_at": {"$gte": "2019-01-01", "$lt": "2019-02-01"}})
        assert result["created_at"]["$lt"] == datetime(2019, 2, 1, tzinfo=timezone.utc)

    def test_unix_timestamp_coerced(self, parser):
        result = parser.parse({"created_at": {"$gt": 1546300800}})
        assert result["created_at"]["$gt"] == JAN_1_2019

    def test_in_list_coerced(self, parser):
        result = parser.parse({"created_at": {"$in": ["2019-01-01", None]}})
        assert result["created_at"]["$in"] == [JAN_1_2019, None]

    @pytest.mark.parametrize("null_value", [None, "null", ""])
    def test_null_markers_scalar(self, parser, null_value):
        assert parser.parse({"created_at": null_value}) == {"created_at": None}

    @pytest.mark.parametrize("null_value", [None, "null", ""])
    def test_null_markers_in_operator(self, parser, null_value):
        assert parser.parse({"created_at": {"$eq": null_value}}) == {"created_at": {"$eq": None}}

    def test_exists_is_not_coerced(self, parser):
        assert parser.parse({"created_at": {"$exists": True}}) == {"created_at": {"$exists": True}}

    def test_not_operand_coerced(self, parser):
        result = parser.parse({"created_at": {"$not": {"$lt": "2019-01-01"}}})
        assert result == {"created_at": {"$not": {"$lt": JAN_1_2019}}}

    def test_invalid_date_rejected(self, parser):
        with pytest.raises(SchemaViolationError) as exc_info:
            parser.parse({"created_at": {"$gte": "yesterday-ish"}})
        assert "created_at" in str(exc_info.value)

    def test_date_in_nested_clause(self, parser):
        result = parser.parse({"$or": [{"created_at": {"$gte": "2019-01-01"}}, {"name": "x"}]})
        assert result["$or"][0] == {"created_at": {"$gte": JAN_1_2019}}


class TestRejections:
    """Unknown properties and disallowed operators."""

    def test_unknown_property(self, parser):
        with pytest.raises(UnknownPropertyError) as exc_info:
            parser.parse({"unknown": {"$regex": "^image/"}})
        assert exc_info.value.property == "unknown"
        assert "unknown" in str(exc_info.value)

    @pytest.mark.parametrize("raw", [
        {"$or": [{"unknown": {"$regex": "^x"}}]},
        {"$and": [{"name": "a"}, {"$or": [{"unknown": 1}]}]},
        {"$nor": [{"unknown": None}]},
        {"items": {"$elemMatch": {"unknown": 1}}},
    ])
    def test_unknown_property_at_any_depth(self, parser, raw):
        with pytest.raises(UnknownPropertyError):
            parser.parse(raw)

    def test_non_filterable_property(self, parser):
        with pytest.raises(UnknownPropertyError):
            parser.parse({"unfilterable": "x"})

    def test_unknown_operator(self, parser):
        with pytest.raises(DisallowedOperatorError) as exc_info:
            parser.parse({"name": {"$unknown": "^image/"}})
        assert exc_info.value.operator == "$unknown"

    def test_unknown_operator_inside_logical(self, parser):
        with pytest.raises(FilterValidationError):
            parser.parse({"$or": [{"name": {"$unknown": "^image/"}}]})

    @pytest.mark.parametrize("operator", ["$where", "$expr", "$function", "$text"])
    def test_injection_operators_rejected(self, parser, operator):
        with pytest.raises(DisallowedOperatorError):
            parser.parse({operator: "this.a == 1"})

    def test_schema_violation_after_transform(self, parser):
        with pytest.raises(SchemaViolationError) as exc_info:
            parser.parse({"$or": [{"name": {"$regex": {"$eq": "video"}}}]})
        assert exc_info.value.path == "$or[0].name.$regex"

    def test_non_dict_filter(self, parser):
        with pytest.raises(SchemaViolationError):
            parser.parse(["name"])

    def test_error_message_prefix(self, parser):
        with pytest.raises(FilterValidationError) as exc_info:
            parser.parse({"unknown": 1})
        assert str(exc_info.value).startswith("Filter validation failed: ")

    def test_deeply_nested_arrays(self, parser):
        nested = {"name": "a"}
        for _ in range(5000):
            nested = [nested]
        with pytest.raises(SchemaViolationError) as exc_info:
            parser.parse({"$or": nested})
        assert "maximum depth" in str(exc_info.value)

    def test_stacked_not_on_date_property(self, parser):
        operand = {"$lt": "2019-01-01"}
        for _ in range(5000):
            operand = {"$not": operand}
        with pytest.raises(SchemaViolationError) as exc_info:
            parser.parse({"created_at": operand})
        assert "maximum depth" in str(exc_info.value)

    def test_arrays_count_toward_depth(self, user_registry):
        parser = FilterParser(user_registry, max_depth=3)
        assert parser.parse({"$or": [{"name": "a"}]}) == {"$or": [{"name": "a"}]}
        with pytest.raises(SchemaViolationError):
            parser.parse({"$or": [{"$and": [{"name": "a"}]}]})

    def test_non_finite_numbers(self, parser):
        with pytest.raises(SchemaViolationError):
            parser.parse({"tags": {"$size": float("nan")}})
        with pytest.raises(SchemaViolationError):
            parser.parse({"id": {"$gt": float("inf")}})

    def test_max_depth(self, user_registry):
        parser = FilterParser(user_registry, max_depth=3)
        nested = {"$and": [{"$and": [{"$and": [{"name": "x"}]}]}]}
        with pytest.raises(SchemaViolationError) as exc_info:
            parser.parse(nested)
        assert "maximum depth" in str(exc_info.value)


class TestAllowList:
    """Each allowed operator validates on a filterable property."""

    @pytest.mark.parametrize("raw", [
        {"name": {"$eq": "a"}},
        {"name": {"$ne": "a"}},
        {"id": {"$gt": 1}},
        {"id": {"$gte": 1}},
        {"id": {"$lt": 1}},
        {"id": {"$lte": 1}},
        {"status": {"$in": ["a", "b"]}},
        {"status": {"$nin": ["a", "b"]}},
        {"tags": {"$all": ["a", "b"]}},
        {"$and": [{"name": "a"}]},
        {"$or": [{"name": "a"}]},
        {"$nor": [{"name": "a"}]},
        {"name": {"$not": {"$eq": "a"}}},
        {"name": {"$regex": "^a", "$options": "i"}},
        {"name": {"$exists": True}},
        {"tags": {"$size": 2}},
        {"name": {"$type": "string"}},
        {"items": {"$elemMatch": {"status": "active"}}},
    ])
    def test_operator_accepted(self, parser, raw):
        assert parser.parse(raw) == raw


class TestSortParsing:
    """Sort strings from the transport."""

    def test_mixed_directions(self, parser):
        assert parser.parse_sort("-created_at;name") == {"created_at": "desc", "name": "asc"}

    def test_alias_renamed(self, parser):
        assert parser.parse_sort("typeName") == {"type_name": "asc"}

    def test_empty(self, parser):
        assert parser.parse_sort("") is None
        assert parser.parse_sort(None) is None
        assert parser.parse_sort(" ; ") is None

    def test_unknown_field(self, parser):
        with pytest.raises(UnknownPropertyError):
            parser.parse_sort("-secret")

    def test_identity_field_always_sortable(self):
        registry = PropertyRegistry.builder("files").expose("name").build()
        assert FilterParser(registry).parse_sort("-_id") == {"_id": "desc"}

    def test_parse_query(self, parser):
        query = CollectionQuery(filter={"typeName": "pdf"}, sort="-created_at", page=2, limit=5)

        parsed = parser.parse_query(query)

        assert parsed.filter == {"type_name": "pdf"}
        assert parsed.sorter == {"created_at": "desc"}
        assert parsed.page == 2
        assert parsed.limit == 5
        assert query.filter == {"typeName": "pdf"}
