"""Tests for value conversion and validation."""

from datetime import UTC, date, datetime

import pytest
from neo4j.spatial import CartesianPoint, WGS84Point
from neo4j.time import Date, DateTime, Time

from graph_ogm.core.errors import ValidationError
from graph_ogm.schema.model import Model
from graph_ogm.schema.property import Property
from graph_ogm.schema.validator import validate
from graph_ogm.schema.values import (
    clean_value,
    generate_default_values,
    parse_point,
    value_to_cypher,
    value_to_json,
)


def prop(type_name: str, **options) -> Property:
    return Property.from_schema("field", {"type": type_name, **options})


# =============================================================================
# clean_value
# =============================================================================


class TestCleanValue:
    def test_none_passes_through(self):
        assert clean_value(prop("int"), None) is None

    def test_numeric_string_to_integer(self):
        assert clean_value(prop("int"), "42") == 42
        assert clean_value(prop("integer"), 4.0) == 4

    def test_float(self):
        assert clean_value(prop("float"), "1.5") == 1.5

    def test_boolean(self):
        assert clean_value(prop("boolean"), 1) is True

    def test_string_is_untouched(self):
        assert clean_value(prop("string"), "Adam") == "Adam"

    def test_bad_integer(self):
        with pytest.raises(ValidationError) as exc_info:
            clean_value(prop("int"), "forty-two")

        assert exc_info.value.failures[0].path == "field"

    def test_datetime_from_iso_string(self):
        value = clean_value(prop("datetime"), "2024-01-15T10:30:00+00:00")

        assert isinstance(value, DateTime)
        assert value.year == 2024
        assert value.hour == 10

    def test_naive_datetime_string_gets_utc(self):
        value = clean_value(prop("datetime"), "2024-01-15T10:30:00")

        assert value.tzinfo is not None

    def test_datetime_from_epoch_milliseconds(self):
        value = clean_value(prop("datetime"), 0)

        assert value.to_native() == datetime(1970, 1, 1, tzinfo=UTC)

    def test_date(self):
        assert clean_value(prop("date"), "2024-01-15") == Date(2024, 1, 15)
        assert clean_value(prop("date"), date(2024, 1, 15)) == Date(2024, 1, 15)

    def test_time(self):
        value = clean_value(prop("localtime"), "10:30:00")

        assert isinstance(value, Time)
        assert value.hour == 10

    def test_driver_temporal_passes_through(self):
        value = Date(2024, 1, 15)

        assert clean_value(prop("date"), value) is value

    def test_bad_date_string(self):
        with pytest.raises(ValidationError):
            clean_value(prop("date"), "not a date")


# =============================================================================
# Points
# =============================================================================


class TestParsePoint:
    def test_geographic(self):
        point = parse_point(prop("point"), {"latitude": 51.5, "longitude": -0.1})

        assert isinstance(point, WGS84Point)
        assert point.longitude == -0.1
        assert point.latitude == 51.5

    def test_geographic_with_height(self):
        point = parse_point(prop("point"), {"latitude": 51.5, "longitude": -0.1, "height": 10})

        assert point.srid == 4979

    def test_cartesian(self):
        point = parse_point(prop("point"), {"x": 1, "y": 2})

        assert isinstance(point, CartesianPoint)
        assert (point.x, point.y) == (1, 2)

    def test_invalid(self):
        with pytest.raises(ValidationError):
            parse_point(prop("point"), {"latitude": 51.5})

    def test_not_a_mapping(self):
        with pytest.raises(ValidationError):
            parse_point(prop("point"), "51.5,-0.1")


# =============================================================================
# value_to_cypher / value_to_json
# =============================================================================


class TestConversions:
    def test_integral_float_becomes_int(self):
        assert value_to_cypher(prop("int"), 3.0) == 3
        assert isinstance(value_to_cypher(prop("int"), 3.0), int)

    def test_other_values_untouched(self):
        assert value_to_cypher(prop("float"), 3.0) == 3.0
        assert value_to_cypher(prop("string"), "x") == "x"

    def test_temporal_to_iso(self):
        assert value_to_json(None, Date(2024, 1, 15)) == "2024-01-15"

    def test_point_to_mapping(self):
        assert value_to_json(None, WGS84Point((-0.1, 51.5))) == {"longitude": -0.1, "latitude": 51.5}
        assert value_to_json(None, CartesianPoint((1, 2, 3))) == {"x": 1, "y": 2, "z": 3}

    def test_plain_values_untouched(self):
        assert value_to_json(None, "Adam") == "Adam"


# =============================================================================
# generate_default_values
# =============================================================================


class TestGenerateDefaultValues:
    @pytest.fixture
    def model(self) -> Model:
        return Model(
            "Account",
            {
                "account_id": {"type": "uuid", "primary": True},
                "status": {"type": "string", "default": "active"},
                "score": {"type": "int", "default": lambda: 10},
                "balance": "float",
                "owner": {"type": "node", "relationship": "OWNED_BY", "target": "Person"},
            },
        )

    def test_fills_defaults(self, model):
        output = generate_default_values(model, {})

        assert output["status"] == "active"
        assert output["score"] == 10
        assert len(output["account_id"]) == 36

    def test_keeps_given_values_and_cleans_them(self, model):
        output = generate_default_values(model, {"status": "closed", "balance": "2.5"})

        assert output["status"] == "closed"
        assert output["balance"] == 2.5

    def test_drops_undeclared_keys(self, model):
        assert "nickname" not in generate_default_values(model, {"nickname": "x"})

    def test_passes_relationship_keys_through(self, model):
        assert generate_default_values(model, {"owner": {"name": "Adam"}})["owner"] == {"name": "Adam"}

    def test_rejects_non_mappings(self, model):
        with pytest.raises(ValidationError, match="must be a mapping"):
            generate_default_values(model, None)


# =============================================================================
# validate
# =============================================================================


class TestValidate:
    def test_valid_bag(self, person):
        output = validate(person, {"person_id": "p-1", "name": "Adam", "age": 29})

        assert output == {"person_id": "p-1", "name": "Adam", "age": 29}

    def test_missing_required_field(self, person):
        with pytest.raises(ValidationError) as exc_info:
            validate(person, {"age": 29})

        assert [failure.path for failure in exc_info.value.failures] == ["name"]
        assert exc_info.value.details.model == "Person"

    def test_wrong_type(self, person):
        with pytest.raises(ValidationError) as exc_info:
            validate(person, {"name": "Adam", "age": "old"})

        assert exc_info.value.failures[0].path == "age"

    def test_every_failure_is_reported(self, person):
        with pytest.raises(ValidationError) as exc_info:
            validate(person, {"age": "old"})

        assert {failure.path for failure in exc_info.value.failures} == {"name", "age"}

    def test_unset_optional_fields_are_left_out(self, person):
        assert validate(person, {"name": "Adam"}) == {"name": "Adam"}

    def test_relationship_keys_survive(self, person):
        output = validate(person, {"name": "Adam", "knows": [{"name": "Alex"}]})

        assert output["knows"] == [{"name": "Alex"}]

    def test_relationship_properties(self, person):
        knows = person.relationship("knows")

        assert validate(knows, {"since": 2020}) == {"since": 2020}
        with pytest.raises(ValidationError):
            validate(knows, {"since": "a while"})
