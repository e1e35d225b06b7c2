"""Tests for query predicates."""

import pytest

from dronescheduler.core.exceptions import DocumentError
from dronescheduler.core.types import InternalDroneUtilization
from dronescheduler.store.predicates import ALL, Field
from tests.fakes import make_utilization


@pytest.fixture
def raw():
    """A stored utilization document."""
    return make_utilization("d0001", traveled_miles=12.5).to_document()


class TestCompile:
    """Tests for compiling predicates to Cosmos SQL."""

    def test_all_compiles_to_true(self):
        """ALL has no parameters."""
        assert ALL.compile(InternalDroneUtilization) == ("true", [])

    def test_comparison_uses_json_names_and_parameters(self):
        """Field names are resolved to stored JSON names."""
        where, params = (Field("owner_id") == "o00042").compile(InternalDroneUtilization)

        assert where == "c.ownerId = @p0"
        assert params == [{"name": "@p0", "value": "o00042"}]

    def test_combined_predicates_number_parameters_in_order(self):
        """Parameters are numbered left to right."""
        predicate = (Field("year") >= 2019) & ((Field("month") < 7) | ~(Field("id") != "d1"))

        where, params = predicate.compile(InternalDroneUtilization, alias="u")

        assert where == "(u.year >= @p0) AND ((u.month < @p1) OR (NOT (u.id != @p2)))"
        assert [p["value"] for p in params] == [2019, 7, "d1"]

    def test_in_and_startswith(self):
        """IN and STARTSWITH use Cosmos system functions."""
        predicate = Field("owner_id").is_in(["o1", "o2"]) & Field("id").startswith("d00")

        where, params = predicate.compile(InternalDroneUtilization)

        assert where == "(ARRAY_CONTAINS(@p0, c.ownerId)) AND (STARTSWITH(c.id, @p1))"
        assert params[0]["value"] == ["o1", "o2"]

    def test_empty_in_never_matches(self):
        """An empty IN list compiles to false."""
        where, params = Field("id").is_in([]).compile(InternalDroneUtilization)

        assert where == "false"
        assert params == []

    def test_all_is_identity_for_and(self):
        """ALL & p is p itself."""
        predicate = Field("month") == 6

        assert (ALL & predicate) is predicate

    def test_unknown_field_raises(self):
        """Unknown attributes are rejected at compile time."""
        with pytest.raises(DocumentError):
            (Field("color") == "red").compile(InternalDroneUtilization)


class TestMatches:
    """Tests for in-memory evaluation."""

    def test_comparisons(self, raw):
        """Comparison operators evaluate against stored values."""
        assert (Field("traveled_miles") > 10).matches(InternalDroneUtilization, raw)
        assert (Field("traveled_miles") <= 12.5).matches(InternalDroneUtilization, raw)
        assert not (Field("month") != 6).matches(InternalDroneUtilization, raw)

    def test_boolean_combinations(self, raw):
        """AND, OR and NOT combine as expected."""
        yes = Field("month") == 6
        no = Field("month") == 7

        assert (yes | no).matches(InternalDroneUtilization, raw)
        assert not (yes & no).matches(InternalDroneUtilization, raw)
        assert (~no).matches(InternalDroneUtilization, raw)

    def test_missing_field_does_not_match(self):
        """A document lacking the field never matches a comparison."""
        raw = {"id": "x", "partitionKey": "p", "documentType": "InternalDroneUtilization"}

        assert not (Field("month") == 6).matches(InternalDroneUtilization, raw)
        assert not (Field("month") != 6).matches(InternalDroneUtilization, raw)

    def test_mixed_types_do_not_match(self, raw):
        """Comparing incompatible types is undefined, not an error."""
        assert not (Field("owner_id") > 5).matches(InternalDroneUtilization, raw)

    def test_in_and_startswith(self, raw):
        """IN and STARTSWITH evaluate on raw values."""
        assert Field("owner_id").is_in(["o00042"]).matches(InternalDroneUtilization, raw)
        assert Field("id").startswith("d00").matches(InternalDroneUtilization, raw)
        assert not Field("year").startswith("20").matches(InternalDroneUtilization, raw)

    def test_negated_comparison_on_missing_field_is_undefined(self):
        """NOT over an undefined comparison stays undefined, like the store."""
        raw = make_utilization("d0001").to_document()
        del raw["traveledMiles"]
        over = Field("traveled_miles") > 20

        assert not over.matches(InternalDroneUtilization, raw)
        assert not (~over).matches(InternalDroneUtilization, raw)

    def test_boolean_operators_over_undefined(self):
        """AND and OR follow SQL three-valued logic."""
        raw = make_utilization("d0001").to_document()
        del raw["traveledMiles"]
        undefined = Field("traveled_miles") > 20
        yes = Field("month") == 6
        no = Field("month") == 7

        assert (undefined | yes).matches(InternalDroneUtilization, raw)
        assert not (undefined | no).matches(InternalDroneUtilization, raw)
        assert not (undefined & yes).matches(InternalDroneUtilization, raw)
        assert not (~(undefined | no)).matches(InternalDroneUtilization, raw)
        assert (~(undefined & no)).matches(InternalDroneUtilization, raw)

    def test_bool_never_equals_number(self, raw):
        """Booleans and numbers are different JSON types."""
        raw["month"] = 1

        assert not (Field("month") == True).matches(InternalDroneUtilization, raw)  # noqa: E712
        assert not (Field("month") != True).matches(InternalDroneUtilization, raw)  # noqa: E712
        assert not Field("month").is_in([True]).matches(InternalDroneUtilization, raw)
        assert (Field("month") == 1.0).matches(InternalDroneUtilization, raw)
