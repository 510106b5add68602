"""Tests for the catalog record model."""

from collections.abc import Callable
from typing import Any

import pytest

from petrodedupe.models import Record, RecordValidationError, is_absent


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        pytest.param(None, True, id="none"),
        pytest.param("", True, id="empty"),
        pytest.param("   ", True, id="whitespace"),
        pytest.param("-", True, id="dash_sentinel"),
        pytest.param(" - ", True, id="padded_dash"),
        pytest.param("Gray", False, id="text"),
        pytest.param("--", False, id="double_dash"),
        pytest.param(0, False, id="zero"),
        pytest.param(False, False, id="false"),
        pytest.param(7.5, False, id="float"),
    ],
)
def test_is_absent(value: Any, expected: bool) -> None:
    """Null, blank and the dash placeholder carry no data; numbers do."""
    assert is_absent(value) is expected


@pytest.mark.unit
def test_from_dict_splits_metadata_and_fields(make_row: Callable[..., dict]) -> None:
    """Known columns become attributes; the rest land in fields."""
    row = make_row(id="abc", color="Gray", updated_at="2023-02-01", hardness=6)

    record = Record.from_dict(row)

    assert record.id == "abc"
    assert record.name == "Granite"
    assert record.category == "Igneous"
    assert record.created_at == "2023-01-01T00:00:00+00:00"
    assert record.updated_at == "2023-02-01"
    assert record.fields == {"color": "Gray", "hardness": 6}


@pytest.mark.unit
def test_to_dict_round_trips_row(make_row: Callable[..., dict]) -> None:
    """Flattening returns the original row shape."""
    row = make_row(id=7, locality="Benguet", rock_code="O-0001")

    assert Record.from_dict(row).to_dict() == row


@pytest.mark.unit
@pytest.mark.parametrize(
    ("row", "match"),
    [
        pytest.param({"name": "Granite", "category": "Igneous"}, "id", id="missing_id"),
        pytest.param({"id": 1, "category": "Igneous"}, "name", id="missing_name"),
        pytest.param({"id": 1.5, "name": "A", "category": "B"}, "id", id="float_id"),
        pytest.param(
            {"id": 1, "name": "A", "category": "B", "tags": ["x"]}, "tags", id="list_value"
        ),
        pytest.param(
            {"id": 1, "name": "A", "category": "B", "meta": {"k": 1}}, "meta", id="object_value"
        ),
    ],
)
def test_from_dict_rejects_invalid_rows(row: dict, match: str) -> None:
    """Rows that break the record schema raise RecordValidationError."""
    with pytest.raises(RecordValidationError, match=match):
        Record.from_dict(row)


@pytest.mark.unit
def test_from_dict_rejects_non_object() -> None:
    """A bare value is not a row."""
    with pytest.raises(RecordValidationError, match="must be an object"):
        Record.from_dict(["id", 1])  # type: ignore[arg-type]


@pytest.mark.unit
def test_validation_error_carries_record_id() -> None:
    """The offending row id is kept for diagnostics."""
    with pytest.raises(RecordValidationError) as exc_info:
        Record.from_dict({"id": 42, "name": "A", "category": "B", "bad": [1]})

    assert exc_info.value.record_id == 42


@pytest.mark.unit
def test_null_name_and_category_are_valid(make_record: Callable[..., Record]) -> None:
    """Degenerate rows load; grouping decides what to do with them."""
    record = make_record(name=None, category=None)

    assert record.name is None
    assert record.category is None


@pytest.mark.unit
def test_with_fields_returns_updated_copy(make_record: Callable[..., Record]) -> None:
    """with_fields never mutates the original record."""
    original = make_record(color="")

    updated = original.with_fields(color="Pink", category="Plutonic")

    assert original.fields["color"] == ""
    assert original.category == "Igneous"
    assert updated.fields["color"] == "Pink"
    assert updated.category == "Plutonic"
    assert updated.id == original.id


@pytest.mark.unit
@pytest.mark.parametrize("column", ["id", "created_at", "updated_at"])
def test_with_fields_refuses_store_metadata(
    make_record: Callable[..., Record], column: str
) -> None:
    """Store-managed columns are immutable."""
    with pytest.raises(ValueError, match="store-managed"):
        make_record().with_fields(**{column: "x"})


@pytest.mark.unit
def test_data_items_exclude_metadata(make_record: Callable[..., Record]) -> None:
    """data_items lists name, category and open fields only."""
    record = make_record(updated_at="2024-01-01", color="Gray")

    assert dict(record.data_items()) == {
        "name": "Granite",
        "category": "Igneous",
        "color": "Gray",
    }
