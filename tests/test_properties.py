"""Tests for property value extraction."""

from __future__ import annotations

from leave_sync.models import FieldKind, Page
from leave_sync.properties import extract_property

from factories import number, page, relation, rich_text, select, status, title


def _page(properties: dict) -> Page:
    return Page.model_validate(page("page-1", properties))


def test_text_runs_are_concatenated_and_trimmed() -> None:
    record = _page({"Name": title(""), "ID": rich_text(" 12", "34 ")})

    assert extract_property(record, "ID") == "1234"
    assert extract_property(record, "Name") is None


def test_number_and_phone_values_are_verbatim() -> None:
    record = _page(
        {
            "Number": number(123456789),
            "Empty": number(None),
            "Phone": {"type": "phone_number", "phone_number": "+966 55"},
        }
    )

    assert extract_property(record, "Number") == 123456789
    assert isinstance(extract_property(record, "Number"), int)
    assert extract_property(record, "Empty") is None
    assert extract_property(record, "Phone") == "+966 55"


def test_formula_dispatches_on_its_own_type() -> None:
    record = _page(
        {
            "AsText": {"type": "formula", "formula": {"type": "string", "string": " ٤٥ "}},
            "AsNumber": {"type": "formula", "formula": {"type": "number", "number": 45}},
            "AsBool": {"type": "formula", "formula": {"type": "boolean", "boolean": True}},
        }
    )

    assert extract_property(record, "AsText") == "٤٥"
    assert extract_property(record, "AsNumber") == 45
    assert extract_property(record, "AsBool") is None


def test_rollup_uses_first_array_element_or_number() -> None:
    record = _page(
        {
            "Titles": {
                "type": "rollup",
                "rollup": {"type": "array", "array": [title("111"), title("222")]},
            },
            "Numbers": {"type": "rollup", "rollup": {"type": "array", "array": [number(7)]}},
            "Sum": {"type": "rollup", "rollup": {"type": "number", "number": 9}},
            "Nothing": {"type": "rollup", "rollup": {"type": "array", "array": []}},
            "Dates": {
                "type": "rollup",
                "rollup": {"type": "array", "array": [{"type": "date", "date": None}]},
            },
        }
    )

    assert extract_property(record, "Titles") == "111"
    assert extract_property(record, "Numbers") == 7
    assert extract_property(record, "Sum") == 9
    assert extract_property(record, "Nothing") is None
    assert extract_property(record, "Dates") is None


def test_choice_values_return_option_names() -> None:
    record = _page(
        {
            "Status": status("موافقة"),
            "Unset": status(None),
            "Select": select("قيد الانتظار"),
            "EmptySelect": select(None),
        }
    )

    assert extract_property(record, "Status") == "موافقة"
    assert extract_property(record, "Unset") is None
    assert extract_property(record, "Select") == "قيد الانتظار"
    assert extract_property(record, "EmptySelect") is None


def test_relation_returns_ordered_ids() -> None:
    record = _page({"Employee": relation("b", "a"), "None": relation()})

    assert extract_property(record, "Employee") == ["b", "a"]
    assert extract_property(record, "None") == []


def test_missing_unsupported_and_mismatched_values_are_absent() -> None:
    record = _page(
        {
            "Due": {"type": "date", "date": {"start": "2024-01-01"}},
            "ID": number(5),
        }
    )

    assert extract_property(record, "Missing") is None
    assert extract_property(record, "Due") is None
    assert extract_property(record, "ID", FieldKind.RELATION) is None
    assert extract_property(record, "ID", FieldKind.NUMBER) == 5
