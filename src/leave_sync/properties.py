"""Read normalized scalar values out of Notion property values."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Union

from .models import (
    FieldKind,
    FormulaValue,
    NumberValue,
    Page,
    PhoneNumberValue,
    RelationValue,
    RichTextItem,
    RichTextValue,
    RollupValue,
    SelectValue,
    StatusValue,
    TitleValue,
)

LOGGER = logging.getLogger(__name__)

Scalar = Union[str, int, float]


def extract_property(
    page: Page, field_name: str, expected_kind: Optional[FieldKind] = None
) -> Any:
    """Return the normalized value of ``field_name`` on ``page``.

    Args:
        page: Notion page to read from.
        field_name: Property name as shown in the database.
        expected_kind: When given, values of any other kind are treated as absent.

    Returns:
        A string or number for scalar kinds, a list of page ids for relations,
        or ``None`` when the property is missing, empty or unsupported.
    """
    value = page.properties.get(field_name)
    if value is None:
        return None
    if expected_kind is not None and value.type != FieldKind(expected_kind).value:
        LOGGER.debug(
            "Property %r on %s is %s, expected %s.",
            field_name,
            page.id,
            value.type,
            FieldKind(expected_kind).value,
        )
        return None
    return property_value(value)


def property_value(value: Any) -> Any:
    """Dispatch on the property kind and return its normalized value."""
    if isinstance(value, TitleValue):
        return _join_text(value.title)
    if isinstance(value, RichTextValue):
        return _join_text(value.rich_text)
    if isinstance(value, NumberValue):
        return value.number
    if isinstance(value, PhoneNumberValue):
        return value.phone_number
    if isinstance(value, FormulaValue):
        return _formula_value(value)
    if isinstance(value, RollupValue):
        return _rollup_value(value)
    if isinstance(value, (SelectValue, StatusValue)):
        option = value.select if isinstance(value, SelectValue) else value.status
        return option.name if option is not None and option.name else None
    if isinstance(value, RelationValue):
        return relation_ids(value)
    return None


def relation_ids(value: RelationValue) -> List[str]:
    """Return the linked page ids in the order Notion stores them."""
    return [ref.id for ref in value.relation]


def _join_text(items: List[RichTextItem]) -> Optional[str]:
    text = "".join(item.plain_text for item in items).strip()
    return text or None


def _formula_value(value: FormulaValue) -> Optional[Scalar]:
    result = value.formula
    if result.type == "string":
        text = (result.string or "").strip()
        return text or None
    if result.type == "number":
        return result.number
    return None


def _rollup_value(value: RollupValue) -> Any:
    result = value.rollup
    if result.type == "array":
        if not result.array:
            return None
        return property_value(result.array[0])
    if result.type == "number":
        return result.number
    return None
