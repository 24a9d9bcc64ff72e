"""Pydantic models for Notion pages, property values and database schemas."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag


class FieldKind(str, Enum):
    """Notion property types the sync understands."""

    TITLE = "title"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    PHONE_NUMBER = "phone_number"
    FORMULA = "formula"
    ROLLUP = "rollup"
    SELECT = "select"
    STATUS = "status"
    RELATION = "relation"


IDENTIFIER_KINDS = frozenset(
    {
        FieldKind.TITLE,
        FieldKind.RICH_TEXT,
        FieldKind.NUMBER,
        FieldKind.PHONE_NUMBER,
        FieldKind.FORMULA,
        FieldKind.ROLLUP,
    }
)

_KNOWN_KINDS = frozenset(kind.value for kind in FieldKind)


class NotionModel(BaseModel):
    """Base model ignoring the many Notion attributes the sync never reads."""

    model_config = ConfigDict(extra="ignore")


class RichTextItem(NotionModel):
    plain_text: str = ""


class OptionRef(NotionModel):
    id: Optional[str] = None
    name: str


class PageRef(NotionModel):
    id: str


class _PropertyValueBase(NotionModel):
    id: Optional[str] = None


class TitleValue(_PropertyValueBase):
    type: Literal["title"] = "title"
    title: List[RichTextItem] = Field(default_factory=list)


class RichTextValue(_PropertyValueBase):
    type: Literal["rich_text"] = "rich_text"
    rich_text: List[RichTextItem] = Field(default_factory=list)


class NumberValue(_PropertyValueBase):
    type: Literal["number"] = "number"
    number: Optional[Union[int, float]] = None


class PhoneNumberValue(_PropertyValueBase):
    type: Literal["phone_number"] = "phone_number"
    phone_number: Optional[str] = None


class FormulaResult(NotionModel):
    type: str
    string: Optional[str] = None
    number: Optional[Union[int, float]] = None


class FormulaValue(_PropertyValueBase):
    type: Literal["formula"] = "formula"
    formula: FormulaResult


class RollupResult(NotionModel):
    type: str
    number: Optional[Union[int, float]] = None
    array: List["PropertyValue"] = Field(default_factory=list)


class RollupValue(_PropertyValueBase):
    type: Literal["rollup"] = "rollup"
    rollup: RollupResult


class SelectValue(_PropertyValueBase):
    type: Literal["select"] = "select"
    select: Optional[OptionRef] = None


class StatusValue(_PropertyValueBase):
    type: Literal["status"] = "status"
    status: Optional[OptionRef] = None


class RelationValue(_PropertyValueBase):
    type: Literal["relation"] = "relation"
    relation: List[PageRef] = Field(default_factory=list)
    has_more: bool = False


class UnsupportedValue(_PropertyValueBase):
    """Any property type outside :class:`FieldKind` (dates, people, files...)."""

    type: str


def _property_tag(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    return kind if kind in _KNOWN_KINDS else "unsupported"


PropertyValue = Annotated[
    Union[
        Annotated[TitleValue, Tag("title")],
        Annotated[RichTextValue, Tag("rich_text")],
        Annotated[NumberValue, Tag("number")],
        Annotated[PhoneNumberValue, Tag("phone_number")],
        Annotated[FormulaValue, Tag("formula")],
        Annotated[RollupValue, Tag("rollup")],
        Annotated[SelectValue, Tag("select")],
        Annotated[StatusValue, Tag("status")],
        Annotated[RelationValue, Tag("relation")],
        Annotated[UnsupportedValue, Tag("unsupported")],
    ],
    Discriminator(_property_tag),
]

RollupResult.model_rebuild()
RollupValue.model_rebuild()


class Page(NotionModel):
    """A single record of a Notion database."""

    id: str
    url: Optional[str] = None
    properties: Dict[str, PropertyValue] = Field(default_factory=dict)


class QueryResult(NotionModel):
    """One page of results returned by a database query."""

    results: List[Page] = Field(default_factory=list)
    has_more: bool = False
    next_cursor: Optional[str] = None


class SelectOption(NotionModel):
    id: Optional[str] = None
    name: str
    color: Optional[str] = None


class StatusGroup(NotionModel):
    id: Optional[str] = None
    name: str
    option_ids: List[str] = Field(default_factory=list)


class SelectConfig(NotionModel):
    options: List[SelectOption] = Field(default_factory=list)


class StatusConfig(NotionModel):
    options: List[SelectOption] = Field(default_factory=list)
    groups: List[StatusGroup] = Field(default_factory=list)


class RelationConfig(NotionModel):
    database_id: str


class DatabaseField(NotionModel):
    """Field descriptor from a database schema."""

    id: Optional[str] = None
    name: str
    type: str
    relation: Optional[RelationConfig] = None
    select: Optional[SelectConfig] = None
    status: Optional[StatusConfig] = None

    @property
    def kind(self) -> Optional[FieldKind]:
        """Return the known field kind, or ``None`` for unsupported types."""
        if self.type in _KNOWN_KINDS:
            return FieldKind(self.type)
        return None

    @property
    def target_table_id(self) -> Optional[str]:
        return self.relation.database_id if self.relation else None

    @property
    def options(self) -> List[SelectOption]:
        if self.status is not None:
            return list(self.status.options)
        if self.select is not None:
            return list(self.select.options)
        return []

    @property
    def groups(self) -> List[StatusGroup]:
        return list(self.status.groups) if self.status is not None else []


class DatabaseSchema(NotionModel):
    """Field catalog of one Notion database."""

    id: str
    title: List[RichTextItem] = Field(default_factory=list)
    properties: Dict[str, DatabaseField] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        text = "".join(item.plain_text for item in self.title).strip()
        return text or self.id

    @property
    def fields(self) -> List[DatabaseField]:
        """Return the fields in the order Notion listed them."""
        return list(self.properties.values())

    def get_field(self, name: str) -> Optional[DatabaseField]:
        return self.properties.get(name)


class FieldRoles(NotionModel):
    """Fields of one table detected for the identifier, relation and status roles."""

    table_id: str
    identifier: Optional[DatabaseField] = None
    relation: Optional[DatabaseField] = None
    status: Optional[DatabaseField] = None
    relation_degraded: bool = False
