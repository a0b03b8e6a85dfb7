"""
Domain models for the web service client.

Options and configuration are pydantic models so they are validated at the
call boundary; request descriptors and results are frozen dataclasses that
are built once and handed back to the caller.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator


class Operation(str, Enum):
    """Logical operations understood by the web service."""
    LOGIN = "login"
    VIEW = "view"
    EDIT = "edit"
    EDIT_ALL = "editAll"
    CREATE = "create"
    DELETE = "delete"
    APP = "app"
    ATTACH = "attach"
    ROW_COUNT = "rowCount"
    CUSTOM = "custom"


class MatchMode(str, Enum):
    """How a filter clause compares its value."""
    CONTAINS = "contains"
    EXACT = "exact"


def to_wire(value: Any) -> str:
    """Render a value the way the backend's browser clients always sent it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class FilterClause(BaseModel):
    """A single (field, value, match mode) condition."""

    model_config = ConfigDict(frozen=True)

    field_name: str
    value: str
    match: MatchMode = MatchMode.CONTAINS

    @classmethod
    def from_sequence(cls, clause: Union["FilterClause", Sequence[Any]]) -> "FilterClause":
        """
        Build a clause from ``[field, value]`` or ``[field, value, "exact"]``.

        Only the literal third element ``"exact"`` selects exact matching;
        any other third element is ignored.
        """
        if isinstance(clause, FilterClause):
            return clause
        if isinstance(clause, (str, bytes)) or not isinstance(clause, Sequence) or len(clause) < 2:
            raise ValueError(f"filter clause must be [field, value] or [field, value, 'exact'], got {clause!r}")

        match = MatchMode.CONTAINS
        if len(clause) > 2 and clause[2] == "exact":
            match = MatchMode.EXACT
        return cls(field_name=to_wire(clause[0]), value=to_wire(clause[1]), match=match)


FilterInput = Sequence[Union[FilterClause, Sequence[Any]]]
EidInput = Union[str, Sequence[Any], None]


def coerce_filter(clauses: Optional[FilterInput]) -> List[FilterClause]:
    """Normalize caller supplied filter clauses; None yields an empty list."""
    if clauses is None:
        return []
    if isinstance(clauses, (str, bytes)):
        raise ValueError("filter must be a sequence of clauses, not a string")
    return [FilterClause.from_sequence(clause) for clause in clauses]


class RequestOptions(BaseModel):
    """Per-call options. Unset pagination falls back to the client defaults."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    rows_per_page: Optional[PositiveInt] = Field(default=None, alias="rowsPerPage")
    start_row: Optional[PositiveInt] = Field(default=None, alias="startRow")
    filter: List[FilterClause] = Field(default_factory=list)

    @field_validator("filter", mode="before")
    @classmethod
    def parse_filter(cls, v: Any) -> List[FilterClause]:
        return coerce_filter(v)


class ClientConfig(BaseModel):
    """Instance-wide defaults for a client."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    rows_per_page: PositiveInt = Field(default=25, alias="rowsPerPage")
    start_row: PositiveInt = Field(default=1, alias="startRow")
    request_timeout: Optional[float] = Field(default=None, alias="requestTimeout")


class FieldDefinition(BaseModel):
    """Column metadata entry from an envelope's ``DataDef`` list."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    display_name: str = Field(alias="DisplayName")
    col_num: Any = Field(alias="ColNum")


class FormData:
    """
    Multipart payload for file uploads.

    Text values become plain form fields; anything else is sent as a file
    part and may be given in any shape httpx accepts for ``files``.
    """

    def __init__(self):
        self.fields: Dict[str, str] = {}
        self.files: Dict[str, Any] = {}

    def add_field(self, name: str, value: str) -> "FormData":
        self.fields[name] = value
        return self

    def add_file(
        self,
        name: str,
        content: Any,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> "FormData":
        if filename is None:
            self.files[name] = content
        elif content_type is None:
            self.files[name] = (filename, content)
        else:
            self.files[name] = (filename, content, content_type)
        return self

    def append(self, name: str, value: Any) -> "FormData":
        if isinstance(value, str):
            return self.add_field(name, value)
        return self.add_file(name, value)

    def __bool__(self) -> bool:
        return bool(self.fields or self.files)


@dataclass(frozen=True)
class RequestDescriptor:
    """Everything needed to dispatch one call, without performing it."""

    operation: Operation
    url: str
    method: str = "POST"
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    form_fields: Optional[Dict[str, str]] = None
    files: Optional[Dict[str, Any]] = None

    @property
    def is_multipart(self) -> bool:
        return self.files is not None


@dataclass(frozen=True)
class NormalizedResult:
    """Simplified view of a successful envelope."""

    raw: Dict[str, Any]
    data: Any = None
    field_set: Dict[str, Any] = field(default_factory=dict)
    transaction: Optional[str] = None
    view: Optional[str] = None
    sql: Optional[str] = None

    def column(self, name: str) -> Optional[Any]:
        """Column number for a display name, spaced or not."""
        return self.field_set.get(name)
