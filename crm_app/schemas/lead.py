from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def coerce_datetime(value: Any) -> Optional[datetime]:
    """Parse an API timestamp into a naive local datetime, or ``None``."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        # Python 3.10 fromisoformat does not accept the "Z" suffix
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def coerce_date(value: Any) -> Optional[date]:
    """Parse a scheduling date; bare ``YYYY-MM-DD`` strings stay on that calendar day."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return coerce_datetime(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10]) if len(text) == 10 else coerce_datetime(text).date()
        except (ValueError, AttributeError):
            return None
    return None


class TagSource(str, Enum):
    crm = "crm"
    systemeio = "systemeio"
    whatsapp = "whatsapp"


class StatusFilter(str, Enum):
    today = "today"
    all = "all"
    unscheduled = "unscheduled"
    pending = "Pending"
    miss = "Miss"
    closed = "Closed"
    deals = "Deals"
    void = "Void"
    customer = "Customer"


class SortOrder(str, Enum):
    ascending = "Ascending"
    descending = "Descending"


class TagRef(BaseModel):
    source: TagSource = TagSource.crm
    id: str

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)


class Lead(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    id: str = Field(
        default="",
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
    )
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    city: Optional[str] = None
    category: Optional[str] = None
    product: Optional[str] = None
    lead_source: Optional[str] = Field(default=None, alias="leadSource")
    lead_status: Optional[str] = Field(default=None, alias="leadStatus")
    tags: List[Union[str, TagRef]] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    lead_start_date: Optional[date] = Field(default=None, alias="leadStartDate")
    lead_start_time: Optional[str] = Field(default=None, alias="leadStartTime")
    reminder_date: Optional[date] = Field(default=None, alias="reminderDate")
    reminder_time: Optional[str] = Field(default=None, alias="reminderTime")
    # legacy preview of the newest comment; comments are fetched separately
    comment: Optional[str] = None
    salesperson: Optional[str] = None
    salesperson_id: Optional[str] = Field(default=None, alias="salespersonId")
    created_by: Optional[str] = Field(default=None, alias="createdBy")
    tester_salesman: Optional[str] = Field(default=None, alias="testerSalesman")

    @field_validator("id", "salesperson_id", "created_by", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_list(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (str, dict, TagRef))]

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> Optional[datetime]:
        return coerce_datetime(value)

    @field_validator("lead_start_date", "reminder_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Optional[date]:
        return coerce_date(value)

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def text(self, field: str) -> str:
        """Return a field as a string, treating missing values as empty."""

        value = getattr(self, field, None)
        return "" if value is None else str(value)


class LeadWrite(BaseModel):
    """Payload for creating or updating a lead."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(..., alias="firstName", min_length=1)
    last_name: Optional[str] = Field(default=None, alias="lastName")
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    city: Optional[str] = None
    category: Optional[str] = None
    product: Optional[str] = None
    lead_source: Optional[str] = Field(default=None, alias="leadSource")
    lead_status: Optional[str] = Field(default=None, alias="leadStatus")
    tags: List[Union[str, TagRef]] = Field(default_factory=list)
    lead_start_date: Optional[str] = Field(default=None, alias="leadStartDate")
    lead_start_time: Optional[str] = Field(default=None, alias="leadStartTime")
    reminder_date: Optional[str] = Field(default=None, alias="reminderDate")
    reminder_time: Optional[str] = Field(default=None, alias="reminderTime")
    salesperson_id: Optional[str] = Field(default=None, alias="salespersonId")

    @field_validator("first_name")
    @classmethod
    def _strip_first_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("first name is required")
        return value

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True, mode="json")


class LeadListRequest(BaseModel):
    product: Optional[str] = None
    status: Optional[str] = None
    search: Optional[str] = None
    sort_order: SortOrder = SortOrder.ascending
    filter: Optional[StatusFilter] = None


class LeadListResponse(BaseModel):
    total: int
    items: List[Lead]
    products: List[str] = Field(default_factory=list)
    statuses: List[str] = Field(default_factory=list)
    filter_counts: dict = Field(default_factory=dict)


class LeadWriteResponse(BaseModel):
    lead: Optional[Lead] = None
    leads: List[Lead]


class BatchDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)


class BatchDeleteResult(BaseModel):
    requested: int
    deleted_ids: List[str] = Field(default_factory=list)
    failed_ids: List[str] = Field(default_factory=list)
    message: str

    @property
    def failed(self) -> int:
        return len(self.failed_ids)


class BatchDeleteResponse(BaseModel):
    result: BatchDeleteResult
    leads: List[Lead]


class AssignRequest(BaseModel):
    lead_ids: List[str] = Field(..., min_length=1)
    salesperson_id: str


class LeadTagRequest(BaseModel):
    tag: Union[TagRef, str]
