from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from crm_app.schemas.lead import TagSource

DEFAULT_TAG_COLOR = "#3B82F6"


class Tag(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(
        default="",
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
    )
    name: str
    color: str = DEFAULT_TAG_COLOR
    description: Optional[str] = None
    source: TagSource = TagSource.crm

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("color", mode="before")
    @classmethod
    def _default_color(cls, value: Any) -> str:
        return value or DEFAULT_TAG_COLOR

    @property
    def mutable(self) -> bool:
        return self.source == TagSource.crm


class TagWrite(BaseModel):
    name: str
    color: str = Field(default=DEFAULT_TAG_COLOR, pattern=r"^#[0-9A-Fa-f]{6}$")
    description: Optional[str] = None


class TagDeleteResult(BaseModel):
    tag_name: Optional[str] = None
    leads_updated: int = 0
    message: str


class ResolvedTag(BaseModel):
    """Display form of a lead's tag, resolved at read time."""

    source: TagSource
    id: Optional[str] = None
    name: str
    color: str
