from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from crm_app.schemas.lead import Lead, coerce_datetime
from crm_app.schemas.tag import ResolvedTag


class Comment(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(
        default="",
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
    )
    lead_id: Optional[str] = Field(default=None, alias="leadId")
    text: str = ""
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    added_by: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("addedBy", "createdBy", "added_by"),
        serialization_alias="addedBy",
    )
    role: Optional[str] = None

    @field_validator("id", "lead_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> Optional[datetime]:
        return coerce_datetime(value)


class CommentCreate(BaseModel):
    text: str
    added_by: Optional[str] = None
    role: Optional[str] = None


class LeadDetail(BaseModel):
    lead: Lead
    comments: List[Comment]
    latest_comment: Optional[str] = None
    tags: List[ResolvedTag] = Field(default_factory=list)
