from __future__ import annotations

from datetime import date
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Salesperson(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(
        default="",
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="id",
    )
    username: str = ""
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    designation: Optional[str] = None
    contact: Optional[str] = None
    profile_image: Optional[str] = Field(default=None, alias="profileImage")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @property
    def name(self) -> str:
        return self.username


class SalespersonCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    designation: Optional[str] = None
    contact: Optional[str] = None


class SalespersonUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    designation: Optional[str] = None
    contact: Optional[str] = None


class EmailUpdate(BaseModel):
    email: str = Field(..., min_length=3)


class PasswordUpdate(BaseModel):
    password: str = Field(..., min_length=6)


class SalespersonSummary(BaseModel):
    id: str
    name: str
    today: int = 0
    all: int = 0
    missed: int = 0
    unscheduled: int = 0
    closed: int = 0
    void: int = 0


class SalesSummaryRequest(BaseModel):
    date_from: Optional[date] = None
    date_to: Optional[date] = None


class SalesSummaryResponse(BaseModel):
    rows: List[SalespersonSummary]
    totals: SalespersonSummary
