from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ReferenceKind(str, Enum):
    categories = "categories"
    products = "products"
    lead_source = "lead-source"
    lead_status = "lead-status"

    @property
    def singular(self) -> str:
        return {
            ReferenceKind.categories: "category",
            ReferenceKind.products: "product",
            ReferenceKind.lead_source: "lead-source",
            ReferenceKind.lead_status: "lead-status",
        }[self]

    @property
    def plural(self) -> str:
        return {
            ReferenceKind.categories: "categories",
            ReferenceKind.products: "products",
            ReferenceKind.lead_source: "lead-sources",
            ReferenceKind.lead_status: "lead-status",
        }[self]

    @property
    def lead_field(self) -> str:
        """Lead attribute that stores names from this list."""

        return {
            ReferenceKind.categories: "category",
            ReferenceKind.products: "product",
            ReferenceKind.lead_source: "lead_source",
            ReferenceKind.lead_status: "lead_status",
        }[self]


class ReferenceItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(
        default="",
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
    )
    name: str

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return "" if value is None else str(value)


class ReferenceWrite(BaseModel):
    name: str
