# WORKFLOW: Pydantic request schemas for API input validation.
# Used by: FastAPI endpoints, jurisdiction adapters, shipment orchestrator
# Schemas include:
# 1. TradeItem - A line item (name, manufacturer, material, weight, optional HS code)
# 2. FindByDescriptionRequest - For /{jurisdiction}/find-by-description
# 3. ShipmentRequest - For /check-shipment-compliance (addresses, boxes of items)
#
# Validation flow: HTTP request -> Pydantic validation -> Engine processing
# Fields are camelCase on the wire and snake_case in Python; both are accepted.
# Missing shipment countries are not rejected here: the orchestrator reports them
# as a request-level error before any item is processed.

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Union


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HSCodeModel(CamelModel):
    """Base for requests carrying an optional known HS code."""
    hs_code: Optional[str] = None

    @field_validator("hs_code", mode="before")
    @classmethod
    def coerce_hs_code(cls, v):
        # Numeric codes are accepted; blank ones count as missing
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class TradeItem(HSCodeModel):
    """A single line item submitted for compliance evaluation."""
    item_name: Optional[str] = Field(None, description="Free-text item name")
    item_description: Optional[str] = Field(None, description="Free-text item description")
    item_manufacturer: Optional[str] = Field(None, description="Manufacturer")
    material: Optional[str] = Field(None, description="Primary material")
    item_weight: Optional[Union[float, str]] = Field(None, description="Item weight")
    hs_code: Optional[str] = Field(None, description="Known HS code, used verbatim")

    @property
    def lookup_text(self) -> Optional[str]:
        """Text used for HS code resolution."""
        return self.item_name or self.item_description


class FindByDescriptionRequest(HSCodeModel):
    """Request schema for find-by-description endpoints."""
    description: Optional[str] = Field(None, description="Free-text description")
    hs_code: Optional[str] = Field(None, description="Known HS code")


class Address(CamelModel):
    country: Optional[str] = None


class Box(CamelModel):
    items: List[TradeItem] = Field(default_factory=list)


class ShipmentRequest(CamelModel):
    """Request schema for shipment compliance evaluation."""
    organization_name: Optional[str] = None
    source_address: Optional[Address] = None
    destination_address: Optional[Address] = None
    shipment_date: Optional[str] = None
    boxes: List[Box] = Field(default_factory=list)

    @property
    def source_country(self) -> str:
        return ((self.source_address and self.source_address.country) or "").strip().upper()

    @property
    def destination_country(self) -> str:
        return ((self.destination_address and self.destination_address.country) or "").strip().upper()

    def iter_items(self):
        """Yield items box by box, preserving submission order."""
        for box in self.boxes:
            yield from box.items
