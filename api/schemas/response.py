# WORKFLOW: Pydantic response schemas for the compliance engine and API.
# Used by: Code resolver, policy evaluator, jurisdiction adapters, orchestrator, routers
# Schemas include:
# 1. ResolutionMethod / CodeResolution - Outcome of the HS code waterfall
# 2. ComplianceResult - Policy evaluation of one HS code in one jurisdiction
# 3. ComplianceVerdict - Allow/deny verdict of a jurisdiction adapter
# 4. ResolveByDescriptionResponse - find-by-description contract
# 5. ItemReport / ShipmentSummary / ShipmentComplianceResponse - Shipment report
#
# Response flow: Engine -> Pydantic model -> camelCase JSON (None fields dropped by routers)

from enum import Enum
from typing import List, Optional, Union

from pydantic import Field, model_validator

from api.schemas.request import CamelModel, TradeItem

NOT_SPECIFIED = "Not specified"


class ResolutionMethod(str, Enum):
    PROVIDED = "provided"
    ITEM_NAME_EXACT = "item_name_exact"
    ITEM_NAME_PARTIAL = "item_name_partial"
    DESCRIPTION_EXACT = "description_exact"
    DESCRIPTION_PARTIAL = "description_partial"
    UNRESOLVED = "unresolved"


class CodeResolution(CamelModel):
    hs_code: Optional[str] = None
    method: ResolutionMethod = ResolutionMethod.UNRESOLVED
    note: Optional[str] = None
    reason: Optional[str] = None
    context: Optional[str] = Field(None, description="Semantic evidence gathered when unresolved")

    @property
    def resolved(self) -> bool:
        return self.hs_code is not None


class ComplianceResult(CamelModel):
    exists: bool
    allowed: bool
    policy: Optional[str] = None
    description: Optional[str] = None
    reason: Optional[str] = None

    @model_validator(mode="after")
    def unknown_codes_are_never_allowed(self):
        if not self.exists:
            self.allowed = False
        return self


class ComplianceVerdict(CamelModel):
    status: bool
    allowed: bool
    hs_code: Optional[str] = None
    policy: Optional[str] = None
    description: Optional[str] = None
    conditions: Optional[str] = None
    note: Optional[str] = None
    reason: Optional[str] = None
    queried_item_name: Optional[str] = None
    queried_description: Optional[str] = None


class ResolveByDescriptionResponse(CamelModel):
    status: bool
    hs_code: Optional[str] = None
    note: Optional[str] = None
    reason: Optional[str] = None


class ItemReport(CamelModel):
    item_name: Optional[str] = None
    item_manufacturer: str = NOT_SPECIFIED
    material: str = NOT_SPECIFIED
    item_weight: Union[float, str] = NOT_SPECIFIED
    hs_code: Optional[str] = None
    hs_code_note: Optional[str] = None

    status: bool = False
    export_status: bool = False
    import_status: bool = False

    reason: Optional[str] = None
    export_reason: Optional[str] = None
    export_policy: Optional[str] = None
    export_description: Optional[str] = None
    export_conditions: Optional[str] = None
    import_reason: Optional[str] = None
    import_policy: Optional[str] = None
    import_description: Optional[str] = None
    import_note: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_item(cls, item: TradeItem) -> "ItemReport":
        return cls(
            item_name=item.item_name,
            item_manufacturer=item.item_manufacturer or NOT_SPECIFIED,
            material=item.material or NOT_SPECIFIED,
            item_weight=item.item_weight if item.item_weight not in (None, "") else NOT_SPECIFIED,
        )


class ShipmentSummary(CamelModel):
    organization_name: Optional[str] = None
    source_country: str = NOT_SPECIFIED
    destination_country: str = NOT_SPECIFIED
    shipment_date: Optional[str] = None
    total_items: int = 0
    approved_items: int = 0
    rejected_items: int = 0


class ShipmentComplianceResponse(CamelModel):
    status: bool
    summary: ShipmentSummary
    report: List[ItemReport] = Field(default_factory=list)
