# WORKFLOW: Per-jurisdiction endpoints for HS code resolution and compliance checks.
# Used by: Direct API calls, integration clients
# Endpoints:
# 1. /{jurisdiction}/find-by-description - Resolve a description (or known code) to an HS code
# 2. /{jurisdiction}/check-export-compliance - Export verdict for one item
# 3. /{jurisdiction}/check-import-compliance - Import verdict for one item
#
# Request flow: HTTP POST -> Registry lookup -> Jurisdiction adapter -> Verdict
# Unknown jurisdictions and unsupported directions answer 404 without any lookup.

from fastapi import APIRouter, Depends, HTTPException, status
import asyncio
import logging

from api.dependencies import get_registry
from api.schemas.request import FindByDescriptionRequest, TradeItem
from api.schemas.response import ComplianceVerdict, ResolveByDescriptionResponse
from core.exceptions import JurisdictionUnsupportedError, RequestInvalidError
from services.jurisdictions import EXPORT, IMPORT, JurisdictionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["jurisdiction"])


def _raise_http(e: Exception, action: str):
    if isinstance(e, RequestInvalidError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, JurisdictionUnsupportedError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    logger.error(f"{action} failed: {e}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"An error occurred while {action}",
    )


@router.post("/{jurisdiction}/find-by-description", response_model=ResolveByDescriptionResponse,
             response_model_exclude_none=True)
async def find_by_description(
    jurisdiction: str,
    request: FindByDescriptionRequest,
    registry: JurisdictionRegistry = Depends(get_registry),
):
    """Resolve a free-text description to an HS code in one jurisdiction."""
    try:
        logger.info(f"Find-by-description request: {jurisdiction}, description={request.description!r}")
        adapter = registry.get(jurisdiction)
        if adapter is None:
            raise JurisdictionUnsupportedError(jurisdiction.strip().upper(), "HS code lookup")
        return await asyncio.to_thread(adapter.resolve_by_description, request.description, request.hs_code)
    except Exception as e:
        _raise_http(e, "finding HS code")


@router.post("/{jurisdiction}/check-export-compliance", response_model=ComplianceVerdict,
             response_model_exclude_none=True)
async def check_export_compliance(
    jurisdiction: str,
    item: TradeItem,
    registry: JurisdictionRegistry = Depends(get_registry),
):
    """Evaluate whether an item may be exported from a jurisdiction."""
    try:
        logger.info(f"Export compliance request: {jurisdiction}, item={item.item_name!r}, hs={item.hs_code}")
        adapter = registry.require(jurisdiction, EXPORT)
        return await asyncio.to_thread(adapter.evaluate_export, item)
    except Exception as e:
        _raise_http(e, "checking export compliance")


@router.post("/{jurisdiction}/check-import-compliance", response_model=ComplianceVerdict,
             response_model_exclude_none=True)
async def check_import_compliance(
    jurisdiction: str,
    item: TradeItem,
    registry: JurisdictionRegistry = Depends(get_registry),
):
    """Evaluate whether an item may be imported into a jurisdiction."""
    try:
        logger.info(f"Import compliance request: {jurisdiction}, item={item.item_name!r}, hs={item.hs_code}")
        adapter = registry.require(jurisdiction, IMPORT)
        return await asyncio.to_thread(adapter.evaluate_import, item)
    except Exception as e:
        _raise_http(e, "checking import compliance")
