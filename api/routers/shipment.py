# WORKFLOW: Shipment compliance endpoint.
# Used by: Shipping / logistics clients submitting full shipments
# Endpoints:
# 1. /check-shipment-compliance - Export + import verdict for every item, plus summary
#
# Request flow: HTTP POST -> ShipmentRequest validation -> Orchestrator -> Report + summary
# Missing countries answer 400; unexpected faults answer 500 with a generic message
# and no partial report.

from fastapi import APIRouter, Depends, HTTPException, status
import logging

from api.dependencies import get_orchestrator
from api.schemas.request import ShipmentRequest
from api.schemas.response import ShipmentComplianceResponse
from core.exceptions import RequestInvalidError
from services.orchestrator import ShipmentOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["shipment"])


@router.post("/check-shipment-compliance", response_model=ShipmentComplianceResponse,
             response_model_exclude_none=True)
async def check_shipment_compliance(
    shipment: ShipmentRequest,
    orchestrator: ShipmentOrchestrator = Depends(get_orchestrator),
):
    """
    Check every item of a shipment for export from the source country and
    import into the destination country.
    """
    try:
        logger.info(
            f"Shipment compliance request: org={shipment.organization_name!r}, "
            f"{shipment.source_country or '?'} -> {shipment.destination_country or '?'}"
        )
        return await orchestrator.evaluate_shipment(shipment)

    except RequestInvalidError as e:
        logger.warning(f"Invalid shipment request: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.exception(f"Shipment compliance request failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while processing compliance check",
        )
