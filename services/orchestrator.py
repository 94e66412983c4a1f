# WORKFLOW: Shipment orchestrator: per-item resolve -> export check -> import check state machine.
# Used by: /check-shipment-compliance endpoint
# Functions:
# 1. evaluate_shipment() - Validate countries, fan out items, fold reports into a summary
# 2. evaluate_item() - Drive one item through the state machine to APPROVED or REJECTED
# 3. _jurisdiction_check() / _resolve_code() / _export_check() / _import_check() - State handlers
# 4. summarize() - Derive the shipment summary from the report sequence
#
# Item state machine:
#   JURISDICTION_CHECK -> {REJECTED | RESOLVE_CODE} -> {REJECTED | EXPORT_CHECK}
#     -> {REJECTED | IMPORT_CHECK} -> {REJECTED | APPROVED}
# A rejection short-circuits the item; later stages are never run.
# Unsupported countries are rejected before any lookup, embedding or LLM call.
# Adapter errors become item rejections and never abort the remaining items.
# Anything raised outside an adapter call propagates (request-level failure).
#
# Items run concurrently in worker threads; gather() keeps report order == input order.

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional
import logging

from api.schemas.request import ShipmentRequest, TradeItem
from api.schemas.response import (
    NOT_SPECIFIED, ComplianceVerdict, ItemReport, ShipmentComplianceResponse, ShipmentSummary
)
from core.config import settings
from core.exceptions import RequestInvalidError
from services.jurisdictions import EXPORT, IMPORT, JurisdictionAdapter, JurisdictionRegistry

logger = logging.getLogger(__name__)


class ItemState(str, Enum):
    JURISDICTION_CHECK = "jurisdiction_check"
    RESOLVE_CODE = "resolve_code"
    EXPORT_CHECK = "export_check"
    IMPORT_CHECK = "import_check"
    APPROVED = "approved"
    REJECTED = "rejected"


TERMINAL_STATES = {ItemState.APPROVED, ItemState.REJECTED}


@dataclass
class ItemContext:
    """Mutable state of one item travelling through the state machine."""
    item: TradeItem
    report: ItemReport
    source: str
    destination: str
    source_adapter: Optional[JurisdictionAdapter]
    destination_adapter: Optional[JurisdictionAdapter]
    hs_code: Optional[str] = None

    def resolved_item(self) -> TradeItem:
        return self.item.model_copy(update={"hs_code": self.hs_code})


class ShipmentOrchestrator:
    """Evaluates every line item of a shipment for export and import compliance."""

    def __init__(self, registry: JurisdictionRegistry,
                 max_concurrent_items: Optional[int] = None,
                 item_timeout_seconds: Optional[float] = None):
        self.registry = registry
        self.max_concurrent_items = max_concurrent_items or settings.max_concurrent_items
        self.item_timeout_seconds = item_timeout_seconds or settings.item_timeout_seconds
        self._handlers: Dict[ItemState, Callable[[ItemContext], ItemState]] = {
            ItemState.JURISDICTION_CHECK: self._jurisdiction_check,
            ItemState.RESOLVE_CODE: self._resolve_code,
            ItemState.EXPORT_CHECK: self._export_check,
            ItemState.IMPORT_CHECK: self._import_check,
        }

    async def evaluate_shipment(self, shipment: ShipmentRequest) -> ShipmentComplianceResponse:
        """
        Evaluate a shipment.

        Args:
            shipment: Shipment with source/destination countries and boxes of items

        Returns:
            ShipmentComplianceResponse with overall status, summary and per-item report

        Raises:
            RequestInvalidError: source or destination country missing
        """
        source = shipment.source_country
        destination = shipment.destination_country
        if not source or not destination:
            raise RequestInvalidError("Missing source or destination country information")

        items = list(shipment.iter_items())
        logger.info(f"Evaluating shipment {source} -> {destination} with {len(items)} items")

        semaphore = asyncio.Semaphore(self.max_concurrent_items)

        async def run(item: TradeItem) -> ItemReport:
            async with semaphore:
                try:
                    return await asyncio.wait_for(
                        asyncio.to_thread(self.evaluate_item, item, source, destination),
                        timeout=self.item_timeout_seconds,
                    )
                except asyncio.TimeoutError:
                    logger.error(f"Item '{item.item_name}' timed out after {self.item_timeout_seconds}s")
                    report = ItemReport.from_item(item)
                    report.hs_code = item.hs_code
                    report.reason = "Compliance evaluation timed out"
                    return report

        reports: List[ItemReport] = list(await asyncio.gather(*(run(item) for item in items)))
        summary = self.summarize(shipment, reports)

        logger.info(f"Shipment {source} -> {destination}: {summary.approved_items} approved, "
                    f"{summary.rejected_items} rejected")
        return ShipmentComplianceResponse(
            status=all(report.status for report in reports),
            summary=summary,
            report=reports,
        )

    def evaluate_item(self, item: TradeItem, source: str, destination: str) -> ItemReport:
        """Drive one item through the state machine and return its report."""
        context = ItemContext(
            item=item,
            report=ItemReport.from_item(item),
            source=source,
            destination=destination,
            source_adapter=self.registry.get(source),
            destination_adapter=self.registry.get(destination),
        )

        state = ItemState.JURISDICTION_CHECK
        while state not in TERMINAL_STATES:
            state = self._handlers[state](context)

        if state is ItemState.APPROVED:
            context.report.status = True
            context.report.message = f"Eligible for export from {source} and import into {destination}"
        else:
            context.report.status = False

        logger.info(f"Item '{item.item_name}' -> {state.value}")
        return context.report

    def _jurisdiction_check(self, context: ItemContext) -> ItemState:
        """Reject up front when either country has no logic for its direction."""
        source_adapter = context.source_adapter
        destination_adapter = context.destination_adapter
        export_supported = source_adapter is not None and source_adapter.supports_export
        import_supported = destination_adapter is not None and destination_adapter.supports_import
        if export_supported and import_supported:
            return ItemState.RESOLVE_CODE

        report = context.report
        report.hs_code = context.item.hs_code
        if not export_supported:
            self._reject(context, EXPORT, f"Export compliance check not implemented for {context.source}")
        if not import_supported:
            self._reject(context, IMPORT, f"Import compliance check not implemented for {context.destination}")
        # Both stage reasons are kept when neither country is supported
        report.reason = " ".join(r for r in (report.export_reason, report.import_reason) if r)
        return ItemState.REJECTED

    def _resolve_code(self, context: ItemContext) -> ItemState:
        report = context.report

        if context.item.hs_code:
            context.hs_code = report.hs_code = context.item.hs_code
            return ItemState.EXPORT_CHECK

        try:
            resolution = context.source_adapter.resolve_code(context.item.lookup_text)
        except Exception as e:
            logger.error(f"Error finding HS code for '{context.item.item_name}': {e}")
            return self._reject(context, None, "Error determining HS code")

        if not resolution.resolved:
            return self._reject(context, None, resolution.reason or "HS Code could not be determined")

        context.hs_code = report.hs_code = resolution.hs_code
        report.hs_code_note = resolution.note or "Generated from item name"
        return ItemState.EXPORT_CHECK

    def _export_check(self, context: ItemContext) -> ItemState:
        report = context.report
        try:
            verdict = context.source_adapter.evaluate_export(context.resolved_item())
        except Exception as e:
            logger.error(f"Error checking export compliance from {context.source}: {e}")
            return self._reject(context, EXPORT, f"Error checking export compliance from {context.source}: {e}")

        if not verdict.status:
            return self._reject(context, EXPORT, verdict.reason or f"Not eligible for export from {context.source}")

        report.export_status = True
        report.export_policy = verdict.policy or "Allowed"
        report.export_description = verdict.description or "Standard export"
        report.export_conditions = verdict.conditions
        return ItemState.IMPORT_CHECK

    def _import_check(self, context: ItemContext) -> ItemState:
        report = context.report
        try:
            verdict: ComplianceVerdict = context.destination_adapter.evaluate_import(context.resolved_item())
        except Exception as e:
            logger.error(f"Error checking import compliance for {context.destination}: {e}")
            return self._reject(context, IMPORT,
                                f"Error checking import compliance for {context.destination}: {e}")

        if not verdict.status:
            return self._reject(context, IMPORT,
                                verdict.reason or f"Not allowed for import in {context.destination}")

        report.import_status = True
        report.import_policy = verdict.policy or "Allowed"
        report.import_description = verdict.description or "Standard import"
        report.import_note = verdict.note
        return ItemState.APPROVED

    def _reject(self, context: ItemContext, stage: Optional[str], reason: str) -> ItemState:
        report = context.report
        report.reason = reason
        if stage == EXPORT:
            report.export_status = False
            report.export_reason = reason
        elif stage == IMPORT:
            report.import_status = False
            report.import_reason = reason
        return ItemState.REJECTED

    @staticmethod
    def summarize(shipment: ShipmentRequest, reports: List[ItemReport]) -> ShipmentSummary:
        approved = sum(1 for report in reports if report.status)
        return ShipmentSummary(
            organization_name=shipment.organization_name,
            source_country=(shipment.source_address and shipment.source_address.country) or NOT_SPECIFIED,
            destination_country=(shipment.destination_address and shipment.destination_address.country)
            or NOT_SPECIFIED,
            shipment_date=shipment.shipment_date,
            total_items=len(reports),
            approved_items=approved,
            rejected_items=len(reports) - approved,
        )
