# WORKFLOW: Jurisdiction adapters exposing a uniform resolve-and-evaluate capability.
# Used by: Shipment orchestrator, per-jurisdiction API endpoints
# Adapters:
# 1. JurisdictionAdapter - Shared resolve_code / resolve_by_description / resolve_and_evaluate
# 2. ExportControlAdapter - Export-licensing semantics (INDIA); generated denial reasons
# 3. TariffScheduleAdapter - Import/export schedule semantics (USA); deterministic denial reasons
# 4. SimulatedImportAdapter - Import-only check borrowed from another schedule (CANADA)
# 5. JurisdictionRegistry / build_registry() - Case-insensitive lookup over the closed set
#
# Adapter flow: Item -> resolve_code (resolver + explainer) -> PolicyEvaluator -> ComplianceVerdict
# Unknown jurisdictions never reach a lookup: the registry returns None and callers
# report "<direction> compliance check not implemented for <NAME>".

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from api.schemas.request import TradeItem
from api.schemas.response import (
    CodeResolution, ComplianceResult, ComplianceVerdict, ResolveByDescriptionResponse
)
from core.exceptions import JurisdictionUnsupportedError, RequestInvalidError
from corpus.models import ReferenceCorpus, normalize_text
from services.explainer import ExplainerService, get_explainer
from services.policy import DEFAULT_RESTRICTED_POLICY, PolicyEvaluator
from services.resolver import CodeResolver

logger = logging.getLogger(__name__)

EXPORT = "Export"
IMPORT = "Import"


def normalize_jurisdiction(name: Optional[str]) -> str:
    return (name or "").strip().upper()


class JurisdictionAdapter(ABC):
    """Base adapter: HS code resolution and policy evaluation for one jurisdiction."""

    supports_export = True
    supports_import = True
    approval_conditions: Optional[str] = None

    def __init__(self, name: str, corpus: ReferenceCorpus,
                 resolver: Optional[CodeResolver] = None,
                 evaluator: Optional[PolicyEvaluator] = None,
                 explainer: Optional[ExplainerService] = None):
        self.name = normalize_jurisdiction(name)
        self.corpus = corpus
        self._explainer = explainer
        self.resolver = resolver or CodeResolver()
        self.evaluator = evaluator or PolicyEvaluator(explainer)

    @property
    def explainer(self) -> ExplainerService:
        if self._explainer is None:
            self._explainer = get_explainer()
        return self._explainer

    def resolve_code(self, description: Optional[str], known_code: Optional[str] = None) -> CodeResolution:
        """Resolve a description to an HS code, explaining the failure when unresolved."""
        resolution = self.resolver.resolve(description, known_code, self.corpus)
        if not resolution.resolved:
            resolution.reason = self.explain_unresolved(normalize_text(description), resolution)
        return resolution

    def resolve_by_description(self, description: Optional[str],
                               hs_code: Optional[str] = None) -> ResolveByDescriptionResponse:
        if not description and not hs_code:
            raise RequestInvalidError("Missing required fields: provide either description or hsCode")

        resolution = self.resolve_code(description, hs_code)
        if resolution.resolved:
            return ResolveByDescriptionResponse(status=True, hs_code=resolution.hs_code, note=resolution.note)
        return ResolveByDescriptionResponse(status=False, reason=resolution.reason)

    def resolve_and_evaluate(self, item: TradeItem) -> ComplianceVerdict:
        """
        Resolve the item's HS code and evaluate it against this jurisdiction's policies.

        Args:
            item: Line item with an HS code, a name or a description

        Returns:
            ComplianceVerdict; status is True only when the code exists and is allowed
        """
        if not (item.hs_code or item.item_name or item.item_description):
            raise RequestInvalidError(
                "Missing required fields. Please provide either hsCode, itemName, or itemDescription"
            )

        resolution = self.resolve_code(item.lookup_text, item.hs_code)
        if not resolution.resolved:
            return ComplianceVerdict(
                status=False,
                allowed=False,
                reason=resolution.reason,
                queried_item_name=item.item_name,
                queried_description=normalize_text(item.lookup_text),
            )

        hs_code = resolution.hs_code
        result = self.evaluator.evaluate(hs_code, self.corpus)

        if not result.exists:
            return ComplianceVerdict(
                status=False,
                allowed=False,
                hs_code=hs_code,
                reason=result.reason,
                queried_item_name=item.item_name,
            )

        if result.allowed:
            return ComplianceVerdict(
                status=True,
                allowed=True,
                hs_code=hs_code,
                policy=result.policy,
                description=result.description,
                conditions=self.approval_conditions,
                note=resolution.note,
                queried_item_name=item.item_name,
            )

        return ComplianceVerdict(
            status=False,
            allowed=False,
            hs_code=hs_code,
            policy=result.policy,
            description=result.description,
            reason=self.denial_reason(hs_code, result),
            queried_item_name=item.item_name,
        )

    def evaluate_export(self, item: TradeItem) -> ComplianceVerdict:
        if not self.supports_export:
            raise JurisdictionUnsupportedError(self.name, EXPORT)
        return self.resolve_and_evaluate(item)

    def evaluate_import(self, item: TradeItem) -> ComplianceVerdict:
        if not self.supports_import:
            raise JurisdictionUnsupportedError(self.name, IMPORT)
        return self.resolve_and_evaluate(item)

    def supports(self, direction: str) -> bool:
        return self.supports_export if direction == EXPORT else self.supports_import

    @abstractmethod
    def denial_reason(self, hs_code: str, result: ComplianceResult) -> str:
        """Reason reported when a known code is not allowed."""

    def explain_unresolved(self, normalized: str, resolution: CodeResolution) -> str:
        if not normalized:
            return resolution.reason or "No item name or description provided"

        prompt = (
            f'Given the description "{normalized}" not found in {self.name} import/export regulations, '
            f"provide a short reason why this item might be restricted."
        )
        if resolution.context:
            prompt += f"\n\nRelevant regulation excerpts:\n{resolution.context}"
        fallback = (
            f'No matching HS code found for description "{normalized}". '
            f"Unable to determine a specific reason."
        )
        return self.explainer.explain(prompt, fallback)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class ExportControlAdapter(JurisdictionAdapter):
    """Export-licensing jurisdiction: denials carry a generated justification."""

    approval_conditions = "Standard export conditions apply"

    def denial_reason(self, hs_code: str, result: ComplianceResult) -> str:
        policy = result.policy or DEFAULT_RESTRICTED_POLICY
        prompt = (
            f"Given the HS code {hs_code} is not allowed for export from {self.name} "
            f"under the policy '{policy}', provide a short reason why this item is restricted."
        )
        fallback = f"Export not allowed for HS Code {hs_code} with policy {policy}."
        return self.explainer.explain(prompt, fallback)


class TariffScheduleAdapter(JurisdictionAdapter):
    """Import/export schedule jurisdiction: denials carry a deterministic reason."""

    def denial_reason(self, hs_code: str, result: ComplianceResult) -> str:
        return f"Import/export not allowed for HS Code {hs_code} with policy {result.policy or DEFAULT_RESTRICTED_POLICY}"


class SimulatedImportAdapter(JurisdictionAdapter):
    """Import-only jurisdiction evaluated against another jurisdiction's schedule."""

    supports_export = False

    def __init__(self, name: str, delegate: JurisdictionAdapter, note: str):
        super().__init__(name, delegate.corpus, resolver=delegate.resolver, evaluator=delegate.evaluator)
        self.delegate = delegate
        self.note = note

    @property
    def explainer(self) -> ExplainerService:
        return self.delegate.explainer

    def resolve_code(self, description: Optional[str], known_code: Optional[str] = None) -> CodeResolution:
        return self.delegate.resolve_code(description, known_code)

    def resolve_and_evaluate(self, item: TradeItem) -> ComplianceVerdict:
        verdict = self.delegate.resolve_and_evaluate(item)
        if verdict.status:
            verdict.note = self.note
        return verdict

    def denial_reason(self, hs_code: str, result: ComplianceResult) -> str:
        return self.delegate.denial_reason(hs_code, result)


class JurisdictionRegistry:
    """Closed set of supported jurisdictions, looked up case-insensitively."""

    def __init__(self, adapters: Iterable[JurisdictionAdapter] = ()):
        self._adapters: Dict[str, JurisdictionAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: JurisdictionAdapter) -> None:
        self._adapters[normalize_jurisdiction(adapter.name)] = adapter
        logger.info(f"Registered jurisdiction adapter: {adapter!r}")

    def get(self, name: Optional[str]) -> Optional[JurisdictionAdapter]:
        return self._adapters.get(normalize_jurisdiction(name))

    def require(self, name: Optional[str], direction: str = EXPORT) -> JurisdictionAdapter:
        """Return the adapter supporting ``direction`` or raise JurisdictionUnsupportedError."""
        adapter = self.get(name)
        if adapter is None or not adapter.supports(direction):
            raise JurisdictionUnsupportedError(normalize_jurisdiction(name), direction)
        return adapter

    def names(self) -> List[str]:
        return sorted(self._adapters)

    def __contains__(self, name: str) -> bool:
        return normalize_jurisdiction(name) in self._adapters


# Jurisdictions with their own reference data
JURISDICTION_VARIANTS = {
    "INDIA": ExportControlAdapter,
    "USA": TariffScheduleAdapter,
}

# Import-only jurisdictions borrowing another schedule: name -> (delegate, note)
SIMULATED_IMPORTS: Dict[str, Tuple[str, str]] = {
    "CANADA": ("USA", "Canadian import compliance check simulated"),
}


def build_registry(store: Dict[str, ReferenceCorpus],
                   resolver: Optional[CodeResolver] = None,
                   evaluator: Optional[PolicyEvaluator] = None,
                   explainer: Optional[ExplainerService] = None) -> JurisdictionRegistry:
    """
    Build the adapter registry for a loaded reference store.

    Args:
        store: Mapping of jurisdiction name to its corpus
        resolver: Shared code resolver (defaults to a new CodeResolver)
        evaluator: Shared policy evaluator (defaults to one using ``explainer``)
        explainer: Shared text generator

    Returns:
        JurisdictionRegistry with one adapter per supported jurisdiction
    """
    resolver = resolver or CodeResolver()
    evaluator = evaluator or PolicyEvaluator(explainer)
    registry = JurisdictionRegistry()

    for name, corpus in store.items():
        key = normalize_jurisdiction(name)
        adapter_class = JURISDICTION_VARIANTS.get(key)
        if adapter_class is None:
            logger.warning(f"No adapter variant for jurisdiction {key}; reference data ignored")
            continue
        registry.register(adapter_class(key, corpus, resolver=resolver, evaluator=evaluator, explainer=explainer))

    for name, (delegate_name, note) in SIMULATED_IMPORTS.items():
        delegate = registry.get(delegate_name)
        if delegate is not None:
            registry.register(SimulatedImportAdapter(name, delegate, note))

    return registry
