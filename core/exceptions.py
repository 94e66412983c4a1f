# WORKFLOW: Error taxonomy for the compliance engine.
# Used by: Resolver, policy evaluator, jurisdiction adapters, orchestrator, API routers
# Exceptions:
# 1. RequestInvalidError - Request shape violations (HTTP 400, no partial report)
# 2. ProviderUnavailableError - Embedding/LLM provider failures (always degraded)
# 3. JurisdictionUnsupportedError - No adapter logic for a country or direction
# 4. ReferenceDataError - Reference files missing or failing schema validation
#
# Resolution failures and policy denials are not exceptions: they are encoded
# in the item report. Anything else surfacing from the engine is unexpected and
# becomes a generic HTTP 500.


class ComplianceError(Exception):
    """Base class for compliance engine errors."""


class RequestInvalidError(ComplianceError):
    """Mandatory request fields are missing or malformed."""


class ProviderUnavailableError(ComplianceError):
    """An embedding or text generation provider could not serve a call."""


class JurisdictionUnsupportedError(ComplianceError):
    """A jurisdiction has no compliance logic for the requested direction."""

    def __init__(self, jurisdiction: str, direction: str = "Compliance"):
        self.jurisdiction = jurisdiction
        self.direction = direction
        super().__init__(f"{direction} compliance check not implemented for {jurisdiction}")


class ReferenceDataError(ComplianceError):
    """Reference data for a jurisdiction could not be loaded."""
