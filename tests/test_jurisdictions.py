import pytest

from api.schemas.request import TradeItem
from core.exceptions import JurisdictionUnsupportedError, RequestInvalidError
from services.explainer import ExplainerService
from services.jurisdictions import (
    ExportControlAdapter, JurisdictionAdapter, JurisdictionRegistry, SimulatedImportAdapter,
    TariffScheduleAdapter,
)

from conftest import StubLLMClient


def test_registry_lookup_is_case_insensitive(registry):
    assert isinstance(registry.get("india"), ExportControlAdapter)
    assert isinstance(registry.get(" Usa "), TariffScheduleAdapter)
    assert isinstance(registry.get("Canada"), SimulatedImportAdapter)
    assert registry.names() == ["CANADA", "INDIA", "USA"]


def test_registry_unknown_jurisdiction(registry):
    assert registry.get("BRAZIL") is None
    with pytest.raises(JurisdictionUnsupportedError, match="not implemented for BRAZIL"):
        registry.require("brazil")


def test_simulated_import_jurisdiction_cannot_export(registry):
    with pytest.raises(JurisdictionUnsupportedError, match="Export compliance check not implemented for CANADA"):
        registry.require("canada", "Export")
    assert registry.require("canada", "Import").name == "CANADA"


def test_export_control_approval_carries_conditions(registry):
    verdict = registry.get("INDIA").evaluate_export(TradeItem(item_name="T-shirt"))

    assert verdict.status and verdict.allowed
    assert verdict.hs_code == "61091000"
    assert verdict.policy == "Free"
    assert verdict.conditions == "Standard export conditions apply"


def test_export_control_denial_uses_templated_reason_offline(registry):
    verdict = registry.get("INDIA").evaluate_export(TradeItem(item_name="sandalwood"))

    assert not verdict.status
    assert verdict.hs_code == "44039922"
    assert verdict.policy == "Prohibited"
    assert verdict.reason == "Export not allowed for HS Code 44039922 with policy Prohibited."


def test_export_control_denial_uses_generated_reason(india_corpus):
    client = StubLLMClient(text="Sandalwood logs are a protected species export.")
    adapter = ExportControlAdapter("INDIA", india_corpus, explainer=ExplainerService(client=client, model="stub"))

    verdict = adapter.evaluate_export(TradeItem(item_name="sandalwood"))

    assert verdict.reason == "Sandalwood logs are a protected species export."


def test_tariff_schedule_denial_reason_is_deterministic(registry):
    verdict = registry.get("USA").evaluate_import(TradeItem(item_name="pistol", hs_code="930200"))

    assert not verdict.status
    assert verdict.reason == "Import/export not allowed for HS Code 930200 with policy Restricted"


def test_unresolved_item_reports_description(registry):
    verdict = registry.get("USA").evaluate_import(TradeItem(item_name="Unobtainium"))

    assert not verdict.status
    assert verdict.hs_code is None
    assert verdict.queried_description == "unobtainium"
    assert "unobtainium" in verdict.reason


def test_unresolved_prompt_includes_semantic_context(india_corpus, resolver):
    client = StubLLMClient(text="Aromatic heartwood exports are prohibited.")
    adapter = ExportControlAdapter("INDIA", india_corpus, resolver=resolver,
                                   explainer=ExplainerService(client=client, model="stub"))

    resolution = adapter.resolve_code("carved aromatic heartwood")

    assert resolution.reason == "Aromatic heartwood exports are prohibited."
    assert "Sandalwood exports are prohibited" in client.prompts[0]


def test_unknown_code_verdict(registry):
    verdict = registry.get("USA").evaluate_import(TradeItem(item_name="widget", hs_code="999999"))

    assert not verdict.status
    assert not verdict.allowed
    assert verdict.hs_code == "999999"
    assert "999999" in verdict.reason


def test_item_without_identity_is_invalid(registry):
    with pytest.raises(RequestInvalidError):
        registry.get("INDIA").evaluate_export(TradeItem(material="steel"))


def test_resolve_by_description(registry):
    usa = registry.get("USA")

    found = usa.resolve_by_description("pistols")
    assert found.status and found.hs_code == "930200"
    assert found.note == "Found via partial match"

    provided = usa.resolve_by_description(None, hs_code="123456")
    assert provided.status and provided.hs_code == "123456"

    missing = usa.resolve_by_description("unobtainium")
    assert not missing.status
    assert missing.reason

    with pytest.raises(RequestInvalidError):
        usa.resolve_by_description(None)


def test_simulated_import_adds_note(registry):
    verdict = registry.get("CANADA").evaluate_import(TradeItem(item_name="t-shirt", hs_code="610910"))

    assert verdict.status
    assert verdict.note == "Canadian import compliance check simulated"


def test_registry_without_reference_data_is_empty():
    assert JurisdictionRegistry().names() == []


def test_adapter_base_requires_denial_reason(india_corpus):
    with pytest.raises(TypeError):
        JurisdictionAdapter("INDIA", india_corpus)


def test_simulated_import_shares_delegate_explainer(registry):
    assert registry.get("CANADA").explainer is registry.get("USA").explainer
