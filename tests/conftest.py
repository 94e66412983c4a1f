"""
Pytest fixtures for the compliance engine tests.

Provides:
- In-memory INDIA / USA reference corpora
- Offline stand-ins for the LLM client and the embedding model
- A jurisdiction registry and shipment orchestrator wired from the above

No fixture touches the network or loads an ML model: the explainer is built on a
stub client that is offline by default, so every generated explanation takes
the templated fallback path unless a test supplies text.
"""

import pytest

from corpus.models import ReferenceCorpus
from services.explainer import ExplainerService
from services.jurisdictions import build_registry
from services.orchestrator import ShipmentOrchestrator
from services.policy import PolicyEvaluator
from services.resolver import CodeResolver


class StubLLMClient:
    """Records prompts; returns ``text`` or raises ``error``."""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.prompts = []

    def generate(self, model=None, prompt=None, options=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return {"response": self.text}


class StubEmbeddingModel:
    """Returns a fixed query vector."""

    def __init__(self, vector=(1.0, 0.0, 0.0), error=None):
        self.vector = list(vector)
        self.error = error
        self.calls = []

    def encode(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.vector


@pytest.fixture
def llm_client():
    return StubLLMClient(error=ConnectionError("ollama offline"))


@pytest.fixture
def explainer(llm_client):
    return ExplainerService(client=llm_client, model="stub")


@pytest.fixture
def embedding_model():
    return StubEmbeddingModel()


@pytest.fixture
def resolver(embedding_model):
    return CodeResolver(embedding_model=embedding_model, top_k=5, min_contained_key_length=5)


@pytest.fixture
def evaluator(explainer):
    return PolicyEvaluator(explainer)


@pytest.fixture
def india_corpus():
    return ReferenceCorpus(
        jurisdiction="india",
        item_name_index={
            "T-Shirt": "61091000",
            "sandalwood": "44039922",
            "basmati rice": "10063020",
        },
        hs_code_index={
            "61091000": {"policy": "Free", "description": "T-shirts, singlets and other vests of cotton"},
            "44039922": {"policy": "Prohibited", "description": "Sandalwood in logs"},
            "10063020": {"policy": "Free", "description": "Basmati rice"},
            "850110": {"policy": "Free", "description": "Electric motors of an output not exceeding 37.5 W"},
            "850190": {"policy": "Restricted", "description": "Other electric motors"},
        },
        semantic_chunks=[
            {"content": "Sandalwood exports are prohibited except finished handicrafts.", "embedding": [1.0, 0.0, 0.0]},
            {"content": "Rice exports are free subject to quality certification.", "embedding": [0.0, 1.0, 0.0]},
        ],
    )


@pytest.fixture
def usa_corpus():
    return ReferenceCorpus(
        jurisdiction="usa",
        item_name_index={"t-shirt": "610910"},
        hs_code_index={
            "610910": {"policy": "Free", "description": "T-shirts, singlets, tank tops, of cotton"},
            "61091000": {"policy": "Free", "description": "T-shirts of cotton"},
            "10063020": {"policy": "Free", "description": "Basmati rice"},
            "930200": {"policy": "Restricted", "description": "Revolvers and pistols"},
        },
    )


@pytest.fixture
def registry(india_corpus, usa_corpus, resolver, evaluator, explainer):
    return build_registry(
        {"INDIA": india_corpus, "USA": usa_corpus},
        resolver=resolver,
        evaluator=evaluator,
        explainer=explainer,
    )


@pytest.fixture
def orchestrator(registry):
    return ShipmentOrchestrator(registry, max_concurrent_items=4, item_timeout_seconds=5)
