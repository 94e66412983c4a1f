import math
import time

import pytest

from core.config import settings
from core.exceptions import ProviderUnavailableError
from corpus.models import SemanticChunk
from rag import embeddings
from rag.embeddings import EmbeddingModel
from rag.similarity import NO_MATCH, cosine_similarity, find_relevant_content, rank_chunks


def test_identical_vectors_score_one():
    assert cosine_similarity([0.3, 0.4, 0.5], [0.3, 0.4, 0.5]) == pytest.approx(1.0)


def test_opposite_vectors_score_minus_one():
    assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)


def test_zero_vector_is_not_nan():
    score = cosine_similarity([0.0, 0.0, 0.0], [1.0, 2.0, 3.0])
    assert not math.isnan(score)
    assert score == NO_MATCH


def test_mismatched_dimensions_do_not_match():
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == NO_MATCH


def test_zero_vector_chunk_ranks_last():
    chunks = [
        SemanticChunk(content="empty", embedding=[0.0, 0.0]),
        SemanticChunk(content="orthogonal", embedding=[0.0, 1.0]),
        SemanticChunk(content="aligned", embedding=[2.0, 0.0]),
    ]

    ranked = rank_chunks([1.0, 0.0], chunks)

    assert [chunk.content for chunk, _ in ranked] == ["aligned", "orthogonal", "empty"]
    assert ranked[-1][1] == NO_MATCH


def test_relevant_content_keeps_top_k_and_drops_non_matches():
    chunks = [SemanticChunk(content=f"chunk {i}", embedding=[1.0, float(i)]) for i in range(7)]
    chunks.append(SemanticChunk(content="degenerate", embedding=[0.0, 0.0]))

    context = find_relevant_content([1.0, 0.0], chunks, top_k=5)

    parts = context.split("\n\n")
    assert parts == ["chunk 0", "chunk 1", "chunk 2", "chunk 3", "chunk 4"]


def test_relevant_content_none_when_nothing_comparable():
    chunks = [SemanticChunk(content="degenerate", embedding=[0.0, 0.0])]
    assert find_relevant_content([1.0, 0.0], chunks) is None


class FakeSentenceModel:
    def __init__(self, error=None):
        self.error = error
        self.kwargs = None

    def encode(self, texts, **kwargs):
        if self.error:
            raise self.error
        self.kwargs = kwargs
        return [[0.6, 0.8] for _ in texts]


def test_embedding_model_encodes_single_query():
    fake = FakeSentenceModel()
    vector = EmbeddingModel(model_name="stub", model=fake).encode("basmati rice")

    assert vector.shape == (2,)
    assert fake.kwargs["normalize_embeddings"] is True


def test_embedding_failure_is_provider_unavailable():
    model = EmbeddingModel(model_name="stub", model=FakeSentenceModel(error=RuntimeError("oom")))

    with pytest.raises(ProviderUnavailableError):
        model.encode("basmati rice")


def test_failed_model_load_is_not_retried_within_window(monkeypatch):
    attempts = []

    class UnavailableModel:
        def __init__(self):
            attempts.append(1)
            raise ProviderUnavailableError("hub unreachable")

    monkeypatch.setattr(embeddings, "EmbeddingModel", UnavailableModel)
    monkeypatch.setattr(embeddings, "_embedding_model", None)
    monkeypatch.setattr(embeddings, "_load_failed_at", None)
    monkeypatch.setattr(settings, "embedding_retry_seconds", 300.0)

    for _ in range(3):
        with pytest.raises(ProviderUnavailableError):
            embeddings.get_embedding_model()

    assert len(attempts) == 1


def test_failed_model_load_is_retried_after_window(monkeypatch):
    fake = FakeSentenceModel()

    monkeypatch.setattr(embeddings, "EmbeddingModel", lambda: EmbeddingModel(model_name="stub", model=fake))
    monkeypatch.setattr(embeddings, "_embedding_model", None)
    monkeypatch.setattr(embeddings, "_load_failed_at", time.monotonic() - 10)
    monkeypatch.setattr(settings, "embedding_retry_seconds", 5.0)

    assert embeddings.get_embedding_model().model is fake
    assert embeddings._load_failed_at is None
