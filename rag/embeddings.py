# WORKFLOW: sentence-transformers query encoder for the semantic fallback stage.
# Used by: Code resolver (semantic context), jurisdiction adapters through it
# Functions:
# 1. encode() - Embed one normalized item description
# 2. get_embedding_model() - Process-wide encoder (lazy-loaded, load failures cool down)
#
# Embedding flow: Normalized description -> Model -> Query vector -> Cosine ranking vs. chunk bank
# The chunk bank is precomputed offline; only query encoding happens here.
# Failures surface as ProviderUnavailableError so callers can degrade.

from typing import Optional
import numpy as np
import logging
import threading
import time

from core.config import settings
from core.exceptions import ProviderUnavailableError

logger = logging.getLogger(__name__)


class EmbeddingModel:
    """sentence-transformers embedding model wrapper."""

    def __init__(self, model_name: Optional[str] = None, model=None):
        self.model_name = model_name or settings.embedding_model
        self.model = model
        if self.model is None:
            self._load_model()

    def _load_model(self):
        """Load the embedding model."""
        try:
            logger.info(f"Loading embedding model: {self.model_name}")
            # Deferred so importing the engine does not pull in torch
            from sentence_transformers import SentenceTransformer

            self.model = SentenceTransformer(
                self.model_name,
                cache_folder=settings.model_cache_dir
            )
            logger.info("Embedding model loaded successfully")
        except Exception as e:
            logger.error(f"Failed to load embedding model: {e}")
            raise ProviderUnavailableError(f"Embedding model unavailable: {e}") from e

    def encode(self, text: str, normalize: bool = True) -> np.ndarray:
        """
        Encode a query description.

        Args:
            text: Normalized item description
            normalize: Whether to L2-normalize the vector

        Returns:
            1-D embedding vector
        """
        try:
            embeddings = self.model.encode(
                [text],
                normalize_embeddings=normalize,
                convert_to_numpy=True
            )
        except Exception as e:
            logger.error(f"Embedding encoding failed: {e}")
            raise ProviderUnavailableError(f"Embedding encoding failed: {e}") from e

        return np.asarray(embeddings[0], dtype=float)


# Global embedding model instance (lazy-loaded)
_embedding_model = None
# Monotonic time of the last failed load; retries wait settings.embedding_retry_seconds
_load_failed_at: Optional[float] = None
_load_lock = threading.Lock()

def get_embedding_model():
    """
    Get the global embedding model instance (lazy-loaded).

    A failed load is remembered so unresolved items do not each retry the model
    download; the next attempt happens once the retry window has passed.
    """
    global _embedding_model, _load_failed_at
    if _embedding_model is not None:
        return _embedding_model

    # Items are evaluated in worker threads; only one of them loads the model
    with _load_lock:
        if _embedding_model is not None:
            return _embedding_model

        if _load_failed_at is not None:
            elapsed = time.monotonic() - _load_failed_at
            if elapsed < settings.embedding_retry_seconds:
                raise ProviderUnavailableError(
                    f"Embedding model unavailable (last load failed {elapsed:.0f}s ago)"
                )

        try:
            _embedding_model = EmbeddingModel()
        except ProviderUnavailableError:
            _load_failed_at = time.monotonic()
            raise

        _load_failed_at = None
        return _embedding_model
