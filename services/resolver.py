# WORKFLOW: HS code resolution waterfall: known code -> item names -> HS descriptions -> semantic context.
# Used by: Jurisdiction adapters, find-by-description endpoints, shipment orchestrator
# Pipeline steps (each attempted only if the previous fails):
# 1. Known code - Used verbatim, no check against the description
# 2. Exact item name - Normalized description looked up in the item-name index
# 3. Partial item name - Key contains description, then description contains a long key
# 4. HS description - Exact, then partial match over the HS code index descriptions
# 5. Semantic context - Cosine top-k over the chunk bank (evidence only, never a code)
# 6. Unresolved - No code; callers must stop evaluating the item
#
# "First match wins" follows corpus order (reference file order). Several keys may
# match one description; callers must not rely on which one beyond that order.

from typing import Optional, Tuple
import logging

from api.schemas.response import CodeResolution, ResolutionMethod
from core.config import settings
from core.exceptions import ProviderUnavailableError
from corpus.models import ReferenceCorpus, normalize_text
from rag.embeddings import get_embedding_model
from rag.similarity import find_relevant_content

logger = logging.getLogger(__name__)

PARTIAL_MATCH_NOTE = "Found via partial match"


class CodeResolver:
    """Maps a free-text description to a single candidate HS code."""

    def __init__(self, embedding_model=None, top_k: Optional[int] = None,
                 min_contained_key_length: Optional[int] = None):
        self._embedding_model = embedding_model
        self.top_k = settings.semantic_top_k if top_k is None else top_k
        self.min_contained_key_length = (
            settings.min_contained_key_length if min_contained_key_length is None else min_contained_key_length
        )

    def resolve(self, description: Optional[str], known_code: Optional[str],
                corpus: ReferenceCorpus) -> CodeResolution:
        """
        Resolve a description to an HS code.

        Args:
            description: Free-text item name or description
            known_code: HS code supplied by the caller, if any
            corpus: Reference corpus of the jurisdiction doing the resolution

        Returns:
            CodeResolution with hs_code set, or method UNRESOLVED with a reason
        """
        if known_code:
            return CodeResolution(hs_code=known_code, method=ResolutionMethod.PROVIDED)

        normalized = normalize_text(description)
        if not normalized:
            # An empty string is contained in every key
            return CodeResolution(reason="No item name or description provided")

        code = corpus.item_name_index.get(normalized)
        if code:
            logger.info(f"[{corpus.jurisdiction}] Exact item name match: '{normalized}' -> {code}")
            return CodeResolution(hs_code=code, method=ResolutionMethod.ITEM_NAME_EXACT)

        match = self.find_by_item_name(normalized, corpus)
        if match:
            key, code = match
            logger.info(f"[{corpus.jurisdiction}] Partial item name match: '{normalized}' ~ '{key}' -> {code}")
            return CodeResolution(hs_code=code, method=ResolutionMethod.ITEM_NAME_PARTIAL, note=PARTIAL_MATCH_NOTE)

        code, exact = self.find_by_description(normalized, corpus)
        if code:
            logger.info(f"[{corpus.jurisdiction}] HS description match ({'exact' if exact else 'partial'}): "
                        f"'{normalized}' -> {code}")
            if exact:
                return CodeResolution(hs_code=code, method=ResolutionMethod.DESCRIPTION_EXACT)
            return CodeResolution(hs_code=code, method=ResolutionMethod.DESCRIPTION_PARTIAL, note=PARTIAL_MATCH_NOTE)

        logger.info(f"[{corpus.jurisdiction}] No HS code for '{normalized}', gathering semantic context")
        return CodeResolution(
            reason=f'No matching HS code found for description "{normalized}"',
            context=self.semantic_context(normalized, corpus),
        )

    def find_by_item_name(self, normalized: str, corpus: ReferenceCorpus) -> Optional[Tuple[str, str]]:
        """Substring lookup over item-name keys, in both directions."""
        for key, code in corpus.item_name_index.items():
            if normalized in key:
                return key, code

        for key, code in corpus.item_name_index.items():
            if len(key) > self.min_contained_key_length and key in normalized:
                return key, code

        return None

    def find_by_description(self, normalized: str, corpus: ReferenceCorpus) -> Tuple[Optional[str], bool]:
        """
        Exact, then partial lookup over HS code descriptions.

        Returns:
            (hs_code, exact) or (None, False)
        """
        for code, entry in corpus.hs_code_index.items():
            if normalize_text(entry.description) == normalized:
                return code, True

        for code, entry in corpus.hs_code_index.items():
            stored = normalize_text(entry.description)
            if stored and (normalized in stored or stored in normalized):
                return code, False

        return None, False

    def semantic_context(self, normalized: str, corpus: ReferenceCorpus) -> Optional[str]:
        """Top-k chunk texts most similar to the description, or None."""
        if not corpus.semantic_chunks:
            return None

        try:
            query_embedding = self._get_embedding_model().encode(normalized)
        except ProviderUnavailableError as e:
            logger.warning(f"[{corpus.jurisdiction}] Semantic fallback skipped: {e}")
            return None

        expected = len(corpus.semantic_chunks[0].embedding)
        if len(query_embedding) != expected:
            logger.warning(f"[{corpus.jurisdiction}] Semantic fallback skipped: query vector has "
                           f"{len(query_embedding)} dimensions, chunk bank has {expected}")
            return None

        return find_relevant_content(query_embedding, corpus.semantic_chunks, top_k=self.top_k)

    def _get_embedding_model(self):
        if self._embedding_model is None:
            self._embedding_model = get_embedding_model()
        return self._embedding_model
