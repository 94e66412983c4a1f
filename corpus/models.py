# WORKFLOW: In-memory reference corpus for one jurisdiction.
# Used by: Code resolver, policy evaluator, jurisdiction adapters, reference loader
# Types:
# 1. HSCodeEntry - Policy and description attached to an HS code
# 2. SemanticChunk - Regulation text chunk with its precomputed embedding
# 3. ReferenceCorpus - Item-name index, HS code index and semantic chunk bank
#
# Lifecycle: Reference files -> loader -> ReferenceCorpus (read-only) -> services
# The corpus is immutable at query time and iterates in file order, which is the
# tie-break order for every "first match wins" lookup.

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class HSCodeEntry(BaseModel):
    """Regulatory policy attached to an HS code."""
    model_config = ConfigDict(frozen=True)

    policy: str = ""
    description: str = ""

    @property
    def is_free(self) -> bool:
        return self.policy.strip().lower() == "free"


class SemanticChunk(BaseModel):
    """Regulation text chunk with its embedding vector."""
    model_config = ConfigDict(frozen=True)

    content: str
    embedding: Tuple[float, ...] = Field(default_factory=tuple)


def normalize_text(text: Optional[str]) -> str:
    """Lowercase and trim free text for index lookups."""
    return (text or "").strip().lower()


class ReferenceCorpus:
    """Read-only reference data for a single jurisdiction."""

    def __init__(
        self,
        jurisdiction: str,
        item_name_index: Optional[Mapping[str, str]] = None,
        hs_code_index: Optional[Mapping[str, Union[HSCodeEntry, Dict[str, str]]]] = None,
        semantic_chunks: Optional[Iterable[Union[SemanticChunk, Dict]]] = None,
    ):
        self.jurisdiction = jurisdiction.strip().upper()

        names: Dict[str, str] = {}
        for name, code in (item_name_index or {}).items():
            # First spelling wins when two raw names normalize to the same key
            names.setdefault(normalize_text(name), str(code))

        codes: Dict[str, HSCodeEntry] = {}
        for code, entry in (hs_code_index or {}).items():
            if not isinstance(entry, HSCodeEntry):
                entry = HSCodeEntry(**entry)
            codes[str(code)] = entry

        chunks: List[SemanticChunk] = []
        for chunk in semantic_chunks or []:
            if not isinstance(chunk, SemanticChunk):
                chunk = SemanticChunk(**chunk)
            chunks.append(chunk)

        self._item_name_index = MappingProxyType(names)
        self._hs_code_index = MappingProxyType(codes)
        self._semantic_chunks = tuple(chunks)

    @property
    def item_name_index(self) -> Mapping[str, str]:
        return self._item_name_index

    @property
    def hs_code_index(self) -> Mapping[str, HSCodeEntry]:
        return self._hs_code_index

    @property
    def semantic_chunks(self) -> Tuple[SemanticChunk, ...]:
        return self._semantic_chunks

    def get_entry(self, hs_code: str) -> Optional[HSCodeEntry]:
        return self._hs_code_index.get(hs_code)

    def codes_with_prefix(self, *prefixes: str) -> List[Tuple[str, HSCodeEntry]]:
        """Return index entries whose code starts with any of ``prefixes``, in corpus order."""
        prefixes = tuple(p for p in prefixes if p)
        if not prefixes:
            return []
        return [(code, entry) for code, entry in self._hs_code_index.items() if code.startswith(prefixes)]

    def stats(self) -> Dict[str, int]:
        return {
            "item_names": len(self._item_name_index),
            "hs_codes": len(self._hs_code_index),
            "semantic_chunks": len(self._semantic_chunks),
        }

    def __repr__(self) -> str:
        return f"ReferenceCorpus(jurisdiction={self.jurisdiction!r}, {self.stats()})"
