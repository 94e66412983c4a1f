# WORKFLOW: Reference store loading from static per-jurisdiction files.
# Used by: API startup (dependencies), tests
# Functions:
# 1. read_reference_payload() - Read the raw JSON files of one jurisdiction
# 2. build_corpus() - Validate a payload (schema + chunk vector size) and build a ReferenceCorpus
# 3. load_corpus() - Read + build for one jurisdiction directory
# 4. load_reference_store() - Load every configured jurisdiction once
#
# Loading flow: <data_dir>/<jurisdiction>/*.json -> Schema validation -> ReferenceCorpus
# Files per jurisdiction:
# - item-to-hs-mapping.json  {"item name": "hs code", ...}
# - embeddings-database.json {"hsCodesData": {...}, "chunks": [{"content", "embedding"}]}
# The engine never writes these files.

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import jsonschema

from core.config import settings
from core.exceptions import ReferenceDataError
from corpus.models import ReferenceCorpus
from corpus.validation import validate_reference_payload

logger = logging.getLogger(__name__)

ITEM_MAPPING_FILE = "item-to-hs-mapping.json"
EMBEDDINGS_DATABASE_FILE = "embeddings-database.json"


def _read_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ReferenceDataError(f"Reference file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ReferenceDataError(f"Reference file is not valid JSON: {path}: {e}") from e


def read_reference_payload(directory: Path) -> Dict[str, Any]:
    """Read the reference files of one jurisdiction into a single payload."""
    item_mapping_path = directory / ITEM_MAPPING_FILE
    # The item mapping is optional; the HS code index alone still supports resolution
    item_mapping = _read_json(item_mapping_path) if item_mapping_path.exists() else {}
    embeddings_database = _read_json(directory / EMBEDDINGS_DATABASE_FILE)
    return {
        "itemToHsMapping": item_mapping,
        "embeddingsDatabase": embeddings_database,
    }


def _check_chunk_dimensions(jurisdiction: str, chunks: List[Dict[str, Any]], vector_dimension: int) -> None:
    """Chunk vectors must come from a model with the query encoder's output size."""
    mismatched = sorted({len(chunk["embedding"]) for chunk in chunks} - {vector_dimension})
    if mismatched:
        raise ReferenceDataError(
            f"Semantic chunks for {jurisdiction} have embedding dimension(s) {mismatched}, "
            f"expected {vector_dimension}: rebuild the chunk bank with the configured embedding model"
        )


def build_corpus(jurisdiction: str, payload: Dict[str, Any],
                 vector_dimension: Optional[int] = None) -> ReferenceCorpus:
    """
    Validate a raw payload and build the corpus for a jurisdiction.

    Args:
        jurisdiction: Jurisdiction name (e.g. "india")
        payload: Dict with 'itemToHsMapping' and 'embeddingsDatabase'
        vector_dimension: Expected chunk embedding length, defaults to settings.vector_dimension

    Returns:
        ReferenceCorpus for the jurisdiction
    """
    try:
        validate_reference_payload(payload)
    except jsonschema.ValidationError as e:
        raise ReferenceDataError(f"Invalid reference data for {jurisdiction}: {e.message}") from e

    database = payload.get("embeddingsDatabase", {})
    hs_codes = {
        code: {
            "policy": entry.get("policy") or "",
            "description": entry.get("description") or "",
        }
        for code, entry in (database.get("hsCodesData") or {}).items()
    }

    chunks = database.get("chunks") or []
    _check_chunk_dimensions(jurisdiction, chunks, vector_dimension or settings.vector_dimension)

    corpus = ReferenceCorpus(
        jurisdiction=jurisdiction,
        item_name_index=payload.get("itemToHsMapping") or {},
        hs_code_index=hs_codes,
        semantic_chunks=chunks,
    )
    logger.info(f"Loaded reference corpus for {corpus.jurisdiction}: {corpus.stats()}")
    return corpus


def load_corpus(directory: Path, jurisdiction: Optional[str] = None,
                vector_dimension: Optional[int] = None) -> ReferenceCorpus:
    """Load the corpus stored in ``directory``."""
    directory = Path(directory)
    jurisdiction = jurisdiction or directory.name
    logger.info(f"Reading reference data for {jurisdiction} from {directory}")
    return build_corpus(jurisdiction, read_reference_payload(directory), vector_dimension)


def load_reference_store(
    data_dir: Optional[str] = None,
    jurisdictions: Optional[Iterable[str]] = None,
    vector_dimension: Optional[int] = None,
) -> Dict[str, ReferenceCorpus]:
    """
    Load the reference corpus of every configured jurisdiction.

    Args:
        data_dir: Root directory holding one sub-directory per jurisdiction
        jurisdictions: Jurisdiction names; defaults to settings.jurisdictions
        vector_dimension: Expected chunk embedding length

    Returns:
        Mapping of upper-case jurisdiction name to its corpus
    """
    root = Path(data_dir or settings.reference_data_dir)
    names = list(jurisdictions) if jurisdictions is not None else settings.jurisdictions

    store: Dict[str, ReferenceCorpus] = {}
    for name in names:
        corpus = load_corpus(root / name.strip().lower(), jurisdiction=name, vector_dimension=vector_dimension)
        store[corpus.jurisdiction] = corpus

    logger.info(f"Reference store ready with jurisdictions: {sorted(store)}")
    return store
