import json
from pathlib import Path

import pytest

from core.config import settings
from core.exceptions import ReferenceDataError
from corpus.loader import (
    EMBEDDINGS_DATABASE_FILE, ITEM_MAPPING_FILE, build_corpus, load_corpus, load_reference_store,
)
from corpus.validation import get_validation_errors

REPO_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def write_jurisdiction(root, name, item_mapping=None, database=None):
    directory = root / name
    directory.mkdir()
    if item_mapping is not None:
        (directory / ITEM_MAPPING_FILE).write_text(json.dumps(item_mapping), encoding="utf-8")
    if database is not None:
        (directory / EMBEDDINGS_DATABASE_FILE).write_text(json.dumps(database), encoding="utf-8")
    return directory


DATABASE = {
    "hsCodesData": {
        "090240": {"policy": "Free", "description": "Black tea"},
        "930200": {"policy": "Restricted", "description": None},
    },
    "chunks": [{"content": "Firearms need a licence.", "embedding": [0.1, 0.2, 0.3]}],
}


def test_load_corpus_from_directory(tmp_path):
    directory = write_jurisdiction(tmp_path, "usa", {"Black Tea": "090240"}, DATABASE)

    corpus = load_corpus(directory, vector_dimension=3)

    assert corpus.jurisdiction == "USA"
    assert corpus.item_name_index == {"black tea": "090240"}
    assert corpus.get_entry("090240").policy == "Free"
    assert corpus.get_entry("930200").description == ""
    assert len(corpus.semantic_chunks) == 1
    assert corpus.semantic_chunks[0].embedding == (0.1, 0.2, 0.3)


def test_item_mapping_file_is_optional(tmp_path):
    directory = write_jurisdiction(tmp_path, "usa", database=DATABASE)

    corpus = load_corpus(directory, vector_dimension=3)

    assert corpus.item_name_index == {}
    assert corpus.stats()["hs_codes"] == 2


def test_missing_database_file_is_reference_error(tmp_path):
    directory = write_jurisdiction(tmp_path, "usa", {"black tea": "090240"})

    with pytest.raises(ReferenceDataError, match="not found"):
        load_corpus(directory)


def test_malformed_json_is_reference_error(tmp_path):
    directory = write_jurisdiction(tmp_path, "usa")
    (directory / EMBEDDINGS_DATABASE_FILE).write_text("{not json", encoding="utf-8")

    with pytest.raises(ReferenceDataError, match="not valid JSON"):
        load_corpus(directory)


def test_schema_violation_is_reference_error():
    payload = {
        "itemToHsMapping": {"black tea": "09.02.40"},
        "embeddingsDatabase": DATABASE,
    }

    assert get_validation_errors(payload)
    with pytest.raises(ReferenceDataError, match="Invalid reference data for usa"):
        build_corpus("usa", payload)


def test_chunk_without_embedding_is_rejected():
    payload = {
        "itemToHsMapping": {},
        "embeddingsDatabase": {"hsCodesData": {}, "chunks": [{"content": "orphan"}]},
    }

    with pytest.raises(ReferenceDataError):
        build_corpus("india", payload)


def test_load_reference_store_keys_by_upper_case_name(tmp_path):
    write_jurisdiction(tmp_path, "india", {"t-shirt": "61091000"},
                       {"hsCodesData": {"61091000": {"policy": "Free", "description": "T-shirts"}}, "chunks": []})
    write_jurisdiction(tmp_path, "usa", {}, DATABASE)

    store = load_reference_store(data_dir=str(tmp_path), jurisdictions=["India", "usa"], vector_dimension=3)

    assert sorted(store) == ["INDIA", "USA"]
    assert store["INDIA"].get_entry("61091000").is_free


def test_bundled_reference_data_loads():
    store = load_reference_store(data_dir=str(REPO_DATA_DIR), jurisdictions=["india", "usa"])

    assert store["INDIA"].get_entry("44039922").policy == "Prohibited"
    assert store["USA"].get_entry("930200").policy == "Restricted"


def test_chunk_bank_from_another_embedding_model_is_rejected(tmp_path):
    database = {
        "hsCodesData": {"090240": {"policy": "Free", "description": "Black tea"}},
        "chunks": [{"content": "Tea exports are free.", "embedding": [0.01] * 768}],
    }
    directory = write_jurisdiction(tmp_path, "india", {}, database)

    with pytest.raises(ReferenceDataError, match=r"dimension\(s\) \[768\], expected 384"):
        load_corpus(directory, vector_dimension=384)


def test_chunk_dimension_defaults_to_configured_encoder(monkeypatch):
    monkeypatch.setattr(settings, "vector_dimension", 2)
    payload = {
        "itemToHsMapping": {},
        "embeddingsDatabase": {"hsCodesData": {}, "chunks": [{"content": "x", "embedding": [0.1, 0.2, 0.3]}]},
    }

    with pytest.raises(ReferenceDataError, match="expected 2"):
        build_corpus("usa", payload)
