"""
Tests for knowledge base loading.
"""
import json

from memory_vault.core.knowledge import get_default_knowledge_base, load_knowledge_base
from memory_vault.core.schema import KnowledgeEntry


def test_packaged_knowledge_base_loads():
    knowledge = load_knowledge_base()
    assert len(knowledge) > 0
    assert all(isinstance(entry, KnowledgeEntry) for entry in knowledge)
    assert any("pin" in entry.keywords for entry in knowledge)


def test_missing_file_writes_empty_default(tmp_path):
    path = tmp_path / "kb" / "knowledge.json"

    assert load_knowledge_base(str(path)) == ()
    assert path.exists()

    written = json.loads(path.read_text())
    assert written["entries"] == []
    assert written["version"] == get_default_knowledge_base()["version"]


def test_malformed_json_yields_empty(tmp_path):
    path = tmp_path / "knowledge.json"
    path.write_text("{not json")
    assert load_knowledge_base(str(path)) == ()


def test_invalid_utf8_yields_empty(tmp_path):
    path = tmp_path / "knowledge.json"
    path.write_bytes(b'{"entries": [{"topic": "\xff\xfe"}]}')
    assert load_knowledge_base(str(path)) == ()


def test_non_list_entries_yields_empty(tmp_path):
    path = tmp_path / "knowledge.json"
    path.write_text(json.dumps({"version": "1", "entries": {"topic": "x"}}))
    assert load_knowledge_base(str(path)) == ()


def test_entries_are_defaulted(tmp_path):
    path = tmp_path / "knowledge.json"
    path.write_text(json.dumps({
        "version": "2",
        "entries": [
            {"topic": "PIN", "answer": "Set a 4-6 digit PIN", "keywords": ["pin", None]},
            {"topic": "Bare"},
            "not an entry",
        ]
    }))

    knowledge = load_knowledge_base(str(path))

    assert knowledge == (
        KnowledgeEntry(topic="PIN", answer="Set a 4-6 digit PIN", keywords=("pin",)),
        KnowledgeEntry(topic="Bare", answer="", keywords=()),
    )
