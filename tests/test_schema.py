"""
Tests for the typed records and timestamp parsing at the storage boundary.
"""
from datetime import datetime, timezone

import pytest

from memory_vault.core.schema import KnowledgeEntry, Note, NoteCounts, parse_timestamp

UTC = timezone.utc


class TestParseTimestamp:

    def test_iso_with_z_suffix(self):
        assert parse_timestamp("2026-03-01T12:00:00Z") == datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def test_iso_with_offset(self):
        parsed = parse_timestamp("2026-03-01T14:00:00+02:00")
        assert parsed == datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def test_epoch_milliseconds(self):
        assert parse_timestamp(1772366400000) == datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def test_epoch_seconds(self):
        assert parse_timestamp(1772366400) == datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def test_naive_datetime_becomes_utc(self):
        assert parse_timestamp(datetime(2026, 3, 1)).tzinfo == UTC

    @pytest.mark.parametrize("value", [None, "", "   ", "not-a-date", True, [], {}])
    def test_unparseable_values(self, value):
        assert parse_timestamp(value) is None


class TestNoteFromDict:

    def test_missing_optional_fields_are_defaulted(self):
        note = Note.from_dict({"id": "n1", "title": "Math"})

        assert note.importance is False
        assert note.is_favorite is False
        assert note.content == ""
        assert note.category == ""
        assert note.timestamp is None

    def test_aliases(self):
        note = Note.from_dict({"id": "n1", "vault_type": "cultural", "is_important": True, "isFavorite": "true"})

        assert note.category == "cultural"
        assert note.importance is True
        assert note.is_favorite is True

    def test_category_wins_over_vault_type(self):
        note = Note.from_dict({"id": "n1", "category": "learning", "vault_type": "cultural"})
        assert note.category == "learning"

    def test_timestamp_forms(self):
        assert Note.from_dict({"id": "a", "timestamp": "2026-03-01T12:00:00Z"}).timestamp == \
            datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
        assert Note.from_dict({"id": "b", "timestamp": 1772366400000}).timestamp == \
            datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
        assert Note.from_dict({"id": "c", "timestamp": "not-a-date"}).timestamp is None

    def test_direct_construction_normalizes_timestamp(self):
        note = Note(id="n1", timestamp=datetime(2026, 3, 1, 12, 0))
        assert note.timestamp == datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class TestKnowledgeEntryFromDict:

    @pytest.mark.parametrize("keywords", ["pin", None, {"k": "pin"}, 7])
    def test_non_list_keywords_become_empty(self, keywords):
        entry = KnowledgeEntry.from_dict({"topic": "PIN", "answer": "Set a PIN", "keywords": keywords})
        assert entry.keywords == ()

    def test_keywords_are_stringified(self):
        entry = KnowledgeEntry.from_dict({"topic": "PIN", "keywords": ["pin", 4, None]})
        assert entry.keywords == ("pin", "4")


def test_note_counts():
    notes = [
        Note(id="1", category="learning", importance=True),
        Note(id="2", category="learning"),
        Note(id="3", category="personal"),
        Note(id="4", category="other"),
    ]
    counts = NoteCounts.from_notes(notes)

    assert (counts.total, counts.learning, counts.personal, counts.cultural, counts.important) == (4, 2, 1, 0, 1)
