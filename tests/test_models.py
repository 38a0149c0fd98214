from datetime import timedelta

import pytest

from core.models import (
    Insight, TrackingEntry, ValidationError, normalize_energy,
    parse_entries, sort_entries_desc
)

class TestTrackingEntryFromDict:

    def test_camel_case_payload(self, raw_entry_factory):
        entry = TrackingEntry.from_dict(raw_entry_factory())

        assert entry.timestamp.utcoffset() == timedelta(0)
        assert entry.mood == "happy"
        assert entry.stress == "low"
        assert entry.physical_energy == 70.0
        assert entry.cognitive_clarity == 65.0
        assert entry.combined_energy == pytest.approx(67.5)
        assert entry.lifestyle_factors.exercise is True
        assert entry.lifestyle_factors.hydration == 8.0

    def test_snake_case_payload(self):
        entry = TrackingEntry.from_dict({
            "entry_id": "abc",
            "timestamp": "2025-08-04T09:00:00+00:00",
            "physical_energy": 55,
            "cognitive_clarity": 45,
            "stress_level": "HIGH",
            "lifestyle_factors": {"sleep": 3}
        })

        assert entry.entry_id == "abc"
        assert entry.energy_sum == 100.0
        assert entry.stress == "high"
        assert entry.lifestyle_factors.sleep == 3.0

    def test_missing_fields_default(self):
        entry = TrackingEntry.from_dict({"timestamp": "2025-08-04T09:00:00Z"})

        assert entry.physical_energy == 0.0
        assert entry.cognitive_clarity == 0.0
        assert entry.mood == "neutral"
        assert entry.stress == "medium"
        assert entry.lifestyle_factors.exercise is False
        assert entry.lifestyle_factors.sleep == 0.0
        assert entry.entry_id

    def test_non_numeric_values_become_zero(self):
        entry = TrackingEntry.from_dict({
            "timestamp": "2025-08-04T09:00:00Z",
            "physicalEnergy": "lots",
            "lifestyleFactors": {"hydration": None, "exercise": "yes"}
        })

        assert entry.physical_energy == 0.0
        assert entry.lifestyle_factors.hydration == 0.0
        assert entry.lifestyle_factors.exercise is True

    def test_mood_list_uses_first_value(self):
        entry = TrackingEntry.from_dict({"timestamp": "2025-08-04T09:00:00Z", "mood": ["tired", "calm"]})
        assert entry.mood == "tired"

    def test_unknown_lifestyle_keys_kept(self):
        entry = TrackingEntry.from_dict({
            "timestamp": "2025-08-04T09:00:00Z",
            "lifestyleFactors": {"sleep": 4, "meditation": True}
        })
        assert entry.lifestyle_factors.extra == {"meditation": True}
        assert entry.lifestyle_factors.to_dict()["meditation"] is True

    def test_checkin_scale_normalized(self):
        entry = TrackingEntry.from_dict({
            "timestamp": "2025-08-04T09:00:00Z",
            "physicalEnergy": 6,
            "cognitiveClarity": 12,
            "energyScale": 12,
            "type": "morning"
        })

        assert entry.physical_energy == 50.0
        assert entry.cognitive_clarity == 100.0
        assert entry.is_morning

    @pytest.mark.parametrize("payload", [
        {},
        {"timestamp": "yesterday"},
        {"timestamp": 12345},
    ])
    def test_invalid_timestamp(self, payload):
        with pytest.raises(ValidationError):
            TrackingEntry.from_dict(payload)

    def test_non_mapping(self):
        with pytest.raises(ValidationError):
            TrackingEntry.from_dict(["not", "an", "entry"])

    def test_to_dict_uses_wire_names(self, raw_entry_factory):
        data = TrackingEntry.from_dict(raw_entry_factory()).to_dict()

        assert data["physicalEnergy"] == 70.0
        assert data["lifestyleFactors"]["sleep"] == 4.0
        assert data["timestamp"].startswith("2025-08-04T09:00:00")

class TestHelpers:

    def test_normalize_energy(self):
        assert normalize_energy(6, 12) == 50.0
        assert normalize_energy(73) == 73.0
        assert normalize_energy(None) == 0.0

    def test_parse_entries_skips_invalid(self, raw_entry_factory):
        raw = [raw_entry_factory(0), {"mood": "happy"}, "garbage", raw_entry_factory(1)]
        entries = parse_entries(raw)
        assert len(entries) == 2

    def test_parse_entries_strict(self):
        with pytest.raises(ValidationError):
            parse_entries([{"mood": "happy"}], strict=True)

    def test_sort_entries_desc(self, entry_factory):
        entries = [entry_factory(day_offset=offset) for offset in (3, 0, 1)]
        assert [e.entry_id for e in sort_entries_desc(entries)] == [
            entries[1].entry_id, entries[2].entry_id, entries[0].entry_id
        ]

    def test_sort_localizes_naive_timestamps(self):
        naive = TrackingEntry.from_dict({"id": "naive", "timestamp": "2025-08-04T08:00:00"})
        aware = TrackingEntry.from_dict({"id": "aware", "timestamp": "2025-08-04T00:00:00Z"})

        # 08:00 в Токио раньше, чем 00:00 UTC (09:00 в Токио)
        assert [e.entry_id for e in sort_entries_desc([naive, aware], tz="Asia/Tokyo")] == ["aware", "naive"]
        assert [e.entry_id for e in sort_entries_desc([naive, aware], tz="UTC")] == ["naive", "aware"]

    @pytest.mark.parametrize("value", ["1e400", "nan", "-inf"])
    def test_non_finite_numbers_ignored(self, value):
        entries = parse_entries([{
            "timestamp": "2025-08-04T09:00:00Z",
            "energyScale": value,
            "physicalEnergy": value,
            "cognitiveClarity": 50
        }])

        assert len(entries) == 1
        assert entries[0].physical_energy == 0.0
        assert entries[0].cognitive_clarity == 50.0

    def test_insight_to_dict_omits_empty_actionable(self):
        insight = Insight(type="positive", title="Great", description="Nice work")
        assert insight.to_dict() == {
            "type": "positive",
            "title": "Great",
            "description": "Nice work",
            "confidence": "medium"
        }
