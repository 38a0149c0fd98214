from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest
import pytz

from core.models import TrackingEntry, LifestyleFactors

TODAY = date(2025, 8, 4)

def make_entry(day_offset: int = 0, hour: int = 12, physical: float = 70, cognitive: float = 70,
               mood: str = "neutral", stress: str = "medium", sleep: float = 0, hydration: float = 0,
               exercise: bool = False, nutrition: float = 0, entry_type: Optional[str] = None,
               base: date = TODAY) -> TrackingEntry:
    """Запись на день base - day_offset (UTC)"""
    day = base - timedelta(days=day_offset)
    timestamp = pytz.UTC.localize(datetime(day.year, day.month, day.day, hour))
    return TrackingEntry(
        entry_id=f"entry-{day.isoformat()}-{hour}",
        timestamp=timestamp,
        mood=mood,
        stress=stress,
        physical_energy=physical,
        cognitive_clarity=cognitive,
        lifestyle_factors=LifestyleFactors(
            sleep=sleep,
            hydration=hydration,
            exercise=exercise,
            nutrition=nutrition
        ),
        entry_type=entry_type
    )

def make_raw_entry(day_offset: int = 0, **overrides: Any) -> Dict[str, Any]:
    """Запись в формате клиента (camelCase JSON)"""
    day = TODAY - timedelta(days=day_offset)
    raw = {
        "id": f"raw-{day.isoformat()}",
        "timestamp": f"{day.isoformat()}T09:00:00Z",
        "mood": "happy",
        "stress": "low",
        "physicalEnergy": 70,
        "cognitiveClarity": 65,
        "lifestyleFactors": {"sleep": 4, "hydration": 8, "exercise": True, "nutrition": 4}
    }
    raw.update(overrides)
    return raw

@pytest.fixture
def today() -> date:
    return TODAY

@pytest.fixture
def entry_factory():
    return make_entry

@pytest.fixture
def raw_entry_factory():
    return make_raw_entry

@pytest.fixture
def perfect_week() -> List[TrackingEntry]:
    """7 дней подряд по сегодня включительно, все условия выполнены"""
    return [
        make_entry(
            day_offset=offset,
            physical=45,
            cognitive=45,
            mood="happy",
            stress="low",
            sleep=5,
            hydration=8,
            exercise=True,
            nutrition=4,
            entry_type="morning"
        )
        for offset in range(7)
    ]
