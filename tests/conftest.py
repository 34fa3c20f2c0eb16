# FILE: tests/conftest.py
"""
Pytest configuration for the coaching engine test suite.

Shared fixtures:
- fixed clock values for reducer / store tests
- a fully populated gz-intake record
- a FastAPI TestClient without snapshot persistence
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))


@pytest.fixture
def fixed_now():
    return datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def later(fixed_now):
    return fixed_now + timedelta(minutes=5)


@pytest.fixture
def clock(fixed_now):
    """Deterministic clock: every call advances one second."""
    ticks = {"n": 0}

    def _now():
        ticks["n"] += 1
        return fixed_now + timedelta(seconds=ticks["n"])

    return _now


def build_intake_record(status="unemployed", days_remaining=200):
    founder = {
        "currentStatus": status,
        "experience": {"yearsInIndustry": 8},
        "qualifications": {"education": "Meisterin im Bäckerhandwerk"},
        "motivation": "Eigenes Café mit regionalen Produkten",
    }
    if status == "unemployed":
        founder["algStatus"] = {"monthlyAmount": 1200}
        if days_remaining is not None:
            founder["algStatus"]["daysRemaining"] = days_remaining
    return {
        "businessIdea": {
            "elevator_pitch": "Ein Café mit Backstube zum Zuschauen",
            "problem": "Kaum handwerkliche Bäckereien im Viertel",
            "solution": "Gläserne Backstube mit Frühstücksangebot",
            "targetAudience": "Berufstätige und Familien im Viertel",
        },
        "founder": founder,
        "personality": {
            "innovativeness": "high",
            "riskTaking": "medium",
            "achievement": "high",
            "proactiveness": "high",
            "locusOfControl": "internal",
            "selfEfficacy": "medium",
            "autonomy": "high",
            "narrative": "Handwerklich stark, plant sorgfältig.",
        },
        "resources": {
            "financial": {"availableCapital": 15000},
            "time": {"hoursPerWeek": 50, "isFullTime": True},
            "network": {"industryContacts": ["Mühle Schmitt", "Kaffeerösterei Nord"]},
        },
        "businessType": {
            "category": "gastronomy",
            "isDigitalFirst": False,
            "isLocationDependent": True,
        },
        "validation": {
            "isGZEligible": True,
            "strengths": ["Fachwissen", "Kundennähe"],
        },
    }


@pytest.fixture
def intake_record():
    return build_intake_record()


@pytest.fixture
def make_intake_record():
    return build_intake_record


@pytest.fixture
def client(monkeypatch):
    from fastapi.testclient import TestClient

    from coach_engine.api import create_app

    monkeypatch.delenv("GZ_COACH_SNAPSHOT_DIR", raising=False)
    return TestClient(create_app())
