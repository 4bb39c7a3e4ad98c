"""Test configuration and fixtures for pytest."""

import os
from datetime import datetime, timezone

import pytest

# Set required environment variables BEFORE any constellation module reads settings.
os.environ.setdefault("NOTION_API_KEY", "test-notion-key")
os.environ.setdefault("NOTION_KEYWORDS_DB_ID", "test-keywords-db")

from constellation.models.schemas import RawKeywordRecord


@pytest.fixture
def fixed_now():
    """A fixed wall-clock time so edge timestamps and decay are deterministic."""
    return datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def trust_privacy_records():
    """Two spellings of 'Trust' from different papers plus 'Privacy' sharing paper P1."""
    return [
        RawKeywordRecord(
            id="a1", term="Trust", source="P1", weight=0.9,
            orientation="exploratory", artifact_role="probe",
        ),
        RawKeywordRecord(
            id="a2", term="trust ", source="P2", weight=0.5,
            orientation="exploratory", artifact_role="probe",
        ),
        RawKeywordRecord(
            id="b1", term="Privacy", source="P1", weight=0.7,
            orientation="critical", artifact_role="probe",
        ),
    ]


@pytest.fixture
def mixed_records():
    """A small corpus spanning several sources, orientations and roles."""
    return [
        RawKeywordRecord(
            id="k1", term="Trust", source="P1", weight=0.9,
            orientation="exploratory", artifact_role="probe",
        ),
        RawKeywordRecord(
            id="k2", term="Privacy", source="P1", weight=0.7,
            orientation="critical", artifact_role="critique_device",
        ),
        RawKeywordRecord(
            id="k3", term="Agency", source="P2", weight=0.6,
            orientation="constructive", artifact_role="generative_construct",
        ),
        RawKeywordRecord(
            id="k4", term="Care", source="P2", weight=0.4,
            orientation="exploratory", artifact_role="probe",
        ),
        RawKeywordRecord(
            id="k5", term="trust", source="P3", weight=0.3, active=False,
            orientation="critical", artifact_role="solution_system",
        ),
        RawKeywordRecord(
            id="k6", term="Repair", weight=0.8,
            orientation="problem_solving", artifact_role="solution_system",
        ),
    ]
