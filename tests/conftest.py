"""Pytest configuration and shared fixtures for SAM tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from sam.graph.models import (
    CoAttendancePair,
    CommLink,
    CommunicationDirection,
    ContextInput,
    GhostMention,
    HealthLevel,
    PersonInput,
    RecruitLink,
    ReferralLink,
)
from sam.graph.pipeline import GraphInputs

REALISTIC_ROLES = [
    ["Client"], ["Client"], ["Client"], ["Client"], ["Client"],
    ["Lead"], ["Lead"], ["Lead"],
    ["Agent"], ["Agent"], ["Agent"],
    ["Vendor"], ["Vendor"],
    ["Applicant"], ["Applicant"],
    ["External Agent"], ["External Agent"],
    ["Referral Partner"],
    ["Prospect"], ["Prospect"],
]  # fmt: skip


def _make_person(
    person_id: str,
    name: str = "Test Person",
    roles: list[str] | None = None,
    health: HealthLevel = HealthLevel.HEALTHY,
    production: float = 0.0,
    pipeline_stage: str | None = None,
) -> PersonInput:
    return PersonInput(
        id=person_id,
        display_name=name,
        role_badges=tuple(["Client"] if roles is None else roles),
        relationship_health=health,
        production_value=production,
        pipeline_stage=pipeline_stage,
    )


@pytest.fixture
def make_person() -> Callable[..., PersonInput]:
    """Factory for person inputs with sensible defaults."""
    return _make_person


@pytest.fixture
def realistic_inputs() -> GraphInputs:
    """Twenty people with households, a business and every fact type."""
    ids = [f"p{i}" for i in range(20)]
    people = [
        _make_person(
            ids[i],
            name=f"Person {i}",
            roles=REALISTIC_ROLES[i],
            health=(
                HealthLevel.HEALTHY if i < 5 else HealthLevel.COOLING if i < 10 else HealthLevel.AT_RISK
            ),
            production=(i + 1) * 1000.0 if i < 5 else 0.0,
        )
        for i in range(20)
    ]

    return GraphInputs(
        people=people,
        contexts=[
            ContextInput("h1", "Household", (ids[0], ids[1], ids[13])),
            ContextInput("h2", "Household", (ids[2], ids[3])),
            ContextInput("b1", "Business", (ids[4], ids[11], ids[12])),
        ],
        referrals=[
            ReferralLink(ids[0], ids[5]),
            ReferralLink(ids[0], ids[6]),
            ReferralLink(ids[5], ids[7]),
        ],
        recruiting_links=[
            RecruitLink(ids[8], ids[9], "Studying"),
            RecruitLink(ids[8], ids[10], "Licensed"),
        ],
        co_attendance=[CoAttendancePair(ids[0], ids[4], 3)],
        communications=[
            CommLink(ids[0], ids[5], 10, direction=CommunicationDirection.OUTBOUND),
            CommLink(ids[2], ids[11], 3, direction=CommunicationDirection.BALANCED),
        ],
        ghost_mentions=[GhostMention("Sarah Johnson", (ids[0], ids[1]), "spouse")],
    )


@pytest.fixture
def realistic_payload() -> dict:
    """JSON-shaped payload equivalent to a small household graph."""
    return {
        "people": [
            {"id": "a", "display_name": "Alice", "role_badges": ["Client"]},
            {"id": "b", "display_name": "Bob", "role_badges": ["Client", "Vendor"]},
            {"id": "c", "display_name": "Carol", "role_badges": ["Lead"]},
            {"id": "d", "display_name": "Dan", "role_badges": ["Prospect"]},
        ],
        "contexts": [
            {"id": "h1", "context_type": "Household", "participant_ids": ["a", "b"]},
        ],
        "referrals": [{"referrer_id": "a", "referred_id": "c"}],
        "communications": [
            {
                "person_a": "b",
                "person_b": "c",
                "evidence_count": 40,
                "last_contact": "2026-01-15T10:00:00",
                "direction": "inbound",
            }
        ],
        "ghost_mentions": [
            {"mentioned_name": "Eve", "mentioned_by_ids": ["a"], "suggested_role": "Vendor"}
        ],
    }
