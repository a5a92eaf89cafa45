"""Records exchanged with the relationship graph engine.

Input records describe people, contexts and already-resolved relationship
facts. Output records are the graph nodes and edges produced by the builder
and annotated by the layout engine.
"""

from __future__ import annotations

import math
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class HealthLevel(str, Enum):
    """Relationship health classification of a person."""

    HEALTHY = "healthy"
    COOLING = "cooling"
    AT_RISK = "at_risk"
    UNKNOWN = "unknown"  # ghost nodes only


class EdgeType(str, Enum):
    """Kind of relationship an edge represents."""

    HOUSEHOLD = "household"
    BUSINESS = "business"
    REFERRAL = "referral"
    RECRUITING_TREE = "recruiting_tree"
    CO_ATTENDEE = "co_attendee"
    COMMUNICATION_LINK = "communication_link"
    MENTIONED_TOGETHER = "mentioned_together"


class CommunicationDirection(str, Enum):
    """Who initiates most of the contact between two people."""

    OUTBOUND = "outbound"
    INBOUND = "inbound"
    BALANCED = "balanced"


# Lower rank wins. Labels missing from the table rank after all of these.
ROLE_PRIORITY: dict[str, int] = {
    "Client": 0,
    "Applicant": 1,
    "Agent": 2,
    "Lead": 3,
    "External Agent": 4,
    "Referral Partner": 5,
    "Vendor": 6,
    "Prospect": 7,
}

_UNRANKED = len(ROLE_PRIORITY)


def resolve_primary_role(role_badges: Iterable[str]) -> str | None:
    """Pick the highest-priority role from a set of role labels.

    Args:
        role_badges: Role labels of a person, in any order.

    Returns:
        The best-ranked label, or None when there are no labels.
    """
    return min(role_badges, key=lambda role: ROLE_PRIORITY.get(role, _UNRANKED), default=None)


# --- Inputs -----------------------------------------------------------------


@dataclass(frozen=True)
class PersonInput:
    """A tracked person.

    Attributes:
        id: Unique person identifier
        display_name: Name shown on the node
        role_badges: Role labels (Client, Lead, Vendor, ...)
        relationship_health: Health classification
        production_value: Monetary production, used for node sizing
        status_text: Short status line (e.g. top coaching outcome)
        pipeline_stage: Current stage in the client or recruiting funnel
    """

    id: str
    display_name: str
    role_badges: Collection[str] = ()
    relationship_health: HealthLevel = HealthLevel.HEALTHY
    production_value: float = 0.0
    status_text: str | None = None
    pipeline_stage: str | None = None


@dataclass(frozen=True)
class ContextInput:
    """A grouping of people such as a household or a business."""

    id: str
    context_type: str
    participant_ids: Collection[str] = ()


@dataclass(frozen=True)
class ReferralLink:
    referrer_id: str
    referred_id: str


@dataclass(frozen=True)
class RecruitLink:
    recruiter_id: str
    recruit_id: str
    stage: str


@dataclass(frozen=True)
class CoAttendancePair:
    """Two people who attended ``meeting_count`` calendar events together."""

    person_a: str
    person_b: str
    meeting_count: int


@dataclass(frozen=True)
class CommLink:
    """Aggregate message/call evidence between two people."""

    person_a: str
    person_b: str
    evidence_count: int
    last_contact: datetime | None = None
    direction: CommunicationDirection = CommunicationDirection.BALANCED


@dataclass(frozen=True)
class MentionPair:
    """Two known people mentioned together in notes."""

    person_a: str
    person_b: str
    co_mention_count: int


@dataclass(frozen=True)
class GhostMention:
    """A name mentioned in notes that does not resolve to a tracked person.

    Attributes:
        mentioned_name: Name as written in the notes
        mentioned_by_ids: People whose notes mention the name
        suggested_role: Role guessed at extraction time, if any
    """

    mentioned_name: str
    mentioned_by_ids: Collection[str] = ()
    suggested_role: str | None = None


# --- Outputs ----------------------------------------------------------------


@dataclass
class GraphNode:
    """A node in the relationship graph.

    Attributes:
        id: Person id, or a synthesized id for ghost nodes
        label: Display name
        primary_role: Highest-priority role, used for colouring
        role_badges: All role labels
        relationship_health: Health classification
        production_value: Monetary production (node sizing)
        status_text: Tooltip status line
        pipeline_stage: Funnel stage, if any
        is_ghost: Mentioned in notes but not a tracked person
        is_orphaned: No edge references this node
        is_pinned: Position fixed by the user, excluded from simulation
        x: X position (set by layout)
        y: Y position (set by layout)
        vx: Residual X velocity after layout
        vy: Residual Y velocity after layout
    """

    id: str
    label: str
    primary_role: str | None = None
    role_badges: list[str] = field(default_factory=list)
    relationship_health: HealthLevel = HealthLevel.HEALTHY
    production_value: float = 0.0
    status_text: str | None = None
    pipeline_stage: str | None = None
    is_ghost: bool = False
    is_orphaned: bool = False
    is_pinned: bool = False
    x: float | None = None
    y: float | None = None
    vx: float = 0.0
    vy: float = 0.0

    @property
    def has_position(self) -> bool:
        return self.x is not None and self.y is not None

    @property
    def speed(self) -> float:
        """Magnitude of the residual velocity."""
        return math.hypot(self.vx, self.vy)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "label": self.label,
            "primary_role": self.primary_role,
            "role_badges": list(self.role_badges),
            "relationship_health": self.relationship_health.value,
            "production_value": self.production_value,
            "status_text": self.status_text,
            "pipeline_stage": self.pipeline_stage,
            "is_ghost": self.is_ghost,
            "is_orphaned": self.is_orphaned,
            "is_pinned": self.is_pinned,
            "x": self.x,
            "y": self.y,
            "vx": self.vx,
            "vy": self.vy,
        }


@dataclass
class GraphEdge:
    """An edge between two graph nodes.

    Attributes:
        source: Source node ID
        target: Target node ID
        edge_type: Relationship kind
        weight: Strength in [0, 1]; drives spring force and line thickness
        label: Optional display label ("Studying", "5 meetings")
        is_reciprocal: Both sides communicate (communication edges)
        direction: Dominant communication direction (communication edges)
        last_interaction: Last contact time (communication edges)
    """

    source: str
    target: str
    edge_type: EdgeType
    weight: float = 1.0
    label: str | None = None
    is_reciprocal: bool = False
    direction: CommunicationDirection | None = None
    last_interaction: datetime | None = None

    @property
    def is_directed(self) -> bool:
        return self.edge_type in (EdgeType.REFERRAL, EdgeType.RECRUITING_TREE)

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "source": self.source,
            "target": self.target,
            "edge_type": self.edge_type.value,
            "weight": self.weight,
            "label": self.label,
            "is_reciprocal": self.is_reciprocal,
            "direction": self.direction.value if self.direction else None,
            "last_interaction": (
                self.last_interaction.isoformat() if self.last_interaction else None
            ),
        }
