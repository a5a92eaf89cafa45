"""Graph input payload schema.

Pydantic models for the JSON document accepted by ``sam layout``. A parsed
payload converts into ``GraphInputs`` for the pipeline.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pydantic
from pydantic import BaseModel, Field

from sam.errors import ErrorCode, ValidationError
from sam.graph.models import (
    CoAttendancePair,
    CommLink,
    CommunicationDirection,
    ContextInput,
    GhostMention,
    HealthLevel,
    MentionPair,
    PersonInput,
    RecruitLink,
    ReferralLink,
)
from sam.graph.pipeline import GraphInputs, NodePosition


class PersonSchema(BaseModel):
    """Schema for a tracked person."""

    id: str = Field(min_length=1, description="Unique person identifier")
    display_name: str = Field(description="Name shown on the node")
    role_badges: list[str] = Field(default_factory=list, description="Role labels")
    relationship_health: HealthLevel = Field(
        default=HealthLevel.HEALTHY, description="Health classification"
    )
    production_value: float = Field(default=0.0, description="Production used for node sizing")
    status_text: str | None = Field(default=None, description="Short status line")
    pipeline_stage: str | None = Field(default=None, description="Funnel stage")
    x: float | None = Field(default=None, description="Known X position")
    y: float | None = Field(default=None, description="Known Y position")
    pinned: bool = Field(default=False, description="Keep the known position fixed")

    def to_input(self) -> PersonInput:
        return PersonInput(
            id=self.id,
            display_name=self.display_name,
            role_badges=tuple(self.role_badges),
            relationship_health=self.relationship_health,
            production_value=self.production_value,
            status_text=self.status_text,
            pipeline_stage=self.pipeline_stage,
        )

    def position(self) -> NodePosition | None:
        if self.x is None or self.y is None:
            return None
        return NodePosition(x=self.x, y=self.y, pinned=self.pinned)


class ContextSchema(BaseModel):
    """Schema for a household, business or other grouping."""

    id: str = Field(description="Context identifier")
    context_type: str = Field(description="Household, Business, ...")
    participant_ids: list[str] = Field(default_factory=list, description="Member person ids")


class ReferralSchema(BaseModel):
    referrer_id: str
    referred_id: str


class RecruitSchema(BaseModel):
    recruiter_id: str
    recruit_id: str
    stage: str = Field(description="Recruiting stage shown on the edge")


class CoAttendanceSchema(BaseModel):
    person_a: str
    person_b: str
    meeting_count: int = Field(ge=0, description="Shared calendar events")


class CommunicationSchema(BaseModel):
    person_a: str
    person_b: str
    evidence_count: int = Field(ge=0, description="Messages and calls observed")
    last_contact: datetime | None = Field(default=None, description="Most recent contact")
    direction: CommunicationDirection = Field(default=CommunicationDirection.BALANCED)


class MentionSchema(BaseModel):
    person_a: str
    person_b: str
    co_mention_count: int = Field(ge=0, description="Notes mentioning both people")


class GhostMentionSchema(BaseModel):
    mentioned_name: str = Field(description="Name as written in notes")
    mentioned_by_ids: list[str] = Field(default_factory=list, description="Mentioning people")
    suggested_role: str | None = Field(default=None, description="Role guessed from context")


class GraphPayload(BaseModel):
    """Schema for a complete graph build request."""

    people: list[PersonSchema] = Field(default_factory=list)
    contexts: list[ContextSchema] = Field(default_factory=list)
    referrals: list[ReferralSchema] = Field(default_factory=list)
    recruiting_links: list[RecruitSchema] = Field(default_factory=list)
    co_attendance: list[CoAttendanceSchema] = Field(default_factory=list)
    communications: list[CommunicationSchema] = Field(default_factory=list)
    mentions: list[MentionSchema] = Field(default_factory=list)
    ghost_mentions: list[GhostMentionSchema] = Field(default_factory=list)

    def to_inputs(self) -> GraphInputs:
        """Convert to pipeline inputs."""
        positions = {}
        for person in self.people:
            position = person.position()
            if position is not None:
                positions[person.id] = position

        return GraphInputs(
            people=[p.to_input() for p in self.people],
            contexts=[
                ContextInput(c.id, c.context_type, tuple(c.participant_ids))
                for c in self.contexts
            ],
            referrals=[ReferralLink(r.referrer_id, r.referred_id) for r in self.referrals],
            recruiting_links=[
                RecruitLink(r.recruiter_id, r.recruit_id, r.stage) for r in self.recruiting_links
            ],
            co_attendance=[
                CoAttendancePair(c.person_a, c.person_b, c.meeting_count)
                for c in self.co_attendance
            ],
            communications=[
                CommLink(c.person_a, c.person_b, c.evidence_count, c.last_contact, c.direction)
                for c in self.communications
            ],
            mentions=[
                MentionPair(m.person_a, m.person_b, m.co_mention_count) for m in self.mentions
            ],
            ghost_mentions=[
                GhostMention(g.mentioned_name, tuple(g.mentioned_by_ids), g.suggested_role)
                for g in self.ghost_mentions
            ],
            positions=positions,
        )


def parse_payload(data: str | bytes | dict) -> GraphInputs:
    """Parse a JSON document (raw or already decoded) into graph inputs.

    Raises:
        ValidationError: If the document does not match the schema
    """
    try:
        if isinstance(data, (str, bytes)):
            payload = GraphPayload.model_validate_json(data)
        else:
            payload = GraphPayload.model_validate(data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        code = (
            ErrorCode.VAL_MISSING_REQUIRED
            if first["type"] == "missing"
            else ErrorCode.VAL_INVALID_INPUT
        )
        raise ValidationError(
            f"Invalid graph payload: {first['msg']}",
            field=field,
            value=first.get("input"),
            code=code,
            error_count=e.error_count(),
            cause=e,
        ) from e

    return payload.to_inputs()


def load_payload(path: Path) -> GraphInputs:
    """Read and parse a payload file.

    Raises:
        ValidationError: If the file cannot be read or is invalid
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError(f"Payload file {path} is not valid UTF-8", cause=e) from e
    except OSError as e:
        raise ValidationError(f"Cannot read payload file {path}", cause=e) from e
    return parse_payload(text)
