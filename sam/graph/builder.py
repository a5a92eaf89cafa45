"""Graph builder for relationship networks.

Turns people and already-resolved relationship facts (contexts, referrals,
recruiting links, co-attendance, communication, note mentions) into graph
nodes and typed, weighted edges.

The builder never fails: facts that reference unknown people are dropped
and empty input produces an empty graph.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from sam.graph.models import (
    CoAttendancePair,
    CommLink,
    CommunicationDirection,
    ContextInput,
    EdgeType,
    GhostMention,
    GraphEdge,
    GraphNode,
    HealthLevel,
    MentionPair,
    PersonInput,
    RecruitLink,
    ReferralLink,
    resolve_primary_role,
)

logger = logging.getLogger(__name__)

# Context types that connect all of their participants
CONTEXT_EDGE_TYPES: dict[str, EdgeType] = {
    "household": EdgeType.HOUSEHOLD,
    "business": EdgeType.BUSINESS,
}

# Counts at which a frequency-based edge reaches full weight
MEETINGS_FOR_FULL_WEIGHT = 10
EVIDENCE_FOR_FULL_WEIGHT = 20
MENTIONS_FOR_FULL_WEIGHT = 5

GHOST_ID_PREFIX = "ghost:"


def _hash_id(value: str) -> str:
    """Create a stable short hash for an identifier."""
    return hashlib.sha256(value.encode()).hexdigest()[:16]


def _clamp_weight(weight: float) -> float:
    return max(0.0, min(1.0, weight))


def _count_weight(count: int, full_at: int) -> float:
    """Linear weight that saturates at ``full_at`` occurrences."""
    return _clamp_weight(count / full_at)


def _normalize_name(name: str) -> str:
    return " ".join(name.split()).casefold()


def _unique(ids: Iterable[str]) -> list[str]:
    """Deduplicate ids, keeping first-seen order."""
    return list(dict.fromkeys(ids))


def _edge(
    source: str,
    target: str,
    edge_type: EdgeType,
    weight: float = 1.0,
    **kwargs: object,
) -> Iterator[GraphEdge]:
    # Self-referencing facts carry no relationship
    if source == target:
        return
    yield GraphEdge(
        source=source,
        target=target,
        edge_type=edge_type,
        weight=_clamp_weight(weight),
        **kwargs,  # type: ignore[arg-type]
    )


def _person_nodes(people: Iterable[PersonInput]) -> list[GraphNode]:
    nodes: list[GraphNode] = []
    seen: set[str] = set()

    for person in people:
        if person.id in seen:
            logger.debug("Skipping duplicate person %s", person.id)
            continue
        seen.add(person.id)

        badges = list(person.role_badges)
        nodes.append(
            GraphNode(
                id=person.id,
                label=person.display_name,
                primary_role=resolve_primary_role(badges),
                role_badges=badges,
                relationship_health=person.relationship_health,
                production_value=max(0.0, person.production_value),
                status_text=person.status_text,
                pipeline_stage=person.pipeline_stage,
            )
        )

    return nodes


def _context_edges(contexts: Iterable[ContextInput]) -> Iterator[GraphEdge]:
    """Connect every pair of participants in household/business contexts."""
    for context in contexts:
        edge_type = CONTEXT_EDGE_TYPES.get(context.context_type.strip().lower())
        if edge_type is None:
            continue

        participants = _unique(context.participant_ids)
        for i, source in enumerate(participants):
            for target in participants[i + 1 :]:
                yield from _edge(source, target, edge_type)


def _referral_edges(referrals: Iterable[ReferralLink]) -> Iterator[GraphEdge]:
    for link in referrals:
        yield from _edge(link.referrer_id, link.referred_id, EdgeType.REFERRAL)


def _recruiting_edges(links: Iterable[RecruitLink]) -> Iterator[GraphEdge]:
    for link in links:
        yield from _edge(
            link.recruiter_id, link.recruit_id, EdgeType.RECRUITING_TREE, label=link.stage
        )


def _co_attendance_edges(pairs: Iterable[CoAttendancePair]) -> Iterator[GraphEdge]:
    for pair in pairs:
        count = pair.meeting_count
        yield from _edge(
            pair.person_a,
            pair.person_b,
            EdgeType.CO_ATTENDEE,
            _count_weight(count, MEETINGS_FOR_FULL_WEIGHT),
            label="1 meeting" if count == 1 else f"{count} meetings",
        )


def _communication_edges(links: Iterable[CommLink]) -> Iterator[GraphEdge]:
    for link in links:
        yield from _edge(
            link.person_a,
            link.person_b,
            EdgeType.COMMUNICATION_LINK,
            _count_weight(link.evidence_count, EVIDENCE_FOR_FULL_WEIGHT),
            is_reciprocal=link.direction == CommunicationDirection.BALANCED,
            direction=link.direction,
            last_interaction=link.last_contact,
        )


def _mention_edges(pairs: Iterable[MentionPair]) -> Iterator[GraphEdge]:
    for pair in pairs:
        yield from _edge(
            pair.person_a,
            pair.person_b,
            EdgeType.MENTIONED_TOGETHER,
            _count_weight(pair.co_mention_count, MENTIONS_FOR_FULL_WEIGHT),
        )


@dataclass
class _GhostGroup:
    """All mentions of one distinct unmatched name."""

    name: str
    mentioner_ids: list[str] = field(default_factory=list)
    suggested_role: str | None = None


def _group_ghost_mentions(mentions: Iterable[GhostMention]) -> dict[str, _GhostGroup]:
    groups: dict[str, _GhostGroup] = {}

    for mention in mentions:
        key = _normalize_name(mention.mentioned_name)
        if not key:
            continue

        group = groups.get(key)
        if group is None:
            group = _GhostGroup(name=mention.mentioned_name.strip())
            groups[key] = group

        group.mentioner_ids = _unique([*group.mentioner_ids, *mention.mentioned_by_ids])
        if not group.suggested_role and mention.suggested_role:
            group.suggested_role = mention.suggested_role

    return groups


def _ghost_id(key: str, taken: set[str]) -> str:
    ghost_id = f"{GHOST_ID_PREFIX}{_hash_id(key)}"
    suffix = 2
    candidate = ghost_id
    while candidate in taken:
        candidate = f"{ghost_id}-{suffix}"
        suffix += 1
    return candidate


def _ghost_graph(
    mentions: Iterable[GhostMention],
    people: Sequence[GraphNode],
) -> tuple[list[GraphNode], list[GraphEdge]]:
    """Synthesize one ghost node per distinct unmatched name.

    A name that matches a known person's display name is linked to that
    person instead of producing a ghost.
    """
    known_by_name: dict[str, str] = {}
    for node in people:
        known_by_name.setdefault(_normalize_name(node.label), node.id)

    taken = {node.id for node in people}
    nodes: list[GraphNode] = []
    edges: list[GraphEdge] = []

    for key, group in _group_ghost_mentions(mentions).items():
        known_id = known_by_name.get(key)
        if known_id is not None:
            logger.debug("Mention %r resolves to known person %s", group.name, known_id)
            for mentioner_id in group.mentioner_ids:
                edges.extend(_edge(known_id, mentioner_id, EdgeType.MENTIONED_TOGETHER))
            continue

        ghost_id = _ghost_id(key, taken)
        taken.add(ghost_id)
        role = group.suggested_role
        nodes.append(
            GraphNode(
                id=ghost_id,
                label=group.name,
                primary_role=role,
                role_badges=[role] if role else [],
                relationship_health=HealthLevel.UNKNOWN,
                is_ghost=True,
            )
        )
        for mentioner_id in group.mentioner_ids:
            edges.extend(_edge(ghost_id, mentioner_id, EdgeType.MENTIONED_TOGETHER))

    return nodes, edges


def build_graph(
    people: Iterable[PersonInput],
    contexts: Iterable[ContextInput] = (),
    referrals: Iterable[ReferralLink] = (),
    recruiting_links: Iterable[RecruitLink] = (),
    co_attendance: Iterable[CoAttendancePair] = (),
    communications: Iterable[CommLink] = (),
    mentions: Iterable[MentionPair] = (),
    ghost_mentions: Iterable[GhostMention] = (),
) -> tuple[list[GraphNode], list[GraphEdge]]:
    """Build graph nodes and edges from people and relationship facts.

    Each fact type contributes its own edges; edges of different types
    between the same pair are kept side by side. Facts that reference an id
    outside the node set are dropped silently.

    Args:
        people: Tracked people, one node each in input order
        contexts: Household/business groupings (other types are ignored)
        referrals: Referrer -> referred links
        recruiting_links: Recruiter -> recruit links with stage labels
        co_attendance: Shared calendar event counts
        communications: Message/call evidence between two people
        mentions: Co-mention counts between known people
        ghost_mentions: Unmatched names and the people who mentioned them

    Returns:
        Tuple of (nodes, edges)
    """
    nodes = _person_nodes(people)

    edges: list[GraphEdge] = [
        *_context_edges(contexts),
        *_referral_edges(referrals),
        *_recruiting_edges(recruiting_links),
        *_co_attendance_edges(co_attendance),
        *_communication_edges(communications),
        *_mention_edges(mentions),
    ]

    ghost_nodes, ghost_edges = _ghost_graph(ghost_mentions, nodes)
    nodes.extend(ghost_nodes)
    edges.extend(ghost_edges)

    node_ids = {node.id for node in nodes}
    kept = [edge for edge in edges if edge.source in node_ids and edge.target in node_ids]
    if len(kept) != len(edges):
        logger.debug("Dropped %d edges referencing unknown people", len(edges) - len(kept))

    connected: set[str] = set()
    for edge in kept:
        connected.add(edge.source)
        connected.add(edge.target)
    for node in nodes:
        node.is_orphaned = node.id not in connected

    logger.info("Built graph: %d nodes, %d edges", len(nodes), len(kept))
    return nodes, kept
