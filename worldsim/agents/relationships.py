"""
worldsim/agents/relationships.py

Tracks how each agent feels about every other agent (or the player).
Edges are directed: A may hate B while B barely knows A exists.
Feeling scale: -2.0 (nemesis) to +2.0 (close friend)

Once an agent dies its own feelings stop changing, but the record is
kept so the world still remembers who hated whom.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from loguru import logger

PLAYER = "player"

MIN_FEELING = -2.0
MAX_FEELING = 2.0
STEP_SIZE = 0.1


class RelationType(str, Enum):
    CLOSE_FRIEND = "close friend"
    FRIEND = "friend"
    ACQUAINTANCE = "acquaintance"
    NEUTRAL = "neutral"
    DISLIKE = "dislike"
    ENEMY = "enemy"
    NEMESIS = "nemesis"


INTERACTION_EVENTS = {
    "attacked":     -0.8,
    "betrayed":     -1.0,
    "helped":       +0.6,
    "defended":     +0.8,
    "traded":       +0.1,
    "complimented": +0.2,
    "insulted":     -0.3,
    "threatened":   -0.5,
    "joined_gang":  +0.5,
    "joined_team":  +0.4,
}


@dataclass
class RelationshipEdge:
    value: float = 0.0
    pinned: Optional[RelationType] = None
    interactions: int = 0
    last_kind: Optional[str] = None

    @property
    def kind(self) -> RelationType:
        if self.pinned is not None:
            return self.pinned
        v = self.value
        if v >= 1.2:  return RelationType.CLOSE_FRIEND
        if v >= 0.5:  return RelationType.FRIEND
        if v >= 0.1:  return RelationType.ACQUAINTANCE
        if v > -0.1:  return RelationType.NEUTRAL
        if v > -0.5:  return RelationType.DISLIKE
        if v > -1.2:  return RelationType.ENEMY
        return RelationType.NEMESIS


HOSTILE_TYPES = {RelationType.ENEMY, RelationType.NEMESIS}


class RelationshipTracker:

    def __init__(self):
        self._edges: dict[tuple[str, str], RelationshipEdge] = {}
        self._inert: set[str] = set()

    def _edge(self, source: str, target: str) -> Optional[RelationshipEdge]:
        """Returns the mutable edge, or None if the owner is dead."""
        if source in self._inert or source == target:
            return None
        return self._edges.setdefault((source, target), RelationshipEdge())

    # ─── Mutations ────────────────────────────────────────────────────────────

    def update_relationship(self, source: str, target: str, direction: int, steps: int = 1, hostile: bool = False):
        """
        Move source's feeling toward target by `steps` increments.
        direction > 0 warms the edge, direction < 0 cools it.
        hostile=True marks the edge as open enmity whatever its value.
        """
        edge = self._edge(source, target)
        if edge is None:
            return
        sign = 1 if direction > 0 else -1 if direction < 0 else 0
        before = edge.value
        edge.value = max(MIN_FEELING, min(MAX_FEELING, edge.value + sign * steps * STEP_SIZE))
        if hostile:
            edge.pinned = RelationType.ENEMY
        elif sign > 0 and edge.pinned in HOSTILE_TYPES:
            # Warming up lets the value speak for itself again
            edge.pinned = None
        logger.debug(f"🤝 Feeling {source[:8]}→{target[:8]}: {before:+.2f} → {edge.value:+.2f}")

    def record_interaction(self, source: str, target: str, kind: str):
        delta = INTERACTION_EVENTS.get(kind)
        if delta is None:
            logger.debug(f"Unknown interaction kind '{kind}' ignored")
            return
        edge = self._edge(source, target)
        if edge is None:
            return
        before = edge.value
        edge.value = max(MIN_FEELING, min(MAX_FEELING, edge.value + delta))
        edge.interactions += 1
        edge.last_kind = kind
        logger.debug(f"🤝 {source[:8]}→{target[:8]}: {before:+.2f} → {edge.value:+.2f} ({kind})")

    def set_relationship(self, source: str, target: str, kind: RelationType):
        """Pin an edge to a type without touching its value."""
        edge = self._edge(source, target)
        if edge is not None:
            edge.pinned = kind

    def freeze(self, agent_id: str):
        """The agent's own feelings become read-only (it has died)."""
        self._inert.add(agent_id)

    def decay(self, rate: float = 0.02):
        """Feelings fade toward neutral if not reinforced."""
        for (source, _), edge in self._edges.items():
            if source not in self._inert:
                edge.value *= (1 - rate)

    # ─── Queries ──────────────────────────────────────────────────────────────

    def get(self, source: str, target: str) -> Optional[RelationshipEdge]:
        return self._edges.get((source, target))

    def get_feeling(self, source: str, target: str) -> float:
        edge = self._edges.get((source, target))
        return edge.value if edge else 0.0

    def get_type(self, source: str, target: str) -> RelationType:
        edge = self._edges.get((source, target))
        return edge.kind if edge else RelationType.NEUTRAL

    def is_enemy(self, source: str, target: str) -> bool:
        return self.get_type(source, target) in HOSTILE_TYPES

    def is_inert(self, agent_id: str) -> bool:
        return agent_id in self._inert

    def enemies_of(self, source: str) -> list[str]:
        return [t for (s, t), e in self._edges.items() if s == source and e.kind in HOSTILE_TYPES]

    def __len__(self) -> int:
        return len(self._edges)
