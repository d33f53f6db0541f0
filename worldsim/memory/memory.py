"""
Agent memory — a bounded log of what happened to each agent.

Every agent keeps its own log. When it is full the oldest memory falls
off, so a long-running world never grows without bound. Memories feed
the brain (who attacked me? who is my enemy?) and double as a narrative
audit trail of the world.

Memory types:
    - interaction kinds (attacked, traded, complimented, ...) recorded
      by the relationship ledger
    - assaulted: the attacker's own record of a fight it started
    - killed / saw_death: combat outcomes
    - joined_gang / joined_team / left_team: group history
    - witnessed_event: ambient world events, always low importance
"""

from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterable, Optional

from loguru import logger

DEFAULT_CAPACITY = 100


class MemoryType(str, Enum):
    ATTACKED = "attacked"
    ASSAULTED = "assaulted"        # the attacker's side of a fight
    BETRAYED = "betrayed"
    HELPED = "helped"
    DEFENDED = "defended"
    TRADED = "traded"
    COMPLIMENTED = "complimented"
    INSULTED = "insulted"
    THREATENED = "threatened"
    KILLED = "killed"
    SAW_DEATH = "saw_death"
    JOINED_GANG = "joined_gang"
    JOINED_TEAM = "joined_team"
    LEFT_TEAM = "left_team"
    LEVELED_UP = "leveled_up"
    DUNGEON = "dungeon"
    WITNESSED_EVENT = "witnessed_event"


# How much each kind of memory matters when the recorder doesn't say.
DEFAULT_IMPORTANCE = {
    MemoryType.ATTACKED: 0.8,
    MemoryType.ASSAULTED: 0.5,
    MemoryType.BETRAYED: 0.9,
    MemoryType.HELPED: 0.6,
    MemoryType.DEFENDED: 0.7,
    MemoryType.TRADED: 0.3,
    MemoryType.COMPLIMENTED: 0.3,
    MemoryType.INSULTED: 0.5,
    MemoryType.THREATENED: 0.6,
    MemoryType.KILLED: 0.9,
    MemoryType.SAW_DEATH: 0.7,
    MemoryType.JOINED_GANG: 0.8,
    MemoryType.JOINED_TEAM: 0.8,
    MemoryType.LEFT_TEAM: 0.7,
    MemoryType.LEVELED_UP: 0.6,
    MemoryType.DUNGEON: 0.4,
    MemoryType.WITNESSED_EVENT: 0.2,
}


@dataclass(frozen=True)
class MemoryEvent:
    kind: MemoryType
    description: str
    involved: Optional[str] = None     # agent id, "player", or nobody
    importance: float = 0.5
    location: str = ""
    tick: int = 0

    def __post_init__(self):
        if not 0.0 <= self.importance <= 1.0:
            raise ValueError(f"importance must be in [0, 1], got {self.importance}")


class AgentMemory:
    """Bounded log for one agent. Oldest memories are evicted first."""

    def __init__(self, agent_id: str, agent_name: str, capacity: int = DEFAULT_CAPACITY):
        self.agent_id = agent_id
        self.agent_name = agent_name
        self.capacity = capacity
        self.recorded = 0  # everything ever remembered, evicted or not
        self._events: deque[MemoryEvent] = deque(maxlen=capacity)

    def remember(self, event: MemoryEvent) -> None:
        self._events.append(event)
        self.recorded += 1

    def recall_recent(self, limit: int = 10) -> list[MemoryEvent]:
        if limit <= 0:
            return []
        return list(self._events)[-limit:]

    def of_kind(self, kind: MemoryType) -> list[MemoryEvent]:
        return [e for e in self._events if e.kind == kind]

    def strongest(self, kind: MemoryType, where: Optional[Callable[[MemoryEvent], bool]] = None) -> Optional[MemoryEvent]:
        """
        The most important memory of a kind, optionally among those
        matching `where`. The latest wins ties.
        """
        best = None
        for event in self._events:
            if event.kind != kind or (where is not None and not where(event)):
                continue
            if best is None or event.importance >= best.importance:
                best = event
        return best

    def fade(self, rate: float, floor: float) -> int:
        """
        Every memory loses `rate` of its importance; anything that drops
        below `floor` is forgotten. Returns how many were forgotten.
        """
        kept = deque(maxlen=self.capacity)
        for event in self._events:
            importance = event.importance * (1 - rate)
            if importance >= floor:
                kept.append(replace(event, importance=importance))
        forgotten = len(self._events) - len(kept)
        self._events = kept
        return forgotten

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(self._events)


class MemoryStore:
    """
    Holds every agent's log. The rest of the simulation only talks to
    this class, never to an AgentMemory directly.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self.capacity = capacity
        self._logs: dict[str, AgentMemory] = {}

    def for_agent(self, agent) -> AgentMemory:
        log = self._logs.get(agent.id)
        if log is None:
            log = AgentMemory(agent.id, agent.name, self.capacity)
            self._logs[agent.id] = log
        return log

    def record_event(self, agent, event: MemoryEvent) -> None:
        self.for_agent(agent).remember(event)
        logger.debug(f"🧠 {agent.name} remembers: {event.description} ({event.kind.value}, {event.importance:.1f})")

    def record(
        self,
        agent,
        kind: MemoryType,
        description: str,
        involved: Optional[str] = None,
        importance: Optional[float] = None,
        tick: int = 0,
    ) -> MemoryEvent:
        """Convenience wrapper that fills in location and default importance."""
        event = MemoryEvent(
            kind=kind,
            description=description,
            involved=involved,
            importance=DEFAULT_IMPORTANCE[kind] if importance is None else importance,
            location=agent.location,
            tick=tick,
        )
        self.record_event(agent, event)
        return event

    def broadcast(self, agents: Iterable, kind: MemoryType, description: str, importance: float, tick: int = 0) -> int:
        """Record the same event for many agents. Returns how many remembered it."""
        count = 0
        for agent in agents:
            self.record(agent, kind, description, importance=importance, tick=tick)
            count += 1
        return count
