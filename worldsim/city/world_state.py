"""
worldsim/city/world_state.py

A read-only view of the world, rebuilt once at the start of every tick.

The location index is frozen at snapshot time: an agent that moves or
dies mid-tick is still listed where it stood. Anything acting on a
looked-up agent must re-check that it is alive and co-located first
(see is_reachable).
"""

import random
from typing import Iterable, Optional

from worldsim.agents.agent import Agent
from worldsim.os.config import LOCATIONS


def pick_new_location(current: str, rng: random.Random) -> str:
    """Any named place except the one the agent is standing in."""
    return rng.choice([loc for loc in LOCATIONS if loc != current])


class WorldSnapshot:

    def __init__(self, agents: Iterable[Agent], tick: int = 0):
        self.tick = tick
        self._by_id: dict[str, Agent] = {}
        self._by_location: dict[str, list[Agent]] = {}
        self._living: list[Agent] = []

        # Stable visiting order that has nothing to do with spawn order
        for agent in sorted(agents, key=lambda a: a.id):
            self._by_id[agent.id] = agent
            if agent.is_alive():
                self._living.append(agent)
                self._by_location.setdefault(agent.location, []).append(agent)

    def get_agent(self, agent_id: Optional[str]) -> Optional[Agent]:
        if agent_id is None:
            return None
        return self._by_id.get(agent_id)

    def agents_at(self, location: str, exclude: Optional[Agent] = None) -> list[Agent]:
        """Agents that were alive at `location` when the tick began."""
        found = self._by_location.get(location, [])
        if exclude is None:
            return list(found)
        return [a for a in found if a.id != exclude.id]

    def living(self) -> list[Agent]:
        return list(self._living)

    @staticmethod
    def is_reachable(actor: Agent, target: Optional[Agent]) -> bool:
        """Live re-check: the target still exists, lives, and stands next to the actor."""
        return (
            target is not None
            and target.id != actor.id
            and target.is_alive()
            and target.location == actor.location
        )

    def __len__(self) -> int:
        return len(self._by_id)
