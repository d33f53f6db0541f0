from typing import Callable, Optional

from loguru import logger

from worldsim.agents.agent import Agent, AgentStatus, CauseOfDeath
from worldsim.agents.newspaper import NewsBroadcaster
from worldsim.agents.relationships import RelationshipTracker
from worldsim.memory.memory import MemoryStore, MemoryType

DeathHook = Callable[[Agent], None]


class DeathManager:
    """
    Handles the end of every agent in the world.
    Death is permanent. Teams, gangs and turf let go of the dead,
    witnesses remember, and the news reports it.
    """

    def __init__(
        self,
        news: NewsBroadcaster,
        relationships: RelationshipTracker,
        memory: MemoryStore,
        population: list[Agent],
    ):
        self.news = news
        self.relationships = relationships
        self.memory = memory
        self.population = population
        self._hooks: list[DeathHook] = []
        self.deaths: list[dict] = []

    def on_death(self, hook: DeathHook) -> None:
        """
        Register a callback run before the agent's affiliations are wiped,
        so it can still see which team/gang the agent belonged to.
        """
        self._hooks.append(hook)

    def process_death(
        self,
        agent: Agent,
        cause: CauseOfDeath,
        killer: Optional[str] = None,
        killer_id: Optional[str] = None,
        tick: int = 0,
    ) -> dict:
        """
        The full death sequence. Safe to call twice; the second call
        is a no-op and returns an empty dict.

        `killer` is the display name used in the news; `killer_id`, when
        the killer is an agent, keeps them out of the witness list.
        """
        if agent.status == AgentStatus.DEAD:
            return {}

        for hook in self._hooks:
            hook(agent)

        agent.die(cause, killer)
        self.relationships.freeze(agent.id)

        witnesses = self._witness(agent, killer, killer_id, tick)
        self.news.publish_death(agent.name, killer, agent.location)

        record = {
            "agent_id": agent.id,
            "agent_name": agent.name,
            "cause": agent.cause_of_death,
            "killer": killer,
            "killer_id": killer_id,
            "location": agent.location,
            "level": agent.level,
            "witnesses": witnesses,
            "tick": tick,
        }
        self.deaths.append(record)
        return record

    def _witness(self, agent: Agent, killer: Optional[str], killer_id: Optional[str], tick: int) -> int:
        """Everyone standing nearby remembers the death."""
        description = f"Saw {agent.name} die" + (f" at the hands of {killer}" if killer else "")
        count = 0
        for other in self.population:
            if other.id == agent.id or not other.is_alive() or other.location != agent.location:
                continue
            if other.id == killer_id:
                continue
            self.memory.record(other, MemoryType.SAW_DEATH, description, involved=agent.id, tick=tick)
            count += 1
        if count:
            logger.debug(f"👁️  {count} witnesses saw {agent.name} fall")
        return count
