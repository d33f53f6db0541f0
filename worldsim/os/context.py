"""
Everything one simulation shares, built in one place and handed to
each subsystem explicitly. Two simulations never share a context, so
tests can run as many isolated worlds as they like.
"""

import random
from dataclasses import dataclass, field
from typing import Optional

from worldsim.agents.agent import Agent
from worldsim.agents.newspaper import NewsBroadcaster
from worldsim.agents.relationships import RelationshipTracker
from worldsim.combat.monsters import MonsterGenerator
from worldsim.memory.memory import MemoryStore
from worldsim.os.config import SimulationConfig
from worldsim.os.death_manager import DeathManager


@dataclass
class SimulationContext:
    config: SimulationConfig
    rng: random.Random
    news: NewsBroadcaster
    relationships: RelationshipTracker
    memory: MemoryStore
    monsters: MonsterGenerator
    deaths: DeathManager
    population: list[Agent] = field(default_factory=list)
    tick: int = 0

    @classmethod
    def create(
        cls,
        config: Optional[SimulationConfig] = None,
        rng: Optional[random.Random] = None,
        news: Optional[NewsBroadcaster] = None,
        relationships: Optional[RelationshipTracker] = None,
        memory: Optional[MemoryStore] = None,
        monsters: Optional[MonsterGenerator] = None,
    ) -> "SimulationContext":
        config = config or SimulationConfig.from_env()
        rng = rng or random.Random()
        news = news or NewsBroadcaster()
        relationships = relationships or RelationshipTracker()
        memory = memory or MemoryStore(config.memory_capacity)
        monsters = monsters or MonsterGenerator(rng)
        population: list[Agent] = []
        deaths = DeathManager(news, relationships, memory, population)
        return cls(
            config=config,
            rng=rng,
            news=news,
            relationships=relationships,
            memory=memory,
            monsters=monsters,
            deaths=deaths,
            population=population,
        )

    def bind(self, agents: list[Agent]) -> None:
        """Swap in a population in place; the death manager shares the list."""
        self.population[:] = agents

    def living(self) -> list[Agent]:
        return [a for a in self.population if a.is_alive()]
