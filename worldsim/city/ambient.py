"""
Ambient world events — the background hum of the world.

Now and then something happens that nobody caused: a caravan rolls in,
the weather turns, strange noises come up from the dungeon. Everyone
alive hears about it and files it away as a minor memory.
"""

from typing import Optional

from loguru import logger

from worldsim.city.world_state import WorldSnapshot
from worldsim.memory.memory import MemoryType

WORLD_EVENTS = [
    "A trade caravan rolls into the market",
    "Strange noises echo up from the dungeon",
    "The king issues a new royal decree",
    "A festival fills the town square",
    "Bandits are seen on the north road",
    "A hooded stranger takes a room at the tavern",
    "A storm batters the town",
    "The temple bells ring through the night",
    "A new smithy opens by the castle gate",
]

AMBIENT_IMPORTANCE = 0.2


class AmbientEventGenerator:

    def __init__(self, ctx):
        self.ctx = ctx

    def maybe_generate(self, world: WorldSnapshot) -> Optional[str]:
        """Roll for a world event. Returns its text if one happened."""
        rng = self.ctx.rng
        if rng.random() >= self.ctx.config.world_event_chance:
            return None

        text = rng.choice(WORLD_EVENTS)
        living = [a for a in world.living() if a.is_alive()]
        heard = self.ctx.memory.broadcast(living, MemoryType.WITNESSED_EVENT, text, AMBIENT_IMPORTANCE, tick=self.ctx.tick)
        self.ctx.news.publish(False, text)
        logger.info(f"🌍 {text} ({heard} heard about it)")
        return text
