"""
worldsim/agents/personality.py

Personality traits are continuous values in [0, 1]. Each archetype
rolls its traits from its own ranges, so thugs come out aggressive and
disloyal, priests tender and loyal, merchants greedy and sociable.

The profile answers the questions the rest of the simulation asks:
    - how well do two agents get along?        compatibility()
    - will this agent join a gang or team?     is_likely_to_join_gang()
    - will this agent turn on its group?       is_likely_to_betray()
    - will this agent hunt down an attacker?   is_likely_to_seek_revenge()
"""

import random
from typing import Optional

from pydantic import BaseModel, Field

TRAITS = (
    "aggression", "greed", "courage", "loyalty", "vengefulness",
    "impulsiveness", "sociability", "ambition", "tenderness",
    "intelligence", "caution",
)

# (low, high) per trait. Anything missing falls back to COMMON_RANGE.
COMMON_RANGE = (0.2, 0.8)

ARCHETYPE_RANGES: dict[str, dict[str, tuple[float, float]]] = {
    "thug": {
        "aggression": (0.7, 1.0), "greed": (0.6, 0.9), "courage": (0.5, 0.9),
        "loyalty": (0.1, 0.5), "vengefulness": (0.6, 1.0),
        "impulsiveness": (0.6, 1.0), "sociability": (0.2, 0.6),
        "ambition": (0.4, 0.8), "tenderness": (0.0, 0.3),
        "intelligence": (0.1, 0.5), "caution": (0.0, 0.3),
    },
    "merchant": {
        "aggression": (0.1, 0.4), "greed": (0.7, 1.0), "courage": (0.2, 0.6),
        "loyalty": (0.4, 0.8), "vengefulness": (0.2, 0.5),
        "impulsiveness": (0.1, 0.4), "sociability": (0.6, 0.9),
        "ambition": (0.6, 1.0), "intelligence": (0.5, 0.9),
        "caution": (0.5, 0.9),
    },
    "noble": {
        "aggression": (0.2, 0.6), "greed": (0.5, 0.9), "courage": (0.4, 0.8),
        "loyalty": (0.3, 0.7), "vengefulness": (0.5, 0.9),
        "impulsiveness": (0.2, 0.5), "sociability": (0.4, 0.8),
        "ambition": (0.7, 1.0), "intelligence": (0.5, 0.9),
    },
    "guard": {
        "aggression": (0.4, 0.7), "greed": (0.1, 0.4), "courage": (0.7, 1.0),
        "loyalty": (0.7, 1.0), "vengefulness": (0.3, 0.6),
        "impulsiveness": (0.1, 0.4), "sociability": (0.4, 0.7),
        "ambition": (0.3, 0.6), "caution": (0.5, 0.8),
    },
    "priest": {
        "aggression": (0.0, 0.2), "greed": (0.0, 0.3), "courage": (0.4, 0.8),
        "loyalty": (0.7, 1.0), "vengefulness": (0.0, 0.2),
        "impulsiveness": (0.1, 0.3), "sociability": (0.6, 1.0),
        "ambition": (0.1, 0.4), "tenderness": (0.7, 1.0),
    },
    "mystic": {
        "aggression": (0.1, 0.4), "greed": (0.2, 0.5), "courage": (0.3, 0.7),
        "loyalty": (0.3, 0.7), "impulsiveness": (0.4, 0.8),
        "sociability": (0.1, 0.4), "ambition": (0.3, 0.7),
        "intelligence": (0.7, 1.0),
    },
    "craftsman": {
        "aggression": (0.1, 0.4), "greed": (0.3, 0.6), "loyalty": (0.5, 0.9),
        "impulsiveness": (0.1, 0.4), "sociability": (0.3, 0.7),
        "ambition": (0.4, 0.7), "caution": (0.4, 0.8),
    },
    "commoner": {},
}

# Symmetric archetype pair bonuses added on top of trait similarity.
ARCHETYPE_AFFINITY: dict[frozenset, float] = {
    frozenset({"thug"}): 0.2,
    frozenset({"thug", "guard"}): -0.5,
    frozenset({"thug", "priest"}): -0.3,
    frozenset({"guard"}): 0.4,
    frozenset({"guard", "noble"}): 0.2,
    frozenset({"merchant"}): 0.3,
    frozenset({"merchant", "noble"}): 0.2,
    frozenset({"priest"}): 0.3,
    frozenset({"mystic", "priest"}): 0.1,
    frozenset({"craftsman", "merchant"}): 0.2,
}


def _trait() -> float:
    return Field(0.5, ge=0.0, le=1.0)


class PersonalityProfile(BaseModel):
    archetype: str = "commoner"

    aggression: float = _trait()
    greed: float = _trait()
    courage: float = _trait()
    loyalty: float = _trait()
    vengefulness: float = _trait()
    impulsiveness: float = _trait()
    sociability: float = _trait()
    ambition: float = _trait()
    tenderness: float = _trait()
    intelligence: float = _trait()
    caution: float = _trait()

    @classmethod
    def generate(cls, archetype: str = "commoner", rng: Optional[random.Random] = None) -> "PersonalityProfile":
        """Roll a profile from the archetype's trait ranges."""
        rng = rng or random.Random()
        ranges = ARCHETYPE_RANGES.get(archetype, {})
        traits = {}
        for trait in TRAITS:
            low, high = ranges.get(trait, COMMON_RANGE)
            traits[trait] = round(rng.uniform(low, high), 3)
        return cls(archetype=archetype, **traits)

    # ─── Relations ────────────────────────────────────────────────────────────

    def compatibility(self, other: "PersonalityProfile") -> float:
        """
        0.0 (can't stand each other) .. 1.0 (kindred spirits).
        Similar temperament plus an archetype bonus or penalty.
        """
        distance = (
            abs(self.aggression - other.aggression)
            + abs(self.loyalty - other.loyalty)
            + abs(self.sociability - other.sociability)
            + abs(self.ambition - other.ambition)
        ) / 4
        bonus = ARCHETYPE_AFFINITY.get(frozenset({self.archetype, other.archetype}), 0.0)
        return max(0.0, min(1.0, 1.0 - distance + bonus))

    def gang_affinity(self) -> float:
        return (
            self.loyalty * 0.3
            + self.sociability * 0.3
            + self.ambition * 0.2
            + self.courage * 0.2
        )

    def is_likely_to_join_gang(self) -> bool:
        return self.gang_affinity() > 0.6 and self.aggression > 0.3

    def is_likely_to_betray(self) -> bool:
        score = (
            (1 - self.loyalty) * 0.4
            + self.greed * 0.3
            + self.ambition * 0.2
            + self.impulsiveness * 0.1
        )
        return score > 0.7

    def is_likely_to_seek_revenge(self) -> bool:
        return self.vengefulness > 0.6 and (self.aggression > 0.4 or self.ambition > 0.5)
