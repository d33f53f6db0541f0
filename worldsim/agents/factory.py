import random
from typing import Optional

from loguru import logger

from worldsim.agents.agent import Agent, experience_for_level
from worldsim.agents.personality import ARCHETYPE_RANGES, PersonalityProfile
from worldsim.os.config import LOCATIONS

FIRST_NAMES = [
    "Aldric", "Bryn", "Cedric", "Dara", "Edric", "Fenna", "Garrick", "Hilde",
    "Ivo", "Jorah", "Kestrel", "Lysa", "Morwen", "Nim", "Osric", "Perrin",
    "Quill", "Rowan", "Sabine", "Tamsin", "Ulric", "Vesna", "Wendel", "Yara",
    "Brannoc", "Corwin", "Elspeth", "Gwyn", "Halvard", "Isolde",
]

LAST_NAMES = [
    "Ashford", "Blackwood", "Crowe", "Dunmore", "Ember", "Fairhollow",
    "Greaves", "Holloway", "Ironside", "Kettle", "Larkspur", "Marsh",
    "Norwood", "Oakheart", "Pike", "Redmane", "Stone", "Thorne", "Vane", "Wyck",
]

# How often each archetype shows up in a seeded town
ARCHETYPE_WEIGHTS = {
    "commoner": 30,
    "merchant": 15,
    "craftsman": 12,
    "thug": 12,
    "guard": 10,
    "noble": 7,
    "priest": 7,
    "mystic": 7,
}

# Archetype stat leanings: (strength, defense, charisma) offsets
ARCHETYPE_STATS = {
    "thug":      (3, 0, -10),
    "guard":     (2, 3, 0),
    "noble":     (0, 1, 20),
    "merchant":  (-2, 0, 15),
    "priest":    (-2, 1, 10),
    "mystic":    (-1, 0, 5),
    "craftsman": (1, 1, 0),
    "commoner":  (0, 0, 0),
}


def generate_name(existing_names: set = None, rng: Optional[random.Random] = None) -> str:
    """
    Unique "First Last" name. Falls back to numbered variants if the
    combinations run out.
    """
    rng = rng or random.Random()
    existing_names = existing_names or set()

    for _ in range(200):
        name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
        if name not in existing_names:
            return name

    base = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
    i = 2
    while f"{base} {i}" in existing_names:
        i += 1
    return f"{base} {i}"


def spawn_agent(
    archetype: Optional[str] = None,
    level: Optional[int] = None,
    location: Optional[str] = None,
    existing_names: set = None,
    rng: Optional[random.Random] = None,
) -> Agent:
    """Roll a new agent with stats that fit its archetype and level."""
    rng = rng or random.Random()
    if archetype is None:
        archetype = rng.choices(list(ARCHETYPE_WEIGHTS), weights=list(ARCHETYPE_WEIGHTS.values()))[0]
    if archetype not in ARCHETYPE_RANGES:
        raise ValueError(f"Unknown archetype: {archetype}")
    level = level or rng.randint(1, 5)
    str_mod, def_mod, cha_mod = ARCHETYPE_STATS[archetype]
    max_hp = 50 + 18 * (level - 1) + rng.randint(0, 20)

    agent = Agent(
        name=generate_name(existing_names, rng),
        archetype=archetype,
        level=level,
        hp=max_hp,
        max_hp=max_hp,
        strength=max(1, 8 + 2 * (level - 1) + str_mod + rng.randint(0, 4)),
        defense=max(1, 5 + 2 * (level - 1) + def_mod + rng.randint(0, 3)),
        agility=5 + rng.randint(0, 10),
        weapon_power=level + rng.randint(2, 6),
        armor_power=level + rng.randint(1, 4),
        charisma=max(0, min(100, 40 + cha_mod + rng.randint(-15, 15))),
        location=location or rng.choice(LOCATIONS),
        gold=rng.randint(50, 150) * level,
        personality=PersonalityProfile.generate(archetype, rng),
    )
    agent.experience = experience_for_level(level)
    logger.debug(f"🌱 Spawned: {agent!r}")
    return agent


def spawn_population(count: int = 20, rng: Optional[random.Random] = None) -> list[Agent]:
    """Seed a town of `count` agents with unique names."""
    rng = rng or random.Random()
    names: set = set()
    agents = []
    for _ in range(count):
        agent = spawn_agent(existing_names=names, rng=rng)
        names.add(agent.name)
        agents.append(agent)
    logger.info(f"🏘️  Seeded a town of {len(agents)} agents")
    return agents
