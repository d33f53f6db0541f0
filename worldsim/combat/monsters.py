"""
worldsim/combat/monsters.py

Dungeon encounters. Monster stats scale smoothly with the difficulty
level so a level 1 agent meets goblins and a level 60 party meets
things with teeth.
"""

import random
from dataclasses import dataclass
from typing import Optional

# (name, min level, power multiplier). Highest tier at or below the level wins.
MONSTER_TIERS = [
    ("Giant Rat",       1,  0.6),
    ("Goblin",          1,  0.8),
    ("Cave Spider",     5,  0.9),
    ("Hobgoblin",      11,  1.0),
    ("Skeleton Knight", 20, 1.1),
    ("Troll",          30,  1.25),
    ("Wraith",         45,  1.35),
    ("Goblin Warlord", 55,  1.6),
    ("Young Dragon",   70,  1.8),
    ("Ancient Wyrm",   90,  2.0),
]

BOSS_MULTIPLIER = 1.8
BOSS_CHANCE = 0.10


@dataclass
class Monster:
    name: str
    level: int
    hp: int
    max_hp: int
    strength: int
    defense: int
    weapon_power: int
    armor_power: int
    reward_gold: int
    reward_experience: int
    is_boss: bool = False

    # Combatants share this shape with Agent
    def is_alive(self) -> bool:
        return self.hp > 0

    def take_damage(self, amount: int) -> int:
        dealt = min(self.hp, max(0, amount))
        self.hp -= dealt
        return dealt


class MonsterGenerator:

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate(self, difficulty_level: int, is_boss: bool = False) -> Monster:
        if difficulty_level < 1:
            raise ValueError(f"difficulty_level must be >= 1, got {difficulty_level}")

        eligible = [t for t in MONSTER_TIERS if t[1] <= difficulty_level]
        # Mostly the toughest tiers for the level, sometimes something weaker
        name, _, power = self.rng.choice(eligible[-3:])
        mult = power * (BOSS_MULTIPLIER if is_boss else 1.0)
        lvl = difficulty_level

        hp = max(15, int((20 * lvl + lvl ** 1.2 * 5) * mult))
        strength = max(3, int((2 * lvl + lvl ** 1.15) * mult))
        defense = max(0, int((lvl + lvl ** 1.1) * mult * 0.7))
        weapon_power = max(1, int(1.5 * lvl * mult))
        armor_power = max(0, int(0.5 * lvl * mult))

        experience = (strength + defense + weapon_power + armor_power) // 4 + lvl * 10
        gold = lvl * 5 + self.rng.randint(1, 20)
        if is_boss:
            experience *= 3
            gold *= 2
            name = f"{name} Boss"

        return Monster(
            name=name,
            level=lvl,
            hp=hp,
            max_hp=hp,
            strength=strength,
            defense=defense,
            weapon_power=weapon_power,
            armor_power=armor_power,
            reward_gold=gold,
            reward_experience=experience,
            is_boss=is_boss,
        )

    def generate_group(self, difficulty_level: int) -> list[Monster]:
        """A boss alone, or a pack of 1-3 ordinary monsters."""
        if self.rng.random() < BOSS_CHANCE:
            return [self.generate(difficulty_level, is_boss=True)]
        size = self.rng.randint(1, 2) if difficulty_level <= 10 else self.rng.randint(1, 3)
        return [self.generate(difficulty_level) for _ in range(size)]
