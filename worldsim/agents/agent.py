import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from worldsim.agents.personality import PersonalityProfile

MAX_LEVEL = 100


class AgentStatus(str, Enum):
    ALIVE = "alive"
    DEAD = "dead"


class CauseOfDeath(str, Enum):
    COMBAT = "combat"
    MONSTER = "monster"
    TEAM_WAR = "team_war"
    WOUNDS = "wounds"


def experience_for_level(level: int) -> int:
    """Total experience needed to reach `level`. Level 1 is free."""
    return sum(int(i ** 1.8 * 50) for i in range(2, level + 1))


class Agent(BaseModel):
    """
    One autonomous character of the world.
    Stats, wallet, personality and group membership all live here;
    the brain and memory are kept alongside, keyed by id.
    """

    # Identity
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    archetype: str = "commoner"
    status: AgentStatus = AgentStatus.ALIVE

    # Combat stats
    level: int = 1
    hp: int = 30
    max_hp: int = 30
    strength: int = 5
    defense: int = 3
    agility: int = 5
    weapon_power: int = 0
    armor_power: int = 0
    charisma: int = 30  # 0-100

    # World
    location: str = "town_square"
    activity: str = "idle"
    gold: int = 100
    experience: int = 0
    personality: PersonalityProfile = Field(default_factory=PersonalityProfile)

    # Team (emergent group keyed by name)
    team: Optional[str] = None
    team_secret: Optional[str] = None
    controls_turf: bool = False

    # Legacy gang
    gang_leader_id: Optional[str] = None
    gang_members: list[str] = []

    # Death
    cause_of_death: Optional[CauseOfDeath] = None
    killed_by: Optional[str] = None
    death_time: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=True)

    def is_alive(self) -> bool:
        return self.status == AgentStatus.ALIVE and self.hp > 0

    def hp_ratio(self) -> float:
        return self.hp / self.max_hp if self.max_hp > 0 else 0.0

    def power(self) -> int:
        """Strength used for team aggregates and turf."""
        return self.level + self.strength + self.defense

    def attack_power(self) -> int:
        return self.strength + self.weapon_power

    def armor_class(self) -> int:
        return self.defense + self.armor_power

    # ─── Wallet ───────────────────────────────────────────────────────────────

    def can_afford(self, amount: int) -> bool:
        return self.gold >= amount

    def spend_gold(self, amount: int, reason: str) -> bool:
        """Returns False if insufficient funds; the wallet is untouched."""
        if self.gold < amount:
            logger.debug(f"Agent {self.name} [{self.id[:8]}] cannot afford {reason}. Has {self.gold}, needs {amount}.")
            return False
        self.gold -= amount
        logger.debug(f"Agent {self.name} [{self.id[:8]}] spent {amount} gold ({reason}). Balance: {self.gold}.")
        return True

    def gain_gold(self, amount: int, reason: str) -> None:
        self.gold += amount
        logger.debug(f"Agent {self.name} [{self.id[:8]}] gained {amount} gold ({reason}). Balance: {self.gold}.")

    # ─── Body ─────────────────────────────────────────────────────────────────

    def take_damage(self, amount: int) -> int:
        """Returns the damage actually taken. HP never goes below zero."""
        dealt = min(self.hp, max(0, amount))
        self.hp -= dealt
        return dealt

    def heal(self, amount: int) -> int:
        before = self.hp
        self.hp = min(self.max_hp, self.hp + max(0, amount))
        return self.hp - before

    def move_to(self, location: str) -> None:
        self.location = location

    # ─── Progression ──────────────────────────────────────────────────────────

    def gain_experience(self, amount: int) -> None:
        self.experience += max(0, amount)

    def next_level_experience(self) -> int:
        return experience_for_level(self.level + 1)

    def can_level_up(self) -> bool:
        return self.level < MAX_LEVEL and self.experience >= self.next_level_experience()

    def level_up(self, hp_gain: int, strength_gain: int, defense_gain: int) -> bool:
        if not self.can_level_up():
            return False
        self.level += 1
        self.max_hp += hp_gain
        self.strength += strength_gain
        self.defense += defense_gain
        self.hp = self.max_hp
        logger.info(f"⬆️  {self.name} reached level {self.level}.")
        return True

    # ─── Death ────────────────────────────────────────────────────────────────

    def die(self, cause: CauseOfDeath, killer: Optional[str] = None) -> None:
        """
        Final. The body keeps its stats for the record, but every
        affiliation is dropped.
        """
        if self.status == AgentStatus.DEAD:
            return

        cause = CauseOfDeath(cause).value
        self.status = AgentStatus.DEAD
        self.hp = 0
        self.cause_of_death = cause
        self.killed_by = killer
        self.death_time = datetime.now()
        self.activity = "dead"
        self.team = None
        self.team_secret = None
        self.controls_turf = False
        self.gang_leader_id = None
        self.gang_members = []

        logger.warning(
            f"💀 {self.name} [{self.id[:8]}] has died at {self.location}. "
            f"Cause: {cause}." + (f" Killed by {killer}." if killer else "")
        )

    def __repr__(self) -> str:
        status_emoji = {"alive": "🟢", "dead": "💀"}
        emoji = status_emoji.get(self.status, "❓")
        return (
            f"{emoji} {self.name} | {self.archetype} L{self.level} | "
            f"HP: {self.hp}/{self.max_hp} | Gold: {self.gold} | @{self.location}"
        )
