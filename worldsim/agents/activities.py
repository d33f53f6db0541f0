"""
Secondary activities — what an agent does on the side.

On top of its main action, an agent sometimes (15% of ticks by default)
also goes off and does something else. What it can do depends on its
situation right now:

    - dungeon delve       only when healthy (HP >= 70%)
    - team raid           healthy, in a team, with a teammate nearby
    - heal at the temple  urgent below 50% HP, a low priority if just scratched
    - shopping            needs 100 gold and not to be half dead
    - paid training       needs the fee
    - level up            only once enough experience is banked
    - wandering           always
    - recruiting          in a team that has room
    - looking for a team  gang-minded loners

Each possibility gets a weight and one is drawn at random, heavier
weights winning more often.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from loguru import logger

from worldsim.agents.agent import Agent
from worldsim.city.world_state import WorldSnapshot, pick_new_location
from worldsim.memory.memory import MemoryType


class ActivityKind(str, Enum):
    EXPLORE_DUNGEON = "explore_dungeon"
    TEAM_DUNGEON = "team_dungeon"
    HEAL = "heal"
    SHOP = "shop"
    TRAIN = "train"
    LEVEL_UP = "level_up"
    MOVE = "move"
    RECRUIT = "recruit"
    SEEK_TEAM = "seek_team"


@dataclass(frozen=True)
class Activity:
    kind: ActivityKind
    weight: float


def weighted_choice(candidates: Sequence[Activity], rng: random.Random) -> Optional[Activity]:
    """Cumulative-weight draw: uniform in [0, total), first bucket past the draw."""
    total = sum(c.weight for c in candidates)
    if total <= 0:
        return None
    draw = rng.random() * total
    cumulative = 0.0
    for candidate in candidates:
        cumulative += candidate.weight
        if draw < cumulative:
            return candidate
    return candidates[-1]


def training_fee(agent: Agent) -> int:
    return agent.level * 20


def healing_fee(agent: Agent) -> int:
    return max(5, (agent.max_hp - agent.hp) // 2)


class ActivityRoller:

    def __init__(self, ctx, combat, teams):
        self.ctx = ctx
        self.combat = combat
        self.teams = teams
        self._handlers = {
            ActivityKind.EXPLORE_DUNGEON: self._explore_dungeon,
            ActivityKind.TEAM_DUNGEON:    self._team_dungeon,
            ActivityKind.HEAL:            self._heal,
            ActivityKind.SHOP:            self._shop,
            ActivityKind.TRAIN:           self._train,
            ActivityKind.LEVEL_UP:        self._level_up,
            ActivityKind.MOVE:            self._move,
            ActivityKind.RECRUIT:         self._recruit,
            ActivityKind.SEEK_TEAM:       self._seek_team,
        }
        missing = set(ActivityKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for activities: {sorted(m.value for m in missing)}")

    # ─── Candidates ───────────────────────────────────────────────────────────

    def candidates(self, agent: Agent, world: WorldSnapshot) -> list[Activity]:
        cfg = self.ctx.config
        hp = agent.hp_ratio()
        options = [Activity(ActivityKind.MOVE, 0.2)]

        if hp >= 0.7:
            options.append(Activity(ActivityKind.EXPLORE_DUNGEON, 0.2 + 0.2 * agent.personality.courage))
        if hp < 0.5:
            options.append(Activity(ActivityKind.HEAL, 0.8))
        elif agent.hp < agent.max_hp:
            options.append(Activity(ActivityKind.HEAL, 0.1))
        if agent.gold >= 100 and hp >= 0.3:
            options.append(Activity(ActivityKind.SHOP, 0.15))
        if agent.gold >= training_fee(agent):
            options.append(Activity(ActivityKind.TRAIN, 0.15))
        if agent.can_level_up():
            options.append(Activity(ActivityKind.LEVEL_UP, 0.6))

        if agent.team:
            if self.teams.team_size(agent.team) < cfg.max_team_size:
                options.append(Activity(ActivityKind.RECRUIT, 0.15))
            if hp >= 0.7 and self._party(agent):
                options.append(Activity(ActivityKind.TEAM_DUNGEON, 0.25))
        elif agent.personality.is_likely_to_join_gang():
            options.append(Activity(ActivityKind.SEEK_TEAM, 0.15))

        return options

    def roll(self, agent: Agent, world: WorldSnapshot) -> Optional[ActivityKind]:
        """Pick one activity and attempt it. Returns what was attempted."""
        choice = weighted_choice(self.candidates(agent, world), self.ctx.rng)
        if choice is None:
            return None
        done = self._handlers[choice.kind](agent, world)
        if not done:
            logger.debug(f"{agent.name} gave up on {choice.kind.value}")
        return choice.kind

    # ─── Handlers ─────────────────────────────────────────────────────────────

    def _explore_dungeon(self, agent: Agent, world: WorldSnapshot) -> bool:
        if agent.hp_ratio() < 0.7:
            return False
        agent.move_to("dungeon")
        agent.activity = "delving"
        monsters = self.ctx.monsters.generate_group(max(1, agent.level))
        result = self.combat.resolve_solo(agent, monsters)
        self._after_delve([agent], monsters, result)
        return True

    def _team_dungeon(self, agent: Agent, world: WorldSnapshot) -> bool:
        mates = self._party(agent)
        if not mates:
            return False
        party = [agent] + mates[: self.ctx.config.max_team_size - 1]
        for member in party:
            member.move_to("dungeon")
            member.activity = "raiding"
        level = max(1, round(sum(m.level for m in party) / len(party)))
        monsters = self.ctx.monsters.generate_group(level)
        result = self.combat.resolve_group_vs_monsters(party, monsters)
        self._after_delve(party, monsters, result)
        return True

    def _after_delve(self, party: list[Agent], monsters, result) -> None:
        foes = ", ".join(m.name for m in monsters)
        for member in party:
            if member.is_alive():
                self.ctx.memory.record(member, MemoryType.DUNGEON, f"Fought {foes} in the dungeon: {result.outcome.value}",
                                       tick=self.ctx.tick)
        if result.victory and any(m.is_boss for m in monsters):
            names = " and ".join(m.name for m in result.survivors)
            self.ctx.news.publish(True, f"{names} slew the {monsters[0].name} deep in the dungeon!")

    def _party(self, agent: Agent) -> list[Agent]:
        if not agent.team:
            return []
        return [
            m for m in self.teams.teammates(agent.team)
            if m.id != agent.id and m.location == agent.location and m.hp_ratio() >= 0.5
        ]

    def _heal(self, agent: Agent, world: WorldSnapshot) -> bool:
        if agent.hp >= agent.max_hp:
            return False
        if not agent.spend_gold(healing_fee(agent), "healing"):
            return False
        agent.move_to("temple")
        agent.heal(agent.max_hp)
        agent.activity = "healing"
        return True

    def _shop(self, agent: Agent, world: WorldSnapshot) -> bool:
        cost = agent.level * 50 + self.ctx.rng.randint(25, 100)
        if not agent.spend_gold(cost, "equipment"):
            return False
        agent.move_to("market")
        agent.activity = "shopping"
        upgrade = 1 + agent.level // 5
        if self.ctx.rng.random() < 0.5:
            agent.weapon_power += upgrade
            logger.debug(f"🗡️  {agent.name} bought a better weapon (+{upgrade})")
        else:
            agent.armor_power += upgrade
            logger.debug(f"🛡️  {agent.name} bought better armor (+{upgrade})")
        return True

    def _train(self, agent: Agent, world: WorldSnapshot) -> bool:
        if not agent.spend_gold(training_fee(agent), "training"):
            return False
        stat = self.ctx.rng.choice(["strength", "defense", "agility"])
        setattr(agent, stat, getattr(agent, stat) + 1)
        agent.activity = "training"
        logger.debug(f"🏋️  {agent.name} trained {stat}")
        return True

    def _level_up(self, agent: Agent, world: WorldSnapshot) -> bool:
        rng = self.ctx.rng
        if not agent.level_up(rng.randint(8, 18), rng.randint(1, 3), rng.randint(1, 2)):
            return False
        self.ctx.memory.record(agent, MemoryType.LEVELED_UP, f"Reached level {agent.level}", tick=self.ctx.tick)
        self.ctx.news.publish(agent.level % 10 == 0, f"{agent.name} has reached level {agent.level}.")
        return True

    def _move(self, agent: Agent, world: WorldSnapshot) -> bool:
        agent.move_to(pick_new_location(agent.location, self.ctx.rng))
        return True

    def _recruit(self, agent: Agent, world: WorldSnapshot) -> bool:
        return self.teams.try_recruit(agent, world)

    def _seek_team(self, agent: Agent, world: WorldSnapshot) -> bool:
        return self.teams.try_form_or_join(agent, world)
