"""
tests/test_activities.py — the secondary activity roll.
Run: pytest tests/test_activities.py -v
"""

import random

from worldsim.agents.activities import Activity, ActivityKind, ActivityRoller, weighted_choice
from worldsim.agents.agent import Agent, experience_for_level
from worldsim.agents.personality import PersonalityProfile
from worldsim.agents.team import TeamSystem
from worldsim.city.world_state import WorldSnapshot
from worldsim.combat.engine import CombatEngine
from worldsim.os.config import SimulationConfig
from worldsim.os.context import SimulationContext


class FixedRandom(random.Random):
    """random() always returns the same value; everything else stays seeded."""

    def __init__(self, value: float):
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


# ─── Helpers ─────────────────────────────────────────────────────────────────

def make_agent(name: str, **kwargs) -> Agent:
    kwargs.setdefault("hp", 100)
    kwargs.setdefault("max_hp", 100)
    kwargs.setdefault("location", "market")
    return Agent(name=name, **kwargs)


def make_roller(*agents, rng=None):
    ctx = SimulationContext.create(config=SimulationConfig(), rng=rng or random.Random(5))
    ctx.bind(list(agents))
    combat = CombatEngine(ctx)
    teams = TeamSystem(ctx, combat)
    ctx.deaths.on_death(teams.on_death)
    return ctx, ActivityRoller(ctx, combat, teams)


def kinds(candidates) -> set:
    return {c.kind for c in candidates}


# ─── Weighted draw ───────────────────────────────────────────────────────────

def test_weighted_choice_walks_the_cumulative_weights():
    options = [
        Activity(ActivityKind.MOVE, 1.0),
        Activity(ActivityKind.SHOP, 2.0),
        Activity(ActivityKind.TRAIN, 1.0),
    ]
    # total = 4: [0,1) move, [1,3) shop, [3,4) train
    assert weighted_choice(options, FixedRandom(0.0)).kind == ActivityKind.MOVE
    assert weighted_choice(options, FixedRandom(0.30)).kind == ActivityKind.SHOP
    assert weighted_choice(options, FixedRandom(0.74)).kind == ActivityKind.SHOP
    assert weighted_choice(options, FixedRandom(0.99)).kind == ActivityKind.TRAIN


def test_weighted_choice_empty():
    assert weighted_choice([], random.Random(1)) is None


def test_weighted_choice_follows_weights():
    rng = random.Random(11)
    options = [Activity(ActivityKind.MOVE, 9.0), Activity(ActivityKind.SHOP, 1.0)]
    picks = [weighted_choice(options, rng).kind for _ in range(2000)]
    assert 1650 < picks.count(ActivityKind.MOVE) < 1950


def test_every_activity_has_a_handler():
    ctx, roller = make_roller()
    assert set(roller._handlers) == set(ActivityKind)


# ─── Candidate list ──────────────────────────────────────────────────────────

def test_dungeon_only_when_healthy():
    healthy = make_agent("Fit", hp=70)
    hurt = make_agent("Hurt", hp=69)
    ctx, roller = make_roller(healthy, hurt)
    world = WorldSnapshot([healthy, hurt])

    assert ActivityKind.EXPLORE_DUNGEON in kinds(roller.candidates(healthy, world))
    assert ActivityKind.EXPLORE_DUNGEON not in kinds(roller.candidates(hurt, world))


def test_heal_is_urgent_when_badly_hurt():
    agent = make_agent("Bleeding", hp=40)
    ctx, roller = make_roller(agent)
    heal = [c for c in roller.candidates(agent, WorldSnapshot([agent])) if c.kind == ActivityKind.HEAL]
    assert heal and heal[0].weight == 0.8


def test_level_up_only_with_enough_experience():
    ready = make_agent("Ready", experience=experience_for_level(2))
    green = make_agent("Green", experience=10)
    ctx, roller = make_roller(ready, green)
    world = WorldSnapshot([ready, green])

    assert ActivityKind.LEVEL_UP in kinds(roller.candidates(ready, world))
    assert ActivityKind.LEVEL_UP not in kinds(roller.candidates(green, world))


def test_team_candidates_depend_on_membership():
    joiner = PersonalityProfile(loyalty=0.9, sociability=0.9, ambition=0.8, courage=0.8, aggression=0.5)
    member = make_agent("Member", team="The Iron Fangs")
    mate = make_agent("Mate", team="The Iron Fangs")
    loner = make_agent("Loner", personality=joiner)
    ctx, roller = make_roller(member, mate, loner)
    world = WorldSnapshot([member, mate, loner])

    member_kinds = kinds(roller.candidates(member, world))
    assert {ActivityKind.RECRUIT, ActivityKind.TEAM_DUNGEON} <= member_kinds
    assert ActivityKind.SEEK_TEAM not in member_kinds

    loner_kinds = kinds(roller.candidates(loner, world))
    assert ActivityKind.SEEK_TEAM in loner_kinds
    assert ActivityKind.RECRUIT not in loner_kinds


# ─── Handlers ────────────────────────────────────────────────────────────────

def test_shopping_without_gold_is_a_noop():
    agent = make_agent("Window Shopper", gold=10)
    ctx, roller = make_roller(agent)
    assert roller._shop(agent, WorldSnapshot([agent])) is False
    assert agent.gold == 10
    assert agent.weapon_power == 0 and agent.armor_power == 0


def test_shopping_upgrades_gear():
    agent = make_agent("Buyer", gold=1000, level=1)
    ctx, roller = make_roller(agent)
    assert roller._shop(agent, WorldSnapshot([agent])) is True
    assert agent.weapon_power + agent.armor_power == 1
    assert 1000 - 150 <= agent.gold <= 1000 - 75


def test_level_up_handler():
    agent = make_agent("Climber", experience=experience_for_level(2))
    ctx, roller = make_roller(agent)
    assert roller._level_up(agent, WorldSnapshot([agent])) is True
    assert agent.level == 2
    assert agent.hp == agent.max_hp


def test_solo_dungeon_trip_ends_in_the_dungeon():
    agent = make_agent("Delver", level=3, strength=20, defense=10, weapon_power=8, armor_power=5)
    ctx, roller = make_roller(agent)
    assert roller._explore_dungeon(agent, WorldSnapshot([agent])) is True
    assert agent.location == "dungeon"
