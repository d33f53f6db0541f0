"""
tests/test_agent.py

Tests for the Agent model and population seeding.
Run with: pytest tests/test_agent.py -v
"""

import random

from worldsim.agents.agent import Agent, AgentStatus, CauseOfDeath, experience_for_level
from worldsim.agents.factory import generate_name, spawn_agent, spawn_population
from worldsim.os.config import LOCATIONS


def test_agent_is_born_alive():
    agent = Agent(name="Test Agent")
    assert agent.is_alive()
    assert agent.status == AgentStatus.ALIVE
    assert len(agent.id) == 36


def test_zero_hp_means_not_alive():
    agent = Agent(name="Test Agent", hp=0, max_hp=30)
    assert not agent.is_alive()


def test_spend_gold_insufficient_leaves_wallet_alone():
    agent = Agent(name="Broke", gold=40)
    assert agent.spend_gold(50, "sword") is False
    assert agent.gold == 40


def test_spend_and_gain_gold():
    agent = Agent(name="Trader", gold=100)
    assert agent.spend_gold(30, "bread") is True
    agent.gain_gold(10, "tip")
    assert agent.gold == 80


def test_take_damage_never_below_zero():
    agent = Agent(name="Tank", hp=10, max_hp=30)
    assert agent.take_damage(25) == 10
    assert agent.hp == 0


def test_heal_caps_at_max():
    agent = Agent(name="Patient", hp=20, max_hp=30)
    assert agent.heal(50) == 10
    assert agent.hp == 30


def test_experience_curve():
    assert experience_for_level(1) == 0
    assert experience_for_level(2) == int(2 ** 1.8 * 50)
    assert experience_for_level(3) == int(2 ** 1.8 * 50) + int(3 ** 1.8 * 50)


def test_level_up_needs_experience():
    agent = Agent(name="Rookie", level=1, experience=0)
    assert agent.can_level_up() is False
    assert agent.level_up(10, 2, 1) is False

    agent.gain_experience(experience_for_level(2))
    assert agent.level_up(10, 2, 1) is True
    assert agent.level == 2
    assert agent.max_hp == 40
    assert agent.hp == agent.max_hp


def test_power_is_level_strength_defense():
    agent = Agent(name="Brute", level=5, strength=25, defense=20)
    assert agent.power() == 50


def test_death_clears_every_affiliation():
    agent = Agent(
        name="Doomed", team="The Iron Fangs", team_secret="abc",
        controls_turf=True, gang_leader_id="x", gang_members=["y"],
    )
    agent.die(CauseOfDeath.COMBAT, killer="Someone")

    assert not agent.is_alive()
    assert agent.hp == 0
    assert agent.team is None
    assert agent.team_secret is None
    assert agent.controls_turf is False
    assert agent.gang_leader_id is None
    assert agent.gang_members == []
    assert agent.cause_of_death == "combat"
    assert agent.killed_by == "Someone"


def test_die_twice_is_noop():
    agent = Agent(name="Doomed")
    agent.die(CauseOfDeath.MONSTER)
    agent.die(CauseOfDeath.COMBAT, killer="Late")
    assert agent.cause_of_death == "monster"
    assert agent.killed_by is None


# ─── Factory ─────────────────────────────────────────────────────────────────

def test_generate_name_is_unique():
    rng = random.Random(3)
    names = set()
    for _ in range(100):
        name = generate_name(names, rng)
        assert name not in names
        names.add(name)


def test_spawn_agent_respects_archetype_and_level():
    agent = spawn_agent("guard", level=4, location="castle", rng=random.Random(1))
    assert agent.archetype == "guard"
    assert agent.personality.archetype == "guard"
    assert agent.level == 4
    assert agent.location == "castle"
    assert agent.hp == agent.max_hp
    assert agent.experience == experience_for_level(4)


def test_spawn_population():
    agents = spawn_population(15, random.Random(9))
    assert len(agents) == 15
    assert len({a.name for a in agents}) == 15
    assert all(a.location in LOCATIONS for a in agents)
    assert all(a.is_alive() for a in agents)
