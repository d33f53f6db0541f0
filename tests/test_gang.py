"""
tests/test_gang.py

Run with: pytest tests/test_gang.py -v
"""

import random

from worldsim.agents.agent import Agent, CauseOfDeath
from worldsim.agents.gang import GangSystem
from worldsim.agents.personality import PersonalityProfile
from worldsim.agents.relationships import RelationType
from worldsim.city.world_state import WorldSnapshot
from worldsim.os.config import SimulationConfig
from worldsim.os.context import SimulationContext

RALLIER = dict(loyalty=0.9, sociability=0.9, ambition=0.9, courage=0.8, aggression=0.5)


def make_agent(name: str, location: str = "tavern", **kwargs) -> Agent:
    kwargs.setdefault("hp", 100)
    kwargs.setdefault("max_hp", 100)
    return Agent(name=name, location=location, **kwargs)


def make_gangs(*agents, **config):
    ctx = SimulationContext.create(config=SimulationConfig(**config), rng=random.Random(3))
    ctx.bind(list(agents))
    gangs = GangSystem(ctx)
    ctx.deaths.on_death(gangs.on_death)
    return ctx, gangs


# ─── Joining ─────────────────────────────────────────────────────────────────

def test_join_makes_leader_and_bonds():
    leader = make_agent("Boss")
    member = make_agent("Goon")
    ctx, gangs = make_gangs(leader, member)

    assert gangs.join(member, leader) is True
    assert ctx.relationships.get_type(member.id, leader.id) == RelationType.CLOSE_FRIEND
    assert ctx.relationships.get_type(leader.id, member.id) == RelationType.FRIEND
    assert gangs.get_active_gangs() == [{"leader": "Boss", "members": ["Goon"], "size": 2}]


def test_gang_size_is_capped():
    leader = make_agent("Boss")
    first = make_agent("First")
    second = make_agent("Second")
    ctx, gangs = make_gangs(leader, first, second, max_gang_size=2)

    assert gangs.join(first, leader) is True
    assert gangs.join(second, leader) is False
    assert second.gang_leader_id is None
    assert gangs.gang_size(leader) == 2


def test_clashing_personalities_are_turned_away():
    leader = make_agent("Boss", personality=PersonalityProfile(aggression=0.0, loyalty=0.0, sociability=0.0, ambition=0.0))
    member = make_agent("Misfit", personality=PersonalityProfile(aggression=1.0, loyalty=1.0, sociability=1.0, ambition=1.0))
    ctx, gangs = make_gangs(leader, member)

    assert gangs.join(member, leader) is False
    assert leader.gang_leader_id is None and leader.gang_members == []


def test_cannot_join_from_across_town():
    leader = make_agent("Boss", location="castle")
    member = make_agent("Goon", location="tavern")
    ctx, gangs = make_gangs(leader, member)
    assert gangs.join(member, leader) is False


def test_followers_cannot_lead():
    leader = make_agent("Boss")
    follower = make_agent("Goon")
    hopeful = make_agent("Hopeful")
    ctx, gangs = make_gangs(leader, follower, hopeful)
    gangs.join(follower, leader)

    assert gangs.join(hopeful, follower) is False


# ─── Deaths ──────────────────────────────────────────────────────────────────

def test_leader_death_scatters_the_gang():
    leader = make_agent("Boss")
    goons = [make_agent(f"Goon{i}") for i in range(2)]
    ctx, gangs = make_gangs(leader, *goons)
    for goon in goons:
        gangs.join(goon, leader)

    ctx.deaths.process_death(leader, CauseOfDeath.COMBAT, killer="Rival")

    assert all(g.gang_leader_id is None for g in goons)
    assert leader.gang_members == []
    assert gangs.get_active_gangs() == []
    assert any("scattered" in h.text for h in ctx.news.recent())


def test_member_death_leaves_the_gang():
    leader = make_agent("Boss")
    goons = [make_agent(f"Goon{i}") for i in range(2)]
    ctx, gangs = make_gangs(leader, *goons)
    for goon in goons:
        gangs.join(goon, leader)

    ctx.deaths.process_death(goons[0], CauseOfDeath.MONSTER)

    assert leader.gang_members == [goons[1].id]
    assert goons[1].gang_leader_id == leader.id


# ─── Per tick ────────────────────────────────────────────────────────────────

def test_betrayal_makes_enemies():
    leader = make_agent("Boss")
    traitor = make_agent("Snake", personality=PersonalityProfile(loyalty=0.0, greed=1.0, ambition=1.0, impulsiveness=1.0))
    ctx, gangs = make_gangs(leader, traitor, betrayal_chance=1.0)
    assert gangs.join(traitor, leader)

    events = gangs.run_tick(WorldSnapshot(ctx.population))

    assert {"type": "gang_betrayal", "traitor": "Snake", "leader": "Boss"} in events
    assert traitor.gang_leader_id is None
    assert leader.gang_leader_id is None
    assert ctx.relationships.is_enemy(leader.id, traitor.id)
    assert ctx.relationships.is_enemy(traitor.id, leader.id)


def test_formation_gathers_nearby_like_minds():
    crowd = [make_agent(f"P{i}", personality=PersonalityProfile(**RALLIER)) for i in range(3)]
    ctx, gangs = make_gangs(*crowd, gang_formation_chance=1.0, betrayal_chance=0.0)

    gangs.run_tick(WorldSnapshot(ctx.population))

    [gang] = gangs.get_active_gangs()
    assert gang["size"] == 3
