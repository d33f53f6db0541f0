"""
tests/test_brain.py — what agents choose to do.
Run: pytest tests/test_brain.py -v
"""

import random

from worldsim.agents.agent import Agent
from worldsim.agents.brain import ActionType, AgentBrain, GoalType
from worldsim.agents.personality import PersonalityProfile
from worldsim.agents.relationships import RelationshipTracker
from worldsim.city.world_state import WorldSnapshot
from worldsim.memory.memory import MemoryStore, MemoryType


def make_agent(name: str, location: str = "tavern", **kwargs) -> Agent:
    kwargs.setdefault("hp", 100)
    kwargs.setdefault("max_hp", 100)
    return Agent(name=name, location=location, **kwargs)


def make_brain(agent: Agent, memory: MemoryStore = None, relationships: RelationshipTracker = None, seed: int = 1):
    memory = memory or MemoryStore()
    return AgentBrain(agent, memory.for_agent(agent), relationships or RelationshipTracker(), random.Random(seed))


def test_badly_hurt_agent_rests():
    agent = make_agent("Bruised", hp=30)
    action = make_brain(agent).decide(WorldSnapshot([agent]))
    assert action.type == ActionType.REST


def test_nothing_to_do_means_wandering():
    agent = make_agent("Bored")
    action = make_brain(agent).decide(WorldSnapshot([agent]))
    assert action.type == ActionType.EXPLORE


def test_aggressive_agent_attacks_an_enemy_nearby():
    brute = make_agent("Brute", personality=PersonalityProfile(aggression=0.9))
    enemy = make_agent("Enemy")
    rel = RelationshipTracker()
    rel.update_relationship(brute.id, enemy.id, -1, 5, hostile=True)

    action = make_brain(brute, relationships=rel).decide(WorldSnapshot([brute, enemy]))

    assert action.type == ActionType.ATTACK
    assert action.target_id == enemy.id


def test_vengeful_agent_hunts_whoever_hurt_them():
    avenger = make_agent("Avenger", personality=PersonalityProfile(vengefulness=0.9))
    culprit = make_agent("Culprit", location="castle")
    memory = MemoryStore()
    memory.record(avenger, MemoryType.ATTACKED, "Culprit jumped me", involved=culprit.id)

    action = make_brain(avenger, memory=memory).decide(WorldSnapshot([avenger, culprit]))

    assert action.type == ActionType.SEEK_REVENGE
    assert action.target_id == culprit.id


def test_no_revenge_on_the_dead():
    avenger = make_agent("Avenger", personality=PersonalityProfile(vengefulness=0.9))
    culprit = make_agent("Culprit", hp=0)
    memory = MemoryStore()
    memory.record(avenger, MemoryType.ATTACKED, "Culprit jumped me", involved=culprit.id)

    action = make_brain(avenger, memory=memory).decide(WorldSnapshot([avenger, culprit]))

    assert action.type != ActionType.SEEK_REVENGE


def test_gang_material_joins_a_leader():
    joiner = make_agent("Joiner", personality=PersonalityProfile(
        loyalty=0.9, sociability=0.9, ambition=0.8, courage=0.8, aggression=0.5,
    ))
    leader = make_agent("Boss")
    leader.gang_leader_id = leader.id
    leader.gang_members = ["someone"]

    action = make_brain(joiner).decide(WorldSnapshot([joiner, leader]))

    assert action.type == ActionType.JOIN_GANG
    assert action.target_id == leader.id


def test_impulsive_agents_mix_it_up():
    wild = make_agent("Wild", personality=PersonalityProfile(impulsiveness=1.0, ambition=0.9))
    brain = make_brain(wild, seed=4)
    world = WorldSnapshot([wild])

    picks = {brain.decide(world).type for _ in range(200)}

    assert picks <= {ActionType.IDLE, ActionType.EXPLORE, ActionType.TRAIN}
    assert len(picks) > 1


# ─── Emotions and goals ──────────────────────────────────────────────────────

def test_anger_turns_a_chat_into_a_fight():
    hothead = make_agent("Hothead", personality=PersonalityProfile(aggression=0.65, sociability=0.95))
    rival = make_agent("Rival")
    friend = make_agent("Friend")
    rel = RelationshipTracker()
    rel.update_relationship(hothead.id, rival.id, -1, 5, hostile=True)
    memory = MemoryStore()
    brain = make_brain(hothead, memory=memory, relationships=rel)
    world = WorldSnapshot([hothead, rival, friend])

    calm = brain.decide(world)
    assert calm.type == ActionType.SOCIALIZE
    assert brain.current_goal == GoalType.SOCIAL

    memory.record(hothead, MemoryType.ATTACKED, "Rival shoved me", involved=rival.id)
    angry = brain.decide(world)

    assert angry.type == ActionType.ATTACK
    assert angry.target_id == rival.id
    assert brain.current_goal == GoalType.COMBAT


def test_fear_sends_a_hurt_brawler_to_bed():
    brawler = make_agent("Brawler", hp=45, personality=PersonalityProfile(aggression=0.95))
    enemy = make_agent("Enemy")
    rel = RelationshipTracker()
    rel.update_relationship(brawler.id, enemy.id, -1, 5, hostile=True)
    world = WorldSnapshot([brawler, enemy])

    assert make_brain(brawler, relationships=rel).decide(world).type == ActionType.ATTACK

    memory = MemoryStore()
    memory.record(brawler, MemoryType.SAW_DEATH, "Saw a friend cut down")
    brain = make_brain(brawler, memory=memory, relationships=rel)

    assert brain.decide(world).type == ActionType.REST
    assert brain.current_goal == GoalType.PERSONAL


def test_bully_does_not_hunt_their_own_victim():
    bully = make_agent("Bully", personality=PersonalityProfile(vengefulness=0.9))
    victim = make_agent("Victim", location="castle")
    memory = MemoryStore()
    memory.record(bully, MemoryType.ASSAULTED, "Roughed up Victim", involved=victim.id)

    action = make_brain(bully, memory=memory).decide(WorldSnapshot([bully, victim]))

    assert action.type != ActionType.SEEK_REVENGE


def test_old_memories_fade_with_each_decision():
    agent = make_agent("Drifter")
    memory = MemoryStore()
    memory.record(agent, MemoryType.WITNESSED_EVENT, "A bell rang", importance=0.06)
    memory.record(agent, MemoryType.BETRAYED, "Sold out by a friend")
    brain = make_brain(agent, memory=memory)
    world = WorldSnapshot([agent])

    for _ in range(20):
        brain.decide(world)

    log = memory.for_agent(agent)
    assert [e.kind for e in log] == [MemoryType.BETRAYED]
    assert log.strongest(MemoryType.BETRAYED).importance < 0.9
