"""
tests/test_simulator.py

The scheduler: tick phases, fault isolation, death finality, lifecycle.
Run with: pytest tests/test_simulator.py -v
"""

import random
import time
from unittest.mock import MagicMock

import pytest

from worldsim.agents.agent import Agent, AgentStatus, CauseOfDeath
from worldsim.agents.brain import Action, ActionType
from worldsim.agents.factory import spawn_population
from worldsim.os.config import SimulationConfig
from worldsim.os.context import SimulationContext
from worldsim.os.simulator import WorldSimulator

# Nothing happens unless an agent's brain asks for it
QUIET = dict(
    activity_chance=0.0, world_event_chance=0.0, betrayal_chance=0.0,
    team_war_chance=0.0, turf_chance=0.0, gang_formation_chance=0.0,
    rivalry_chance=0.0,
)


class ScriptedBrain:
    def __init__(self, action: Action):
        self.action = action
        self.calls = 0

    def decide(self, world) -> Action:
        self.calls += 1
        return self.action


class BrokenBrain:
    def decide(self, world) -> Action:
        raise RuntimeError("brain melted")


def make_agent(name: str, **kwargs) -> Agent:
    kwargs.setdefault("hp", 100)
    kwargs.setdefault("max_hp", 100)
    kwargs.setdefault("location", "tavern")
    return Agent(name=name, **kwargs)


def make_simulator(seed: int = 1, **config) -> WorldSimulator:
    settings = dict(QUIET)
    settings.update(config)
    ctx = SimulationContext.create(config=SimulationConfig(**settings), rng=random.Random(seed))
    return WorldSimulator(ctx)


# ─── Tick ────────────────────────────────────────────────────────────────────

def test_one_broken_agent_does_not_stop_the_others():
    broken = make_agent("Broken")
    tired = [make_agent(f"Tired{i}", hp=10) for i in range(2)]
    sim = make_simulator()
    brains = {broken.id: BrokenBrain()}
    brains.update({a.id: ScriptedBrain(Action(ActionType.REST)) for a in tired})
    sim.load([broken, *tired], brains)

    assert sim.simulate_step() is True

    assert sim.ctx.tick == 1
    assert [a.hp for a in tired] == [35, 35]
    assert broken.is_alive()


def test_dead_agents_are_buried_and_never_act_again():
    doomed = make_agent("Doomed", hp=0, team="The Ashen Hand", gang_leader_id="someone")
    survivor = make_agent("Survivor")
    sim = make_simulator()
    doomed_brain = MagicMock()
    sim.load([doomed, survivor], {
        doomed.id: doomed_brain,
        survivor.id: ScriptedBrain(Action(ActionType.IDLE)),
    })

    sim.simulate_step()
    sim.simulate_step()

    doomed_brain.decide.assert_not_called()
    assert doomed.status == AgentStatus.DEAD
    assert doomed.cause_of_death == CauseOfDeath.WOUNDS.value
    assert doomed.team is None and doomed.gang_leader_id is None
    assert [d["agent_name"] for d in sim.ctx.deaths.deaths] == ["Doomed"]


def test_killed_agent_stops_acting_within_the_tick():
    killer = make_agent("Killer", strength=50, weapon_power=20)
    victim = make_agent("Victim", hp=5, defense=0)
    sim = make_simulator()
    victim_brain = ScriptedBrain(Action(ActionType.REST))
    sim.load([killer, victim], {
        killer.id: ScriptedBrain(Action(ActionType.ATTACK, victim.id)),
        victim.id: victim_brain,
    })

    sim.simulate_step()

    assert not victim.is_alive()
    # The victim may have gone first; it must not act after dying
    assert victim_brain.calls <= 1
    sim.simulate_step()
    assert victim_brain.calls <= 1


def test_tick_events_cover_the_last_tick_only():
    killer = make_agent("Killer", strength=50, weapon_power=20)
    victim = make_agent("Victim", hp=5, defense=0)
    sim = make_simulator()
    sim.load([killer, victim], {
        killer.id: ScriptedBrain(Action(ActionType.ATTACK, victim.id)),
        victim.id: ScriptedBrain(Action(ActionType.IDLE)),
    })

    sim.simulate_step()
    [death] = [e for e in sim.get_tick_events() if e["type"] == "death"]
    assert death["victim"] == "Victim"
    assert death["killer"] == "Killer"

    sim.simulate_step()
    assert sim.get_tick_events() == []


def test_feelings_fade_every_tick():
    a, b = make_agent("A"), make_agent("B")
    sim = make_simulator(relationship_decay=0.5)
    sim.load([a, b], {agent.id: ScriptedBrain(Action(ActionType.IDLE)) for agent in (a, b)})
    sim.ctx.relationships.update_relationship(a.id, b.id, +1, 10)

    sim.simulate_step()

    assert sim.ctx.relationships.get_feeling(a.id, b.id) == pytest.approx(0.5)


def test_overlapping_ticks_are_refused():
    sim = make_simulator()
    sim.load([make_agent("Solo")])

    sim._tick_lock.acquire()
    try:
        assert sim.simulate_step() is False
        assert sim.ctx.tick == 0
    finally:
        sim._tick_lock.release()

    assert sim.simulate_step() is True


def test_default_brains_run_a_real_population():
    ctx = SimulationContext.create(config=SimulationConfig(), rng=random.Random(42))
    sim = WorldSimulator(ctx)
    sim.load(spawn_population(12, rng=ctx.rng))

    for _ in range(30):
        assert sim.simulate_step() is True

    assert sim.ctx.tick == 30
    assert all(a.hp >= 0 for a in sim.agents)
    assert all(a.team is None for a in sim.agents if not a.is_alive())


# ─── Status ──────────────────────────────────────────────────────────────────

def test_status_before_load():
    assert make_simulator().get_simulation_status() == "Simulation stopped"


def test_status_line():
    sim = make_simulator()
    sim.load([make_agent("A"), make_agent("B", hp=0)])
    assert sim.get_simulation_status() == (
        "Tick 0 (stopped) | Active NPCs: 1, Dead: 1, Teams: 0, Gangs: 0, "
        "Turf: unclaimed, Relationships: 0"
    )


def test_team_queries():
    a = make_agent("A", team="The Iron Fangs")
    b = make_agent("B", team="The Iron Fangs")
    c = make_agent("C")
    sim = make_simulator()
    sim.load([a, b, c])

    [summary] = sim.get_active_teams()
    assert summary.name == "The Iron Fangs"
    assert summary.member_count == 2
    assert {m.name for m in sim.get_teammates("The Iron Fangs")} == {"A", "B"}
    assert sim.get_teammates("Nobody") == []


# ─── Lifecycle ───────────────────────────────────────────────────────────────

def test_start_without_population_fails():
    with pytest.raises(RuntimeError):
        make_simulator().start()


def test_start_and_stop():
    sim = make_simulator(tick_interval=0.01)
    sim.start([make_agent("Ticker")])
    try:
        assert sim.is_running
        deadline = time.time() + 5
        while sim.ctx.tick < 1 and time.time() < deadline:
            time.sleep(0.01)
        assert sim.ctx.tick >= 1
        assert "(running)" in sim.get_simulation_status()
    finally:
        sim.stop(timeout=2)

    assert not sim.is_running
    ticks = sim.ctx.tick
    time.sleep(0.05)
    assert sim.ctx.tick == ticks
