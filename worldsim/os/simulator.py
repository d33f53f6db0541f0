"""
The World Simulator — the heartbeat of the world.

Every tick (once a minute by default) the simulator:

    1. takes a snapshot of the world
    2. lets every living agent act: one primary action from its brain,
       and sometimes a side activity on top
    3. rolls for an ambient world event
    4. lets every feeling fade a little toward neutral
    5. settles group politics: gang betrayals and formations, rivalries,
       team betrayals, team wars, turf
    6. buries anyone who didn't make it

One agent blowing up never stops the others, and one bad phase never
stops the tick. Ticks never overlap; the background thread is the only
thing changing the world while one runs.

Run headless: python main.py
"""

import threading
from typing import Callable, Optional

from loguru import logger
from rich.console import Console
from rich.table import Table

from worldsim.agents.activities import ActivityRoller
from worldsim.agents.agent import Agent, AgentStatus, CauseOfDeath
from worldsim.agents.behaviors import ActionExecutor
from worldsim.agents.brain import Action, ActionType, AgentBrain
from worldsim.agents.gang import GangSystem
from worldsim.agents.team import TeamSummary, TeamSystem
from worldsim.city.ambient import AmbientEventGenerator
from worldsim.city.world_state import WorldSnapshot
from worldsim.combat.engine import CombatEngine
from worldsim.os.context import SimulationContext

console = Console()


class WorldSimulator:

    def __init__(self, ctx: Optional[SimulationContext] = None):
        self.ctx = ctx or SimulationContext.create()
        self.combat = CombatEngine(self.ctx)
        self.gangs = GangSystem(self.ctx)
        self.teams = TeamSystem(self.ctx, self.combat)
        self.executor = ActionExecutor(self.ctx, self.gangs)
        self.activities = ActivityRoller(self.ctx, self.combat, self.teams)
        self.ambient = AmbientEventGenerator(self.ctx)
        self.ctx.deaths.on_death(self.teams.on_death)
        self.ctx.deaths.on_death(self.gangs.on_death)

        self.brains: dict = {}
        self.loaded = False
        self.tick_events: list[dict] = []

        self._tick_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def agents(self) -> list[Agent]:
        return self.ctx.population

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ─── Lifecycle ────────────────────────────────────────────────────────────

    def load(self, population: list[Agent], brains: Optional[dict] = None) -> None:
        """
        Bind a population without starting the clock. Agents without a
        brain in `brains` get the default AgentBrain.
        """
        self.ctx.bind(population)
        self.brains = dict(brains or {})
        for agent in population:
            if agent.id not in self.brains:
                self.brains[agent.id] = AgentBrain(
                    agent,
                    self.ctx.memory.for_agent(agent),
                    self.ctx.relationships,
                    self.ctx.rng,
                    self.ctx.config.max_gang_size,
                )
        self.loaded = True
        logger.info(f"🌍 World loaded with {len(population)} agents")

    def start(self, population: Optional[list[Agent]] = None, brains: Optional[dict] = None) -> None:
        if self.is_running:
            logger.warning("Simulation already running")
            return
        if population is not None:
            self.load(population, brains)
        if not self.loaded:
            raise RuntimeError("No population loaded; pass one to start()")

        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="world-simulator", daemon=True)
        self._thread.start()
        logger.info(f"🚀 World simulation started (tick every {self.ctx.config.tick_interval:.0f}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Takes effect before the next tick; a tick in progress finishes."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("🛑 World simulation stopped")

    def _loop(self) -> None:
        while not self._stop.wait(self.ctx.config.tick_interval):
            try:
                self.simulate_step()
            except Exception:
                logger.exception("❌ Tick failed; the world carries on")

    # ─── Tick ─────────────────────────────────────────────────────────────────

    def simulate_step(self) -> bool:
        """Run one full tick. Returns False if a tick is already in flight."""
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("Tick already in progress, skipping")
            return False
        try:
            self.ctx.tick += 1
            self.tick_events = []
            world = WorldSnapshot(self.agents, self.ctx.tick)

            for agent in world.living():
                if not agent.is_alive():
                    continue  # fell earlier this tick
                brain = self.brains.get(agent.id)
                if brain is None:
                    continue
                try:
                    self._agent_turn(agent, brain, world)
                except Exception:
                    logger.exception(f"❌ {agent.name} [{agent.id[:8]}] failed this tick")

            self._phase("ambient", lambda: self.ambient.maybe_generate(world))
            self._phase("social", lambda: self.ctx.relationships.decay(self.ctx.config.relationship_decay))
            self._phase("gangs", lambda: self.tick_events.extend(self.gangs.run_tick(world)))
            self._phase("rivalries", lambda: self._rivalries(world))
            self._phase("teams", lambda: self.tick_events.extend(self.teams.run_tick(world)))
            self._phase("burials", self._bury_the_dead)
            return True
        finally:
            self._tick_lock.release()

    def _agent_turn(self, agent: Agent, brain, world: WorldSnapshot) -> None:
        action = brain.decide(world)
        result = self.executor.execute(agent, action, world)
        self.tick_events.extend(result.events)

        if agent.is_alive() and self.ctx.rng.random() < self.ctx.config.activity_chance:
            self.activities.roll(agent, world)

    def _phase(self, name: str, fn: Callable) -> None:
        try:
            fn()
        except Exception:
            logger.exception(f"❌ {name} phase failed on tick {self.ctx.tick}")

    def _rivalries(self, world: WorldSnapshot) -> None:
        """Sworn enemies who run into each other sometimes can't help themselves."""
        rng, rel = self.ctx.rng, self.ctx.relationships
        clashes = []
        for agent in world.living():
            enemies = [
                o for o in world.agents_at(agent.location, exclude=agent)
                if rel.is_enemy(agent.id, o.id)
            ]
            if enemies and rng.random() < self.ctx.config.rivalry_chance:
                clashes.append((agent, rng.choice(enemies)))

        for agent, enemy in clashes:
            if agent.is_alive():
                result = self.executor.execute(agent, Action(ActionType.ATTACK, enemy.id), world)
                self.tick_events.extend(result.events)

    def _bury_the_dead(self) -> None:
        for agent in self.agents:
            if agent.status == AgentStatus.ALIVE and agent.hp <= 0:
                self.ctx.deaths.process_death(agent, CauseOfDeath.WOUNDS, tick=self.ctx.tick)

    # ─── Queries ──────────────────────────────────────────────────────────────

    def get_tick_events(self) -> list[dict]:
        """Notable events (deaths, betrayals, wars, turf) from the last tick."""
        return list(self.tick_events)

    def get_simulation_status(self) -> str:
        if not self.loaded:
            return "Simulation stopped"
        alive = len(self.ctx.living())
        dead = len(self.agents) - alive
        holder = self.teams.turf_holder()
        turf = holder.team if holder else "unclaimed"
        state = "running" if self.is_running else "stopped"
        return (
            f"Tick {self.ctx.tick} ({state}) | Active NPCs: {alive}, Dead: {dead}, "
            f"Teams: {len(self.teams.live_teams())}, Gangs: {len(self.gangs.get_active_gangs())}, "
            f"Turf: {turf}, Relationships: {len(self.ctx.relationships)}"
        )

    def get_active_teams(self) -> list[TeamSummary]:
        return self.teams.active_teams()

    def get_teammates(self, team_name: str) -> list[Agent]:
        return self.teams.teammates(team_name)

    def print_status(self) -> None:
        table = Table(title=f" World — Tick {self.ctx.tick}")
        table.add_column("Name", style="bold")
        table.add_column("Archetype")
        table.add_column("Lvl")
        table.add_column("HP")
        table.add_column("Gold")
        table.add_column("Where")
        table.add_column("Team")
        table.add_column("Status")

        for agent in sorted(self.agents, key=lambda a: (not a.is_alive(), -a.level, a.name)):
            if not agent.is_alive():
                table.add_row(agent.name, agent.archetype, str(agent.level), "0", str(agent.gold),
                              agent.location, "—", "💀 Dead")
                continue
            team = agent.team or "—"
            if agent.controls_turf:
                team += " 🏴"
            hp = f"{agent.hp}/{agent.max_hp}"
            if agent.hp_ratio() < 0.3:
                hp += " ⚠️"
            table.add_row(agent.name, agent.archetype, str(agent.level), hp, str(agent.gold),
                          agent.location, team, f"🟢 {agent.activity}")

        console.print(table)
        console.print(self.get_simulation_status() + "\n")
