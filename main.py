"""
main.py — Entry point for the world simulation.

Headless (default): seeds a town and runs a fixed number of ticks back
to back, printing the roster and front page every so often.

Live: set WORLDSIM_LIVE=1 to run the background clock instead, one tick
every WORLDSIM_TICK_INTERVAL seconds, until Ctrl+C.

Settings (.env or environment):
    WORLDSIM_POPULATION   agents to seed (default 20)
    WORLDSIM_TICKS        headless ticks to run (default 100)
    WORLDSIM_SEED         fix the dice for a reproducible world
    WORLDSIM_LOG_LEVEL    loguru level (default INFO)

Run:
    python main.py
"""

import os
import random
import sys
import time
from collections import Counter

from dotenv import load_dotenv
load_dotenv()

from loguru import logger
from rich.table import Table

from worldsim.agents.factory import spawn_population
from worldsim.os.config import SimulationConfig
from worldsim.os.context import SimulationContext
from worldsim.os.simulator import WorldSimulator, console

if __name__ == "__main__":
    logger.remove()
    logger.add(sys.stderr, level=os.getenv("WORLDSIM_LOG_LEVEL", "INFO"))

    seed = os.getenv("WORLDSIM_SEED")
    rng = random.Random(int(seed)) if seed else random.Random()
    population = int(os.getenv("WORLDSIM_POPULATION", "20"))
    ticks = int(os.getenv("WORLDSIM_TICKS", "100"))

    ctx = SimulationContext.create(config=SimulationConfig.from_env(), rng=rng)
    sim = WorldSimulator(ctx)
    agents = spawn_population(population, rng)
    tally: Counter = Counter()

    if os.getenv("WORLDSIM_LIVE") == "1":
        sim.start(agents)
        try:
            while True:
                time.sleep(ctx.config.tick_interval)
                sim.print_status()
        except KeyboardInterrupt:
            sim.stop()
    else:
        sim.load(agents)
        console.print(f"\n🚀 [bold]World simulation running. {ticks} ticks.[/bold]\n")
        for _ in range(ticks):
            sim.simulate_step()
            tally.update(e["type"] for e in sim.get_tick_events())
            if ctx.tick % 25 == 0:
                sim.print_status()
                ctx.news.print_front_page(console)

    console.print(f"\n[bold]━━━ FINAL REPORT — Tick {ctx.tick} ━━━[/bold]")
    sim.print_status()
    ctx.news.print_front_page(console, limit=10)
    for team in sim.get_active_teams():
        turf = " 🏴" if team.controls_turf else ""
        console.print(
            f"  {team.name}{turf}: {team.member_count} members, power {team.total_power}, "
            f"avg level {team.avg_level:.1f} ({', '.join(team.member_names)})"
        )

    if tally:
        table = Table(title="What happened")
        table.add_column("Event")
        table.add_column("Count", justify="right")
        for kind, count in tally.most_common():
            table.add_row(kind.replace("_", " "), str(count))
        console.print(table)
