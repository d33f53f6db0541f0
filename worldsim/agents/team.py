"""
Team System — named crews that recruit, betray, fight and claim turf.

A team is not an object anywhere. It is simply every living agent that
carries the same team name. The first two members create it; it dies
quietly when the last member leaves or falls.

    formation    gang-minded loners join a crew nearby, or found one
    recruitment  members talk ungrouped agents around them into joining
    betrayal     disloyal members walk out, sometimes emptying the team
    warfare      two crews standing in the same place go at each other
    turf         one crew, and one agent in it, runs the streets

Turf is a single flag held by one living agent in the whole world.
It is only handed out when nobody holds it, and passes to the holder's
strongest teammate if the holder leaves or dies. Nobody can take it
away from a living holder.
"""

from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from worldsim.agents.agent import Agent
from worldsim.city.world_state import WorldSnapshot
from worldsim.memory.memory import MemoryType

TEAM_PREFIXES = [
    "The Iron", "The Crimson", "The Silent", "The Ashen", "The Hollow",
    "The Black", "The Gilded", "The Broken", "The Wild", "The Grey",
]

TEAM_SUFFIXES = [
    "Fangs", "Blades", "Wolves", "Brotherhood", "Covenant",
    "Syndicate", "Circle", "Legion", "Ravens", "Hand",
]

WAR_HEADLINES = [
    "Team War!", "Blood in the Streets!", "Crews Collide!",
    "Turf Brawl!", "Rivals Clash!", "Street Battle!",
]

NAME_ATTEMPTS = 20


@dataclass
class TeamSummary:
    name: str
    member_count: int
    total_power: int
    avg_level: float
    controls_turf: bool
    member_names: list[str] = field(default_factory=list)


class TeamSystem:

    def __init__(self, ctx, combat):
        self.ctx = ctx
        self.combat = combat

    # ─── Roster ───────────────────────────────────────────────────────────────

    def teammates(self, team_name: str) -> list[Agent]:
        """Live members right now (not at snapshot time)."""
        return [a for a in self.ctx.population if a.team == team_name and a.is_alive()]

    def team_size(self, team_name: str) -> int:
        return len(self.teammates(team_name))

    def live_teams(self) -> dict[str, list[Agent]]:
        teams: dict[str, list[Agent]] = {}
        for agent in self.ctx.population:
            if agent.team and agent.is_alive():
                teams.setdefault(agent.team, []).append(agent)
        return teams

    def turf_holder(self) -> Optional[Agent]:
        for agent in self.ctx.population:
            if agent.controls_turf and agent.is_alive():
                return agent
        return None

    def recruitment_chance(self, recruiter: Agent, candidate: Agent) -> float:
        compat = recruiter.personality.compatibility(candidate.personality)
        charisma = min(1.0, max(0.0, recruiter.charisma / 100))
        chance = 0.5 * compat + 0.3 * charisma + 0.2 * candidate.personality.gang_affinity()
        return max(0.0, min(1.0, chance))

    # ─── Membership ───────────────────────────────────────────────────────────

    def join_team(self, agent: Agent, team_name: str, secret: Optional[str], recruiter: Optional[Agent] = None) -> bool:
        cfg = self.ctx.config
        if not agent.is_alive() or agent.team is not None:
            return False
        if self.team_size(team_name) >= cfg.max_team_size:
            logger.debug(f"{team_name} is full, {agent.name} stays out")
            return False

        agent.team = team_name
        agent.team_secret = secret
        agent.controls_turf = False

        self.ctx.memory.record(agent, MemoryType.JOINED_TEAM, f"Joined {team_name}",
                               involved=recruiter.id if recruiter else None, tick=self.ctx.tick)
        if recruiter is not None:
            self.ctx.relationships.record_interaction(agent.id, recruiter.id, "joined_team")
            self.ctx.relationships.record_interaction(recruiter.id, agent.id, "joined_team")
        self.ctx.news.publish(False, f"{agent.name} has been recruited to {team_name}.")
        logger.info(f"🛡️  {agent.name} joined {team_name} ({self.team_size(team_name)}/{cfg.max_team_size})")
        return True

    def leave_team(self, agent: Agent) -> Optional[str]:
        """
        Clear the agent's team, secret and turf. Turf passes to the
        strongest teammate left; an emptied team is announced as gone.
        Returns the team left, if any.
        """
        team_name = agent.team
        if team_name is None:
            return None
        had_turf = agent.controls_turf

        agent.team = None
        agent.team_secret = None
        agent.controls_turf = False

        remaining = self.teammates(team_name)
        if had_turf:
            self._hand_over_turf(team_name, remaining)
        if not remaining:
            self.ctx.news.publish(True, f"{team_name} ceased to exist!")
            logger.info(f"🏳️  {team_name} disbanded")
        return team_name

    def found_team(self, founder: Agent, partner: Agent) -> Optional[str]:
        if founder.team is not None or partner.team is not None:
            return None
        name = self.generate_name()
        secret = f"{self.ctx.rng.getrandbits(32):08x}"

        founder.team = name
        founder.team_secret = secret
        founder.controls_turf = False
        self.ctx.memory.record(founder, MemoryType.JOINED_TEAM, f"Founded {name}", involved=partner.id, tick=self.ctx.tick)
        self.ctx.news.publish(True, f"{founder.name} founded a new team: {name}!")
        logger.info(f"🛡️  {founder.name} founded {name}")

        self.join_team(partner, name, secret, recruiter=founder)
        return name

    def generate_name(self) -> str:
        taken = set(self.live_teams())
        rng = self.ctx.rng
        for _ in range(NAME_ATTEMPTS):
            name = f"{rng.choice(TEAM_PREFIXES)} {rng.choice(TEAM_SUFFIXES)}"
            if name not in taken:
                return name
        n = 2
        base = f"{rng.choice(TEAM_PREFIXES)} {rng.choice(TEAM_SUFFIXES)}"
        while f"{base} {n}" in taken:
            n += 1
        return f"{base} {n}"

    def on_death(self, agent: Agent) -> None:
        """Death hook, run before the agent's fields are wiped."""
        if agent.team is not None:
            self.leave_team(agent)

    # ─── Agent activities ─────────────────────────────────────────────────────

    def try_form_or_join(self, agent: Agent, world: WorldSnapshot) -> bool:
        """A gang-minded loner looks for a crew nearby, or starts one."""
        cfg = self.ctx.config
        if agent.team is not None or not agent.personality.is_likely_to_join_gang():
            return False

        nearby = [o for o in world.agents_at(agent.location, exclude=agent) if world.is_reachable(agent, o)]

        crews: dict[str, list[Agent]] = {}
        for other in nearby:
            if other.team:
                crews.setdefault(other.team, []).append(other)
        for name, members in crews.items():
            if self.team_size(name) >= cfg.max_team_size:
                continue
            liked = [m for m in members if agent.personality.compatibility(m.personality) > cfg.team_join_threshold]
            if liked:
                return self.join_team(agent, name, liked[0].team_secret, recruiter=liked[0])

        partners = [
            o for o in nearby
            if o.team is None and agent.personality.compatibility(o.personality) > cfg.team_join_threshold
        ]
        if not partners:
            logger.debug(f"{agent.name} found nobody to team up with at {agent.location}")
            return False
        partner = max(partners, key=lambda o: agent.personality.compatibility(o.personality))
        return self.found_team(agent, partner) is not None

    def try_recruit(self, recruiter: Agent, world: WorldSnapshot) -> bool:
        if recruiter.team is None or self.team_size(recruiter.team) >= self.ctx.config.max_team_size:
            return False
        candidates = [
            o for o in world.agents_at(recruiter.location, exclude=recruiter)
            if o.team is None and world.is_reachable(recruiter, o)
        ]
        if not candidates:
            return False
        candidate = self.ctx.rng.choice(candidates)
        if self.ctx.rng.random() >= self.recruitment_chance(recruiter, candidate):
            logger.debug(f"{candidate.name} turned down {recruiter.name}'s offer to join {recruiter.team}")
            return False
        return self.join_team(candidate, recruiter.team, recruiter.team_secret, recruiter=recruiter)

    # ─── Per-tick dynamics ────────────────────────────────────────────────────

    def run_tick(self, world: WorldSnapshot) -> list[dict]:
        events = self.process_betrayals(world)
        events.extend(self.process_team_wars(world))
        events.extend(self.process_turf(world))
        return events

    def process_betrayals(self, world: WorldSnapshot) -> list[dict]:
        rng, cfg = self.ctx.rng, self.ctx.config

        # Roll against the snapshot, then apply
        leavers = [
            a for a in world.living()
            if a.team
            and (a.personality.loyalty < cfg.low_loyalty or a.personality.is_likely_to_betray())
            and rng.random() < cfg.betrayal_chance
        ]

        events = []
        for traitor in leavers:
            if not traitor.is_alive() or traitor.team is None:
                continue
            former = [m for m in self.teammates(traitor.team) if m.id != traitor.id]
            team_name = self.leave_team(traitor)
            for mate in former:
                self.ctx.relationships.record_interaction(mate.id, traitor.id, "betrayed")
                self.ctx.memory.record(mate, MemoryType.BETRAYED, f"{traitor.name} walked out on {team_name}",
                                       involved=traitor.id, tick=self.ctx.tick)
            self.ctx.memory.record(traitor, MemoryType.LEFT_TEAM, f"Left {team_name}", tick=self.ctx.tick)
            self.ctx.news.publish(False, f"{traitor.name} has betrayed {team_name}!")
            logger.warning(f"🗡️  {traitor.name} betrayed {team_name}")
            events.append({"type": "team_betrayal", "traitor": traitor.name, "team": team_name})
        return events

    def process_team_wars(self, world: WorldSnapshot) -> list[dict]:
        rng, cfg = self.ctx.rng, self.ctx.config
        eligible = {name: members for name, members in self.live_teams().items() if len(members) >= 2}
        if len(eligible) < 2 or rng.random() >= cfg.team_war_chance:
            return []

        pairs = []
        names = sorted(eligible)
        for i, a in enumerate(names):
            a_spots = {m.location for m in eligible[a]}
            for b in names[i + 1:]:
                shared = a_spots & {m.location for m in eligible[b]}
                if shared:
                    pairs.append((a, b, sorted(shared)))
        if not pairs:
            return []

        team_a, team_b, shared = rng.choice(pairs)
        if rng.random() < 0.5:
            team_a, team_b = team_b, team_a
        location = rng.choice(shared)
        winner, loser, result = self.simulate_team_vs_team_combat(team_a, team_b, location)
        return [{
            "type": "team_war",
            "attacker": team_a,
            "defender": team_b,
            "winner": winner,
            "loser": loser,
            "location": location,
            "rounds": result.rounds,
            "fallen": result.fallen,
        }]

    def simulate_team_vs_team_combat(self, team_a: str, team_b: str, location: Optional[str] = None):
        """
        Every live member of both teams standing at `location` fights
        (everyone, if no location is given). team_a is the initiator.
        Returns (winner name, loser name, CombatResult).
        """
        side_a = [m for m in self.teammates(team_a) if location is None or m.location == location]
        side_b = [m for m in self.teammates(team_b) if location is None or m.location == location]

        # Before the fight, while everyone involved can still hold a grudge
        rel = self.ctx.relationships
        for a in side_a:
            for b in side_b:
                rel.record_interaction(a.id, b.id, "attacked")
                rel.record_interaction(b.id, a.id, "attacked")

        result = self.combat.resolve_team_vs_team(side_a, side_b)
        winner, loser = (team_a, team_b) if result.initiator_won else (team_b, team_a)

        winners = result.survivors if result.initiator_won else result.opponents
        losers = result.opponents if result.initiator_won else result.survivors
        if winners:
            champion = max(winners, key=lambda m: m.power())
            for beaten in losers:
                self.ctx.memory.record(beaten, MemoryType.ATTACKED, f"{winner} beat us in a street fight",
                                       involved=champion.id, tick=self.ctx.tick)

        where = f" at the {location.replace('_', ' ')}" if location else ""
        headline = self.ctx.rng.choice(WAR_HEADLINES)
        self.ctx.news.publish(True, f"{headline} {winner} defeated {loser}{where} ({len(result.fallen)} fell).")
        logger.info(
            f"⚔️  {team_a} ({len(side_a)}) vs {team_b} ({len(side_b)}){where}: "
            f"{winner} won after {result.rounds} rounds"
        )
        return winner, loser, result

    def process_turf(self, world: WorldSnapshot) -> list[dict]:
        if self.turf_holder() is not None:
            return []

        rng, cfg = self.ctx.rng, self.ctx.config
        teams = list(self.live_teams().items())
        rng.shuffle(teams)
        for name, members in teams:
            power = sum(m.power() for m in members)
            if power <= cfg.turf_power_threshold or rng.random() >= cfg.turf_chance:
                continue
            holder = max(members, key=lambda m: m.power())
            holder.controls_turf = True
            self.ctx.news.publish(True, f"{name} now controls the town!")
            logger.warning(f"🏴 {name} took the turf (power {power}), held by {holder.name}")
            return [{"type": "turf_claimed", "team": name, "holder": holder.name, "power": power}]
        return []

    def _hand_over_turf(self, team_name: str, remaining: list[Agent]) -> None:
        if remaining:
            heir = max(remaining, key=lambda m: m.power())
            heir.controls_turf = True
            logger.warning(f"🏴 Turf of {team_name} passes to {heir.name}")
        else:
            self.ctx.news.publish(True, f"{team_name} lost control of the town.")
            logger.warning("🏴 Turf is unclaimed again")

    # ─── Queries ──────────────────────────────────────────────────────────────

    def active_teams(self) -> list[TeamSummary]:
        summaries = []
        for name, members in sorted(self.live_teams().items()):
            summaries.append(TeamSummary(
                name=name,
                member_count=len(members),
                total_power=sum(m.power() for m in members),
                avg_level=sum(m.level for m in members) / len(members),
                controls_turf=any(m.controls_turf for m in members),
                member_names=[m.name for m in members],
            ))
        return summaries
