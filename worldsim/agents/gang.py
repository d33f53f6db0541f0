"""
Gang System — the old-fashioned way of running with a crowd.

A gang is a leader and the people who follow them. Unlike teams there
is no name, no secret and no turf: just loyalty to one person.

    leader:  gang_leader_id == own id, gang_members == follower ids
    member:  gang_leader_id == leader's id, gang_members == []

Gangs come about two ways:
  - an agent walks up to a leader and asks to join (the JoinGang action)
  - an ambitious, gang-minded loner rallies two or more like-minded
    people standing nearby (a small per-tick roll)

Gangs fall apart the same way they started: a disloyal member walks
out and makes an enemy of the leader, or the leader dies and everyone
is on their own.
"""

from typing import Optional

from loguru import logger

from worldsim.agents.agent import Agent
from worldsim.agents.relationships import RelationType
from worldsim.memory.memory import MemoryType

# Leader plus at least this many followers rallied at once
MIN_GANG_SIZE = 3


class GangSystem:
    """
    Manages gang membership. JoinGang goes through join(); the rest
    runs once per tick from the simulator after all agents have acted.
    """

    def __init__(self, ctx):
        self.ctx = ctx

    # ─── Membership ───────────────────────────────────────────────────────────

    def gang_size(self, leader: Agent) -> int:
        return 1 + len(leader.gang_members)

    def join(self, member: Agent, leader: Agent) -> bool:
        """
        Returns False (and changes nothing) when the join isn't possible:
        already in a gang, leader gone or elsewhere, personalities clash,
        or the gang is full.
        """
        cfg = self.ctx.config
        if member.gang_leader_id is not None:
            logger.debug(f"{member.name} is already in a gang")
            return False
        if not leader.is_alive() or leader.location != member.location or leader.id == member.id:
            logger.debug(f"{member.name} can't reach {leader.name} to join their gang")
            return False
        if leader.gang_leader_id not in (None, leader.id):
            logger.debug(f"{leader.name} follows someone else and can't lead")
            return False
        if member.personality.compatibility(leader.personality) <= cfg.gang_join_threshold:
            logger.debug(f"{leader.name} turned {member.name} away, they don't get along")
            return False
        if self.gang_size(leader) >= cfg.max_gang_size:
            logger.debug(f"{leader.name}'s gang is full")
            return False

        leader.gang_leader_id = leader.id
        leader.gang_members.append(member.id)
        member.gang_leader_id = leader.id

        rel, mem, tick = self.ctx.relationships, self.ctx.memory, self.ctx.tick
        rel.record_interaction(member.id, leader.id, "joined_gang")
        rel.record_interaction(leader.id, member.id, "joined_gang")
        rel.set_relationship(member.id, leader.id, RelationType.CLOSE_FRIEND)
        rel.set_relationship(leader.id, member.id, RelationType.FRIEND)
        mem.record(member, MemoryType.JOINED_GANG, f"Joined {leader.name}'s gang", involved=leader.id, importance=0.8, tick=tick)
        mem.record(leader, MemoryType.JOINED_GANG, f"{member.name} joined my gang", involved=member.id, importance=0.8, tick=tick)

        logger.info(f"🤜 {member.name} joined {leader.name}'s gang ({self.gang_size(leader)} strong)")
        return True

    def leave(self, member: Agent) -> Optional[Agent]:
        """Member walks out. Returns the abandoned leader, if any."""
        leader_id = member.gang_leader_id
        if leader_id is None or leader_id == member.id:
            return None
        leader = self._find(leader_id)
        if leader is not None and member.id in leader.gang_members:
            leader.gang_members.remove(member.id)
            if not leader.gang_members:
                leader.gang_leader_id = None
        member.gang_leader_id = None
        return leader

    def disband(self, leader: Agent) -> None:
        for member_id in list(leader.gang_members):
            follower = self._find(member_id)
            if follower is not None:
                follower.gang_leader_id = None
        leader.gang_members = []
        leader.gang_leader_id = None

    def on_death(self, agent: Agent) -> None:
        """Death hook: the dead lead nobody and follow nobody."""
        if agent.gang_leader_id is None:
            return
        if agent.gang_leader_id == agent.id:
            size = self.gang_size(agent)
            self.disband(agent)
            self.ctx.news.publish(False, f"{agent.name}'s gang of {size} scattered after their leader fell.")
        else:
            self.leave(agent)

    # ─── Per-tick dynamics ────────────────────────────────────────────────────

    def run_tick(self, world) -> list[dict]:
        events = self._betrayals(world)
        events.extend(self._formations(world))
        return events

    def _betrayals(self, world) -> list[dict]:
        rng, cfg = self.ctx.rng, self.ctx.config
        traitors = [
            a for a in world.living()
            if a.gang_leader_id not in (None, a.id)
            and a.personality.is_likely_to_betray()
            and rng.random() < cfg.betrayal_chance
        ]

        events = []
        for traitor in traitors:
            if not traitor.is_alive() or traitor.gang_leader_id in (None, traitor.id):
                continue
            leader = self.leave(traitor)
            if leader is None:
                continue
            rel = self.ctx.relationships
            rel.record_interaction(leader.id, traitor.id, "betrayed")
            rel.update_relationship(leader.id, traitor.id, -1, 5, hostile=True)
            rel.update_relationship(traitor.id, leader.id, -1, 3, hostile=True)
            self.ctx.memory.record(leader, MemoryType.BETRAYED, f"{traitor.name} betrayed my gang", involved=traitor.id, tick=self.ctx.tick)
            logger.warning(f"🗡️  {traitor.name} betrayed {leader.name}'s gang")
            events.append({"type": "gang_betrayal", "traitor": traitor.name, "leader": leader.name})
        return events

    def _formations(self, world) -> list[dict]:
        rng, cfg = self.ctx.rng, self.ctx.config

        # Decide against the snapshot first, apply afterwards
        plans = []
        for candidate in world.living():
            p = candidate.personality
            if candidate.gang_leader_id is not None or p.ambition <= 0.7 or not p.is_likely_to_join_gang():
                continue
            if rng.random() >= cfg.gang_formation_chance:
                continue
            recruits = [
                a for a in world.agents_at(candidate.location, exclude=candidate)
                if a.gang_leader_id is None and a.personality.is_likely_to_join_gang()
            ]
            if len(recruits) >= MIN_GANG_SIZE - 1:
                plans.append((candidate, recruits))

        events = []
        for leader, recruits in plans:
            if leader.gang_leader_id is not None or not leader.is_alive():
                continue
            joined = [r.name for r in recruits if self.join(r, leader)]
            if joined:
                self.ctx.news.publish(False, f"{leader.name} has gathered a gang: {', '.join(joined)}.")
                events.append({"type": "gang_formed", "leader": leader.name, "members": joined})
        return events

    # ─── Queries ──────────────────────────────────────────────────────────────

    def get_active_gangs(self) -> list[dict]:
        gangs = []
        for leader in self.ctx.population:
            if leader.is_alive() and leader.gang_leader_id == leader.id and leader.gang_members:
                names = [m.name for m in (self._find(i) for i in leader.gang_members) if m is not None]
                gangs.append({"leader": leader.name, "members": names, "size": 1 + len(names)})
        return gangs

    def _find(self, agent_id: str) -> Optional[Agent]:
        for agent in self.ctx.population:
            if agent.id == agent_id:
                return agent
        return None
