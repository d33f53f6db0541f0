"""
The Agent Brain — picks one primary action per tick.

Each agent gets its own brain. The brain looks at the world snapshot,
the agent's memories, and its feelings toward the agents around it,
and lists every action that makes sense right now with a priority.

    - badly hurt            → rest
    - aggressive            → attack an enemy (or anyone weaker, if very aggressive)
    - greedy                → trade with a merchant
    - sociable              → chat someone up
    - gang material         → join a gang
    - vengeful + wronged    → hunt down whoever hurt them
    - ambitious             → train
    - always                → idle or wander

Every decision runs in four steps:

    1. fresh memories stir up emotions (see emotions.py)
    2. old memories fade a little, and the faintest are forgotten
    3. emotions scale each candidate's priority
    4. candidates are grouped into goals (personal, social, economic,
       combat, exploration); the strongest goal is pursued and its best
       action wins

Very impulsive agents sometimes skip all that and do something random
from the list.

Anything with a decide(world) -> Action method can stand in for this
class; the simulator doesn't care where the decision comes from.
"""

import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from loguru import logger

from worldsim.agents.agent import Agent
from worldsim.agents.emotions import EmotionalState, EmotionType
from worldsim.agents.relationships import RelationshipTracker
from worldsim.memory.memory import AgentMemory, MemoryType


class ActionType(str, Enum):
    IDLE = "idle"
    EXPLORE = "explore"
    TRADE = "trade"
    SOCIALIZE = "socialize"
    ATTACK = "attack"
    REST = "rest"
    TRAIN = "train"
    JOIN_GANG = "join_gang"
    SEEK_REVENGE = "seek_revenge"


class GoalType(str, Enum):
    PERSONAL = "personal"        # survival, self-improvement
    SOCIAL = "social"            # company, crews, grudges
    ECONOMIC = "economic"
    COMBAT = "combat"
    EXPLORATION = "exploration"


ACTION_GOALS = {
    ActionType.REST: GoalType.PERSONAL,
    ActionType.TRAIN: GoalType.PERSONAL,
    ActionType.SOCIALIZE: GoalType.SOCIAL,
    ActionType.JOIN_GANG: GoalType.SOCIAL,
    ActionType.SEEK_REVENGE: GoalType.SOCIAL,
    ActionType.TRADE: GoalType.ECONOMIC,
    ActionType.ATTACK: GoalType.COMBAT,
    ActionType.IDLE: GoalType.EXPLORATION,
    ActionType.EXPLORE: GoalType.EXPLORATION,
}


@dataclass(frozen=True)
class Action:
    type: ActionType
    target_id: Optional[str] = None
    priority: float = 0.0


IMPULSIVE_THRESHOLD = 0.7
MEMORY_FADE = 0.01     # share of importance lost per decision
FORGET_BELOW = 0.05


class AgentBrain:

    def __init__(
        self,
        agent: Agent,
        memory: AgentMemory,
        relationships: RelationshipTracker,
        rng: Optional[random.Random] = None,
        max_gang_size: int = 6,
    ):
        self.agent = agent
        self.memory = memory
        self.relationships = relationships
        self.rng = rng or random.Random()
        self.max_gang_size = max_gang_size
        self.emotions = EmotionalState(agent.name)
        self.current_goal: Optional[GoalType] = None
        self._seen = 0   # memories already reacted to

    def decide(self, world) -> Action:
        self._feel(world.tick)
        options = self._options(world)
        p = self.agent.personality

        if p.impulsiveness > IMPULSIVE_THRESHOLD and self.rng.random() < p.impulsiveness * 0.3:
            choice = self.rng.choice(options)
            self.current_goal = ACTION_GOALS[choice.type]
            logger.debug(f"🎲 {self.agent.name} acts on impulse: {choice.type.value}")
            return choice

        return self._pursue([self._weigh(o) for o in options])

    # ─── Feelings and goals ───────────────────────────────────────────────────

    def _feel(self, tick: int):
        fresh = self.memory.recorded - self._seen
        self._seen = self.memory.recorded
        self.emotions.update(self.memory.recall_recent(fresh), tick)
        forgotten = self.memory.fade(MEMORY_FADE, FORGET_BELOW)
        if forgotten:
            logger.debug(f"🌫️ {self.agent.name} forgot {forgotten} old memories")

    def _weigh(self, action: Action) -> Action:
        modifier = self.emotions.action_modifier(action.type.value)
        if modifier == 1.0:
            return action
        return replace(action, priority=action.priority * modifier)

    def _goal_modifier(self, goal: GoalType, actions: list[Action]) -> float:
        e = self.emotions
        if goal == GoalType.SOCIAL and e.intensity(EmotionType.ANGER) > 0 \
                and any(a.type == ActionType.SEEK_REVENGE for a in actions):
            return 1.5
        if goal == GoalType.PERSONAL and e.intensity(EmotionType.FEAR) > 0:
            return 1.3
        if goal == GoalType.COMBAT and e.intensity(EmotionType.CONFIDENCE) > 0:
            return 1.2
        if goal == GoalType.SOCIAL and e.intensity(EmotionType.SADNESS) > 0:
            return 1.2
        return 1.0

    def _pursue(self, options: list[Action]) -> Action:
        """Pick the strongest goal, then the best action that serves it."""
        by_goal: dict[GoalType, list[Action]] = {}
        for action in options:
            by_goal.setdefault(ACTION_GOALS[action.type], []).append(action)

        goal = max(
            by_goal,
            key=lambda g: max(a.priority for a in by_goal[g]) * self._goal_modifier(g, by_goal[g]),
        )
        if goal != self.current_goal:
            logger.debug(f"🎯 {self.agent.name} now pursues a {goal.value} goal")
        self.current_goal = goal
        return max(by_goal[goal], key=lambda a: a.priority)

    # ─── Candidates ───────────────────────────────────────────────────────────

    def _options(self, world) -> list[Action]:
        agent, p = self.agent, self.agent.personality
        nearby = world.agents_at(agent.location, exclude=agent)

        options = [
            Action(ActionType.IDLE, priority=0.1),
            Action(ActionType.EXPLORE, priority=0.3),
        ]

        if agent.hp_ratio() < 0.5:
            options.append(Action(ActionType.REST, priority=0.9))

        if p.aggression > 0.6:
            target = self._combat_target(nearby)
            if target:
                options.append(Action(ActionType.ATTACK, target.id, priority=p.aggression))

        if p.greed > 0.5:
            partner = self._trade_partner(nearby)
            if partner:
                options.append(Action(ActionType.TRADE, partner.id, priority=p.greed * 0.8))

        if p.sociability > 0.6:
            friendly = [a for a in nearby if not self.relationships.is_enemy(agent.id, a.id)]
            if friendly:
                options.append(Action(ActionType.SOCIALIZE, self.rng.choice(friendly).id, priority=p.sociability * 0.7))

        if agent.gang_leader_id is None and p.is_likely_to_join_gang():
            leader = self._gang_leader(nearby)
            if leader:
                options.append(Action(ActionType.JOIN_GANG, leader.id, priority=0.8))

        if p.is_likely_to_seek_revenge():
            enemy = self._revenge_target(world)
            if enemy:
                options.append(Action(ActionType.SEEK_REVENGE, enemy.id, priority=p.vengefulness))

        if p.ambition > 0.7:
            options.append(Action(ActionType.TRAIN, priority=p.ambition * 0.6))

        return options

    def _combat_target(self, nearby: list[Agent]) -> Optional[Agent]:
        agent = self.agent
        grudges = set(self.relationships.enemies_of(agent.id))
        enemies = [a for a in nearby if a.id in grudges]
        if enemies:
            return self.rng.choice(enemies)
        if agent.personality.aggression > 0.8:
            weaker = [
                a for a in nearby
                if a.level < agent.level
                and not (agent.team and a.team == agent.team)
            ]
            if weaker:
                return self.rng.choice(weaker)
        return None

    def _trade_partner(self, nearby: list[Agent]) -> Optional[Agent]:
        merchants = [a for a in nearby if a.archetype == "merchant"]
        pool = merchants or [a for a in nearby if not self.relationships.is_enemy(self.agent.id, a.id)]
        return self.rng.choice(pool) if pool else None

    def _gang_leader(self, nearby: list[Agent]) -> Optional[Agent]:
        leaders = [
            a for a in nearby
            if a.gang_leader_id == a.id and len(a.gang_members) + 1 < self.max_gang_size
        ]
        if not leaders:
            # An ambitious loner can become a leader by being followed
            leaders = [a for a in nearby if a.gang_leader_id is None and a.personality.ambition > 0.7]
        return self.rng.choice(leaders) if leaders else None

    def _revenge_target(self, world) -> Optional[Agent]:
        """Whoever hurt us the worst and is still breathing."""
        def alive(event) -> bool:
            enemy = world.get_agent(event.involved)
            return enemy is not None and enemy.is_alive()

        grudge = self.memory.strongest(MemoryType.ATTACKED, where=alive)
        return world.get_agent(grudge.involved) if grudge else None
