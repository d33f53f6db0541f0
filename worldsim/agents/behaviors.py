"""
Action Behaviors — what each primary action actually does to the world.

The brain decides; this module carries it out. Every ActionType has
exactly one handler, and every handler returns an ActionResult.

Before touching a target, a handler re-checks that the target is still
alive and standing next to the actor: the brain decided on the
snapshot, and the world may have moved on since. A stale target, a
missing precondition or an empty purse is not an error: the action
quietly becomes a no-op and the reason goes to the debug log.
"""

from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from worldsim.agents.agent import Agent, CauseOfDeath
from worldsim.agents.brain import Action, ActionType
from worldsim.agents.relationships import RelationType
from worldsim.city.world_state import WorldSnapshot, pick_new_location
from worldsim.memory.memory import MemoryType


@dataclass
class ActionResult:
    action: ActionType
    success: bool
    memory: str = ""
    gold_delta: int = 0
    damage: int = 0
    killed: bool = False
    events: list[dict] = field(default_factory=list)


class ActionExecutor:

    def __init__(self, ctx, gangs):
        self.ctx = ctx
        self.gangs = gangs
        self._handlers = {
            ActionType.IDLE:         self._idle,
            ActionType.EXPLORE:      self._explore,
            ActionType.TRADE:        self._trade,
            ActionType.SOCIALIZE:    self._socialize,
            ActionType.ATTACK:       self._attack,
            ActionType.REST:         self._rest,
            ActionType.TRAIN:        self._train,
            ActionType.JOIN_GANG:    self._join_gang,
            ActionType.SEEK_REVENGE: self._seek_revenge,
        }
        missing = set(ActionType) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for actions: {sorted(m.value for m in missing)}")

    def execute(self, agent: Agent, action: Action, world: WorldSnapshot) -> ActionResult:
        if not agent.is_alive():
            return ActionResult(action.type, success=False, memory="dead agents don't act")
        return self._handlers[ActionType(action.type)](agent, action, world)

    # ─── Helpers ──────────────────────────────────────────────────────────────

    def _target(self, agent: Agent, action: Action, world: WorldSnapshot) -> Optional[Agent]:
        target = world.get_agent(action.target_id)
        if not world.is_reachable(agent, target):
            logger.debug(f"{agent.name}: target for {ActionType(action.type).value} is gone, dead or elsewhere")
            return None
        return target

    def _interact(self, actor: Agent, other: Agent, kind: str, memory_kind: MemoryType, text: str):
        """One side's view of an interaction: feeling plus memory."""
        self.ctx.relationships.record_interaction(actor.id, other.id, kind)
        self.ctx.memory.record(actor, memory_kind, text, involved=other.id, tick=self.ctx.tick)

    def _noop(self, action: ActionType, reason: str) -> ActionResult:
        return ActionResult(action, success=False, memory=reason)

    # ─── Handlers ─────────────────────────────────────────────────────────────

    def _idle(self, agent: Agent, action: Action, world: WorldSnapshot) -> ActionResult:
        agent.activity = "idle"
        return ActionResult(ActionType.IDLE, success=True, memory="Took it easy.")

    def _explore(self, agent: Agent, action: Action, world: WorldSnapshot) -> ActionResult:
        origin = agent.location
        agent.move_to(pick_new_location(origin, self.ctx.rng))
        agent.activity = "exploring"
        logger.debug(f"🚶 {agent.name}: {origin} → {agent.location}")
        return ActionResult(ActionType.EXPLORE, success=True, memory=f"Wandered to the {agent.location}.")

    def _trade(self, agent: Agent, action: Action, world: WorldSnapshot) -> ActionResult:
        partner = self._target(agent, action, world)
        if partner is None:
            return self._noop(ActionType.TRADE, "trade partner unavailable")

        # Even amounts so both halves are whole coins
        amount = self.ctx.rng.randint(5, 50) * 2
        if not (agent.can_afford(amount) and partner.can_afford(amount)):
            logger.debug(f"{agent.name} and {partner.name} couldn't afford a trade of {amount}")
            return self._noop(ActionType.TRADE, "not enough gold to trade")

        half = amount // 2
        agent.spend_gold(half, f"trade with {partner.name}")
        partner.gain_gold(half, f"trade with {agent.name}")

        self._interact(agent, partner, "traded", MemoryType.TRADED, f"Traded with {partner.name} ({half} gold)")
        self._interact(partner, agent, "traded", MemoryType.TRADED, f"Traded with {agent.name} ({half} gold)")
        logger.debug(f"💱 {agent.name} → {partner.name}: {half} gold")
        return ActionResult(ActionType.TRADE, success=True, memory=f"Traded with {partner.name}.", gold_delta=-half)

    def _socialize(self, agent: Agent, action: Action, world: WorldSnapshot) -> ActionResult:
        other = self._target(agent, action, world)
        if other is None:
            return self._noop(ActionType.SOCIALIZE, "nobody to talk to")

        cfg, rel = self.ctx.config, self.ctx.relationships
        compat = agent.personality.compatibility(other.personality)

        if compat > cfg.compat_high:
            self._interact(agent, other, "complimented", MemoryType.COMPLIMENTED, f"Had a great chat with {other.name}")
            self._interact(other, agent, "complimented", MemoryType.COMPLIMENTED, f"Had a great chat with {agent.name}")
            if self.ctx.rng.random() < compat * 0.5:
                rel.set_relationship(agent.id, other.id, RelationType.FRIEND)
                rel.set_relationship(other.id, agent.id, RelationType.FRIEND)
                logger.debug(f"🤝 {agent.name} and {other.name} became friends")
            return ActionResult(ActionType.SOCIALIZE, success=True, memory=f"Got along with {other.name}.")

        if compat < cfg.compat_low:
            self._interact(agent, other, "insulted", MemoryType.INSULTED, f"Argued with {other.name}")
            self._interact(other, agent, "insulted", MemoryType.INSULTED, f"Was insulted by {agent.name}")
            return ActionResult(ActionType.SOCIALIZE, success=True, memory=f"Argued with {other.name}.")

        return ActionResult(ActionType.SOCIALIZE, success=True, memory=f"Small talk with {other.name}.")

    def _attack(self, agent: Agent, action: Action, world: WorldSnapshot) -> ActionResult:
        target = self._target(agent, action, world)
        if target is None:
            return self._noop(ActionType.ATTACK, "no one to attack")

        rng, rel = self.ctx.rng, self.ctx.relationships
        power = agent.attack_power() + rng.randint(1, 10)
        guard = target.armor_class()
        agent.activity = "fighting"

        if power <= guard:
            logger.debug(f"🛡️  {agent.name} swung at {target.name} and missed ({power} vs {guard})")
            self._interact(target, agent, "threatened", MemoryType.THREATENED, f"{agent.name} tried to hurt me")
            return ActionResult(ActionType.ATTACK, success=False, memory=f"Missed {target.name}.")

        damage = target.take_damage(max(1, power - guard))
        self._interact(agent, target, "attacked", MemoryType.ASSAULTED, f"Attacked {target.name} for {damage}")
        self._interact(target, agent, "attacked", MemoryType.ATTACKED, f"Was attacked by {agent.name} for {damage}")
        rel.update_relationship(agent.id, target.id, -1, 3, hostile=True)
        rel.update_relationship(target.id, agent.id, -1, 3, hostile=True)
        logger.debug(f"⚔️  {agent.name} hit {target.name} for {damage} ({target.hp}/{target.max_hp} left)")

        result = ActionResult(ActionType.ATTACK, success=True, memory=f"Hit {target.name} for {damage}.", damage=damage)
        if not target.is_alive():
            self.ctx.deaths.process_death(target, CauseOfDeath.COMBAT, killer=agent.name, killer_id=agent.id, tick=self.ctx.tick)
            self.ctx.memory.record(agent, MemoryType.KILLED, f"Killed {target.name} in combat",
                                   involved=target.id, importance=0.9, tick=self.ctx.tick)
            result.killed = True
            result.memory = f"Killed {target.name}."
            result.events.append({"type": "death", "victim": target.name, "killer": agent.name, "location": agent.location})
        return result

    def _rest(self, agent: Agent, action: Action, world: WorldSnapshot) -> ActionResult:
        healed = agent.heal(int(agent.max_hp * self.ctx.config.rest_fraction))
        agent.activity = "resting"
        return ActionResult(ActionType.REST, success=True, memory=f"Rested and recovered {healed} HP.")

    def _train(self, agent: Agent, action: Action, world: WorldSnapshot) -> ActionResult:
        agent.activity = "training"
        if self.ctx.rng.random() >= self.ctx.config.train_chance:
            return ActionResult(ActionType.TRAIN, success=False, memory="Trained without much to show for it.")
        gain = self.ctx.rng.randint(10, 30)
        agent.gain_experience(gain)
        return ActionResult(ActionType.TRAIN, success=True, memory=f"Training paid off: +{gain} experience.")

    def _join_gang(self, agent: Agent, action: Action, world: WorldSnapshot) -> ActionResult:
        leader = self._target(agent, action, world)
        if leader is None:
            return self._noop(ActionType.JOIN_GANG, "would-be leader not around")
        if not self.gangs.join(agent, leader):
            return self._noop(ActionType.JOIN_GANG, f"{leader.name} didn't take them in")
        return ActionResult(ActionType.JOIN_GANG, success=True, memory=f"Joined {leader.name}'s gang.")

    def _seek_revenge(self, agent: Agent, action: Action, world: WorldSnapshot) -> ActionResult:
        enemy = world.get_agent(action.target_id)
        if world.is_reachable(agent, enemy):
            result = self._attack(agent, action, world)
            result.action = ActionType.SEEK_REVENGE
            return result

        agent.move_to(pick_new_location(agent.location, self.ctx.rng))
        agent.activity = "hunting"
        who = enemy.name if enemy is not None else "their enemy"
        return ActionResult(ActionType.SEEK_REVENGE, success=True, memory=f"Hunting {who} at the {agent.location}.")
