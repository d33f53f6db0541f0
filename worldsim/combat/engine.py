"""
Combat Resolution

Every fight in the world, from one agent poking a rat to two teams
brawling in the market, runs through the same loop:

  - rounds alternate: the initiating side swings, then the other side
  - every living fighter hits a random living opponent
  - the loop stops as soon as a side is wiped out, or at the round cap

The cap keeps every tick bounded. Reaching it with both sides standing
is a stalemate, which the initiating side treats as a retreat.

Fighting as a group pays off twice: a side of two or more hits harder
(coordination) and takes less (mitigation). Survivors of a won fight
split the spoils evenly, and parties get bonus experience on top.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from loguru import logger

from worldsim.agents.agent import Agent, CauseOfDeath
from worldsim.combat.monsters import Monster

# Experience per level of a slain agent, pooled for the winners.
AGENT_KILL_EXPERIENCE = 25


class CombatOutcome(str, Enum):
    VICTORY = "victory"        # the other side was wiped out
    DEFEAT = "defeat"          # the initiating side was wiped out
    STALEMATE = "stalemate"    # round cap reached, both sides standing


@dataclass
class CombatResult:
    outcome: CombatOutcome
    rounds: int
    survivors: list = field(default_factory=list)     # initiating side, still alive
    opponents: list = field(default_factory=list)     # other side, still alive
    fallen: list[str] = field(default_factory=list)   # names, both sides
    exp_each: int = 0
    gold_each: int = 0
    initiator_won: bool = False

    @property
    def victory(self) -> bool:
        return self.outcome == CombatOutcome.VICTORY


class CombatEngine:

    def __init__(self, ctx):
        self.ctx = ctx
        self.rng = ctx.rng
        self.config = ctx.config

    # ─── Damage ───────────────────────────────────────────────────────────────

    def damage(self, attacker, defender, attacking_group: bool = False, defending_group: bool = False) -> int:
        base = max(
            1,
            attacker.strength + attacker.weapon_power - defender.defense - defender.armor_power,
        )
        hit = float(base + self.rng.randint(0, self.config.damage_bonus_max))
        if attacking_group:
            hit *= 1 + self.config.coordination_bonus
        if defending_group:
            hit *= 1 - self.config.group_mitigation
        return max(1, int(round(hit)))

    # ─── Modes ────────────────────────────────────────────────────────────────

    def resolve_solo(self, agent: Agent, monsters: Sequence[Monster]) -> CombatResult:
        result = self._battle([agent], list(monsters), self.config.solo_round_cap, CauseOfDeath.MONSTER)
        if result.victory:
            self._reward_from_monsters(result, monsters, group=False)
        logger.debug(f"⚔️  {agent.name} vs {len(monsters)} monster(s): {result.outcome.value} in {result.rounds} rounds")
        return result

    def resolve_group_vs_monsters(self, party: Sequence[Agent], monsters: Sequence[Monster]) -> CombatResult:
        result = self._battle(list(party), list(monsters), self.config.group_round_cap, CauseOfDeath.MONSTER)
        if result.victory:
            self._reward_from_monsters(result, monsters, group=len(party) > 1)
        logger.debug(
            f"⚔️  Party of {len(party)} vs {len(monsters)} monster(s): "
            f"{result.outcome.value} in {result.rounds} rounds"
        )
        return result

    def resolve_team_vs_team(self, side_a: Sequence[Agent], side_b: Sequence[Agent]) -> CombatResult:
        """
        side_a is the initiator. The winner is whoever has more fighters
        standing afterwards; equal counts go to the side with more total HP,
        and a dead heat counts against the initiator.
        """
        side_a, side_b = list(side_a), list(side_b)
        result = self._battle(side_a, side_b, self.config.team_round_cap, CauseOfDeath.TEAM_WAR)

        a_left, b_left = len(result.survivors), len(result.opponents)
        if a_left != b_left:
            result.initiator_won = a_left > b_left
        else:
            result.initiator_won = sum(a.hp for a in result.survivors) > sum(b.hp for b in result.opponents)

        winners = result.survivors if result.initiator_won else result.opponents
        slain = [a for a in (side_b if result.initiator_won else side_a) if not a.is_alive()]
        if winners and slain:
            gold = 0
            for body in slain:
                gold += body.gold
                body.gold = 0
            exp = sum(b.level for b in slain) * AGENT_KILL_EXPERIENCE
            result.exp_each, result.gold_each = self.distribute(winners, exp, gold, group=True)
        return result

    # ─── Loop ─────────────────────────────────────────────────────────────────

    def _battle(self, side_a: list, side_b: list, cap: int, cause: CauseOfDeath) -> CombatResult:
        a_group, b_group = len(side_a) > 1, len(side_b) > 1
        fallen: list[str] = []
        rounds = 0

        while rounds < cap and _any_alive(side_a) and _any_alive(side_b):
            rounds += 1
            self._volley(side_a, side_b, a_group, b_group, cause, fallen)
            self._volley(side_b, side_a, b_group, a_group, cause, fallen)

        if not _any_alive(side_b):
            outcome = CombatOutcome.VICTORY
        elif not _any_alive(side_a):
            outcome = CombatOutcome.DEFEAT
        else:
            outcome = CombatOutcome.STALEMATE

        return CombatResult(
            outcome=outcome,
            rounds=rounds,
            survivors=[c for c in side_a if c.is_alive()],
            opponents=[c for c in side_b if c.is_alive()],
            fallen=fallen,
        )

    def _volley(self, attackers: list, defenders: list, att_group: bool, def_group: bool, cause, fallen: list):
        for attacker in attackers:
            if not attacker.is_alive():
                continue
            targets = [d for d in defenders if d.is_alive()]
            if not targets:
                return
            target = self.rng.choice(targets)
            target.take_damage(self.damage(attacker, target, att_group, def_group))
            if not target.is_alive():
                fallen.append(target.name)
                if isinstance(target, Agent):
                    killer_id = attacker.id if isinstance(attacker, Agent) else None
                    self.ctx.deaths.process_death(target, cause, killer=attacker.name, killer_id=killer_id, tick=self.ctx.tick)

    # ─── Rewards ──────────────────────────────────────────────────────────────

    def _reward_from_monsters(self, result: CombatResult, monsters: Sequence[Monster], group: bool):
        exp = sum(m.reward_experience for m in monsters)
        gold = sum(m.reward_gold for m in monsters)
        result.exp_each, result.gold_each = self.distribute(result.survivors, exp, gold, group)

    def distribute(self, winners: Sequence[Agent], exp_pool: int, gold_pool: int, group: bool) -> tuple[int, int]:
        """
        Split the pools evenly; leftovers from the division go to the
        first winners one unit each, so nothing is lost.
        Returns the per-head share (before leftovers).
        """
        winners = [w for w in winners if isinstance(w, Agent) and w.is_alive()]
        if not winners:
            return 0, 0
        if group:
            exp_pool = int(round(exp_pool * (1 + self.config.group_exp_bonus)))

        n = len(winners)
        exp_each, exp_rest = divmod(exp_pool, n)
        gold_each, gold_rest = divmod(gold_pool, n)
        for i, agent in enumerate(winners):
            agent.gain_experience(exp_each + (1 if i < exp_rest else 0))
            agent.gain_gold(gold_each + (1 if i < gold_rest else 0), "combat spoils")
        return exp_each, gold_each


def _any_alive(side: list) -> bool:
    return any(c.is_alive() for c in side)
