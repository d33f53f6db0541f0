"""
The world's news wire.

Every notable thing agents do ends up here as a headline: deaths,
team formations, betrayals, wars, turf changes, strange omens.
Significant stories are the front page; everything else is gossip.

Publishing is fire-and-forget. Nothing in the simulation waits on the
news or reads a return value.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from loguru import logger
from rich.console import Console
from rich.panel import Panel

DEFAULT_BACKLOG = 200


@dataclass(frozen=True)
class Headline:
    text: str
    significant: bool = False
    published_at: datetime = field(default_factory=datetime.now)


class NewsBroadcaster:
    """Bounded log of published headlines."""

    def __init__(self, backlog: int = DEFAULT_BACKLOG):
        self._headlines: deque[Headline] = deque(maxlen=backlog)

    # ─── Publishing ───────────────────────────────────────────────────────────

    def publish(self, is_significant: bool, text: str) -> None:
        self._headlines.append(Headline(text=text, significant=is_significant))
        if is_significant:
            logger.info(f"📰 {text}")
        else:
            logger.debug(f"🗞️  {text}")

    def publish_death(self, victim: str, killer: Optional[str], location: str) -> None:
        if killer:
            text = f"DEATH: {victim} was slain by {killer} at the {self._place(location)}."
        else:
            text = f"DEATH: {victim} succumbed to their wounds at the {self._place(location)}."
        self.publish(True, text)

    # ─── Reading ──────────────────────────────────────────────────────────────

    def recent(self, limit: int = 10, significant_only: bool = False) -> list[Headline]:
        items = [h for h in self._headlines if h.significant or not significant_only]
        return items[-limit:]

    def front_page(self, limit: int = 5) -> str:
        headlines = self.recent(limit, significant_only=True)
        if not headlines:
            return self._quiet_day()
        return "\n".join(f"• {h.text}" for h in headlines)

    def print_front_page(self, console: Optional[Console] = None, limit: int = 5) -> None:
        console = console or Console()
        console.print(Panel(self.front_page(limit), title="📰 World News", border_style="yellow"))

    def __len__(self) -> int:
        return len(self._headlines)

    # ─── Helpers ──────────────────────────────────────────────────────────────

    @staticmethod
    def _place(location: str) -> str:
        return location.replace("_", " ")

    @staticmethod
    def _quiet_day() -> str:
        return "A quiet day. Nothing worth printing happened."
