"""
Emotional state — short-lived moods that colour an agent's choices.

Strong memories stir up an emotion: being attacked makes an agent
angry, seeing someone die makes it afraid, joining a crew makes it
glad. Each emotion has an intensity in [0, 1] and lasts a number of
ticks. While it lasts it scales how attractive each action looks:

    anger       attack and revenge up, chatting and trading down
    fear        attack and wandering down, resting up
    confidence  attack, training and exploring up
    sadness     resting up, company down
    joy         chatting up, attack down
    gratitude   chatting up, attack down

An agent holds at most five emotions; the weakest gives way.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from loguru import logger

from worldsim.memory.memory import MemoryEvent, MemoryType

MAX_EMOTIONS = 5
TRIGGER_IMPORTANCE = 0.5   # only memories above this stir anything up
DECAY = 0.99               # per update


class EmotionType(str, Enum):
    ANGER = "anger"
    FEAR = "fear"
    CONFIDENCE = "confidence"
    SADNESS = "sadness"
    JOY = "joy"
    GRATITUDE = "gratitude"


# memory kind -> (emotion, intensity, duration in ticks)
EVENT_EMOTIONS: dict[MemoryType, tuple[EmotionType, float, int]] = {
    MemoryType.ATTACKED:    (EmotionType.ANGER, 0.8, 120),
    MemoryType.BETRAYED:    (EmotionType.ANGER, 1.0, 300),
    MemoryType.HELPED:      (EmotionType.GRATITUDE, 0.6, 180),
    MemoryType.DEFENDED:    (EmotionType.GRATITUDE, 0.8, 240),
    MemoryType.THREATENED:  (EmotionType.FEAR, 0.6, 90),
    MemoryType.SAW_DEATH:   (EmotionType.FEAR, 0.7, 240),
    MemoryType.KILLED:      (EmotionType.CONFIDENCE, 0.7, 300),
    MemoryType.LEVELED_UP:  (EmotionType.CONFIDENCE, 0.7, 300),
    MemoryType.JOINED_GANG: (EmotionType.JOY, 0.6, 180),
    MemoryType.JOINED_TEAM: (EmotionType.JOY, 0.6, 180),
    MemoryType.LEFT_TEAM:   (EmotionType.SADNESS, 0.5, 180),
}

# emotion -> action value -> (base, per unit of intensity)
ACTION_MODIFIERS: dict[EmotionType, dict[str, tuple[float, float]]] = {
    EmotionType.ANGER: {
        "attack": (1.5, 0.5), "seek_revenge": (1.5, 0.5),
        "socialize": (0.5, -0.3), "trade": (0.8, -0.2),
    },
    EmotionType.FEAR: {
        "attack": (0.3, -0.2), "rest": (1.3, 0.3), "explore": (0.4, -0.3),
    },
    EmotionType.CONFIDENCE: {
        "attack": (1.3, 0.2), "socialize": (1.2, 0.3),
        "train": (1.4, 0.3), "explore": (1.2, 0.2),
    },
    EmotionType.SADNESS: {
        "rest": (1.5, 0.4), "socialize": (0.6, -0.4), "attack": (0.7, -0.3),
    },
    EmotionType.JOY: {
        "socialize": (1.3, 0.3), "join_gang": (1.2, 0.2), "attack": (0.8, -0.2),
    },
    EmotionType.GRATITUDE: {
        "socialize": (1.2, 0.2), "attack": (0.6, -0.3),
    },
}


@dataclass
class Emotion:
    kind: EmotionType
    intensity: float
    expires_at: int   # tick

    def is_expired(self, tick: int) -> bool:
        return tick >= self.expires_at


class EmotionalState:

    def __init__(self, owner: str = ""):
        self.owner = owner
        self._active: dict[EmotionType, Emotion] = {}

    def add(self, kind: EmotionType, intensity: float, duration: int, tick: int) -> None:
        """A repeated emotion stacks at half strength and its clock restarts."""
        intensity = max(0.0, min(1.0, intensity))
        existing = self._active.get(kind)
        if existing is not None:
            existing.intensity = min(1.0, existing.intensity + intensity * 0.5)
            existing.expires_at = max(existing.expires_at, tick + duration)
        else:
            self._active[kind] = Emotion(kind, intensity, tick + duration)

        if len(self._active) > MAX_EMOTIONS:
            weakest = min(self._active.values(), key=lambda e: e.intensity)
            del self._active[weakest.kind]
        logger.debug(f"💢 {self.owner} feels {kind.value} ({intensity:.2f})")

    def update(self, events: Iterable[MemoryEvent], tick: int) -> None:
        """Drop what has worn off, react to fresh memories, let the rest fade."""
        for kind in [k for k, e in self._active.items() if e.is_expired(tick)]:
            del self._active[kind]

        for event in events:
            reaction = EVENT_EMOTIONS.get(MemoryType(event.kind))
            if reaction and event.importance > TRIGGER_IMPORTANCE:
                self.add(*reaction, tick=tick)

        for emotion in self._active.values():
            emotion.intensity *= DECAY

    def intensity(self, kind: EmotionType) -> float:
        emotion = self._active.get(kind)
        return emotion.intensity if emotion else 0.0

    def dominant(self) -> Optional[EmotionType]:
        if not self._active:
            return None
        return max(self._active.values(), key=lambda e: e.intensity).kind

    def action_modifier(self, action: str) -> float:
        """Product of every active emotion's pull on `action`, clamped to [0.1, 3]."""
        modifier = 1.0
        for emotion in self._active.values():
            base, per = ACTION_MODIFIERS[emotion.kind].get(action, (1.0, 0.0))
            modifier *= base + per * emotion.intensity
        return max(0.1, min(3.0, modifier))

    def __len__(self) -> int:
        return len(self._active)
