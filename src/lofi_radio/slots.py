"""Slot registry.

A slot is one scheduled time-of-day run. Each slot carries the thematic
parameters the prompt builders use.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidSlot


@dataclass(frozen=True)
class SlotConfig:
    """Static parameters for one time-of-day run."""

    id: str
    vibe: str
    tempo_min: int
    tempo_max: int
    tempo_preferred: int
    moods: tuple[str, ...]


SLOTS: dict[str, SlotConfig] = {
    "morning": SlotConfig(
        id="morning",
        vibe="calm and refreshing",
        tempo_min=60,
        tempo_max=85,
        tempo_preferred=70,
        moods=(
            "Gentle emergence of thought and calm energy.",
            "Subtle optimism rising with clarity.",
            "Emotionally light with a sense of freshness.",
            "Peaceful introspection unfolding into focus.",
            "Stillness paired with quiet anticipation.",
            "Balanced warmth with a soft emotional build.",
            "Serenity transitioning into inspiration.",
            "Harmonious flow of clarity and purpose.",
        ),
    ),
    "midday": SlotConfig(
        id="midday",
        vibe="bright and energetic",
        tempo_min=75,
        tempo_max=100,
        tempo_preferred=85,
        moods=(
            "Elevated rhythm with grounded intensity.",
            "Mental sharpness aligned with steady flow.",
            "Confident pacing and emotional clarity.",
            "Stable motion layered with creative spark.",
            "Productive energy wrapped in smooth momentum.",
            "Forward drive balanced by emotional control.",
            "Energized focus without overstimulation.",
            "Dynamic harmony with persistent motion.",
        ),
    ),
    "night": SlotConfig(
        id="night",
        vibe="dreamy and nostalgic",
        tempo_min=55,
        tempo_max=75,
        tempo_preferred=65,
        moods=(
            "Deep introspection with emotional softness.",
            "Dreamlike flow with slow emotional release.",
            "Low-tempo thoughtfulness and gentle tension.",
            "Subdued energy wrapped in internal reflection.",
            "Fading light of the mind, layered with stillness.",
            "Subtle emotional depth in suspended time.",
            "Quiet intensity with a meditative undertone.",
            "Evening stillness with rich inner resonance.",
        ),
    ),
}

SLOT_IDS: tuple[str, ...] = tuple(SLOTS)


def get_slot(slot_id: Optional[str]) -> SlotConfig:
    """Look up a slot by id.

    Raises:
        InvalidSlot: If slot_id is empty or unknown
    """
    if not slot_id or slot_id not in SLOTS:
        raise InvalidSlot(slot_id, SLOT_IDS)
    return SLOTS[slot_id]
