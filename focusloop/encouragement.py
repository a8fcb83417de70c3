"""Short messages shown when a phase ends."""

from __future__ import annotations

import random

from focusloop.models import Phase

_WORK_DONE_MESSAGES: list[str] = [
    "Session done. Step away from the screen for a moment.",
    "Nice work. Stretch your shoulders and neck.",
    "That one counts. Get some water if you can.",
    "Look at something far away for twenty seconds.",
    "Take a few slow breaths before the next round.",
]

_LONG_BREAK_MESSAGES: list[str] = [
    "A full cycle finished. Take a proper rest.",
    "Four sessions in. Go for a short walk.",
    "You have earned a longer pause. Eat something if you are hungry.",
]

_BREAK_OVER_MESSAGES: list[str] = [
    "Break is over. Ready for the next session?",
    "Back to it. Pick one small thing to start with.",
    "Time to focus again. You know where you left off.",
]


def get_completion_message(completed: Phase, next_phase: Phase) -> str:
    """Pick a message for the end of *completed*, given what comes next."""
    if completed.is_break:
        return random.choice(_BREAK_OVER_MESSAGES)
    if next_phase is Phase.LONG_BREAK:
        return random.choice(_LONG_BREAK_MESSAGES)
    return random.choice(_WORK_DONE_MESSAGES)
