from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TypeVar

from physiobot.schemas.assessment import QuestionMessage

logger = logging.getLogger(__name__)

BODY_PART_SHOWN = "User has shown body part on video"

T = TypeVar("T")


def is_body_part_shown(turn: QuestionMessage) -> bool:
    return turn.user == BODY_PART_SHOWN


def dedupe_body_part_turns(
    turns: Sequence[T],
    classify: Callable[[T], bool] = is_body_part_shown,  # type: ignore[assignment]
) -> list[T]:
    """
    Drop a "body part shown" turn when the turn kept right before it is one too.
    Non-adjacent repeats and every other turn are kept in order.
    """
    kept: list[T] = []
    last_was_marker = False
    for turn in turns:
        is_marker = classify(turn)
        if is_marker and last_was_marker:
            logger.debug("Removing duplicate body part message")
            continue
        kept.append(turn)
        last_was_marker = is_marker
    return kept
