#!/usr/bin/env python3
"""
Random program selection backed by the OS CSPRNG
"""

import logging
import secrets
from typing import Callable, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def select(programs: Sequence[T], randbelow: Callable[[int], int] = secrets.randbelow) -> Optional[T]:
    """
    Pick one element uniformly at random.

    Args:
        programs: Candidates
        randbelow: Returns an int in [0, n); secrets.randbelow unless a test pins it

    Returns:
        The chosen element, or None for an empty sequence
    """
    if not programs:
        logger.debug("Cannot select from an empty list of programs.")
        return None

    index = randbelow(len(programs))
    if not 0 <= index < len(programs):
        raise ValueError(f"random index {index} out of range for {len(programs)} programs")

    chosen = programs[index]
    logger.debug(f"Randomly selected index {index} of {len(programs)}: {getattr(chosen, 'url', chosen)}")
    return chosen
