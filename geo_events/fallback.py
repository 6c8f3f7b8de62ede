"""
fallback.py - Ordered fallback evaluation.

A cascade is an ordered list of attempts; the first attempt producing a
non-empty result wins and the remaining attempts are never run.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

A = TypeVar('A')
R = TypeVar('R')


def first_non_empty(
    attempts: Iterable[A],
    run: Callable[[A], Optional[Sequence[R]]],
    label: Callable[[A], str] = str,
) -> Optional[Tuple[A, Sequence[R]]]:
    """
    Run attempts in order until one returns a non-empty sequence.

    Args:
        attempts: Ordered attempt descriptors.
        run: Callable evaluating one descriptor; None or an empty sequence means no result.
        label: Names an attempt for debug logging.

    Returns:
        (winning attempt, its results), or None when every attempt came back empty.
    """
    for index, attempt in enumerate(attempts, start=1):
        results = run(attempt)
        if results:
            logger.debug(f"Attempt {index} ({label(attempt)}) returned {len(results)} result(s)")
            return attempt, results
        logger.debug(f"Attempt {index} ({label(attempt)}) returned nothing")
    return None
