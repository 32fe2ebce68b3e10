"""Split long readings into verse groups that fit a single response.

A voice response has a hard size limit, so a reading that does not fit
is delivered a group of consecutive verses at a time. Every group
carries some fixed boilerplate: the announcement before the first
group, the "continue?" prompt after intermediate groups and the closing
prompt after the last one. Those costs share the same payload and are
counted against the budget.
"""

import logging
from collections.abc import Sequence

from .config import DeliveryBudget
from .models import Verse
from .ssml import escape

logger = logging.getLogger(__name__)


def measure(verses: Sequence[Verse], budget: DeliveryBudget) -> int:
    """Rendered length of a run of verses, wrapper included."""
    return sum(len(escape(verse.text)) + budget.verse_wrapper for verse in verses)


def group_payloads(
    verses: Sequence[Verse], group_size: int, budget: DeliveryBudget
) -> list[int]:
    """Payload size of each group when verses are split by group_size."""
    if group_size < 1:
        raise ValueError("group_size must be positive")

    starts = range(0, len(verses), group_size)
    last = len(starts) - 1
    payloads = []
    for g, start in enumerate(starts):
        length = measure(verses[start : start + group_size], budget)
        if g == 0:
            length += budget.preamble
        if g == last:
            length += budget.closing_prompt
        else:
            length += budget.continuation_prompt
        payloads.append(length)
    return payloads


def estimate_group_size(
    verses: Sequence[Verse], budget: DeliveryBudget
) -> int | None:
    """Choose how many verses to deliver per turn.

    Returns None when the whole reading fits in one turn, otherwise the
    number of consecutive verses per group. Groups are front-loaded: all
    but the last hold exactly group_size verses.
    """
    verse_count = len(verses)
    total = measure(verses, budget) + budget.preamble + budget.closing_prompt
    if total <= budget.max_length:
        return None

    # Start with a good guess and grow the group count until every group fits.
    group_count = total // budget.max_length + 1
    while True:
        group_size = -(-verse_count // group_count)
        if group_size <= 1:
            break
        payloads = group_payloads(verses, group_size, budget)
        if max(payloads) <= budget.max_length:
            logger.debug(
                f"{verse_count} verses ({total} chars) split into groups of "
                f"{group_size}"
            )
            return group_size
        group_count += 1

    # A single verse per group; oversized verses are handled by the caller.
    return 1
