"""Built-in payout tables for fixed-payout slips (Flex / Power).

This module is the **registry** for every book's payout multipliers.
Nowhere else in the codebase should a payout table be hard-coded.

A table is a list indexed by exact hit count: ``table[k]`` is the payout
multiple (stake included) when exactly ``k`` legs win.  ``table[0]`` is
conventionally 0 but nothing downstream relies on that.

These are starter numbers.  Books revise their tables; user overrides live
in a :class:`~crossed_ev.services.presets.PresetStore` and take precedence.

Typical usage::

    from crossed_ev.core.payout_presets import SlipVariant, builtin_table

    builtin_table("PrizePicks", SlipVariant.FLEX, 5)  → [0, 0, 0, 1.5, 2, 10]
"""

from __future__ import annotations

from enum import Enum
from typing import Final, Mapping, Optional, Union


class SlipVariant(str, Enum):
    """Payout structure of a fixed-payout slip."""

    #: All legs must hit.
    POWER = "Power"
    #: Partial payouts for near-misses.
    FLEX = "Flex"


#: BOOK → VARIANT → LEGS → multipliers[k hits]
BOOK_PRESETS: Final[Mapping[str, Mapping[SlipVariant, Mapping[int, tuple[float, ...]]]]] = {
    "Underdog": {
        SlipVariant.POWER: {
            2: (0, 0, 3),
            3: (0, 0, 0, 6),
            4: (0, 0, 0, 0, 10),
            5: (0, 0, 0, 0, 0, 20),
        },
        SlipVariant.FLEX: {
            3: (0, 0, 1.25, 5),
            4: (0, 0, 0, 1.5, 10),
            5: (0, 0, 0, 1.5, 2, 10),
        },
    },
    "PrizePicks": {
        SlipVariant.POWER: {
            2: (0, 0, 3),
            3: (0, 0, 0, 5),
            4: (0, 0, 0, 0, 10),
            5: (0, 0, 0, 0, 0, 10),
            6: (0, 0, 0, 0, 0, 0, 25),
        },
        SlipVariant.FLEX: {
            3: (0, 0, 1.25, 5),
            4: (0, 0, 0, 1.5, 10),
            5: (0, 0, 0, 1.5, 2, 10),
            6: (0, 0, 0, 0, 2, 3, 25),
        },
    },
}


def available_books() -> list[str]:
    return list(BOOK_PRESETS)


def builtin_table(
    book: str,
    variant: Union[SlipVariant, str],
    legs: int,
) -> Optional[list[float]]:
    """Return a copy of the built-in table, or ``None`` if there is none."""
    table = BOOK_PRESETS.get(book, {}).get(SlipVariant(variant), {}).get(legs)
    if table is None:
        return None
    return [float(m) for m in table]
