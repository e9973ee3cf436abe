"""
Payout-table preset resolution.

A preset is a payout table keyed by (book, variant, leg count).  Users may
save their own tables; those override the built-in registry.  Storage is an
external collaborator behind the :class:`PresetStore` protocol; the engine
only ever receives a fully-resolved, correctly sized list.

:class:`InMemoryPresetStore` keeps overrides for the life of the process.
It is not a persistence layer.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence, Union

from crossed_ev.core.payout_presets import SlipVariant, builtin_table
from crossed_ev.services.flex_engine import resize_payout_table

logger = logging.getLogger(__name__)


class PresetNotFoundError(KeyError):
    """No user override and no built-in table for the requested key."""


@dataclass(frozen=True)
class PresetKey:
    book: str
    variant: SlipVariant
    legs: int

    @classmethod
    def of(cls, book: str, variant: Union[SlipVariant, str], legs: int) -> "PresetKey":
        return cls(book=book, variant=SlipVariant(variant), legs=int(legs))

    def as_string(self) -> str:
        return f"{self.book}__{self.variant.value}__{self.legs}"


class PresetStore(Protocol):
    """Key-value storage for user-defined payout tables."""

    def load(self, key: PresetKey) -> Optional[List[float]]:
        ...

    def save(self, key: PresetKey, table: Sequence[float]) -> None:
        ...


class InMemoryPresetStore:
    """Dict-backed :class:`PresetStore`, keyed by ``PresetKey.as_string()``."""

    def __init__(self):
        self._tables: Dict[str, List[float]] = {}

    def load(self, key: PresetKey) -> Optional[List[float]]:
        table = self._tables.get(key.as_string())
        return list(table) if table is not None else None

    def save(self, key: PresetKey, table: Sequence[float]) -> None:
        self._tables[key.as_string()] = [float(m) for m in table]

    def keys(self) -> List[str]:
        return sorted(self._tables)

    def __len__(self) -> int:
        return len(self._tables)


def resolve_payout_table(
    book: str,
    variant: Union[SlipVariant, str],
    legs: int,
    store: Optional[PresetStore] = None,
) -> List[float]:
    """
    Resolve a payout table: user override first, then the built-in registry.

    Returns:
        Table sized to ``legs + 1``.

    Raises:
        PresetNotFoundError: Neither source has a table for the key.
    """
    key = PresetKey.of(book, variant, legs)

    table = store.load(key) if store is not None else None
    source = "user"
    if table is None:
        table = builtin_table(key.book, key.variant, key.legs)
        source = "builtin"
    if table is None:
        raise PresetNotFoundError(key.as_string())

    logger.debug("Resolved %s preset %s", source, key.as_string())
    return resize_payout_table(table, key.legs)


def save_preset(
    store: PresetStore,
    book: str,
    variant: Union[SlipVariant, str],
    legs: int,
    table: Sequence[float],
) -> List[float]:
    """Size *table* to ``legs + 1`` and store it as a user override."""
    key = PresetKey.of(book, variant, legs)
    sized = resize_payout_table(table, key.legs)
    store.save(key, sized)
    logger.info("Saved preset %s: %s", key.as_string(), sized)
    return sized
