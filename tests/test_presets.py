"""
Tests for payout-table presets
Run with: pytest tests/test_presets.py -v
"""

import pytest
from crossed_ev.core.payout_presets import (
    BOOK_PRESETS,
    SlipVariant,
    available_books,
    builtin_table,
)
from crossed_ev.services.presets import (
    InMemoryPresetStore,
    PresetKey,
    PresetNotFoundError,
    resolve_payout_table,
    save_preset,
)


class TestBuiltinTables:

    def test_known_table(self):
        """Known built-in table."""
        assert builtin_table("PrizePicks", SlipVariant.FLEX, 6) == [0, 0, 0, 0, 2, 3, 25]
        assert builtin_table("Underdog", "Power", 3) == [0, 0, 0, 6]

    def test_unknown_combo(self):
        """Unknown combination has no table."""
        assert builtin_table("Underdog", SlipVariant.FLEX, 2) is None
        assert builtin_table("NoSuchBook", SlipVariant.POWER, 3) is None

    def test_returns_copy(self):
        """Built-in lookups return a fresh list."""
        table = builtin_table("Underdog", SlipVariant.POWER, 2)
        table[2] = 999
        assert builtin_table("Underdog", SlipVariant.POWER, 2)[2] == 3

    def test_every_table_has_legs_plus_one_entries(self):
        """Every table has legs + 1 entries."""
        for variants in BOOK_PRESETS.values():
            for tables in variants.values():
                for legs, table in tables.items():
                    assert len(table) == legs + 1

    def test_books(self):
        """Both books are registered."""
        assert set(available_books()) == {"Underdog", "PrizePicks"}


class TestPresetKey:

    def test_string_form(self):
        """Key string form is Book__Variant__N."""
        assert PresetKey.of("Underdog", "Flex", 4).as_string() == "Underdog__Flex__4"

    def test_variant_coerced(self):
        """Variant strings are coerced to the enum."""
        assert PresetKey.of("A", "Power", 2) == PresetKey("A", SlipVariant.POWER, 2)

    def test_bad_variant(self):
        """Unknown variant raises."""
        with pytest.raises(ValueError):
            PresetKey.of("A", "Parlay", 2)


class TestResolve:
    """User override first, then built-in, always resized"""

    def test_builtin_without_store(self):
        """Resolve falls back to the built-in table."""
        assert resolve_payout_table("PrizePicks", SlipVariant.POWER, 3) == [0, 0, 0, 5]

    def test_user_override_wins(self):
        """User override beats the built-in table."""
        store = InMemoryPresetStore()
        store.save(PresetKey.of("PrizePicks", "Power", 3), [0, 0, 0, 6])
        assert resolve_payout_table("PrizePicks", "Power", 3, store=store) == [0, 0, 0, 6]

    def test_override_resized_on_resolve(self):
        """Overrides are resized on resolve."""
        store = InMemoryPresetStore()
        store.save(PresetKey.of("MyBook", "Flex", 3), [0, 0, 1])
        assert resolve_payout_table("MyBook", "Flex", 3, store=store) == [0, 0, 1, 0]

    def test_missing(self):
        """Missing preset raises."""
        with pytest.raises(PresetNotFoundError):
            resolve_payout_table("Underdog", SlipVariant.FLEX, 2, store=InMemoryPresetStore())

    def test_missing_is_key_error(self):
        """Missing preset error is a KeyError."""
        with pytest.raises(KeyError):
            resolve_payout_table("Nowhere", SlipVariant.POWER, 3)


class TestSavePreset:

    def test_save_truncates(self):
        """Saving truncates a long table."""
        store = InMemoryPresetStore()
        saved = save_preset(store, "Underdog", SlipVariant.POWER, 2, [0, 0, 3.5, 7])
        assert saved == [0, 0, 3.5]
        assert store.load(PresetKey.of("Underdog", "Power", 2)) == [0, 0, 3.5]
        assert len(store) == 1

    def test_save_pads(self):
        """Saving pads a short table."""
        store = InMemoryPresetStore()
        assert save_preset(store, "X", "Flex", 4, [0, 0, 0, 1.5]) == [0, 0, 0, 1.5, 0]

    def test_save_rejects_negative(self):
        """Saving rejects negative multiples."""
        with pytest.raises(ValueError):
            save_preset(InMemoryPresetStore(), "X", "Flex", 2, [0, -2, 3])

    def test_load_returns_copy(self):
        """Store hands out copies."""
        store = InMemoryPresetStore()
        key = PresetKey.of("X", "Power", 2)
        store.save(key, [0, 0, 3])
        store.load(key)[2] = 100
        assert store.load(key) == [0, 0, 3]
        assert store.keys() == ["X__Power__2"]
