"""Core mathematics and configuration for the crossed-market EV engine.

This package contains pure building blocks:

- ``odds_math``      — odds parsing/conversion, implied probability, no-vig
- ``kelly``          — expected value and Kelly sizing
- ``payout_presets`` — built-in Flex/Power payout tables
- ``config``         — environment-driven engine settings

Nothing in this package imports from ``crossed_ev.services``.
The math modules are side-effect-free and unit-testable in isolation.
"""
