"""Engine configuration — every environment-driven setting in one place.

:class:`EngineConfig` is a frozen dataclass.  :meth:`EngineConfig.from_env`
reads the process environment (after loading a ``.env`` file, if present)
and falls back to the defaults below.  Nothing else in the codebase should
call ``os.getenv`` for engine settings.

Typical usage::

    from crossed_ev.core.config import EngineConfig

    cfg = EngineConfig.from_env()

    # Override a single setting for a test:
    from dataclasses import replace
    custom_cfg = replace(cfg, kelly_divisor=2.0)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Final, Optional

from dotenv import load_dotenv

#: Stake used for EV display when the caller does not supply one.
DEFAULT_STAKE: Final[float] = 100.0

#: Total stake spread across the legs of an arbitrage.
DEFAULT_ARB_TOTAL_STAKE: Final[float] = 100.0

#: Seconds to wait on the slip-extraction service (OCR is slow).
DEFAULT_SLIP_PARSER_TIMEOUT: Final[float] = 30.0


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name}={raw!r} is not a number") from None


@dataclass(frozen=True)
class EngineConfig:
    """Immutable settings bundle.

    Attributes:
        default_stake: Stake for EV columns (``DEFAULT_STAKE``).
        arb_total_stake: Total stake split across arbitrage legs
            (``ARB_TOTAL_STAKE``).
        kelly_divisor: Fractional-Kelly divisor; 1.0 is full Kelly
            (``KELLY_DIVISOR``).
        slip_parser_url: Base URL of the screenshot-to-slip service
            (``SLIP_PARSER_URL``).  ``None`` disables image upload.
        slip_parser_timeout: Request timeout in seconds
            (``SLIP_PARSER_TIMEOUT``).
        cors_origins: Allowed CORS origins (``CORS_ORIGINS``, comma list).
        log_level: Root log level name (``LOG_LEVEL``).
    """

    default_stake: float = DEFAULT_STAKE
    arb_total_stake: float = DEFAULT_ARB_TOTAL_STAKE
    kelly_divisor: float = 1.0
    slip_parser_url: Optional[str] = None
    slip_parser_timeout: float = DEFAULT_SLIP_PARSER_TIMEOUT
    cors_origins: tuple[str, ...] = field(default=("*",))
    log_level: str = "INFO"

    def __post_init__(self):
        if self.kelly_divisor <= 0.0:
            raise ValueError(f"kelly_divisor must be > 0, got {self.kelly_divisor!r}")
        if self.arb_total_stake <= 0.0:
            raise ValueError(f"arb_total_stake must be > 0, got {self.arb_total_stake!r}")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        load_dotenv()
        origins = os.getenv("CORS_ORIGINS") or "*"
        return cls(
            default_stake=_env_float("DEFAULT_STAKE", DEFAULT_STAKE),
            arb_total_stake=_env_float("ARB_TOTAL_STAKE", DEFAULT_ARB_TOTAL_STAKE),
            kelly_divisor=_env_float("KELLY_DIVISOR", 1.0),
            slip_parser_url=os.getenv("SLIP_PARSER_URL") or None,
            slip_parser_timeout=_env_float("SLIP_PARSER_TIMEOUT", DEFAULT_SLIP_PARSER_TIMEOUT),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )
