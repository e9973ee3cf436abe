"""
Pydantic request/response schemas for the Crossed Market EV API.

Odds fields are accepted as raw text or numbers; parsing happens in the
engine so a bad price becomes a null field, not a rejected request.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from crossed_ev.core.payout_presets import SlipVariant

RawOdds = Optional[Union[str, float, int]]


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------

class OddsConvertRequest(BaseModel):
    """Payload for POST /api/odds/convert."""

    odds: RawOdds = Field(..., description='American ("-110", "+150") or decimal ("1.91")')

    model_config = {"json_schema_extra": {"example": {"odds": "-110"}}}


class OddsConvertResponse(BaseModel):
    input: RawOdds
    format: str
    decimal: float
    american: str
    implied_probability: float


# ---------------------------------------------------------------------------
# No-vig fair prices
# ---------------------------------------------------------------------------

class FairOddsRequest(BaseModel):
    """
    Payload for POST /api/odds/fair.

    One entry per mutually exclusive outcome.  Two entries give the classic
    two-way no-vig line; more give a multi-outcome market.
    """

    outcomes: List[RawOdds] = Field(..., min_length=1, max_length=50)
    stake: Optional[float] = Field(None, ge=0, description="Stake for the EV column")
    bankroll: Optional[float] = Field(None, gt=0, description="Bankroll for Kelly stakes")

    model_config = {
        "json_schema_extra": {"example": {"outcomes": ["-110", "+120", "3.20"], "stake": 100}}
    }


class FairOutcome(BaseModel):
    index: int
    input: RawOdds
    format: str
    decimal: Optional[float] = None
    american: str = ""
    implied_probability: Optional[float] = None
    fair_probability: Optional[float] = None
    fair_decimal: Optional[float] = None
    fair_american: str = ""
    expected_value: float = 0.0
    kelly_fraction: float = 0.0
    kelly_units: float = 0.0
    kelly_stake: Optional[float] = None


class FairOddsResponse(BaseModel):
    outcomes: List[FairOutcome]
    overround: Optional[float] = None
    stake: float


# ---------------------------------------------------------------------------
# Arbitrage
# ---------------------------------------------------------------------------

class BookQuoteIn(BaseModel):
    book: str = Field("", max_length=80)
    odds: RawOdds = None


class ArbitrageRequest(BaseModel):
    """Payload for POST /api/arbitrage/scan: one quote list per side."""

    sides: List[List[BookQuoteIn]] = Field(..., min_length=1, max_length=20)
    total_stake: Optional[float] = Field(None, gt=0)

    model_config = {
        "json_schema_extra": {
            "example": {
                "sides": [
                    [{"book": "Book A", "odds": "+105"}, {"book": "Book C", "odds": "2.10"}],
                    [{"book": "Book B", "odds": "+120"}],
                ],
                "total_stake": 100,
            }
        }
    }


class BestPriceOut(BaseModel):
    side: int
    book: str
    odds: RawOdds
    decimal: float
    american: str
    implied_probability: float
    stake: Optional[float] = None


class ArbitrageResponse(BaseModel):
    status: Literal["crossed", "no_arbitrage", "insufficient_data"]
    best_prices: List[Optional[BestPriceOut]]
    implied_sum: Optional[float] = None
    edge: Optional[float] = None
    overround: Optional[float] = None
    total_stake: float
    guaranteed_return: Optional[float] = None


# ---------------------------------------------------------------------------
# Flex / Power slips
# ---------------------------------------------------------------------------

class PresetRef(BaseModel):
    book: str
    variant: SlipVariant
    legs: Optional[int] = Field(None, ge=0, le=20, description="Defaults to the slip's leg count")


class FlexEvaluateRequest(BaseModel):
    """
    Payload for POST /api/flex/evaluate.

    Legs are free text ("-119, -110, 55%") or a list of tokens.  Supply
    either an explicit payout table or a preset reference.
    """

    legs: Union[str, List[str]]
    payout_table: Optional[List[float]] = None
    preset: Optional[PresetRef] = None

    @field_validator("payout_table")
    @classmethod
    def validate_multiples(cls, v: Optional[List[float]]) -> Optional[List[float]]:
        if v is not None and any(m < 0 for m in v):
            raise ValueError("payout multiples must be non-negative")
        return v

    @model_validator(mode="after")
    def require_table_source(self) -> "FlexEvaluateRequest":
        if self.payout_table is None and self.preset is None:
            raise ValueError("provide payout_table or preset")
        return self

    model_config = {
        "json_schema_extra": {
            "example": {"legs": "-119, -110, +100", "payout_table": [0, 0, 0, 5]}
        }
    }


class FlexEvaluateResponse(BaseModel):
    leg_probabilities: List[float]
    payout_table: List[float]
    distribution: List[float]
    ev_multiple: float
    roi: float
    p_profit: float
    break_even_leg_probability: Optional[float] = None


class PresetSaveRequest(BaseModel):
    """Payload for PUT /api/flex/presets."""

    book: str = Field(..., min_length=1, max_length=80)
    variant: SlipVariant
    legs: int = Field(..., ge=1, le=20)
    payout_table: List[float] = Field(..., min_length=1)

    @field_validator("payout_table")
    @classmethod
    def validate_multiples(cls, v: List[float]) -> List[float]:
        if any(m < 0 for m in v):
            raise ValueError("payout multiples must be non-negative")
        return v


class PresetOut(BaseModel):
    book: str
    variant: SlipVariant
    legs: int
    payout_table: List[float]
    source: Literal["builtin", "user"]


# ---------------------------------------------------------------------------
# Slip extraction
# ---------------------------------------------------------------------------

class HarvestResponse(BaseModel):
    """Odds harvested from an extracted slip, mapped onto calculator inputs."""

    source: Optional[str] = None
    odds: List[str]
    side_a: Optional[str] = None
    side_b: Optional[str] = None
    multi: List[str]


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

class ExportRequest(BaseModel):
    outcomes: List[RawOdds] = Field(..., min_length=1, max_length=50)


class ExportResponse(BaseModel):
    rows: List[List[str]]
