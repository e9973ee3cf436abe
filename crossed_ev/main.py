"""
FastAPI application for the Crossed Market EV engine
Exposes odds conversion, no-vig pricing, arbitrage and Flex/Power EV
"""

from fastapi import FastAPI, Depends, HTTPException, Body, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Any, Dict, List
import logging

from crossed_ev.auth import verify_api_key
from crossed_ev.core.config import EngineConfig
from crossed_ev.core.kelly import expected_value, fractional_kelly, kelly_stake, kelly_to_units
from crossed_ev.core.odds_math import (
    OddsParseError,
    OddsQuote,
    fair_decimal,
    format_label,
    implied_probability,
    normalize,
    overround,
    parse_odds,
    to_american,
)
from crossed_ev.core.payout_presets import BOOK_PRESETS
from crossed_ev.services.arbitrage import ArbitrageScanner, BookQuote
from crossed_ev.services.export import multi_outcome_rows
from crossed_ev.services.flex_engine import evaluate_slip, parse_legs
from crossed_ev.services.presets import (
    InMemoryPresetStore,
    PresetKey,
    PresetNotFoundError,
    resolve_payout_table,
    save_preset,
)
from crossed_ev.services.slip_parser import (
    SlipParserClient,
    SlipParserError,
    assign_sides,
    harvest_odds,
)
from crossed_ev.schemas import (
    ArbitrageRequest,
    ArbitrageResponse,
    BestPriceOut,
    ExportRequest,
    ExportResponse,
    FairOddsRequest,
    FairOddsResponse,
    FairOutcome,
    FlexEvaluateRequest,
    FlexEvaluateResponse,
    HarvestResponse,
    OddsConvertRequest,
    OddsConvertResponse,
    PresetOut,
    PresetSaveRequest,
)

config = EngineConfig.from_env()

# Logging setup
logging.basicConfig(
    level=config.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# User-saved payout tables, process-local
preset_store = InMemoryPresetStore()


def get_config() -> EngineConfig:
    return config


def get_preset_store() -> InMemoryPresetStore:
    return preset_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info(
        "Starting Crossed Market EV engine (stake=%.2f, kelly divisor=%.2f, slip parser %s)",
        config.default_stake, config.kelly_divisor,
        "enabled" if config.slip_parser_url else "disabled",
    )
    yield
    logger.info("Shutting down Crossed Market EV engine")


app = FastAPI(
    title="Crossed Market EV",
    description="No-vig pricing, EV/Kelly, arbitrage and Flex/Power slip EV",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(config.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"name": "Crossed Market EV", "status": "ok"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


# ---------------------------------------------------------------------------
# Odds
# ---------------------------------------------------------------------------

@app.post("/api/odds/convert", response_model=OddsConvertResponse)
async def convert_odds(
    payload: OddsConvertRequest,
    user: str = Depends(verify_api_key),
):
    """Strictly parse one price; a bad price is a 422 with the reason."""
    try:
        decimal = parse_odds(payload.odds)
    except OddsParseError as exc:
        raise HTTPException(
            status_code=422,
            detail={"reason": exc.reason.value, "message": str(exc)},
        )

    return OddsConvertResponse(
        input=payload.odds,
        format=format_label(payload.odds),
        decimal=decimal,
        american=to_american(decimal),
        implied_probability=implied_probability(decimal),
    )


@app.post("/api/odds/fair", response_model=FairOddsResponse)
async def fair_odds(
    payload: FairOddsRequest,
    user: str = Depends(verify_api_key),
    cfg: EngineConfig = Depends(get_config),
):
    """No-vig probabilities, fair prices, EV and Kelly for every outcome."""
    stake = cfg.default_stake if payload.stake is None else payload.stake
    quotes = [OddsQuote.from_input(raw) for raw in payload.outcomes]
    decimals = [q.decimal for q in quotes]
    fair_probs = normalize(decimals)

    outcomes = []
    for i, (quote, fair) in enumerate(zip(quotes, fair_probs)):
        # Value of each offered price against the market's own fair probability
        kelly = fractional_kelly(fair, quote.decimal, divisor=cfg.kelly_divisor)
        fair_dec = fair_decimal(fair)
        outcomes.append(FairOutcome(
            index=i,
            input=quote.raw,
            format=quote.format.value,
            decimal=quote.decimal,
            american=quote.american,
            implied_probability=quote.implied,
            fair_probability=fair,
            fair_decimal=fair_dec,
            fair_american=to_american(fair_dec),
            expected_value=expected_value(stake, fair, quote.decimal),
            kelly_fraction=kelly,
            kelly_units=kelly_to_units(kelly),
            kelly_stake=(
                kelly_stake(payload.bankroll, fair, quote.decimal, divisor=cfg.kelly_divisor)
                if payload.bankroll else None
            ),
        ))

    invalid = sum(not q.is_valid for q in quotes)
    if invalid:
        logger.debug("Fair odds: %d of %d outcomes unparseable", invalid, len(quotes))

    return FairOddsResponse(outcomes=outcomes, overround=overround(decimals), stake=stake)


# ---------------------------------------------------------------------------
# Arbitrage
# ---------------------------------------------------------------------------

@app.post("/api/arbitrage/scan", response_model=ArbitrageResponse)
async def scan_arbitrage(
    payload: ArbitrageRequest,
    user: str = Depends(verify_api_key),
    cfg: EngineConfig = Depends(get_config),
):
    """Best price per side and crossed-market check."""
    scanner = ArbitrageScanner(total_stake=payload.total_stake or cfg.arb_total_stake)
    sides = [[BookQuote(book_label=q.book, odds=q.odds) for q in side] for side in payload.sides]
    result = scanner.scan(sides)

    best_prices = []
    for i, bp in enumerate(result.best_prices):
        if bp is None:
            best_prices.append(None)
            continue
        best_prices.append(BestPriceOut(
            side=bp.side_index,
            book=bp.book_label,
            odds=bp.raw_odds,
            decimal=bp.decimal,
            american=bp.american,
            implied_probability=bp.implied,
            stake=result.stakes[i] if result.stakes else None,
        ))

    return ArbitrageResponse(
        status=result.status.value,
        best_prices=best_prices,
        implied_sum=result.implied_sum,
        edge=result.edge,
        overround=result.overround,
        total_stake=result.total_stake,
        guaranteed_return=result.guaranteed_return,
    )


# ---------------------------------------------------------------------------
# Flex / Power
# ---------------------------------------------------------------------------

@app.post("/api/flex/evaluate", response_model=FlexEvaluateResponse)
async def evaluate_flex(
    payload: FlexEvaluateRequest,
    user: str = Depends(verify_api_key),
    store: InMemoryPresetStore = Depends(get_preset_store),
):
    """Hit distribution, EV multiple and ROI for a fixed-payout slip."""
    probs = parse_legs(payload.legs)

    if payload.payout_table is not None:
        table = payload.payout_table
    else:
        ref = payload.preset
        legs = len(probs) if ref.legs is None else ref.legs
        try:
            table = resolve_payout_table(ref.book, ref.variant, legs, store=store)
        except PresetNotFoundError:
            raise HTTPException(
                status_code=404,
                detail=f"No preset for {ref.book} {ref.variant.value} {legs} legs",
            )

    evaluation = evaluate_slip(probs, table)
    return FlexEvaluateResponse(
        leg_probabilities=evaluation.leg_probs,
        payout_table=evaluation.payout_table,
        distribution=evaluation.distribution,
        ev_multiple=evaluation.ev_multiple,
        roi=evaluation.roi,
        p_profit=evaluation.p_profit,
        break_even_leg_probability=evaluation.break_even_leg_prob,
    )


@app.get("/api/flex/presets", response_model=List[PresetOut])
async def list_presets(
    user: str = Depends(verify_api_key),
    store: InMemoryPresetStore = Depends(get_preset_store),
):
    """Built-in tables, with user overrides replacing matching entries."""
    presets = []
    for book, variants in BOOK_PRESETS.items():
        for variant, tables in variants.items():
            for legs in tables:
                key = PresetKey.of(book, variant, legs)
                override = store.load(key)
                presets.append(PresetOut(
                    book=book,
                    variant=variant,
                    legs=legs,
                    payout_table=resolve_payout_table(book, variant, legs, store=store),
                    source="user" if override is not None else "builtin",
                ))
    return presets


@app.put("/api/flex/presets", response_model=PresetOut)
async def put_preset(
    payload: PresetSaveRequest,
    user: str = Depends(verify_api_key),
    store: InMemoryPresetStore = Depends(get_preset_store),
):
    """Save a user payout table for (book, variant, legs)."""
    table = save_preset(store, payload.book, payload.variant, payload.legs, payload.payout_table)
    return PresetOut(
        book=payload.book,
        variant=payload.variant,
        legs=payload.legs,
        payout_table=table,
        source="user",
    )


# ---------------------------------------------------------------------------
# Slip extraction
# ---------------------------------------------------------------------------

def _harvest_response(parsed: Any) -> HarvestResponse:
    odds = harvest_odds(parsed)
    side_a, side_b, multi = assign_sides(odds)
    source = parsed.get("source") if isinstance(parsed, dict) else None
    return HarvestResponse(
        source=source if isinstance(source, str) else None,
        odds=odds,
        side_a=side_a,
        side_b=side_b,
        multi=multi,
    )


@app.post("/api/slips/harvest", response_model=HarvestResponse)
async def harvest_slip(
    payload: Dict[str, Any] = Body(...),
    user: str = Depends(verify_api_key),
):
    """Pull odds out of an already-extracted slip JSON."""
    return _harvest_response(payload)


@app.post("/api/slips/upload", response_model=HarvestResponse)
def upload_slip(
    image: UploadFile = File(...),
    user: str = Depends(verify_api_key),
    cfg: EngineConfig = Depends(get_config),
):
    """Send a screenshot to the extraction service, then harvest its odds.

    Runs in the threadpool: the parser call blocks for up to the timeout.
    """
    if not cfg.slip_parser_url:
        raise HTTPException(status_code=503, detail="Slip parser not configured (SLIP_PARSER_URL)")
    if not (image.content_type or "").startswith("image/"):
        raise HTTPException(status_code=415, detail="Upload an image file")

    client = SlipParserClient(cfg.slip_parser_url, timeout=cfg.slip_parser_timeout)
    content = image.file.read()
    try:
        parsed = client.parse_image(content, filename=image.filename or "slip.png",
                                    content_type=image.content_type)
    except SlipParserError as exc:
        raise HTTPException(status_code=502, detail=f"Slip parser failed: {exc}")

    return _harvest_response(parsed)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

@app.post("/api/export/multi", response_model=ExportResponse)
async def export_multi(
    payload: ExportRequest,
    user: str = Depends(verify_api_key),
):
    """Rows for the multi-outcome fair-price table."""
    return ExportResponse(rows=multi_outcome_rows(payload.outcomes))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
