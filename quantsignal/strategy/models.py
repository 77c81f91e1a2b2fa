"""Strategy data models — typed representations for analysis outputs."""

from dataclasses import dataclass, field
from typing import Any, Optional


# ── Signal vocabulary ────────────────────────────────────────────────────

BUY = "BUY"
SELL = "SELL"
HOLD = "HOLD"
STRONG_BUY = "STRONG_BUY"
STRONG_SELL = "STRONG_SELL"

BULLISH = "bullish"
BEARISH = "bearish"
NEUTRAL = "neutral"

SIGNAL_SCORES: dict[str, float] = {
    BUY: 1.0,
    HOLD: 0.0,
    SELL: -1.0,
    STRONG_BUY: 1.5,
    STRONG_SELL: -1.5,
}


@dataclass(frozen=True)
class CandleData:
    """A single OHLCV bar. Sequences are ordered oldest-first."""

    time: str
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class IndicatorResult:
    """Scalar indicator value plus a directional signal.

    ``values`` carries named sub-values, e.g. ``k``/``d`` for the
    stochastic or ``di_plus``/``di_minus`` for ADX.
    """

    value: Optional[float]
    signal: str = HOLD
    values: dict[str, Optional[float]] = field(default_factory=dict)

    def get(self, name: str, default: Optional[float] = None) -> Optional[float]:
        """Return the sub-value *name*, or *default* when absent."""
        return self.values.get(name, default)


@dataclass(frozen=True)
class VolumeProfile:
    """VWAP and the accumulation/distribution phase of recent volume."""

    vwap: float
    phase: str  # "accumulation", "distribution" or "neutral"
    signal: str = HOLD


@dataclass(frozen=True)
class Pattern:
    """A candlestick or chart pattern found in a price window."""

    name: str
    type: str  # "bullish", "bearish" or "neutral"
    strength: int  # 1..3
    detail: str = ""


@dataclass(frozen=True)
class DivergenceSignal:
    """Price/oscillator disagreement over a lookback window."""

    name: str
    type: str
    signal: str
    strength: int
    description: str


@dataclass(frozen=True)
class PivotPoints:
    """Classic, Woodie and Camarilla levels for one prior period."""

    classic: dict[str, float]
    woodie: dict[str, float]
    camarilla: dict[str, float]
    signal: str = HOLD


@dataclass(frozen=True)
class MarketRegime:
    """Volatility/trend classification with its risk scaling."""

    regime: str
    tradeable: bool
    risk_multiplier: float
    strategy: str = ""


@dataclass(frozen=True)
class FearGreedReading:
    """One sample of the market sentiment index (0 = fear, 100 = greed)."""

    value: int
    label: str
    signal: str
    source: str


@dataclass(frozen=True)
class HeadlineSentiment:
    """Lexicon score for a single headline."""

    score: float  # -100..100
    label: str
    confidence: float  # 0..1


@dataclass(frozen=True)
class Headline:
    """A news headline with its classified sentiment."""

    title: str
    source: str
    sentiment: HeadlineSentiment
    url: str = ""
    published: str = ""


@dataclass(frozen=True)
class NewsDigest:
    """Aggregate sentiment over a batch of headlines."""

    score: int
    label: str
    signal: str
    headlines: tuple[Headline, ...] = ()
    source: str = "unavailable"


@dataclass
class IndicatorBag:
    """Every upstream reading the confluence engine can consume.

    Any field left as ``None`` is treated as a missing source and is
    excluded from the weighted average.
    """

    rsi: Optional[IndicatorResult] = None
    macd: Optional[IndicatorResult] = None
    bollinger: Optional[IndicatorResult] = None
    ema: Optional[IndicatorResult] = None
    fibonacci: Optional[IndicatorResult] = None
    volume: Optional[VolumeProfile] = None
    sentiment: Optional[HeadlineSentiment] = None
    stochastic: Optional[IndicatorResult] = None
    williams_r: Optional[IndicatorResult] = None
    adx: Optional[IndicatorResult] = None
    obv: Optional[IndicatorResult] = None
    cci: Optional[IndicatorResult] = None
    parabolic_sar: Optional[IndicatorResult] = None
    ichimoku: Optional[IndicatorResult] = None
    mfi: Optional[IndicatorResult] = None
    roc: Optional[IndicatorResult] = None
    candlestick_patterns: Optional[list[Pattern]] = None
    chart_patterns: Optional[list[Pattern]] = None
    fear_greed: Optional[FearGreedReading] = None
    market_regime: Optional[MarketRegime] = None
    divergences: Optional[list[DivergenceSignal]] = None
    pivot_points: Optional[PivotPoints] = None
    keltner: Optional[IndicatorResult] = None
    aroon: Optional[IndicatorResult] = None
    news: Optional[NewsDigest] = None
    price: Optional[float] = None
    atr: Optional[float] = None
    atr_pct: Optional[float] = None


@dataclass(frozen=True)
class ConfluenceResult:
    """Graded decision produced by the confluence engine."""

    signal: str
    confidence: int  # 0..100
    score: float  # -1.5..1.5
    regime: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def action(self) -> str:
        """Collapse the graded signal to ``BUY``/``SELL``/``HOLD``."""
        if self.signal in (BUY, STRONG_BUY):
            return BUY
        if self.signal in (SELL, STRONG_SELL):
            return SELL
        return HOLD
