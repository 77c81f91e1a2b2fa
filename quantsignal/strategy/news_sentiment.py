"""Lexicon-based headline sentiment — pure functions.

Phrases are matched as lowercase substrings.  A negation word within the
three words before a phrase flips its contribution, and a headline ending
in a question mark is dampened to 40 % of its score.
"""

from quantsignal.strategy.models import (
    BEARISH,
    BULLISH,
    BUY,
    HOLD,
    NEUTRAL,
    SELL,
    Headline,
    HeadlineSentiment,
    NewsDigest,
)

STRONG_BULLISH = (
    "all-time high", "ath", "record high", "massive rally", "breakout", "surge",
    "soars", "skyrockets", "moon", "approved etf", "institutional adoption",
    "major partnership", "bullish reversal",
)
STRONG_BEARISH = (
    "crash", "plummets", "collapse", "hack", "exploit", "major hack", "ponzi",
    "scam", "sec charges", "ban crypto", "liquidat", "death cross", "bear market",
    "recession fears", "rate hike",
)
MODERATE_BULLISH = (
    "buy", "uptick", "gains", "rises", "bullish", "positive", "upgrade", "add",
    "accumulate", "support", "recovery", "rebound", "outperform",
)
MODERATE_BEARISH = (
    "sell", "drop", "decline", "bearish", "negative", "downgrade", "risk",
    "warning", "concern", "threat", "volatile", "uncertainty", "underperform",
    "regulation",
)

NEGATIONS = frozenset({
    "not", "no", "never", "without", "isn't", "wasn't", "won't", "don't",
    "doesn't", "didn't", "cannot", "can't", "denies", "unlikely",
})
NEGATION_WINDOW = 3
QUESTION_DAMPING = 0.4

HEADLINE_THRESHOLD = 20
AGGREGATE_THRESHOLD = 15

_LEXICON: tuple[tuple[tuple[str, ...], int], ...] = (
    (STRONG_BULLISH, 30),
    (STRONG_BEARISH, -30),
    (MODERATE_BULLISH, 10),
    (MODERATE_BEARISH, -10),
)


def _is_negated(text: str, pos: int) -> bool:
    preceding = text[:pos].replace(",", " ").split()[-NEGATION_WINDOW:]
    return any(word in NEGATIONS for word in preceding)


def _label(score: float, threshold: float) -> str:
    if score > threshold:
        return BULLISH
    if score < -threshold:
        return BEARISH
    return NEUTRAL


def classify_headline(headline: str) -> HeadlineSentiment:
    """Score *headline* on a −100..100 scale.

    Each lexicon phrase contributes at most once.  ``confidence`` grows
    with the absolute score and saturates at 1.0 for ±60.
    """
    if not headline or not headline.strip():
        return HeadlineSentiment(0.0, NEUTRAL, 0.0)

    text = headline.lower()
    score = 0.0
    for phrases, weight in _LEXICON:
        for phrase in phrases:
            pos = text.find(phrase)
            if pos == -1:
                continue
            score += -weight if _is_negated(text, pos) else weight

    if text.rstrip().endswith("?"):
        score *= QUESTION_DAMPING

    score = max(-100.0, min(100.0, score))
    confidence = round(min(1.0, abs(score) / 60), 2)
    return HeadlineSentiment(score, _label(score, HEADLINE_THRESHOLD), confidence)


def aggregate_news_sentiment(
    headlines: list[Headline], source: str = "unavailable"
) -> NewsDigest:
    """Mean headline score with a BUY/SELL/HOLD read (threshold ±15).

    An empty batch is neutral.
    """
    if not headlines:
        return NewsDigest(0, NEUTRAL, HOLD, (), source)

    mean = sum(h.sentiment.score for h in headlines) / len(headlines)
    label = _label(mean, AGGREGATE_THRESHOLD)
    signal = BUY if label == BULLISH else SELL if label == BEARISH else HOLD
    return NewsDigest(round(mean), label, signal, tuple(headlines), source)
