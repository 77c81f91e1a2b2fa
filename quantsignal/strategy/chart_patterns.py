"""Chart-shape detection over a closing-price window — pure functions.

Pivots come from a symmetric window scan; the classic shapes (double
top/bottom, head-and-shoulders) compare the most recent pivots, while the
advanced shapes (cup-and-handle, wedges, flags) use depth ratios and slope
comparisons over the trailing bars.
"""

from typing import NamedTuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from quantsignal.strategy.models import BEARISH, BULLISH, Pattern

MIN_CHART_BARS = 50
MIN_ADVANCED_BARS = 60


class Pivot(NamedTuple):
    index: int
    price: float


def find_pivots(prices: list[float], window: int = 5) -> tuple[list[Pivot], list[Pivot]]:
    """Return ``(peaks, troughs)`` found with a ±*window* bar scan.

    A bar is a peak when it equals the maximum of the ``2 × window + 1``
    bars centred on it (ties count), and a trough when it equals the
    minimum.  The first and last *window* bars are never pivots.
    """
    span = 2 * window + 1
    if window < 1 or len(prices) < span:
        return [], []

    arr = np.asarray(prices, dtype=float)
    windows = sliding_window_view(arr, span)
    centre = arr[window:len(arr) - window]
    peak_idx = np.flatnonzero(centre == windows.max(axis=1)) + window
    trough_idx = np.flatnonzero(centre == windows.min(axis=1)) + window

    peaks = [Pivot(int(i), float(arr[i])) for i in peak_idx]
    troughs = [Pivot(int(i), float(arr[i])) for i in trough_idx]
    return peaks, troughs


def detect_chart_patterns(prices: list[float], window: int = 5) -> list[Pattern]:
    """Double top/bottom, head-and-shoulders and support/resistance proximity.

    Requires at least 50 prices; returns an empty list otherwise.
    """
    if len(prices) < MIN_CHART_BARS:
        return []

    patterns: list[Pattern] = []
    peaks, troughs = find_pivots(prices, window)

    if len(peaks) >= 2:
        p1, p2 = peaks[-2:]
        if abs(p1.price - p2.price) / p1.price < 0.02 and p2.index - p1.index > 10:
            patterns.append(Pattern("Double Top", BEARISH, 3))
    if len(troughs) >= 2:
        t1, t2 = troughs[-2:]
        if abs(t1.price - t2.price) / t1.price < 0.02 and t2.index - t1.index > 10:
            patterns.append(Pattern("Double Bottom", BULLISH, 3))

    if len(peaks) >= 3:
        ls, head, rs = peaks[-3:]
        if (
            head.price > ls.price
            and head.price > rs.price
            and abs(ls.price - rs.price) / ls.price < 0.05
            and head.price > ls.price * 1.03
        ):
            patterns.append(Pattern("Head & Shoulders", BEARISH, 3))
    if len(troughs) >= 3:
        ls, head, rs = troughs[-3:]
        if (
            head.price < ls.price
            and head.price < rs.price
            and abs(ls.price - rs.price) / ls.price < 0.05
        ):
            patterns.append(Pattern("Inverse Head & Shoulders", BULLISH, 3))

    last = prices[-1]
    recent = prices[-MIN_CHART_BARS:]
    support = min(recent)
    resistance = max(recent)
    if last and (last - support) / last < 0.01:
        patterns.append(Pattern("At Support", BULLISH, 2))
    if last and (resistance - last) / last < 0.01:
        patterns.append(Pattern("At Resistance", BEARISH, 2))
    return patterns


def _local_extrema(prices: list[float]) -> tuple[list[Pivot], list[Pivot]]:
    """Strict one-bar local highs/lows, skipping two bars at each edge."""
    highs: list[Pivot] = []
    lows: list[Pivot] = []
    for i in range(2, len(prices) - 2):
        if prices[i] > prices[i - 1] and prices[i] > prices[i + 1]:
            highs.append(Pivot(i, prices[i]))
        if prices[i] < prices[i - 1] and prices[i] < prices[i + 1]:
            lows.append(Pivot(i, prices[i]))
    return highs, lows


def _slope(points: list[Pivot]) -> float:
    first, last = points[0], points[-1]
    if last.index == first.index:
        return 0.0
    return (last.price - first.price) / (last.index - first.index)


def detect_advanced_chart_patterns(prices: list[float]) -> list[Pattern]:
    """Cup-and-handle, rising/falling wedge and bull/bear flag.

    Requires at least 60 prices; returns an empty list otherwise.
    """
    if len(prices) < MIN_ADVANCED_BARS:
        return []

    patterns: list[Pattern] = []

    cup = prices[-60:]
    cup_low = min(cup[10:50])
    left, right = cup[0], cup[-1]
    depth = (left - cup_low) / left if left else 0.0
    if 0.05 < depth < 0.35 and abs(left - right) / left < 0.05:
        handle = prices[-10:]
        handle_dip = (max(handle) - min(handle)) / max(handle)
        if 0.01 < handle_dip < 0.1:
            patterns.append(
                Pattern("Cup & Handle", BULLISH, 3, detail=f"depth {round(depth * 100)}%")
            )

    highs, lows = _local_extrema(prices[-30:])
    if len(highs) >= 2 and len(lows) >= 2:
        h_slope = _slope(highs)
        l_slope = _slope(lows)
        if h_slope > 0 and l_slope > 0 and l_slope > h_slope:
            patterns.append(Pattern("Rising Wedge", BEARISH, 2))
        if h_slope < 0 and l_slope < 0 and h_slope > l_slope:
            patterns.append(Pattern("Falling Wedge", BULLISH, 2))

    pole = prices[-30:-10]
    flag = prices[-10:]
    if pole[0]:
        pole_move = (pole[-1] - pole[0]) / pole[0]
        flag_range = (max(flag) - min(flag)) / max(flag)
        if pole_move > 0.05 and flag_range < 0.03:
            patterns.append(Pattern("Bull Flag", BULLISH, 2))
        if -pole_move > 0.05 and flag_range < 0.03:
            patterns.append(Pattern("Bear Flag", BEARISH, 2))
    return patterns
