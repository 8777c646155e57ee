"""Volume profile analysis.

Buckets traded volume by typical price into equal-width bins over the
history's price range and marks the Point of Control and Value Area.
"""

import logging
from collections.abc import Sequence

import numpy as np

from riskscope.analysis.models import PriceBar, VolumeProfileEntry
from riskscope.errors import InsufficientData, InvalidParameters

logger = logging.getLogger(__name__)

DEFAULT_BINS = 100
DEFAULT_VALUE_AREA_PCT = 0.70


def compute_volume_profile(
    bars: Sequence[PriceBar],
    bins: int = DEFAULT_BINS,
    value_area_pct: float = DEFAULT_VALUE_AREA_PCT,
) -> list[VolumeProfileEntry]:
    """Compute the volume-at-price profile of a bar history.

    Each bar's volume goes to the bin containing its typical price
    (high + low + close) / 3. Only populated bins are returned, ordered by
    ascending price, so sparse histories simply yield fewer entries.

    Args:
        bars: Price bars (any order).
        bins: Number of equal-width bins K across [min(low), max(high)].
        value_area_pct: Share of total volume the Value Area must cover.

    Returns:
        List of VolumeProfileEntry. Every entry carries the same
        value_area_high / value_area_low bounds.
    """
    if not bars:
        raise InsufficientData("volume profile needs at least one price bar")
    if bins < 1:
        raise InvalidParameters(f"bins must be >= 1, got {bins}")
    if not (0.0 < value_area_pct <= 1.0):
        raise InvalidParameters(f"value_area_pct must lie in (0, 1], got {value_area_pct}")

    lows = np.array([b.low for b in bars], dtype=float)
    highs = np.array([b.high for b in bars], dtype=float)
    closes = np.array([b.close for b in bars], dtype=float)
    volumes = [b.volume for b in bars]

    min_price = float(lows.min())
    price_range = float(highs.max()) - min_price

    if price_range <= 0:
        # Every bar traded at one price: collapse to a single bin.
        bins = 1
        width = 0.0
        indices = np.zeros(len(bars), dtype=int)
    else:
        width = price_range / bins
        typical = (highs + lows + closes) / 3.0
        indices = np.floor((typical - min_price) / width).astype(int)
        indices = np.clip(indices, 0, bins - 1)

    volume_by_bin: dict[int, float] = {}
    for idx, vol in zip(indices.tolist(), volumes):
        volume_by_bin[idx] = volume_by_bin.get(idx, 0) + vol

    total_volume = sum(volume_by_bin.values())
    levels = sorted(volume_by_bin)

    # Highest volume first; ties resolved towards the lower price.
    by_volume = sorted(levels, key=lambda lvl: (-volume_by_bin[lvl], lvl))
    poc = by_volume[0]
    value_area = _value_area(by_volume, volume_by_bin, total_volume * value_area_pct)

    def lower_edge(level: int) -> float:
        return min_price + level * width

    value_area_low = lower_edge(min(value_area))
    value_area_high = lower_edge(max(value_area) + 1) if width else min_price

    logger.debug(
        "Volume profile: %d bars, %d/%d bins populated, POC=%.4f, VA=[%.4f, %.4f]",
        len(bars), len(levels), bins, lower_edge(poc), value_area_low, value_area_high,
    )

    return [
        VolumeProfileEntry(
            price_level=lower_edge(level),
            price_high=lower_edge(level + 1) if width else min_price,
            volume=volume_by_bin[level],
            percentage_of_total=(
                volume_by_bin[level] / total_volume * 100 if total_volume > 0 else 0.0
            ),
            is_point_of_control=level == poc,
            in_value_area=level in value_area,
            value_area_high=value_area_high,
            value_area_low=value_area_low,
        )
        for level in levels
    ]


def _value_area(
    by_volume: list[int], volume_by_bin: dict[int, float], threshold: float
) -> set[int]:
    """Smallest descending-volume prefix whose cumulative volume reaches threshold."""
    members: set[int] = set()
    cumulative = 0
    for level in by_volume:
        members.add(level)
        cumulative += volume_by_bin[level]
        if cumulative >= threshold:
            break
    return members
