"""Unit tests for the volume-at-price profile."""

from datetime import date

import pytest

from conftest import make_bars
from riskscope.analysis.models import PriceBar
from riskscope.analysis.volume_profile import compute_volume_profile
from riskscope.errors import InsufficientData, InvalidParameters


def _flat_bar(day: int, price: float, volume: float) -> PriceBar:
    return PriceBar(
        date=date(2024, 3, day), open=price, high=price, low=price, close=price, volume=volume
    )


class TestVolumeProfile:
    """Test compute_volume_profile function."""

    def test_volume_conserved(self, realistic_bars):
        """Binned volume adds up to the bars' total volume."""
        profile = compute_volume_profile(realistic_bars)
        total = sum(b.volume for b in realistic_bars)
        assert sum(e.volume for e in profile) == total

    def test_percentages_sum_to_100(self, realistic_bars):
        """Bin percentages add up to 100."""
        profile = compute_volume_profile(realistic_bars)
        assert sum(e.percentage_of_total for e in profile) == pytest.approx(100.0)

    def test_sorted_by_price(self, realistic_bars):
        """Entries ascend by price level."""
        profile = compute_volume_profile(realistic_bars)
        levels = [e.price_level for e in profile]
        assert levels == sorted(levels)
        assert all(e.price_high > e.price_level for e in profile)

    def test_single_point_of_control_with_max_volume(self, realistic_bars):
        """Exactly one bin is the POC and it holds the most volume."""
        profile = compute_volume_profile(realistic_bars)
        pocs = [e for e in profile if e.is_point_of_control]
        assert len(pocs) == 1
        assert pocs[0].volume == max(e.volume for e in profile)
        assert pocs[0].in_value_area

    def test_value_area_covers_threshold(self, realistic_bars):
        """The Value Area holds at least 70% of volume."""
        profile = compute_volume_profile(realistic_bars)
        total = sum(e.volume for e in profile)
        covered = sum(e.volume for e in profile if e.in_value_area)
        assert covered >= 0.70 * total

    def test_value_area_is_minimal(self, realistic_bars):
        """Dropping the smallest member falls below 70%."""
        profile = compute_volume_profile(realistic_bars)
        total = sum(e.volume for e in profile)
        members = sorted((e.volume for e in profile if e.in_value_area), reverse=True)
        assert sum(members[:-1]) < 0.70 * total

    def test_value_area_bounds_shared(self, realistic_bars):
        """Every entry reports the same Value Area bounds."""
        profile = compute_volume_profile(realistic_bars)
        in_area = [e for e in profile if e.in_value_area]
        for e in profile:
            assert e.value_area_low == min(x.price_level for x in in_area)
            assert e.value_area_high == pytest.approx(max(x.price_high for x in in_area))

    def test_sparse_history_returns_populated_bins_only(self, example_bars):
        """Empty bins are left out."""
        profile = compute_volume_profile(example_bars, bins=100)
        assert 1 <= len(profile) <= len(example_bars)
        assert all(e.volume > 0 for e in profile)

    def test_bin_range_spans_history(self, realistic_bars):
        """Bins lie within the history's low and high."""
        profile = compute_volume_profile(realistic_bars, bins=20)
        low = min(b.low for b in realistic_bars)
        high = max(b.high for b in realistic_bars)
        assert profile[0].price_level >= low
        assert profile[-1].price_high <= high + 1e-9

    def test_known_buckets(self):
        """Two bins over 10..20 split the volume as expected."""
        bars = [_flat_bar(1, 10.0, 100), _flat_bar(2, 20.0, 300), _flat_bar(3, 20.0, 50)]
        profile = compute_volume_profile(bars, bins=2)
        assert [e.price_level for e in profile] == [10.0, 15.0]
        assert [e.volume for e in profile] == [100, 350]
        assert profile[1].is_point_of_control
        # 350 / 450 already exceeds 70%
        assert [e.in_value_area for e in profile] == [False, True]
        assert profile[0].value_area_low == 15.0
        assert profile[0].value_area_high == 20.0

    def test_tie_goes_to_lower_price(self):
        """Equal volumes give the POC to the lower price."""
        bars = [_flat_bar(1, 10.0, 200), _flat_bar(2, 20.0, 200)]
        profile = compute_volume_profile(bars, bins=4)
        assert profile[0].is_point_of_control
        assert not profile[-1].is_point_of_control

    def test_constant_price_collapses_to_one_bin(self):
        """A flat price history yields one bin."""
        bars = [_flat_bar(d, 50.0, 10 * d) for d in range(1, 6)]
        profile = compute_volume_profile(bars, bins=10)
        assert len(profile) == 1
        entry = profile[0]
        assert entry.volume == 150
        assert entry.is_point_of_control and entry.in_value_area
        assert entry.value_area_low == entry.value_area_high == 50.0

    def test_zero_volume_history(self):
        """Zero volume gives zero percentages instead of dividing by zero."""
        bars = make_bars([10.0, 11.0, 12.0], volumes=[0, 0, 0])
        profile = compute_volume_profile(bars, bins=5)
        assert sum(e.volume for e in profile) == 0
        assert all(e.percentage_of_total == 0.0 for e in profile)

    def test_empty_history(self):
        """No bars should raise InsufficientData."""
        with pytest.raises(InsufficientData):
            compute_volume_profile([])

    @pytest.mark.parametrize("bins", [0, -3])
    def test_invalid_bins(self, example_bars, bins):
        """Fewer than one bin should raise InvalidParameters."""
        with pytest.raises(InvalidParameters):
            compute_volume_profile(example_bars, bins=bins)

    def test_invalid_value_area_pct(self, example_bars):
        """A Value Area share above 1 should raise InvalidParameters."""
        with pytest.raises(InvalidParameters):
            compute_volume_profile(example_bars, value_area_pct=1.5)
