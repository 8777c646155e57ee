"""Per-analysis facade over the pure computation modules.

A RiskEngine holds one validated bar history and its return series for the
duration of an analysis. Construct a fresh engine per analysis; it reads no
global state and all settings are passed in.
"""

import logging
import threading
from collections.abc import Sequence

import numpy as np

from riskscope.analysis.garch import compute_garch
from riskscope.analysis.models import (
    GarchResult,
    MonteCarloResult,
    PriceBar,
    PriceProjection,
    ReturnSeries,
    RiskMetrics,
    VolumeProfileEntry,
)
from riskscope.analysis.projection import project_prices
from riskscope.analysis.returns import compute_returns, returns_from_closes, validate_bars
from riskscope.analysis.risk import compute_risk_metrics
from riskscope.analysis.simulation import run_monte_carlo
from riskscope.analysis.volume_profile import compute_volume_profile
from riskscope.config import Settings
from riskscope.errors import InvalidParameters

logger = logging.getLogger(__name__)


class RiskEngine:
    """Risk analytics for a single bar history."""

    def __init__(self, bars: Sequence[PriceBar], settings: Settings | None = None):
        self.settings = settings or Settings()
        self.bars = tuple(bars)
        self.returns: ReturnSeries = compute_returns(self.bars)
        logger.info(
            "Loaded %d bars (%s to %s)", len(self.bars), self.bars[0].date, self.bars[-1].date
        )

    @property
    def last_price(self) -> float:
        return self.bars[-1].close

    def garch(self) -> GarchResult:
        s = self.settings
        return compute_garch(self.returns, s.garch_omega, s.garch_alpha, s.garch_beta)

    def risk_metrics(self, benchmark_bars: Sequence[PriceBar] | None = None) -> RiskMetrics:
        """Risk metrics, optionally against a benchmark aligned by date."""
        benchmark = None
        if benchmark_bars is not None:
            benchmark = self._aligned_benchmark(benchmark_bars)
        return compute_risk_metrics(
            self.returns,
            benchmark,
            risk_free_rate=self.settings.sharpe_risk_free_rate,
            periods_per_year=self.settings.trading_days_per_year,
        )

    def _aligned_benchmark(self, benchmark_bars: Sequence[PriceBar]) -> np.ndarray:
        """Benchmark returns over the same close-to-close periods as the asset.

        Benchmark closes are sampled on the asset's bar dates before returns
        are taken, so a session the asset skips folds into one benchmark
        return spanning the same interval.
        """
        validate_bars(benchmark_bars)
        closes = {bar.date: bar.close for bar in benchmark_bars}
        missing = [bar.date for bar in self.bars if bar.date not in closes]
        if missing:
            raise InvalidParameters(
                f"benchmark lacks closes for {len(missing)} dates (first: {missing[0]})"
            )

        first, last = self.bars[0].date, self.bars[-1].date
        skipped = sum(1 for d in closes if first <= d <= last) - len(self.bars)
        if skipped:
            logger.debug("Benchmark has %d sessions the asset skips, folded into asset periods",
                         skipped)

        return returns_from_closes([closes[bar.date] for bar in self.bars]).simple

    def monte_carlo(
        self,
        days: int,
        target_decline: float = 0.10,
        num_simulations: int | None = None,
        current_price: float | None = None,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
        cancel_event: threading.Event | None = None,
        allow_partial: bool = False,
    ) -> MonteCarloResult:
        s = self.settings
        return run_monte_carlo(
            current_price if current_price is not None else self.last_price,
            days,
            num_simulations if num_simulations is not None else s.simulation_num_paths,
            target_decline,
            self.returns,
            rng=rng,
            seed=seed,
            max_workers=s.simulation_max_workers,
            chunk_size=s.simulation_chunk_size,
            cancel_event=cancel_event,
            timeout=s.simulation_timeout,
            allow_partial=allow_partial,
            periods_per_year=s.trading_days_per_year,
        )

    def volume_profile(self, bins: int | None = None) -> list[VolumeProfileEntry]:
        return compute_volume_profile(
            self.bars,
            bins if bins is not None else self.settings.volume_profile_bins,
            self.settings.value_area_pct,
        )

    def project(
        self,
        metrics: RiskMetrics | None = None,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ) -> list[PriceProjection]:
        metrics = metrics or self.risk_metrics()
        return project_prices(self.last_price, metrics, self.returns, rng=rng, seed=seed)
