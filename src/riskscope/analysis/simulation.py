"""Monte Carlo simulation of terminal prices under geometric Brownian motion.

Paths are split into fixed-size chunks. Each chunk draws from its own child
generator seeded from the caller's generator, so a fixed seed yields the same
terminal-price multiset whether chunks run in-process or on a worker pool.
"""

import logging
import math
import threading
import time
from collections.abc import Sequence
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, wait

import numpy as np

from riskscope.analysis.models import ConfidenceIntervals, MonteCarloResult, ReturnSeries
from riskscope.analysis.returns import as_return_array
from riskscope.errors import (
    InsufficientData,
    InvalidParameters,
    SimulationCancelled,
    SimulationTimeout,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_NUM_SIMULATIONS = 10000
DEFAULT_CHUNK_SIZE = 2500
DEFAULT_TARGET_DECLINE = 0.10
TRADING_DAYS_PER_YEAR = 252
POLL_INTERVAL = 0.05  # seconds between cancel/timeout checks on the pool

CI_QUANTILES = {
    "ci95": (0.025, 0.975),
    "ci99": (0.005, 0.995),
}


# ---------------------------------------------------------------------------
# Path generation
# ---------------------------------------------------------------------------


def box_muller(rng: np.random.Generator, shape: tuple[int, ...]) -> np.ndarray:
    """Standard normal draws from pairs of uniforms.

    u1 is taken from (0, 1] so the logarithm stays finite.
    """
    u1 = 1.0 - rng.random(shape)
    u2 = rng.random(shape)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


def _simulate_chunk(
    seed: int,
    num_paths: int,
    days: int,
    current_price: float,
    mu: float,
    sigma: float,
    periods_per_year: int,
) -> np.ndarray:
    """Picklable worker: terminal prices for one chunk of independent paths.

    Each day multiplies the price by exp((mu - sigma^2/2) dt + sigma sqrt(dt) z)
    with dt = 1/periods_per_year.
    """
    rng = np.random.default_rng(seed)
    z = box_muller(rng, (num_paths, days))

    drift = (mu - 0.5 * sigma**2) / periods_per_year
    diffusion = sigma / math.sqrt(periods_per_year)

    log_growth = np.sum(drift + diffusion * z, axis=1)
    return current_price * np.exp(log_growth)


def _chunk_sizes(num_simulations: int, chunk_size: int) -> list[int]:
    full, rest = divmod(num_simulations, chunk_size)
    return [chunk_size] * full + ([rest] if rest else [])


def simulate_terminal_prices(
    current_price: float,
    days: int,
    num_simulations: int,
    mu: float,
    sigma: float,
    rng: np.random.Generator | None = None,
    seed: int | None = None,
    max_workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    cancel_event: threading.Event | None = None,
    timeout: float | None = None,
    allow_partial: bool = False,
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> tuple[np.ndarray, bool]:
    """Simulate GBM terminal prices.

    Args:
        current_price: Starting price S0 (> 0).
        days: Trading days to simulate (>= 1).
        num_simulations: Number of independent paths (>= 1).
        mu: Daily drift (mean simple return).
        sigma: Daily volatility (sample std of returns).
        rng: Injected generator; takes precedence over ``seed``.
        seed: Seed for a fresh generator when ``rng`` is not given.
        max_workers: > 1 runs chunks on a process pool.
        chunk_size: Paths per chunk; fixes the seeding layout.
        cancel_event: Checked between chunks; when set the run stops.
        timeout: Wall-clock budget in seconds.
        allow_partial: Return completed chunks instead of raising on
            cancel/timeout.
        periods_per_year: Annualization factor (dt = 1/periods_per_year).

    Returns:
        (sorted terminal prices, is_partial)
    """
    _validate_inputs(current_price, days, num_simulations, mu, sigma)
    if chunk_size < 1:
        raise InvalidParameters(f"chunk_size must be >= 1, got {chunk_size}")
    if timeout is not None and timeout <= 0:
        raise InvalidParameters(f"timeout must be positive, got {timeout}")

    if rng is None:
        rng = np.random.default_rng(seed)

    sizes = _chunk_sizes(num_simulations, chunk_size)
    seeds = rng.integers(0, 2**63, size=len(sizes))
    jobs = [
        (int(s), n, days, float(current_price), float(mu), float(sigma), periods_per_year)
        for s, n in zip(seeds, sizes)
    ]
    deadline = time.monotonic() + timeout if timeout is not None else None

    logger.debug(
        "Simulating %d paths x %d days in %d chunks (workers=%d)",
        num_simulations, days, len(jobs), max_workers,
    )

    if max_workers > 1 and len(jobs) > 1:
        chunks, stop_reason = _run_pool(jobs, max_workers, cancel_event, deadline)
    else:
        chunks, stop_reason = _run_serial(jobs, cancel_event, deadline)

    if stop_reason is not None:
        completed = sum(len(c) for c in chunks.values())
        logger.warning(
            "Simulation %s after %d of %d paths", stop_reason, completed, num_simulations
        )
        if not allow_partial or not chunks:
            if stop_reason == "timed out":
                raise SimulationTimeout(
                    f"Monte Carlo exceeded {timeout}s with {completed}/{num_simulations} paths"
                )
            raise SimulationCancelled(
                f"Monte Carlo cancelled with {completed}/{num_simulations} paths"
            )

    terminal = np.sort(np.concatenate([chunks[i] for i in sorted(chunks)]))
    return terminal, stop_reason is not None


def _stop_reason(
    cancel_event: threading.Event | None, deadline: float | None
) -> str | None:
    if cancel_event is not None and cancel_event.is_set():
        return "cancelled"
    if deadline is not None and time.monotonic() >= deadline:
        return "timed out"
    return None


def _run_serial(
    jobs: list[tuple],
    cancel_event: threading.Event | None,
    deadline: float | None,
) -> tuple[dict[int, np.ndarray], str | None]:
    chunks: dict[int, np.ndarray] = {}
    for idx, job in enumerate(jobs):
        reason = _stop_reason(cancel_event, deadline)
        if reason is not None:
            return chunks, reason
        chunks[idx] = _simulate_chunk(*job)
    return chunks, None


def _run_pool(
    jobs: list[tuple],
    max_workers: int,
    cancel_event: threading.Event | None,
    deadline: float | None,
) -> tuple[dict[int, np.ndarray], str | None]:
    chunks: dict[int, np.ndarray] = {}
    reason = None

    executor = ProcessPoolExecutor(max_workers=min(max_workers, len(jobs)))
    try:
        futures = {executor.submit(_simulate_chunk, *job): idx for idx, job in enumerate(jobs)}
        pending = set(futures)

        while pending:
            reason = _stop_reason(cancel_event, deadline)
            if reason is not None:
                break

            wait_for = POLL_INTERVAL
            if deadline is not None:
                wait_for = max(0.0, min(wait_for, deadline - time.monotonic()))

            done, pending = wait(pending, timeout=wait_for, return_when=FIRST_COMPLETED)
            for future in done:
                chunks[futures[future]] = future.result()
    finally:
        # Do not block on chunks still running after a cancel or timeout.
        executor.shutdown(wait=reason is None, cancel_futures=True)

    return chunks, reason


def _validate_inputs(
    current_price: float, days: int, num_simulations: int, mu: float, sigma: float
) -> None:
    if not math.isfinite(current_price) or current_price <= 0:
        raise InvalidParameters(f"current price must be positive, got {current_price}")
    if days < 1:
        raise InvalidParameters(f"days must be >= 1, got {days}")
    if num_simulations < 1:
        raise InvalidParameters(f"num_simulations must be >= 1, got {num_simulations}")
    if not (math.isfinite(mu) and math.isfinite(sigma)) or sigma < 0:
        raise InvalidParameters(f"invalid drift/volatility: mu={mu}, sigma={sigma}")


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def summarize_terminal_prices(
    terminal: np.ndarray,
    current_price: float,
    target_decline: float = DEFAULT_TARGET_DECLINE,
    is_partial: bool = False,
) -> MonteCarloResult:
    """Build a MonteCarloResult from a terminal price array (sorted or not)."""
    scenarios = np.sort(np.asarray(terminal, dtype=float))
    m = len(scenarios)
    if m == 0:
        raise InsufficientData("no terminal prices to summarize")

    target_price = current_price * (1.0 - target_decline)
    below = int(np.count_nonzero(scenarios < target_price))
    p_below = below / m

    intervals = {
        key: (float(scenarios[math.floor(lo * m)]), float(scenarios[math.floor(hi * m)]))
        for key, (lo, hi) in CI_QUANTILES.items()
    }
    scenarios.setflags(write=False)

    return MonteCarloResult(
        scenarios=scenarios,
        probabilities=(p_below, 1.0 - p_below),
        confidence_intervals=ConfidenceIntervals(**intervals),
        expected_return=float(np.mean(scenarios)),
        worst_case=float(scenarios[0]),
        best_case=float(scenarios[-1]),
        target_price=target_price,
        num_paths=m,
        is_partial=is_partial,
    )


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def run_monte_carlo(
    current_price: float,
    days: int,
    num_simulations: int = DEFAULT_NUM_SIMULATIONS,
    target_decline: float = DEFAULT_TARGET_DECLINE,
    returns: ReturnSeries | Sequence[float] | np.ndarray | None = None,
    *,
    mu: float | None = None,
    sigma: float | None = None,
    rng: np.random.Generator | None = None,
    seed: int | None = None,
    max_workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    cancel_event: threading.Event | None = None,
    timeout: float | None = None,
    allow_partial: bool = False,
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> MonteCarloResult:
    """Simulate the terminal price distribution after ``days`` trading days.

    Drift and volatility default to the mean and sample standard deviation
    of ``returns``; ``mu``/``sigma`` override either one.

    Args:
        current_price: Starting price S0.
        days: Horizon in trading days.
        num_simulations: Path count M.
        target_decline: Fractional decline defining the target price
            S0 * (1 - target_decline); must lie in [0, 1).
        returns: Historical daily simple returns.

    Returns:
        MonteCarloResult; ``is_partial`` is set when a cancel/timeout cut
        the run short and ``allow_partial`` was requested.
    """
    if not (0.0 <= target_decline < 1.0):
        raise InvalidParameters(f"target_decline must lie in [0, 1), got {target_decline}")

    if mu is None or sigma is None:
        if returns is None:
            raise InvalidParameters("returns are required unless mu and sigma are given")
        r = as_return_array(returns)
        if len(r) < 2:
            raise InsufficientData(f"need at least 2 returns for drift/volatility, got {len(r)}")
        if mu is None:
            mu = float(np.mean(r))
        if sigma is None:
            sigma = float(np.std(r, ddof=1))

    terminal, is_partial = simulate_terminal_prices(
        current_price, days, num_simulations, mu, sigma,
        rng=rng, seed=seed, max_workers=max_workers, chunk_size=chunk_size,
        cancel_event=cancel_event, timeout=timeout, allow_partial=allow_partial,
        periods_per_year=periods_per_year,
    )
    result = summarize_terminal_prices(terminal, current_price, target_decline, is_partial)

    logger.info(
        "Monte Carlo: S0=%.2f, %dd, %d paths, P(decline>%.1f%%)=%.4f, mean=%.2f",
        current_price, days, result.num_paths, target_decline * 100,
        result.probability_of_decline, result.expected_return,
    )
    return result
