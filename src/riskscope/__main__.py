import json
import logging

import click
from pydantic import ValidationError

from riskscope.config import Settings
from riskscope.errors import RiskScopeError
from riskscope.logging_config import setup_logging

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """riskscope - risk metrics and price distribution analytics"""
    settings = Settings()
    setup_logging(settings.log_dir)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    ctx.obj = settings


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--benchmark", "-b", "benchmark_path", type=click.Path(exists=True, dir_okay=False),
              default=None, help="Benchmark OHLCV CSV for beta/alpha")
@click.option("--days", "-d", type=int, default=30, show_default=True,
              help="Monte Carlo horizon in trading days")
@click.option("--sims", "-n", type=int, default=None,
              help="Number of Monte Carlo paths (default: RS_SIMULATION_NUM_PATHS)")
@click.option("--target-decline", type=float, default=0.10, show_default=True,
              help="Fractional decline for the downside probability")
@click.option("--seed", type=int, default=None, help="Seed for reproducible simulation")
@click.option("--bins", type=int, default=None,
              help="Volume profile bins (default: RS_VOLUME_PROFILE_BINS)")
@click.pass_obj
def analyze(settings: Settings, csv_path: str, benchmark_path: str | None, days: int,
            sims: int | None, target_decline: float, seed: int | None, bins: int | None):
    """Run the full risk analysis on an OHLCV CSV and print a JSON report."""
    from riskscope.analysis.engine import RiskEngine
    from riskscope.loaders import load_bars_csv

    try:
        bars = load_bars_csv(csv_path)
        benchmark = load_bars_csv(benchmark_path) if benchmark_path else None

        engine = RiskEngine(bars, settings)
        metrics = engine.risk_metrics(benchmark)
        garch = engine.garch()
        mc = engine.monte_carlo(days, target_decline, num_simulations=sims, seed=seed)
        profile = engine.volume_profile(bins)
    except (RiskScopeError, ValidationError) as e:
        raise click.ClickException(str(e)) from e

    poc = next(entry for entry in profile if entry.is_point_of_control)
    report = {
        "symbol_file": csv_path,
        "bars": len(bars),
        "last_price": engine.last_price,
        "risk_metrics": {
            "var95": metrics.var95,
            "var99": metrics.var99,
            "expected_shortfall95": metrics.expected_shortfall95,
            "expected_shortfall99": metrics.expected_shortfall99,
            "volatility": metrics.volatility,
            "skewness": metrics.skewness,
            "kurtosis": metrics.kurtosis,
            "sharpe_ratio": metrics.sharpe_ratio,
            "max_drawdown": metrics.max_drawdown,
            "beta": metrics.beta,
            "alpha": metrics.alpha,
            "beta_source": metrics.beta_source.value,
        },
        "garch": {
            "current_volatility": float(garch.volatility[-1]),
            "forecast_volatility": garch.forecast,
        },
        "monte_carlo": {
            "days": days,
            "num_paths": mc.num_paths,
            "target_price": mc.target_price,
            "probability_below_target": mc.probabilities[0],
            "ci95": list(mc.confidence_intervals.ci95),
            "ci99": list(mc.confidence_intervals.ci99),
            "expected_price": mc.expected_return,
            "worst_case": mc.worst_case,
            "best_case": mc.best_case,
        },
        "volume_profile": {
            "point_of_control": poc.price_level,
            "value_area_high": poc.value_area_high,
            "value_area_low": poc.value_area_low,
            "levels": len(profile),
        },
    }
    click.echo(json.dumps(report, indent=2))


@cli.command("option-price")
@click.option("--spot", type=float, required=True, help="Underlying price")
@click.option("--strike", type=float, required=True, help="Strike price")
@click.option("--days", type=int, required=True, help="Calendar days to expiry")
@click.option("--vol", type=float, required=True, help="Annualized volatility (0.25 = 25%)")
@click.option("--type", "option_type", type=click.Choice(["call", "put"]), default="call",
              show_default=True)
@click.option("--rate", type=float, default=None, help="Risk-free rate (default: RS_OPTIONS_RISK_FREE_RATE)")
@click.pass_obj
def option_price(settings: Settings, spot: float, strike: float, days: int, vol: float,
                 option_type: str, rate: float | None):
    """Price an option and its Greeks with Black-Scholes."""
    from riskscope.analysis.options import DAYS_PER_YEAR, OptionsAnalyzer

    expiry = days / DAYS_PER_YEAR
    try:
        analyzer = OptionsAnalyzer(rate if rate is not None else settings.options_risk_free_rate)
        price = analyzer.black_scholes(spot, strike, expiry, vol, option_type)
        greeks = analyzer.greeks(spot, strike, expiry, vol, option_type)
    except RiskScopeError as e:
        raise click.ClickException(str(e)) from e

    click.echo(json.dumps({
        "type": option_type,
        "price": price,
        "delta": greeks.delta,
        "gamma": greeks.gamma,
        "theta": greeks.theta,
        "vega": greeks.vega,
        "rho": greeks.rho,
    }, indent=2))


@cli.command("implied-vol")
@click.option("--price", type=float, required=True, help="Observed option price")
@click.option("--spot", type=float, required=True, help="Underlying price")
@click.option("--strike", type=float, required=True, help="Strike price")
@click.option("--days", type=int, required=True, help="Calendar days to expiry")
@click.option("--type", "option_type", type=click.Choice(["call", "put"]), default="call",
              show_default=True)
@click.option("--rate", type=float, default=None, help="Risk-free rate (default: RS_OPTIONS_RISK_FREE_RATE)")
@click.pass_obj
def implied_vol(settings: Settings, price: float, spot: float, strike: float, days: int,
                option_type: str, rate: float | None):
    """Solve for the implied volatility of an observed option price."""
    from riskscope.analysis.options import DAYS_PER_YEAR, OptionsAnalyzer

    try:
        analyzer = OptionsAnalyzer(
            rate if rate is not None else settings.options_risk_free_rate,
            iv_tolerance=settings.iv_tolerance,
            iv_max_iterations=settings.iv_max_iterations,
        )
        result = analyzer.implied_volatility(price, spot, strike, days / DAYS_PER_YEAR, option_type)
    except RiskScopeError as e:
        raise click.ClickException(str(e)) from e

    if not result.converged:
        click.echo(f"Warning: solver stopped ({result.status.value})", err=True)
    click.echo(json.dumps({
        "implied_volatility": result.volatility,
        "status": result.status.value,
        "iterations": result.iterations,
    }, indent=2))


@cli.command("option-chain")
@click.argument("chain_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--spot", type=float, required=True, help="Underlying price")
@click.option("--as-of", "as_of", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Valuation date (default: today)")
@click.option("--rate", type=float, default=None, help="Risk-free rate (default: RS_OPTIONS_RISK_FREE_RATE)")
@click.pass_obj
def option_chain(settings: Settings, chain_path: str, spot: float, as_of, rate: float | None):
    """Implied volatility and Greeks for an option chain CSV, plus a VIX-style index."""
    from datetime import date

    from riskscope.analysis.models import IVStatus
    from riskscope.analysis.options import OptionsAnalyzer
    from riskscope.loaders import load_option_chain_csv

    valuation_date = as_of.date() if as_of is not None else date.today()
    try:
        analyzer = OptionsAnalyzer(
            rate if rate is not None else settings.options_risk_free_rate,
            iv_tolerance=settings.iv_tolerance,
            iv_max_iterations=settings.iv_max_iterations,
        )
        contracts = load_option_chain_csv(chain_path)
        quotes = analyzer.quote_chain(contracts, spot, valuation_date)
    except (RiskScopeError, ValidationError) as e:
        raise click.ClickException(str(e)) from e

    unconverged = sum(1 for q in quotes if q.iv_status is not IVStatus.CONVERGED)
    if unconverged:
        logger.warning("%d of %d quotes did not converge", unconverged, len(quotes))

    click.echo(json.dumps({
        "as_of": valuation_date.isoformat(),
        "vix": analyzer.vix(quotes, settings.vix_strike_spacing, settings.vix_window_days),
        "quotes": [
            {
                "strike": q.strike,
                "expiry": q.expiry.isoformat(),
                "type": q.option_type.value,
                "price": q.price,
                "implied_volatility": q.implied_volatility,
                "status": q.iv_status.value,
                "delta": q.greeks.delta,
                "gamma": q.greeks.gamma,
                "theta": q.greeks.theta,
                "vega": q.greeks.vega,
            }
            for q in quotes
        ],
    }, indent=2))


if __name__ == "__main__":
    cli()
