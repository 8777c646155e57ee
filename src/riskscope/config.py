from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RS_",
    )

    # Calendar
    trading_days_per_year: int = 252

    # Rates
    sharpe_risk_free_rate: float = 0.02  # annual, used for excess returns
    options_risk_free_rate: float = 0.05

    # GARCH(1,1) parameters (fixed, not fit per series)
    garch_omega: float = 1e-5
    garch_alpha: float = 0.08
    garch_beta: float = 0.91

    # Monte Carlo simulation
    simulation_num_paths: int = 10000
    simulation_chunk_size: int = 2500
    simulation_max_workers: int = 4
    simulation_timeout: float | None = None  # seconds

    # Volume profile
    volume_profile_bins: int = 100
    value_area_pct: float = 0.70

    # Implied volatility solver
    iv_tolerance: float = 1e-6
    iv_max_iterations: int = 100

    # VIX-style index
    vix_window_days: int = 30
    vix_strike_spacing: float = 5.0

    # Logging
    log_dir: str = "logs"
