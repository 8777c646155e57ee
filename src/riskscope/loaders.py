"""Load price bars and option chains from local CSV files for the command line."""

import logging
from pathlib import Path

import pandas as pd

from riskscope.analysis.models import OptionContract, PriceBar
from riskscope.errors import InvalidParameters

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date", "open", "high", "low", "close", "volume")


def bars_from_frame(df: pd.DataFrame) -> list[PriceBar]:
    """Convert an OHLCV DataFrame into chronologically sorted PriceBars.

    Column names are matched case-insensitively. Rows with a missing close
    are dropped; duplicate dates keep the last row.
    """
    df = df.rename(columns={c: str(c).strip().lower() for c in df.columns})
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise InvalidParameters(f"price data is missing columns: {', '.join(missing)}")

    df = df.loc[:, list(REQUIRED_COLUMNS)].copy()
    df["date"] = pd.to_datetime(df["date"]).dt.date

    before = len(df)
    df = df.dropna(subset=["close"])
    df = df.sort_values("date", kind="stable").drop_duplicates(subset="date", keep="last")
    if len(df) != before:
        logger.info("Dropped %d rows (missing close or duplicate date)", before - len(df))

    df["volume"] = df["volume"].fillna(0)
    return [PriceBar(**row) for row in df.to_dict(orient="records")]


def load_bars_csv(path: str | Path) -> list[PriceBar]:
    logger.debug("Reading price bars from %s", path)
    return bars_from_frame(pd.read_csv(path))


CHAIN_COLUMNS = ("strike", "expiry", "option_type", "price")


def contracts_from_frame(df: pd.DataFrame) -> list[OptionContract]:
    """Convert an option-chain DataFrame into OptionContracts.

    ``option_type`` accepts call/put in any case; ``volume`` is optional.
    """
    df = df.rename(columns={c: str(c).strip().lower() for c in df.columns})
    missing = [c for c in CHAIN_COLUMNS if c not in df.columns]
    if missing:
        raise InvalidParameters(f"option chain is missing columns: {', '.join(missing)}")

    df = df.copy()
    df["expiry"] = pd.to_datetime(df["expiry"]).dt.date
    df["option_type"] = df["option_type"].astype(str).str.strip().str.lower()
    if "volume" not in df.columns:
        df["volume"] = 0.0
    df["volume"] = df["volume"].fillna(0)

    columns = [*CHAIN_COLUMNS, "volume"]
    return [OptionContract(**row) for row in df.loc[:, columns].to_dict(orient="records")]


def load_option_chain_csv(path: str | Path) -> list[OptionContract]:
    logger.debug("Reading option chain from %s", path)
    return contracts_from_frame(pd.read_csv(path))
