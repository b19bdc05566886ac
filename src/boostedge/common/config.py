"""Application configuration loading and models."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class ExchangeConfig(BaseModel):
    """Betfair exchange API configuration."""

    betting_url: str = "https://api.betfair.com/exchange/betting/json-rpc/v1"

    # Authentication (session acquisition is handled outside this package)
    app_key: str = ""
    session_token: str = ""

    # Request settings
    timeout_seconds: int = 30
    rate_limit_per_second: float = 5.0
    max_retries: int = 3
    retry_backoff_base: float = 1.0  # Base seconds for exponential backoff

    # Order-book batching
    book_chunk_size: int = 20
    book_concurrency: int = 2
    book_backoff_base_seconds: float = 0.2
    book_backoff_max_seconds: float = 2.0
    best_prices_depth: int = 1
    virtualise: bool = True


class ResolutionConfig(BaseModel):
    """Team/market resolution configuration."""

    horizon_hours: float = 72.0
    lookback_hours: float = 2.0
    page_size: int = 200
    max_dropped_hint: int = 8
    cache_candidates: bool = True
    extra_b_team_whitelist: list[str] = Field(default_factory=list)

    # Market type codes queried per resolver
    match_result_code: str = "MATCH_ODDS"
    match_result_btts_code: str = "MATCH_ODDS_AND_BOTH_TEAMS_TO_SCORE"
    win_to_nil_codes: list[str] = Field(
        default_factory=lambda: ["TEAM_A_WIN_TO_NIL", "TEAM_B_WIN_TO_NIL"]
    )


class AliasConfig(BaseModel):
    """Alias source configuration.

    Paths are resolved relative to the working directory; unset paths fall
    back to the bundled ``configs/aliases`` directory.
    """

    master_path: str | None = None
    overlay_dir: str | None = None
    synonyms_path: str | None = None
    include_synonyms: bool = False
    bookmaker: str | None = None  # Load only this overlay; None loads all


class PricingConfig(BaseModel):
    """Value filter configuration."""

    threshold: float = 1.05
    min_liquidity: float = 20.0
    max_spread_pct: float = 20.0
    # Per bet-type overrides, e.g. {"FOOTBALL_MULTI_AND": {"threshold": 1.10}}
    per_bet_type: dict[str, dict[str, float]] = Field(default_factory=dict)


class PipelineConfig(BaseModel):
    """Batch pipeline configuration."""

    offer_concurrency: int = 4
    skip_log_path: str = "logs/skip-{date}.jsonl"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"  # "json" or "console"
    log_file: str | None = None


class AppConfig(BaseModel):
    """Root application configuration."""

    environment: str = Field(default="dev", description="Environment name (dev/prod)")
    exchange: ExchangeConfig = Field(default_factory=ExchangeConfig)
    resolution: ResolutionConfig = Field(default_factory=ResolutionConfig)
    aliases: AliasConfig = Field(default_factory=AliasConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# env var -> (section, key, type)
ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "BETFAIR_APP_KEY": ("exchange", "app_key", str),
    "BETFAIR_SESSION_TOKEN": ("exchange", "session_token", str),
    "BETFAIR_BETTING_URL": ("exchange", "betting_url", str),
    "EV_MAX_FUTURE_HOURS": ("resolution", "horizon_hours", float),
    "EV_BF_BOOK_CHUNK": ("exchange", "book_chunk_size", int),
    "EV_BF_BOOK_CONCURRENCY": ("exchange", "book_concurrency", int),
}


def load_config(config_path: str | Path) -> AppConfig:
    """Load a YAML config file, applying ``ENV_OVERRIDES`` on top.

    A ``.env`` file in the working directory is read first; it never
    replaces variables already set in the process environment. Exchange
    credentials normally arrive this way rather than from YAML.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Validated AppConfig.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        pydantic.ValidationError: If a value has the wrong type.
    """
    load_dotenv()

    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    _apply_env_overrides(raw, os.environ)
    return AppConfig.model_validate(raw)


def _apply_env_overrides(raw: dict[str, Any], environ: Mapping[str, str]) -> None:
    for var, (section, key, cast) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            # "exchange:" with no body loads as None
            raw[section] = raw.get(section) or {}
            raw[section][key] = cast(value)
