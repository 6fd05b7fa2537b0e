"""
Game configuration for the Beijing/Shanghai trading simulation
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DOTENV_PATH = os.path.join(BASE_DIR, ".env")


@dataclass(frozen=True)
class GameConstants:
    """Balance constants (all money in whole yuan)"""
    # Starting values
    starting_cash: int = 2000
    starting_debt: int = 5000
    starting_bank: int = 0
    starting_health: int = 100
    starting_fame: int = 100
    starting_capacity: int = 100
    starting_time: int = 40

    # Limits
    max_health: int = 100
    max_capacity: int = 140
    max_wangba_visits: int = 3
    max_player_name_length: int = 8
    default_player_name: str = "无名小卒"

    # Finance (per turn)
    debt_interest_rate: float = 0.10
    bank_interest_rate: float = 0.01
    debt_penalty_threshold: int = 100_000
    debt_penalty_damage: int = 30

    # Services
    hospital_cost_per_hp: int = 3500
    house_rent_flat_cost: int = 25_000
    house_rent_rich_threshold: int = 30_000
    house_rent_rich_discount: int = 2000
    house_capacity_increase: int = 10
    wangba_entry_cost: int = 15
    wangba_reward_min: int = 1
    wangba_reward_max: int = 10
    wangba_hacking_multiplier: float = 1.5

    # Travel (charged before the turn resolves)
    subway_cost_beijing: int = 2
    subway_cost_shanghai: int = 5
    flight_cost: int = 500

    # Auto-hospitalization
    auto_hospital_health_threshold: int = 85
    auto_hospital_min_time: int = 3
    auto_hospital_days_min: int = 1
    auto_hospital_days_max: int = 2
    auto_hospital_cost_min: int = 1000
    auto_hospital_cost_max: int = 9500  # exclusive
    auto_hospital_heal: int = 10

    # Market
    market_leaveout_normal: int = 3
    market_leaveout_endgame: int = 0
    endgame_leaveout_time: int = 2
    endgame_warning_day: int = 1

    # Event rolls: randInt(modulus) % freq == 0
    commercial_event_modulus: int = 950
    stock_event_modulus: int = 950
    health_event_modulus: int = 1000
    theft_event_modulus: int = 1000
    hacker_event_modulus: int = 1000
    hacker_event_freq: int = 25
    hacker_min_bank: int = 1000
    hacker_rich_threshold: int = 100_000

    # Stock market
    stock_market_enabled: bool = True
    stock_trade_fee_rate: float = 0.005
    stock_history_length: int = 25
    stock_drift_max: float = 0.01

    # Persistence
    save_key: str = "beijing-fushengji-save"
    save_version: str = "1.0.0"


GAME_CONSTANTS = GameConstants()


@dataclass
class AppSettings:
    """Environment-driven settings for the front ends and collaborators"""
    save_path: str = os.path.join(BASE_DIR, "saves", "beijing-fushengji-save.json")
    leaderboard_api_base: str = "https://rank-api.beijingfushengji.xyz"
    leaderboard_timeout: float = 10.0
    ga_measurement_id: Optional[str] = None
    ga_api_secret: Optional[str] = None
    sound_dir: str = os.path.join(BASE_DIR, "assets", "sound")
    log_level: str = "INFO"


def load_settings(dotenv_path: Optional[str] = None) -> AppSettings:
    """Read AppSettings from the environment (after loading .env if present)"""
    load_dotenv(dotenv_path=dotenv_path or DOTENV_PATH, override=False)

    defaults = AppSettings()
    timeout = os.getenv("LEADERBOARD_TIMEOUT")
    return AppSettings(
        save_path=os.getenv("FUSHENGJI_SAVE_PATH", defaults.save_path),
        leaderboard_api_base=os.getenv("LEADERBOARD_API_BASE", defaults.leaderboard_api_base).rstrip("/"),
        leaderboard_timeout=float(timeout) if timeout else defaults.leaderboard_timeout,
        ga_measurement_id=os.getenv("GA_MEASUREMENT_ID") or None,
        ga_api_secret=os.getenv("GA_API_SECRET") or None,
        sound_dir=os.getenv("FUSHENGJI_SOUND_DIR", defaults.sound_dir),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger (front ends only)"""
    root = logging.getLogger()
    if not any(getattr(h, "_fushengji", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        handler._fushengji = True
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
