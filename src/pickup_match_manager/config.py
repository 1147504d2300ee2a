from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from config import ConfigurationSet, config_from_dict, config_from_env, config_from_yaml

from pickup_match_manager.exceptions import ConfigurationError


class AppConfig(Protocol):
    def __getitem__(self, key: str) -> object: ...


_DEFAULTS: dict[str, object] = {
    "match": {
        "pool_size": 8,
        "captain_vote_seconds": 30,
        "format_vote_seconds": 20,
        "duel_seconds": 15,
        "pick_seconds": 30,
        "move_delay_seconds": 60,
        "archive_grace_seconds": 20,
    },
    "settlement": {
        "report_quorum": 3,
        "void_quorum": 4,
    },
    "rating": {
        "k_factor": 32,
        "default_rating": 100,
        "recent_results": 10,
    },
    "storage": {
        "db_path": "~/.config/pickup/matches.db",
    },
}


@dataclass(frozen=True)
class RatingSettings:
    k_factor: float = 32
    default_rating: int = 100
    recent_results: int = 10


@dataclass(frozen=True)
class MatchSettings:
    """Timings and quorums for one match.

    Attributes:
        pool_size: Participants per match; teams are half of this each.
        captain_vote_seconds: Window for the captain ballot.
        format_vote_seconds: Window for the draft-format ballot.
        duel_seconds: Window for each private duel throw.
        pick_seconds: Window for each draft turn before the auto-pick.
        move_delay_seconds: Delay before participants are moved into team voice rooms.
        archive_grace_seconds: Delay between settlement and room deletion.
        report_quorum: Non-captain reports needed to settle a win.
        void_quorum: Total void votes needed to settle as void.
    """

    pool_size: int = 8
    captain_vote_seconds: float = 30
    format_vote_seconds: float = 20
    duel_seconds: float = 15
    pick_seconds: float = 30
    move_delay_seconds: float = 60
    archive_grace_seconds: float = 20
    report_quorum: int = 3
    void_quorum: int = 4
    rating: RatingSettings = field(default_factory=RatingSettings)


def create_config(
    yaml_path: str = "config.yaml",
    env_prefix: str = "PICKUP",
    defaults: dict[str, object] | None = None,
    *,
    overrides: dict[str, object] | None = None,
) -> ConfigurationSet:
    """Create a layered configuration.

    Priority (highest to lowest): explicit overrides > env vars > YAML file > defaults dict.

    Args:
        yaml_path: Path to the YAML config file.
        env_prefix: Prefix for environment variables (``PICKUP__MATCH__PICK_SECONDS``).
        defaults: Default configuration values.
        overrides: Explicit values that win over every other layer.
    """
    if defaults is None:
        defaults = _DEFAULTS

    layers = [
        config_from_env(env_prefix, separator="__", lowercase_keys=True),
        config_from_yaml(yaml_path, read_from_file=True, ignore_missing_paths=True),
        config_from_dict(defaults),
    ]
    if overrides:
        layers.insert(0, config_from_dict(overrides))

    return ConfigurationSet(*layers)


def load_match_settings(cfg: AppConfig | None = None) -> MatchSettings:
    """Read match settings from a layered config.

    Raises:
        ConfigurationError: If a value is missing, not a number, or out of range.
    """
    if cfg is None:
        cfg = create_config()
    try:
        settings = _read_match_settings(cfg)
    except (KeyError, ValueError) as e:
        raise ConfigurationError(f"Invalid match configuration: {e}") from e
    if settings.pool_size < 4 or settings.pool_size % 2:
        raise ConfigurationError(f"match.pool_size must be an even number of at least 4, got {settings.pool_size}")
    if settings.report_quorum < 1 or settings.void_quorum < 1:
        raise ConfigurationError("settlement quorums must be positive")
    return settings


def _read_match_settings(cfg: AppConfig) -> MatchSettings:
    rating = RatingSettings(
        k_factor=float(str(cfg["rating.k_factor"])),
        default_rating=int(str(cfg["rating.default_rating"])),
        recent_results=int(str(cfg["rating.recent_results"])),
    )
    return MatchSettings(
        pool_size=int(str(cfg["match.pool_size"])),
        captain_vote_seconds=float(str(cfg["match.captain_vote_seconds"])),
        format_vote_seconds=float(str(cfg["match.format_vote_seconds"])),
        duel_seconds=float(str(cfg["match.duel_seconds"])),
        pick_seconds=float(str(cfg["match.pick_seconds"])),
        move_delay_seconds=float(str(cfg["match.move_delay_seconds"])),
        archive_grace_seconds=float(str(cfg["match.archive_grace_seconds"])),
        report_quorum=int(str(cfg["settlement.report_quorum"])),
        void_quorum=int(str(cfg["settlement.void_quorum"])),
        rating=rating,
    )


def resolve_db_path(cfg: AppConfig | None = None) -> Path | str:
    if cfg is None:
        cfg = create_config()
    raw = str(cfg["storage.db_path"])
    if raw == ":memory:":
        return raw
    return Path(raw).expanduser()
