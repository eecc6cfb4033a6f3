"""
Configuration schema and loader.

This module defines dataclasses that mirror the expected structure of
the YAML configuration file (`config.yaml`).  A helper function
`load_config()` reads a YAML file from disk and returns an instance
of `Config` populated with reasonable defaults for any missing
fields.

Using dataclasses provides type hints and a clear contract for what
values are expected.  When extending the configuration, add new
fields to the appropriate dataclass and update `load_config()`
accordingly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any
import yaml


@dataclass
class TpSlConfig:
    """Automatic exit thresholds, in pips.

    Attributes
    ----------
    take_profit_pips : float
        Close the position once unrealized pips reach this value.
        ``0`` disables take-profit.
    stop_loss_pips : float
        Close the position once unrealized pips fall to minus this value.
        ``0`` disables stop-loss.

    Both values are stored as absolute values, so ``-20`` and ``20``
    configure the same threshold.
    """

    take_profit_pips: float = 0.0
    stop_loss_pips: float = 0.0

    def __post_init__(self) -> None:
        self.take_profit_pips = abs(float(self.take_profit_pips or 0.0))
        self.stop_loss_pips = abs(float(self.stop_loss_pips or 0.0))

    @property
    def enabled(self) -> bool:
        return self.take_profit_pips > 0 or self.stop_loss_pips > 0


@dataclass
class DataConfig:
    """Data source configuration.

    Attributes
    ----------
    csv_path : str
        CSV file ingested when no saved dataset is given.
    dataset_path : str
        JSON file used to save and restore a normalized dataset.
    max_bars : int
        Number of most recent rows kept from an ingestion.
    """

    csv_path: str = "data/candles.csv"
    dataset_path: str = "state/dataset.json"
    max_bars: int = 20_000


@dataclass
class ReplayConfig:
    """Replay controls.

    Attributes
    ----------
    interval_ms : int
        Autoplay tick interval in milliseconds.
    batch_step : int
        Number of bars moved by a batch step.
    """

    interval_ms: int = 2000
    batch_step: int = 10

    def __post_init__(self) -> None:
        if int(self.interval_ms) <= 0:
            raise ValueError(f"replay.interval_ms must be positive, got {self.interval_ms}")
        if int(self.batch_step) <= 0:
            raise ValueError(f"replay.batch_step must be positive, got {self.batch_step}")
        self.interval_ms = int(self.interval_ms)
        self.batch_step = int(self.batch_step)


@dataclass
class ReportConfig:
    out_dir: str = "results"


@dataclass
class Config:
    """Root configuration for the replay trainer."""

    data: DataConfig = field(default_factory=DataConfig)
    replay: ReplayConfig = field(default_factory=ReplayConfig)
    tp_sl: TpSlConfig = field(default_factory=TpSlConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


def _merge_dict(defaults: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries.

    The values in `override` take precedence over those in `defaults`.
    This helper is used when loading YAML into nested dataclasses.
    """
    result: Dict[str, Any] = defaults.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dict(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str) -> Config:
    """Load a configuration file from the given YAML path.

    Parameters
    ----------
    path : str
        Path to the YAML file.  If the file does not exist the defaults
        are returned.

    Returns
    -------
    Config
        A populated configuration object.  Missing fields are filled with
        sensible defaults defined in the dataclasses.
    """
    file_path = Path(path)
    raw: Dict[str, Any] = {}
    if file_path.exists():
        with file_path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}

    defaults: Dict[str, Any] = {
        'data': {
            'csv_path': "data/candles.csv",
            'dataset_path': "state/dataset.json",
            'max_bars': 20_000,
        },
        'replay': {
            'interval_ms': 2000,
            'batch_step': 10,
        },
        'tp_sl': {
            'take_profit_pips': 0.0,
            'stop_loss_pips': 0.0,
        },
        'report': {
            'out_dir': "results",
        },
    }

    merged = _merge_dict(defaults, raw)

    data_cfg = DataConfig(**merged['data'])
    data_cfg.max_bars = int(data_cfg.max_bars)

    return Config(
        data=data_cfg,
        replay=ReplayConfig(**merged['replay']),
        tp_sl=TpSlConfig(**merged['tp_sl']),
        report=ReportConfig(**merged['report']),
    )
