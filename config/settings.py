import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from data.errors import ConfigurationError


@dataclass(frozen=True)
class WindowConfig:
    width: int = 1280
    height: int = 720
    fps: int = 60
    title: str = "Eye & Cognition Lab"


@dataclass(frozen=True)
class TimingConfig:
    # все значения в мс
    instructions_ms: int = 4000
    inter_stimulus_ms: int = 400
    saccade_timeout_ms: int = 2000
    stroop_timeout_ms: int = 3000
    analysis_delay_ms: int = 0


@dataclass(frozen=True)
class SaccadeConfig:
    min_percent: float = 10.0
    max_percent: float = 90.0
    hit_radius_px: float = 22.0
    reference_width: int = 1280
    reference_height: int = 720


@dataclass(frozen=True)
class StroopConfig:
    palette: tuple = ("red", "blue", "green", "yellow")
    # клавиша -> цвет чернил, горячие клавиши ответа в Stroop
    key_map: tuple = (("r", "red"), ("b", "blue"), ("g", "green"), ("y", "yellow"))

    @property
    def key_to_color(self) -> dict:
        return dict(self.key_map)


@dataclass(frozen=True)
class SessionConfig:
    n_trials: int = 20
    seed: Optional[int] = None
    trimmed_proportion: float = 0.1
    min_valid_samples: int = 5
    max_cv_percent: float = 40.0


@dataclass(frozen=True)
class LabConfig:
    window: WindowConfig = field(default_factory=WindowConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    saccade: SaccadeConfig = field(default_factory=SaccadeConfig)
    stroop: StroopConfig = field(default_factory=StroopConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    results_path: Optional[Path] = None
    export_dir: Optional[Path] = None
    log_level: str = "INFO"


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_path(name: str) -> Optional[Path]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    return Path(raw).expanduser()


def load_settings(analysis_delay_ms: int = 1000) -> LabConfig:
    """
    Собирает LabConfig из значений по умолчанию и переменных окружения COGLAB_*.

    analysis_delay_ms: пауза перед анализом для интерфейса; в headless-режиме передают 0.
    """
    n_trials = _env_int("COGLAB_TRIALS", SessionConfig.n_trials)
    if n_trials is None or n_trials <= 0:
        raise ConfigurationError(f"COGLAB_TRIALS must be positive, got {n_trials}")

    delay = _env_int("COGLAB_ANALYSIS_DELAY_MS", analysis_delay_ms)
    if delay is None or delay < 0:
        raise ConfigurationError(f"COGLAB_ANALYSIS_DELAY_MS must be >= 0, got {delay}")

    return LabConfig(
        timing=TimingConfig(analysis_delay_ms=delay),
        session=SessionConfig(n_trials=n_trials, seed=_env_int("COGLAB_SEED", None)),
        results_path=_env_path("COGLAB_RESULTS_PATH"),
        export_dir=_env_path("COGLAB_EXPORT_DIR"),
        log_level=os.getenv("COGLAB_LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
