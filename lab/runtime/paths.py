import os
import sys
from pathlib import Path


APP_NAME = "CognitionLab"


def app_data_dir() -> Path:
    """
    Каталог истории результатов и отчётов.
    COGLAB_DATA_DIR перекрывает платформенный путь.
    """
    override = os.getenv("COGLAB_DATA_DIR", "").strip()
    if override:
        primary = Path(override).expanduser()
        primary.mkdir(parents=True, exist_ok=True)
        return primary

    if sys.platform.startswith("win"):
        base = os.getenv("APPDATA")
        root = Path(base) if base else Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        root = Path.home() / "Library" / "Application Support"
    else:
        root = Path(os.getenv("XDG_DATA_HOME") or Path.home() / ".local" / "share")
    primary = root / APP_NAME
    try:
        primary.mkdir(parents=True, exist_ok=True)
        return primary
    except OSError:
        fallback = Path.cwd() / "data" / "_appdata"
        fallback.mkdir(parents=True, exist_ok=True)
        return fallback


def app_data_path(*parts: str) -> Path:
    return app_data_dir().joinpath(*parts)


def default_results_path() -> Path:
    return app_data_path("test_results.json")


def default_export_dir() -> Path:
    return app_data_path("reports")
