from pathlib import Path
from dataclasses import dataclass
from typing import Optional
import os
from dotenv import load_dotenv


class ConfigError(ValueError):
    """Invalid value in environment / .env configuration"""


# -------------------------------------------------------------
# Load environment variables from .env
# -------------------------------------------------------------
def _load_dotenv():
    # 1. Try .env in current working directory (dev/project root)
    dev_env = Path.cwd() / ".env"
    if dev_env.exists():
        load_dotenv(dev_env)
    # 2. Fallback to installed version in home folder
    else:
        home_env = Path.home() / ".tpcli" / ".env"
        if home_env.exists():
            load_dotenv(home_env)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default

    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got '{raw}'") from e


# -------------------------------------------------------------
# Settings dataclass
# -------------------------------------------------------------
@dataclass
class Settings:
    app_name: str
    version: str
    base_dir: Path
    data_dir: Path
    logs_dir: Path
    prompt: str
    history_max_entries: int
    output_max_lines: int
    panel_order: str
    tcp_bind: str
    debug_log_file: Optional[Path]
    shutdown_grace_period: int

    def __post_init__(self):
        if self.history_max_entries <= 0:
            raise ConfigError("TPCLI_HISTORY_MAX_ENTRIES must be a positive integer")

        # Ensure directories exist
        for directory in [self.data_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)

# -------------------------------------------------------------
# Global instance (initialized by load_settings)
# -------------------------------------------------------------
settings: Settings = None

def load_settings(reload: bool = False) -> Settings:
    global settings
    if settings is not None and not reload:
        return settings  # already loaded

    _load_dotenv()

    base_dir = Path(os.environ.get("TPCLI_BASE_DIR") or Path(__file__).resolve().parent.parent.parent)
    data_dir = Path(os.environ.get("TPCLI_DATA_DIR") or (base_dir / "data"))
    logs_dir = Path(os.environ.get("TPCLI_LOGS_DIR") or (data_dir / "logs"))
    debug_log = os.environ.get("TPCLI_DEBUG_LOG")

    settings = Settings(
        app_name=os.environ.get("TPCLI_NAME") or "tpcli",
        version=os.environ.get("TPCLI_VERSION") or "0.1.0",
        base_dir=base_dir,
        data_dir=data_dir,
        logs_dir=logs_dir,
        prompt=os.environ.get("TPCLI_PROMPT") or "Enter command>",
        history_max_entries=_env_int("TPCLI_HISTORY_MAX_ENTRIES", 200),
        output_max_lines=_env_int("TPCLI_OUTPUT_MAX_LINES", 10_000),
        panel_order=os.environ.get("TPCLI_PANEL_ORDER") or "oec",
        tcp_bind=os.environ.get("TPCLI_TCP_BIND") or "localhost:6000",
        debug_log_file=Path(debug_log) if debug_log else None,
        shutdown_grace_period=_env_int("TPCLI_SHUTDOWN_GRACE_PERIOD_S", 3),
    )
    return settings

# Initialize global instance immediately
settings = load_settings()
