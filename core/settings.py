# core/settings.py - environment-driven app settings + logging setup

import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

APP_FRIENDLY_NAME = "TradeKit"

STORE_KINDS = ("sqlite", "json", "qsettings", "memory")
DEFAULT_STORE_KIND = "sqlite"
DEFAULT_STORE_TIMEOUT_S = 5.0

_FALSEY = ("0", "", "false", "False", "FALSE", "no", "off")


@dataclass(frozen=True)
class Settings:
    data_dir: str
    store_kind: str = DEFAULT_STORE_KIND
    store_timeout_s: float = DEFAULT_STORE_TIMEOUT_S
    debug: bool = False

    @property
    def presets_dir(self) -> str:
        return os.path.join(self.data_dir, "Presets")

    @property
    def journal_path(self) -> str:
        return os.path.join(self.data_dir, "setup_journal.txt")

    @property
    def debug_log_path(self) -> str:
        return os.path.join(self.data_dir, "debug.log")

    @property
    def db_path(self) -> str:
        return os.path.join(self.data_dir, "tradekit.db")

    @property
    def json_path(self) -> str:
        return os.path.join(self.data_dir, "trade_config.json")

    @property
    def ini_path(self) -> str:
        return os.path.join(self.data_dir, "tradekit.ini")

    def ensure_dirs(self) -> None:
        os.makedirs(self.data_dir, exist_ok=True)
        os.makedirs(self.presets_dir, exist_ok=True)


def default_data_dir() -> str:
    return os.path.join(os.path.expanduser("~"), f".{APP_FRIENDLY_NAME.lower()}")


def load_settings(environ: Optional[Mapping[str, str]] = None,
                  data_dir: Optional[str] = None) -> Settings:
    """
    Build Settings from the environment:
      TRADEKIT_DATA_DIR       writable app data root (default ~/.tradekit)
      TRADEKIT_STORE          sqlite | json | qsettings | memory
      TRADEKIT_STORE_TIMEOUT  seconds to wait on local storage
      TRADEKIT_DEBUG          truthy -> debug log in <data>/debug.log
    An explicit data_dir (e.g. from the command line) wins over the environment.
    """
    env = os.environ if environ is None else environ

    kind = (env.get("TRADEKIT_STORE") or DEFAULT_STORE_KIND).strip().lower()
    if kind not in STORE_KINDS:
        raise ValueError(f"TRADEKIT_STORE must be one of {', '.join(STORE_KINDS)}; got '{kind}'")

    raw_timeout = env.get("TRADEKIT_STORE_TIMEOUT")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_STORE_TIMEOUT_S
    except ValueError:
        raise ValueError(f"TRADEKIT_STORE_TIMEOUT must be a number of seconds; got '{raw_timeout}'")
    if timeout <= 0:
        raise ValueError("TRADEKIT_STORE_TIMEOUT must be positive")

    return Settings(
        data_dir=data_dir or env.get("TRADEKIT_DATA_DIR") or default_data_dir(),
        store_kind=kind,
        store_timeout_s=timeout,
        debug=env.get("TRADEKIT_DEBUG", "0") not in _FALSEY,
    )


def configure_logging(settings: Settings) -> None:
    """
    Warnings to stderr by default. With TRADEKIT_DEBUG set, everything from
    DEBUG up goes to stderr and <data>/debug.log.
    """
    root = logging.getLogger()
    fmt = logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S")

    for h in list(root.handlers):
        if getattr(h, "_tradekit", False):
            root.removeHandler(h)
            h.close()

    stderr = logging.StreamHandler(sys.stderr)
    stderr.setFormatter(fmt)
    stderr._tradekit = True
    root.addHandler(stderr)

    if settings.debug:
        os.makedirs(settings.data_dir, exist_ok=True)
        fh = logging.FileHandler(settings.debug_log_path, encoding="utf-8")
        fh.setFormatter(fmt)
        fh._tradekit = True
        root.addHandler(fh)
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(logging.WARNING)
