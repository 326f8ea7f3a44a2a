# Shiptivity — configuration
# Override defaults via config/shiptivity.yaml, environment variables or CLI args.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

CONFIG_PATH = Path(__file__).parent.parent / "config" / "shiptivity.yaml"


@dataclass
class Config:
    """Runtime configuration for the Shiptivity API."""

    # Storage
    db_path: str = "./clients.db"

    # HTTP
    host: str = "127.0.0.1"
    port: int = 3001
    api_secret: str = ""  # empty = mutating routes are open

    # Logging
    log_level: str = "INFO"

    def apply_env(self):
        """Environment variables win over the YAML file."""
        if os.environ.get("SHIPTIVITY_DB"):
            self.db_path = os.environ["SHIPTIVITY_DB"]
        if os.environ.get("SHIPTIVITY_API_SECRET"):
            self.api_secret = os.environ["SHIPTIVITY_API_SECRET"]
        if os.environ.get("SHIPTIVITY_LOG_LEVEL"):
            self.log_level = os.environ["SHIPTIVITY_LOG_LEVEL"]
        self.db_path = str(Path(self.db_path).expanduser())

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            with open(cfg_path, "r") as f:
                data = yaml.safe_load(f) or {}
            cfg = cls(**{k: v for k, v in data.items() if hasattr(cls, k)})
        else:
            cfg = cls()
        cfg.apply_env()
        return cfg
