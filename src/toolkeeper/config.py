from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .urls import root_url

APP = "toolkeeper"


def config_dir() -> Path:
    """
    Cross-platform config directory:
      - Windows: %APPDATA%\\toolkeeper
      - macOS/Linux: $XDG_CONFIG_HOME/toolkeeper or ~/.config/toolkeeper
    """
    if os.name == "nt":
        base = os.environ.get("APPDATA") or str(Path.home())
        return Path(base) / APP
    return Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))) / APP


def config_path() -> Path:
    return config_dir() / "config.json"


@dataclass
class Settings:
    backend_url: str = "http://localhost:7420"
    token: str = ""
    timeout_s: int = 30
    registry_search_limit: int = 20
    registry_page_size: int = 100   # the registry drops old versions, so ask for plenty
    max_registry_pages: int = 50
    log_level: str = "INFO"

    @staticmethod
    def load(path: Optional[Path] = None) -> "Settings":
        path = path or config_path()

        data: dict = {}

        if path.exists():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                data = {}

        s = Settings(
            backend_url=str(data.get("backend_url", Settings.backend_url)),
            token=str(data.get("token", Settings.token)),
            timeout_s=int(data.get("timeout_s", Settings.timeout_s)),
            registry_search_limit=int(data.get("registry_search_limit", Settings.registry_search_limit)),
            registry_page_size=int(data.get("registry_page_size", Settings.registry_page_size)),
            max_registry_pages=max(1, int(data.get("max_registry_pages", Settings.max_registry_pages))),
            log_level=str(data.get("log_level", Settings.log_level)),
        )

        # Environment overrides (highest priority)
        s.backend_url = os.environ.get("TOOLKEEPER_BACKEND_URL", s.backend_url)
        s.token = os.environ.get("TOOLKEEPER_TOKEN", s.token)
        s.log_level = os.environ.get("TOOLKEEPER_LOG_LEVEL", s.log_level).upper()
        pages = os.environ.get("TOOLKEEPER_MAX_REGISTRY_PAGES")
        if pages and pages.isdigit() and int(pages) >= 1:
            s.max_registry_pages = int(pages)

        s.backend_url = root_url(s.backend_url)

        return s

    def save(self, path: Optional[Path] = None) -> Path:
        path = path or config_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        payload = {
            "backend_url": self.backend_url,
            "token": self.token,
            "timeout_s": self.timeout_s,
            "registry_search_limit": self.registry_search_limit,
            "registry_page_size": self.registry_page_size,
            "max_registry_pages": self.max_registry_pages,
            "log_level": self.log_level,
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return path
