from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "monitor.yaml"


@dataclass(frozen=True)
class MonitorConfig:
    raw: Dict[str, Any]

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.raw.get(name, {}) if isinstance(self.raw, dict) else {}
        return section if isinstance(section, dict) else {}

    def timezone(self) -> str:
        return str(self._section("time").get("timezone", "Asia/Jakarta"))

    def display_format(self) -> str:
        return str(self._section("time").get("display_format", "%d/%m/%Y %H:%M:%S"))

    def tick_interval_seconds(self) -> float:
        return float(self._section("live").get("tick_interval_seconds", 1))

    def send_timeout_seconds(self) -> float:
        return float(self._section("live").get("send_timeout_seconds", 2))

    def create_tables_on_startup(self) -> bool:
        return bool(self._section("storage").get("create_tables_on_startup", True))

    def cors_allow_origins(self) -> List[str]:
        origins = self._section("cors").get("allow_origins", ["*"])
        if isinstance(origins, str):
            return [origins]
        return [str(o) for o in origins]

    def server_host(self) -> str:
        # HOST env wins, like the sensor deployment scripts expect.
        return os.getenv("HOST") or str(self._section("server").get("host", "0.0.0.0"))

    def server_port(self) -> int:
        return int(os.getenv("PORT") or self._section("server").get("port", 3001))


def scheduler_enabled() -> bool:
    return os.getenv("SCHEDULER_ENABLED", "1").lower() not in ("0", "false", "no", "off")


_cached: Optional[MonitorConfig] = None


def load_monitor_config(path: Path | None = None) -> MonitorConfig:
    global _cached
    if path is None and _cached is not None:
        return _cached

    env_path = os.getenv("RAIN_MONITOR_CONFIG")
    p = path or (Path(env_path) if env_path else DEFAULT_CONFIG_PATH)
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    cfg = MonitorConfig(raw=data)
    if path is None:
        _cached = cfg
    return cfg
