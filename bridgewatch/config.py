from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from bridgewatch.bridge_lines import Category

DEFAULT_SOURCE_BASE = "https://bridges.torproject.org/bridges"
TELEGRAM_MAX_CHARS = 4096


def env(name: str, default: str = "", environ: Mapping[str, str] | None = None) -> str:
    source = os.environ if environ is None else environ
    return str(source.get(name, default) or "").strip()


def parse_int(value: str, fallback: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def parse_float(value: str, fallback: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return fallback


@dataclass
class Settings:
    state_dir: Path
    source_base: str = DEFAULT_SOURCE_BASE
    fetch_timeout: int = 20
    telegram_token: str = ""
    telegram_chat_id: str = ""
    chunk_max_chars: int = TELEGRAM_MAX_CHARS
    pacing_seconds: float = 1.0

    @property
    def notifier_configured(self) -> bool:
        return bool(self.telegram_token and self.telegram_chat_id)

    def source_urls(self) -> dict[Category, str]:
        base = self.source_base.rstrip("/")
        urls: dict[Category, str] = {}
        for category in Category:
            url = f"{base}?transport={category.transport}"
            if category.family == "ipv6":
                url += "&ipv6=yes"
            urls[category] = url
        return urls


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    chunk_max_chars = parse_int(env("BRIDGE_WATCH_CHUNK_MAX_CHARS", str(TELEGRAM_MAX_CHARS), environ), TELEGRAM_MAX_CHARS)
    return Settings(
        state_dir=Path(env("BRIDGE_WATCH_STATE_DIR", "config", environ) or "config"),
        source_base=env("BRIDGE_WATCH_SOURCE_BASE", DEFAULT_SOURCE_BASE, environ) or DEFAULT_SOURCE_BASE,
        fetch_timeout=max(1, parse_int(env("BRIDGE_WATCH_FETCH_TIMEOUT", "20", environ), 20)),
        telegram_token=env("TELEGRAM_BOT_TOKEN", "", environ),
        telegram_chat_id=env("TELEGRAM_CHAT_ID", "", environ),
        chunk_max_chars=min(TELEGRAM_MAX_CHARS, max(1, chunk_max_chars)),
        pacing_seconds=max(0.0, parse_float(env("BRIDGE_WATCH_PACING_SECONDS", "1.0", environ), 1.0)),
    )
