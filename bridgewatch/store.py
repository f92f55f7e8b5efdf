from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from bridgewatch.bridge_lines import BridgeRecord, Category
from bridgewatch.errors import StoreCorruptError, StoreWriteError


class BridgeStore:
    """Per-category JSON logs of every bridge line ever seen.

    Each category lives in ``<state_dir>/<category>.json`` as
    ``{"bridges": [...]}``. Reads for lookup and append are forgiving: a
    missing file is an empty store, and a corrupt one is reported and treated
    as empty so a single bad file never blocks the rest. ``normalize`` refuses
    to rewrite a corrupt file and raises ``StoreCorruptError`` instead. Writes
    raise ``StoreWriteError``.

    There is no locking; two concurrent runs against the same directory can
    lose each other's appends.
    """

    def __init__(self, state_dir: str | Path) -> None:
        self.state_dir = Path(state_dir)

    def path_for(self, category: Category) -> Path:
        return self.state_dir / f"{Category(category).value}.json"

    def _read(self, category: Category) -> list[Any]:
        path = self.path_for(category)
        if not path.exists():
            return []
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StoreCorruptError(str(path), f"unreadable: {exc}") from exc

        bridges = payload.get("bridges") if isinstance(payload, dict) else None
        if not isinstance(bridges, list):
            raise StoreCorruptError(str(path), "no bridges list")
        return bridges

    def load_records(self, category: Category) -> list[dict[str, Any]]:
        try:
            return self._read(category)
        except StoreCorruptError as exc:
            print(f"[bridge-watch] failed to read {exc.path}, treating as empty: {exc.reason}", flush=True)
            return []

    def load_bridge_records(self, category: Category) -> list[BridgeRecord]:
        records: list[BridgeRecord] = []
        for item in self.load_records(category):
            record = BridgeRecord.from_dict(item)
            if record is not None:
                records.append(record)
        return records

    def load_all_raw_identifiers(self) -> set[str]:
        seen: set[str] = set()
        for category in Category:
            for item in self.load_records(category):
                if isinstance(item, dict) and isinstance(item.get("bridge"), str) and item["bridge"]:
                    seen.add(item["bridge"])
        return seen

    def _write(self, category: Category, bridges: list[dict[str, Any]]) -> None:
        path = self.path_for(category)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps({"bridges": bridges}, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            raise StoreWriteError(f"failed to write {path}: {exc}") from exc

    def append(self, category: Category, record: BridgeRecord) -> None:
        bridges = list(self.load_records(category))
        bridges.append(record.to_dict())
        self._write(category, bridges)

    def normalize(self, category: Category) -> int:
        """Deduplicate by bridge line and sort ascending; returns the count.

        Entries without a string ``bridge`` are dropped. On duplicates the
        last occurrence wins. A corrupt file is left untouched and
        ``StoreCorruptError`` is raised.
        """
        unique: dict[str, dict[str, Any]] = {}
        for item in self._read(category):
            if not isinstance(item, dict) or not isinstance(item.get("bridge"), str):
                continue
            key = item["bridge"].strip()
            if not key:
                continue
            unique[key] = {**item, "bridge": key}

        bridges = [unique[key] for key in sorted(unique)]
        self._write(category, bridges)
        return len(bridges)

    def normalize_all(self) -> dict[Category, int]:
        return {category: self.normalize(category) for category in Category}
