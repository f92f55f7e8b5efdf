from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from bridgewatch.bridge_lines import Category, classify
from bridgewatch.store import BridgeStore


@dataclass
class Report:
    new_by_category: dict[Category, list[str]] = field(default_factory=dict)
    duplicate_by_category: dict[Category, list[str]] = field(default_factory=dict)
    malformed: list[str] = field(default_factory=list)

    @property
    def new_count(self) -> int:
        return sum(len(lines) for lines in self.new_by_category.values())

    @property
    def duplicate_count(self) -> int:
        return sum(len(lines) for lines in self.duplicate_by_category.values())

    @property
    def is_empty(self) -> bool:
        return not (self.new_by_category or self.duplicate_by_category or self.malformed)

    def summary(self) -> dict[str, Any]:
        return {
            "new": {category.value: len(lines) for category, lines in self.new_by_category.items()},
            "duplicate": {category.value: len(lines) for category, lines in self.duplicate_by_category.items()},
            "malformed": len(self.malformed),
            "new_total": self.new_count,
            "duplicate_total": self.duplicate_count,
        }


def reconcile(
    raw_lines: Iterable[str],
    existing_raw: set[str],
    store: BridgeStore,
    now: str | None = None,
) -> Report:
    """Partition fetched lines into new, duplicate and malformed.

    Lines are handled in input order. New lines are appended to their
    category store as they are found. A line repeated within the same batch
    is appended once; later copies are reported as duplicates.
    """
    report = Report()
    added: set[str] = set()

    for line in raw_lines:
        record = classify(line, now=now)
        if record is None:
            report.malformed.append(str(line or "").strip())
            continue

        if record.raw in existing_raw or record.raw in added:
            report.duplicate_by_category.setdefault(record.category, []).append(record.raw)
            continue

        store.append(record.category, record)
        added.add(record.raw)
        report.new_by_category.setdefault(record.category, []).append(record.raw)

    return report
