from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

TRANSPORTS = ("obfs4", "webtunnel")

_ADDRESS = r"(?P<address>\[[a-fA-F0-9:]+\]|\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})"
_FINGERPRINT = r"(?P<fingerprint>[a-fA-F0-9]{40})"

OBFS4_RE = re.compile(
    r"(?P<transport>obfs4)\s+" + _ADDRESS + r":(?P<port>\d+)\s+" + _FINGERPRINT
    + r"\s+cert=(?P<cert>\S+)\s+iat-mode=(?P<iat_mode>[0-9]+)"
)
WEBTUNNEL_RE = re.compile(
    r"(?P<transport>webtunnel)\s+" + _ADDRESS + r":(?P<port>\d+)\s+" + _FINGERPRINT
    + r"\s+url=(?P<url>\S+)\s+ver=(?P<ver>\S+)"
)
GRAMMARS = {"obfs4": OBFS4_RE, "webtunnel": WEBTUNNEL_RE}


class Category(str, Enum):
    OBFS4_IPV4 = "obfs4_ipv4"
    OBFS4_IPV6 = "obfs4_ipv6"
    WEBTUNNEL_IPV4 = "webtunnel_ipv4"
    WEBTUNNEL_IPV6 = "webtunnel_ipv6"

    @property
    def transport(self) -> str:
        return self.value.split("_", 1)[0]

    @property
    def family(self) -> str:
        return self.value.split("_", 1)[1]

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").upper()

    @classmethod
    def from_parts(cls, transport: str, family: str) -> "Category":
        return cls(f"{transport}_{family}")


@dataclass(frozen=True)
class BridgeRecord:
    raw: str
    category: Category
    address: str
    port: int
    fingerprint: str
    added_at: str
    cert: str = ""
    iat_mode: str = ""
    url: str = ""
    ver: str = ""

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "bridge": self.raw,
            "ip": self.address,
            "port": str(self.port),
            "fingerprint": self.fingerprint,
        }
        if self.category.transport == "obfs4":
            payload["cert"] = self.cert
            payload["iat-mode"] = self.iat_mode
        else:
            payload["url"] = self.url
            payload["ver"] = self.ver
        payload["addedAt"] = self.added_at
        return payload

    @classmethod
    def from_dict(cls, payload: Any) -> "BridgeRecord | None":
        """Read back a persisted entry; ``None`` when it is not a usable record."""
        if not isinstance(payload, dict):
            return None
        raw = str(payload.get("bridge") or "").strip()
        address = str(payload.get("ip") or "").strip()
        if not raw or not address:
            return None
        transport = raw.split(None, 1)[0]
        if transport not in TRANSPORTS:
            return None
        try:
            port = int(payload.get("port"))
        except (TypeError, ValueError):
            return None

        family = "ipv6" if is_ipv6(address) else "ipv4"
        return cls(
            raw=raw,
            category=Category.from_parts(transport, family),
            address=address,
            port=port,
            fingerprint=str(payload.get("fingerprint") or ""),
            added_at=str(payload.get("addedAt") or ""),
            cert=str(payload.get("cert") or ""),
            iat_mode=str(payload.get("iat-mode") or ""),
            url=str(payload.get("url") or ""),
            ver=str(payload.get("ver") or ""),
        )


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def is_ipv6(address: str) -> bool:
    # Heuristic only: any colon after bracket stripping counts as IPv6.
    return ":" in address


def classify(line: Any, now: str | None = None) -> BridgeRecord | None:
    text = str(line or "").strip()
    if not text:
        return None

    transport = text.split(None, 1)[0]
    grammar = GRAMMARS.get(transport)
    if grammar is None:
        return None

    match = grammar.fullmatch(text)
    if not match:
        return None

    port = int(match.group("port"))
    if not 1 <= port <= 65535:
        return None

    address = match.group("address").strip("[]")
    family = "ipv6" if is_ipv6(address) else "ipv4"
    fields = match.groupdict()
    return BridgeRecord(
        raw=text,
        category=Category.from_parts(transport, family),
        address=address,
        port=port,
        fingerprint=fields["fingerprint"],
        added_at=now or utc_now(),
        cert=fields.get("cert") or "",
        iat_mode=fields.get("iat_mode") or "",
        url=fields.get("url") or "",
        ver=fields.get("ver") or "",
    )
