from __future__ import annotations

import http.client
import re
import urllib.error
import urllib.request
from pathlib import Path
from typing import Callable, Iterable

from bs4 import BeautifulSoup

from bridgewatch.errors import FetchError

REQ_HEADERS = {
    "User-Agent": "bridge-watch/0.1 (+https://bridges.torproject.org/)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

FALLBACK_PATTERNS = (
    re.compile(r"obfs4 \S+:\d+ \w+ cert=\S+ iat-mode=\d"),
    re.compile(r"webtunnel \S+:\d+ \w+ url=\S+ ver=\S+"),
)


def _add_unique(lines: list[str], seen: set[str], candidate: str) -> None:
    text = candidate.strip()
    if text and text not in seen:
        seen.add(text)
        lines.append(text)


def extract_bridge_lines(html_text: str) -> list[str]:
    soup = BeautifulSoup(html_text or "", "html.parser")
    lines: list[str] = []
    seen: set[str] = set()
    for node in soup.select("pre.bridge-line"):
        _add_unique(lines, seen, node.get_text())
    if lines:
        return lines

    body = soup.body if soup.body is not None else soup
    page_text = body.get_text()
    for pattern in FALLBACK_PATTERNS:
        for match in pattern.finditer(page_text):
            _add_unique(lines, seen, match.group(0))
    return lines


def fetch_page(url: str, timeout: int = 20) -> str:
    try:
        req = urllib.request.Request(url, headers=REQ_HEADERS, method="GET")
        with urllib.request.urlopen(req, timeout=timeout) as response:
            charset = response.headers.get_content_charset() or "utf-8"
            return response.read().decode(charset, errors="ignore")
    except urllib.error.HTTPError as exc:
        raise FetchError(url, f"HTTP {exc.code} {exc.reason}") from exc
    except (urllib.error.URLError, http.client.HTTPException, OSError, LookupError, ValueError) as exc:
        raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc


def fetch_bridge_lines(
    urls: Iterable[str],
    timeout: int = 20,
    fetch: Callable[[str, int], str] = fetch_page,
) -> list[str]:
    collected: list[str] = []
    for url in urls:
        try:
            lines = extract_bridge_lines(fetch(url, timeout))
        except FetchError as exc:
            print(f"[bridge-watch] fetch failed {exc}", flush=True)
            continue
        except Exception as exc:
            print(f"[bridge-watch] fetch failed {url}: {type(exc).__name__}: {exc}", flush=True)
            continue
        if not lines:
            print(f"[bridge-watch] no bridge lines found at {url}", flush=True)
        collected.extend(lines)
    return collected


def read_lines_file(path: str | Path) -> list[str]:
    text = Path(path).read_text(encoding="utf-8")
    return [line.strip() for line in text.splitlines() if line.strip()]
