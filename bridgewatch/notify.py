from __future__ import annotations

import html
import json
import time
import urllib.error
import urllib.request
from typing import Any, Callable, Mapping, Sequence

from bridgewatch.bridge_lines import Category
from bridgewatch.config import TELEGRAM_MAX_CHARS
from bridgewatch.errors import NotifyError
from bridgewatch.reconcile import Report

NEW_BRIDGES_TITLE = "🚀 Latest Tor Bridges"
DUPLICATE_BRIDGES_TITLE = "Duplicate Bridges Found"
MALFORMED_BRIDGES_TITLE = "Malformed Bridges Found"
FAILURE_MESSAGE = "❌ <b>Failed to fetch any bridges.</b>\nPlease check logs or try again later."

RequestFn = Callable[[str, dict[str, Any]], dict[str, Any]]


def split_chunks(text: str, max_chars: int = TELEGRAM_MAX_CHARS) -> list[str]:
    payload = str(text or "")
    cap = max(1, int(max_chars or TELEGRAM_MAX_CHARS))
    if len(payload) <= cap:
        return [payload] if payload else []

    chunks: list[str] = []
    cursor = 0
    total = len(payload)
    while cursor < total:
        end = min(total, cursor + cap)
        if end < total:
            # Blank lines separate whole <code> blocks; cutting there keeps tags intact.
            block_index = payload.rfind("\n\n", cursor, end)
            newline_index = payload.rfind("\n", cursor, end)
            if block_index > cursor:
                end = block_index + 2
            elif newline_index > cursor + (cap // 2):
                end = newline_index + 1
        chunks.append(payload[cursor:end])
        cursor = end
    return chunks


def _code_block(line: str) -> str:
    return f"<code>{html.escape(line, quote=False)}</code>\n\n"


def format_grouped(title: str, grouped: Mapping[Category, Sequence[str]]) -> str:
    if not any(grouped.values()):
        return ""
    message = f"<b>{html.escape(title, quote=False)}:</b>\n\n"
    for category, lines in grouped.items():
        if not lines:
            continue
        message += f"<b>{Category(category).label}:</b>\n"
        for line in lines:
            message += _code_block(line)
    return message


def format_malformed(lines: Sequence[str]) -> str:
    if not lines:
        return ""
    return f"<b>{MALFORMED_BRIDGES_TITLE}:</b>\n\n" + "".join(_code_block(line) for line in lines)


class TelegramNotifier:
    """Sends HTML messages to one Telegram chat through the Bot API.

    Long texts are split into chunks of at most ``max_chars`` and sent in
    order. Failures raise ``NotifyError`` and are not retried.
    """

    def __init__(
        self,
        token: str,
        chat_id: str,
        max_chars: int = TELEGRAM_MAX_CHARS,
        timeout: int = 20,
        request: RequestFn | None = None,
    ) -> None:
        self.token = token
        self.chat_id = chat_id
        self.max_chars = max_chars
        self.timeout = timeout
        self._request = request or self.telegram_request

    def telegram_request(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"https://api.telegram.org/bot{self.token}/{method}"
        body = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(
            url=url,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        with urllib.request.urlopen(request, timeout=self.timeout) as response:
            data = response.read().decode("utf-8")
            return json.loads(data)

    def send_message(self, text: str) -> None:
        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        try:
            result = self._request("sendMessage", payload)
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise NotifyError(f"sendMessage failed: {type(exc).__name__}: {exc}") from exc
        if isinstance(result, dict) and result.get("ok") is False:
            raise NotifyError(f"sendMessage rejected: {result.get('description') or 'unknown error'}")

    def notify(self, text: str) -> int:
        chunks = split_chunks(text, self.max_chars)
        for chunk in chunks:
            self.send_message(chunk)
        return len(chunks)

    def notify_failure(self) -> int:
        return self.notify(FAILURE_MESSAGE)


def send_report(
    notifier: TelegramNotifier,
    report: Report,
    pacing_seconds: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    new_text = format_grouped(NEW_BRIDGES_TITLE, report.new_by_category)
    if new_text:
        notifier.notify(new_text)
        if pacing_seconds > 0:
            sleep(pacing_seconds)

    duplicate_text = format_grouped(DUPLICATE_BRIDGES_TITLE, report.duplicate_by_category)
    if duplicate_text:
        notifier.notify(duplicate_text)

    malformed_text = format_malformed(report.malformed)
    if malformed_text:
        notifier.notify(malformed_text)
