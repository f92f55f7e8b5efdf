from __future__ import annotations

import json
from typing import Callable, Sequence

from bridgewatch.bridge_lines import Category
from bridgewatch.cli_style import EXIT_FAILED, EXIT_OK, EXIT_USAGE, StrictArgumentParser, exit_codes_text
from bridgewatch.config import Settings, load_settings
from bridgewatch.errors import BridgeWatchError, StoreCorruptError
from bridgewatch.notify import TelegramNotifier, send_report
from bridgewatch.reconcile import reconcile
from bridgewatch.source import fetch_bridge_lines, read_lines_file
from bridgewatch.store import BridgeStore


def build_parser() -> StrictArgumentParser:
    parser = StrictArgumentParser(
        prog="bridge-watch",
        description="Collect Tor bridge lines, log new ones per category and notify a Telegram chat.",
        epilog=exit_codes_text(),
    )
    sub = parser.add_subparsers(dest="command", required=True, parser_class=StrictArgumentParser)

    run = sub.add_parser("run", help="Fetch, classify and log bridges, then send the Telegram report")
    run.add_argument("--lines-file", default="", help="Read candidate bridge lines from this file instead of fetching")
    run.add_argument("--no-notify", action="store_true", help="Skip Telegram notifications")
    run.add_argument("--json", action="store_true", help="Print the run summary as JSON")

    sub.add_parser("normalize-all", help="Deduplicate and sort every category log")
    return parser


def run_cycle(
    settings: Settings,
    lines_file: str = "",
    notify: bool = True,
    as_json: bool = False,
    notifier: TelegramNotifier | None = None,
    fetch_lines: Callable[[], list[str]] | None = None,
) -> int:
    if notify and notifier is None:
        if not settings.notifier_configured:
            print("[bridge-watch] TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID are required (or pass --no-notify)", flush=True)
            return EXIT_FAILED
        notifier = TelegramNotifier(
            settings.telegram_token,
            settings.telegram_chat_id,
            max_chars=settings.chunk_max_chars,
            timeout=settings.fetch_timeout,
        )

    store = BridgeStore(settings.state_dir)
    existing = store.load_all_raw_identifiers()

    if fetch_lines is not None:
        raw_lines = fetch_lines()
    elif lines_file:
        raw_lines = read_lines_file(lines_file)
    else:
        raw_lines = fetch_bridge_lines(settings.source_urls().values(), timeout=settings.fetch_timeout)

    if not raw_lines:
        print("[bridge-watch] no bridge lines fetched from any source", flush=True)
        if notify and notifier is not None:
            notifier.notify_failure()
        return EXIT_FAILED

    report = reconcile(raw_lines, existing, store)
    summary = report.summary()
    if as_json:
        print(json.dumps(summary, ensure_ascii=False, sort_keys=True))
    else:
        print(
            f"bridges fetched={len(raw_lines)} new={summary['new_total']} "
            f"duplicate={summary['duplicate_total']} malformed={summary['malformed']}"
        )

    if notify and notifier is not None:
        send_report(notifier, report, pacing_seconds=settings.pacing_seconds)
    return EXIT_OK


def normalize_all(settings: Settings) -> int:
    store = BridgeStore(settings.state_dir)
    skipped = 0
    for category in Category:
        path = store.path_for(category)
        existed = path.exists()
        try:
            count = store.normalize(category)
        except StoreCorruptError as exc:
            print(f"[bridge-watch] left {exc.path} untouched: {exc.reason}", flush=True)
            skipped += 1
            continue
        if existed:
            print(f"Sorted and updated {path} with {count} bridges.")
        else:
            print(f"Created {path}")

    if skipped:
        print(f"Bridge files checked; {skipped} corrupt file(s) need manual repair.")
        return EXIT_FAILED
    print("Bridge files checked/updated successfully.")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    try:
        if args.command == "normalize-all":
            return normalize_all(settings)
        return run_cycle(settings, lines_file=args.lines_file, notify=not args.no_notify, as_json=args.json)
    except (BridgeWatchError, OSError) as exc:
        print(f"[bridge-watch] {args.command} failed: {exc}", flush=True)
        return EXIT_FAILED
    except Exception as exc:
        print(f"[bridge-watch] {args.command} failed unexpectedly: {type(exc).__name__}: {exc}", flush=True)
        return EXIT_FAILED


if __name__ == "__main__":
    raise SystemExit(main())
