import argparse
import sys

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def exit_codes_text() -> str:
    return (
        "Exit codes: "
        "0=cycle completed, "
        "1=no bridges fetched, a store could not be read or written, or Telegram failed, "
        "2=invalid usage/options"
    )


class StrictArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        if message.startswith("unrecognized arguments:"):
            unknown = message.split(":", 1)[1].strip()
            print(f"{self.prog}: unknown option: {unknown}", file=sys.stderr)
        elif message.startswith("the following arguments are required:"):
            required = message.split(":", 1)[1].strip()
            print(f"{self.prog}: missing command or argument: {required}", file=sys.stderr)
        elif "invalid choice:" in message:
            print(f"{self.prog}: unknown command, expected one of: run, normalize-all", file=sys.stderr)
        else:
            print(f"{self.prog}: {message}", file=sys.stderr)
        self.print_usage(sys.stderr)
        raise SystemExit(EXIT_USAGE)
