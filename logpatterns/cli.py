"""Command line tool: read log lines from stdin and summarize them by pattern."""

from __future__ import annotations

import argparse
import sys
import time
from datetime import datetime
from typing import Optional, Sequence

from .level import Level
from .multiline import LogEntry
from .parser import LogCounter, Parser

BAR_WIDTH = 20

_RESET = "\033[0m"
_GREY = "\033[37m"
_COLORS = {
    Level.CRITICAL: "\033[31m",
    Level.ERROR: "\033[31m",
    Level.WARNING: "\033[33m",
    Level.INFO: "\033[32m",
}


def order(counters: list[LogCounter]) -> list[LogCounter]:
    """Sort in place by level (most severe first), then by count descending."""
    counters.sort(key=lambda c: (c.level, -c.messages))
    return counters


def colorize(level: Level, text: str) -> str:
    """Wrap text in the terminal colour for the level."""
    return f"{_COLORS.get(level, _GREY)}{text}{_RESET}"


def render(
    counters: Sequence[LogCounter],
    screen_width: int,
    max_lines_per_message: int,
    duration: float,
) -> str:
    """Format the counters as a bar chart with samples and a per-level summary."""
    grand_total = sum(c.messages for c in counters)
    sampled = [c for c in counters if c.sample]
    total = sum(c.messages for c in sampled)
    most = max((c.messages for c in sampled), default=0)
    line_width = screen_width - BAR_WIDTH
    num_width = len(str(most))

    out: list[str] = []
    for counter in sampled:
        w = counter.messages * BAR_WIDTH // most
        bar = "▇" * (w + 1) + " " * (BAR_WIDTH - w)
        percent = int(counter.messages * 100 / total)
        prefix = colorize(
            counter.level, f"{bar} {counter.messages:>{num_width}d} ({percent:2d}%) "
        )
        indent = " " * len(prefix.encode("utf-8"))
        sample = ""
        for i, line in enumerate(counter.sample.split("\n")):
            if len(line) > line_width:
                line = line[:line_width] + "..."
            sample += line + "\n" + indent
            if i > max_lines_per_message:
                sample += "...\n"
                break
        out.append(f"{prefix}{sample.rstrip(chr(10) + ' ')}\n")

    by_level: dict[Level, int] = {}
    for counter in counters:
        by_level[counter.level] = by_level.get(counter.level, 0) + counter.messages

    out.append("\n")
    out.append(f"{grand_total} messages processed in {duration:.3f} seconds:\n")
    out.extend(f"  {level}: {count}\n" for level, count in by_level.items())
    out.append("\n")
    return "".join(out)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Read stdin, group the log messages and print a summary."""
    args = argparse.ArgumentParser(description="Summarize log lines read from stdin.")
    args.add_argument("-w", type=int, default=120, dest="width", help="terminal width")
    args.add_argument(
        "-l", type=int, default=100, dest="max_lines", help="max lines per message"
    )
    options = args.parse_args(argv)

    parser = Parser(multiline_timeout=1.0)
    started = time.monotonic()
    try:
        for line in sys.stdin:
            # A trailing line without a newline is not a complete line.
            if not line.endswith("\n"):
                break
            parser.add(
                LogEntry(timestamp=datetime.now(), content=line[:-1], level=Level.UNKNOWN)
            )
    except (OSError, UnicodeDecodeError) as exc:
        print(exc)
    duration = time.monotonic() - started
    parser.stop()

    counters = order(parser.get_counters())
    sys.stdout.write(render(counters, options.width, options.max_lines, duration))
    return 0


if __name__ == "__main__":
    sys.exit(main())