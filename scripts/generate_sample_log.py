"""
generate_sample_log.py

Writes a synthetic delimited access log for testing and demos.

Produces `--lines` requests spread over `--minutes` minutes starting at
`--start`, drawn from a small set of IPs, pages and user agents with mostly
200 responses. Optionally:
- injects a burst of 404/500 responses from one IP (a suspicious client)
- mixes in malformed lines to exercise the skip-and-count path

The output is deterministic for a given --seed.

Example:
  python scripts/generate_sample_log.py \
    --out examples/access.log \
    --lines 500 \
    --minutes 15 \
    --attacker 203.0.113.9 \
    --attack-requests 12 \
    --malformed 5 \
    --seed 42
"""

from __future__ import annotations

import argparse
import random
from datetime import datetime, timedelta
from pathlib import Path
from typing import List


TS_FORMAT = "%Y-%m-%d %H:%M:%S"

IPS = [f"192.168.1.{i}" for i in range(1, 21)]
PAGES = ["/index.html", "/about.html", "/contact.html", "/products.html", "/blog.html", "/login"]
AGENTS = ["Chrome/91", "Firefox/89", "Safari/14", "Edge/91", "curl/7.68"]
# mostly successes, some redirects and client/server errors
STATUSES = [200] * 14 + [301, 304, 404, 500, 403]
MALFORMED = [
    "garbage line without delimiters",
    "10.0.0.1,2025-02-25 12:00:00,/index.html,Chrome/91",
    "10.0.0.1,2025-02-25 12:00:00,/index.html,Chrome/91,OK",
    "10.0.0.1,,/index.html,Chrome/91,200",
]


def build_lines(
    *,
    n: int,
    start: datetime,
    minutes: int,
    attacker: str = "",
    attack_requests: int = 0,
    malformed: int = 0,
    rng: random.Random,
) -> List[str]:
    span = max(minutes * 60, 1)
    offsets = sorted(rng.randrange(span) for _ in range(n))

    lines = []
    for off in offsets:
        ts = (start + timedelta(seconds=off)).strftime(TS_FORMAT)
        lines.append(
            ",".join([rng.choice(IPS), ts, rng.choice(PAGES), rng.choice(AGENTS), str(rng.choice(STATUSES))])
        )

    if attacker and attack_requests:
        for i in range(attack_requests):
            ts = (start + timedelta(seconds=(i * 7) % span)).strftime(TS_FORMAT)
            status = 404 if i % 3 else 500
            lines.insert(rng.randrange(len(lines) + 1), f"{attacker},{ts},/admin,curl/7.68,{status}")

    for _ in range(malformed):
        lines.insert(rng.randrange(len(lines) + 1), rng.choice(MALFORMED))

    return lines


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--out", required=True, help="Output log file")
    ap.add_argument("--lines", type=int, default=200, help="Number of normal requests (default: 200)")
    ap.add_argument("--start", default="2025-02-25 12:00:00", help="First timestamp (YYYY-MM-DD HH:MM:SS)")
    ap.add_argument("--minutes", type=int, default=10, help="Time span in minutes (default: 10)")
    ap.add_argument("--attacker", default="", help="IP that produces a burst of 404/500 responses")
    ap.add_argument("--attack-requests", type=int, default=0, help="Failing requests from --attacker")
    ap.add_argument("--malformed", type=int, default=0, help="Malformed lines to mix in")
    ap.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = ap.parse_args()

    if args.lines < 0 or args.minutes < 1 or args.attack_requests < 0 or args.malformed < 0:
        raise ValueError("--lines, --attack-requests and --malformed must be >= 0, --minutes >= 1")

    lines = build_lines(
        n=args.lines,
        start=datetime.strptime(args.start, TS_FORMAT),
        minutes=args.minutes,
        attacker=args.attacker,
        attack_requests=args.attack_requests,
        malformed=args.malformed,
        rng=random.Random(args.seed),
    )

    Path(args.out).parent.mkdir(parents=True, exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")

    print("=== Sample Log Summary ===")
    print("Requests:", args.lines)
    print("Attacker:", args.attacker or "-", "failing requests:", args.attack_requests)
    print("Malformed lines:", args.malformed)
    print("Output file:", args.out)


if __name__ == "__main__":
    main()
