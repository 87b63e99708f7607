#!/usr/bin/env python3
"""Validate atomic ipset refresh against the host kernel.

Needs root and the ``ipset`` utility.  A scratch set is created, loaded with
an initial membership and refreshed while a background thread keeps running
``ipset test`` against it.  The check fails if the set was ever reported
missing or if the final membership is wrong.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from threading import Event, Thread
from typing import List

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from ipset_refresh import ExecutionError, IPSet, SetParameters  # noqa: E402

LOG = logging.getLogger(__name__)


class ValidationError(RuntimeError):
    pass


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--name",
        default="ipset-refresh-lab",
        help="Name of the scratch set",
    )
    parser.add_argument(
        "--entries",
        type=int,
        default=5000,
        help="Number of entries loaded per refresh",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args()


def addresses(second_octet: int, count: int) -> List[str]:
    return [f"10.{second_octet}.{i // 256}.{i % 256}" for i in range(count)]


def observe(ipset: IPSet, probe: str, stop: Event, problems: List[str]) -> None:
    polls = 0
    while not stop.is_set():
        try:
            ipset.test(probe)
        except ExecutionError as exc:
            problems.append(str(exc))
        polls += 1
    LOG.info("observer ran %d membership tests", polls)


def check_refresh(name: str, count: int) -> None:
    old = addresses(1, count)
    new = addresses(2, count)

    ipset = IPSet(name, "hash:ip", SetParameters(max_elements=max(count * 2, 65536)))
    try:
        for entry in old:
            ipset.add(entry)

        stop = Event()
        problems: List[str] = []
        observer = Thread(target=observe, args=(ipset, old[0], stop, problems))
        observer.start()
        try:
            result = ipset.refresh(new)
        finally:
            stop.set()
            observer.join()

        if problems:
            raise ValidationError(
                f"observer saw {len(problems)} failures, first: {problems[0]}"
            )
        if not result.ok:
            raise ValidationError(f"refresh reported problems: {result}")
        if ipset.test(old[0]) or not ipset.test(new[-1]):
            raise ValidationError("membership after refresh does not match")
    finally:
        ipset.destroy()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    check_refresh(args.name, args.entries)
    print("ipset refresh validation succeeded")


if __name__ == "__main__":
    try:
        main()
    except (ValidationError, ExecutionError) as exc:
        print(f"[validate_refresh] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
