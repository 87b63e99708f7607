"""Entry point for the ipset refresh agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import warnings
from pathlib import Path
from threading import Event

from ipset_refresh import IPSet, IpsetRefreshError, IpsetRunner, PartialFailureWarning
from ipset_refresh.runner import default_runner

from .config import AgentConfig, load_config
from .registry import SetRegistry
from .watchers import FileEntryWatcher

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    logging.captureWarnings(True)
    # Refreshes already log rejected entries at WARNING.
    warnings.simplefilter("ignore", PartialFailureWarning)


def build_registry(config: AgentConfig) -> SetRegistry:
    runner = IpsetRunner(config.ipset_path) if config.ipset_path else default_runner()
    registry = SetRegistry()
    for set_cfg in config.sets:
        ipset = IPSet(
            set_cfg.name,
            set_cfg.type,
            set_cfg.params,
            runner=runner,
            create=False,
        )
        # Keep current members until the first refresh replaces them.
        ipset.ensure()
        registry.register(ipset)
        LOG.info("Managing ipset %s from %s", set_cfg.name, set_cfg.source)
    return registry


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the ipset refresh agent")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/ipset-refresh/agent.yaml"),
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Refresh every set once and exit",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    try:
        config = load_config(args.config)
        registry = build_registry(config)
    except IpsetRefreshError as exc:
        LOG.error("%s", exc.message_sentence)
        return 1

    stop_event = Event()

    failed = False
    watchers = []
    for set_cfg in config.sets:
        watcher = FileEntryWatcher(
            registry=registry,
            set_name=set_cfg.name,
            path=set_cfg.source,
            interval=set_cfg.interval,
            stop_event=stop_event,
        )
        # Perform an initial poll so sets are loaded immediately
        try:
            watcher.poll()
        except IpsetRefreshError:
            failed = True
            LOG.exception("initial refresh failed for set %s", set_cfg.name)
        watchers.append(watcher)

    if args.once:
        return 1 if failed else 0

    if not watchers:
        LOG.warning("no sets configured; agent will idle")

    for watcher in watchers:
        watcher.start()

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    for watcher in watchers:
        watcher.join()

    LOG.info("ipset refresh agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
