from __future__ import annotations

import argparse
import logging

from .config import SyncSettings
from .errors import DiscoveryInitError
from .logging import configure_logging
from .orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Thermal Recording Sync - camera recording downloader")
    parser.add_argument("--print-config", action="store_true", help="Print resolved configuration and exit.")
    parser.add_argument("--once", action="store_true", help="Run a single discovery/transfer cycle and exit.")
    parser.add_argument("--max-cycles", type=int, default=None, metavar="N", help="Stop after N cycles.")
    return parser


def run(argv: list[str] | None = None, cfg: SyncSettings | None = None) -> int:
    """
    Sync agent entrypoint.

    Exit codes: 0 clean stop, 1 unexpected crash, 2 discovery backend unavailable.
    """
    try:
        args = build_parser().parse_args(argv)

        # Load settings from environment / .env
        cfg = cfg or SyncSettings()

        # Setup logging using configured level
        configure_logging(cfg.log_level)

        logger.info("Sync agent starting")
        logger.info(
            "Resolved config: service=%s recordings_dir=%s discovery_timeout=%ss http_timeout=%ss interval=%ss",
            cfg.browse_type, cfg.recordings_dir, cfg.discovery_timeout_sec,
            cfg.http_timeout_sec, cfg.cycle_interval_sec,
        )

        if args.print_config:
            print(cfg.model_dump())
            return 0

        max_cycles = 1 if args.once else args.max_cycles
        orchestrator = SyncOrchestrator(cfg)
        cycles = orchestrator.run_forever(max_cycles=max_cycles)
        logger.info("Sync agent stopped after %d cycles", cycles)
        return 0

    except DiscoveryInitError as e:
        logger.critical("Cannot discover devices, giving up: %s", e)
        return 2

    except KeyboardInterrupt:
        logger.info("Sync agent interrupted; shutting down")
        return 0

    except Exception:
        # Log unexpected exceptions so the agent is diagnosable.
        logger.exception("Sync agent crashed due to an unexpected error")
        if cfg is not None and (cfg.debug or cfg.log_level.upper() == "DEBUG"):
            raise
        return 1


if __name__ == "__main__":
    raise SystemExit(run())
