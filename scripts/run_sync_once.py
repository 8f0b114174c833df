#!/usr/bin/env python3
"""
Run one results sync pass outside the web service.

Usage:
  python scripts/run_sync_once.py --config config.json
  python scripts/run_sync_once.py --dry-run
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Ensure `labsync` package resolves when running as `python scripts/...`.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from labsync.config import load_roster_config
from labsync.context import AppContext
from labsync.exceptions import IntegrityViolation
from labsync.logging_config import setup_logging
from labsync.settings import Settings


async def _run(config_path: Path, dry_run: bool) -> int:
    settings = Settings(config_path=str(config_path), scheduler_enabled=False)
    setup_logging(debug=settings.debug)
    roster = load_roster_config(settings.config_path)
    context = AppContext.build(settings, roster)

    await context.startup()
    try:
        summary = await context.reconciler.run_pass(trigger="cli", dry_run=dry_run)
    except IntegrityViolation as err:
        print(
            json.dumps(
                {
                    "status": "integrity_violation",
                    "barcode": err.barcode,
                    "rows_affected": err.rows_affected,
                },
                indent=2,
            )
        )
        return 1
    finally:
        await context.shutdown()

    print(json.dumps({"status": "ok", "dry_run": dry_run, "results": summary}, indent=2))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Run one pending-results sync pass.")
    parser.add_argument("--config", type=Path, default=Path("config.json"), help="Roster JSON file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Query the portal and report classifications without saving anything.",
    )
    args = parser.parse_args()
    return asyncio.run(_run(args.config, args.dry_run))


if __name__ == "__main__":
    raise SystemExit(main())
