#!/usr/bin/env python3
"""
Scan one URL with the local GuardNet model and print the result as JSON.

Usage:
  python -m guardnet.tools.scan_url https://example.com/login
  python -m guardnet.tools.scan_url https://example.com --content-file page.html --mode page
  python -m guardnet.tools.scan_url https://example.com --check-gate
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from guardnet.config.settings import get_settings
from guardnet.guardnet_logging import get_logger
from guardnet.scanner.service import ScanMode, ScanService

logger = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Classify a URL as safe or phishing.")
    parser.add_argument("url", help="URL to scan")
    parser.add_argument("--content-file", type=Path, default=None, help="HTML of the page (optional)")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in ScanMode],
        default=ScanMode.POPUP.value,
        help="Deadline profile: popup (10s) or page (15s)",
    )
    parser.add_argument(
        "--check-gate",
        action="store_true",
        help="Only report whether the navigation gate would intercept the URL",
    )
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    service = ScanService.from_settings(get_settings())
    if args.check_gate:
        decision = service.gate.decide(args.url)
        print(json.dumps({
            "url": args.url,
            "intercept": decision.intercept,
            "reason": decision.reason.value,
        }))
        return 0

    content = ""
    if args.content_file is not None:
        content = args.content_file.read_text(encoding="utf-8", errors="ignore")
    try:
        result = await service.scan(args.url, content, ScanMode(args.mode))
    finally:
        await service.close()
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130
    except OSError as e:
        logger.error("scan_url_failed", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
