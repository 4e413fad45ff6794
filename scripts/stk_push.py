#!/usr/bin/env python3
"""
Trigger an M-Pesa STK push from the terminal, or print the timestamp/password
pair Daraja would receive (--debug).

Credentials come from config/mpesa_config.yml and MPESA_* variables in .env.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv
load_dotenv()

from mpesa_checkout.integrations.clients.real_http.payments import StkPushClient
from mpesa_checkout.utils.config_loader import load_mpesa_config


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


async def run(args: argparse.Namespace) -> int:
    cfg = load_mpesa_config(Path(args.config) if args.config else None)
    client = StkPushClient(cfg)

    if args.debug:
        timestamp = client.get_timestamp()
        password = client.generate_password(timestamp)
        print(json.dumps({
            "timestamp": timestamp,
            "password": password,
            "timestampLength": len(timestamp),
            "passwordLength": len(password),
        }, indent=2))
        return 0

    missing = cfg.missing_credentials()
    if missing:
        print(f"Missing M-Pesa settings: {', '.join(missing)}", file=sys.stderr)
        return 1

    if args.status:
        result = await client.query_status(args.status)
    else:
        if not args.phone or not args.amount or not args.package:
            print("--phone, --amount and --package are required", file=sys.stderr)
            return 1
        result = await client.initiate(args.phone, args.amount, args.package)

    if result.success:
        print(json.dumps(result.provider_payload, indent=2))
        return 0

    print(f"Failed: {result.message}", file=sys.stderr)
    if result.provider_details:
        print(json.dumps(result.provider_details, indent=2, default=str), file=sys.stderr)
    return 1


def main() -> int:
    parser = argparse.ArgumentParser(description="M-Pesa STK push from the command line")
    parser.add_argument("--phone", help="Payer phone, e.g. 0712345678")
    parser.add_argument("--amount", type=float, help="Amount in KES")
    parser.add_argument("--package", help="Package name used as account reference")
    parser.add_argument("--status", metavar="CHECKOUT_REQUEST_ID", help="Query a previous push instead")
    parser.add_argument("--debug", action="store_true", help="Only print timestamp and password")
    parser.add_argument("--config", help="Path to mpesa_config.yml")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    setup_logging(args.verbose)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
