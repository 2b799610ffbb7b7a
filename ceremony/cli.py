"""
Ceremony CLI - Command-line interface for the engine.

Usage:
    ceremony status                 Show epoch, period and time left
    ceremony flips [short|long]     List flips and whether they decode
"""

import argparse
import asyncio
import logging
import sys


def main():
    """Main CLI entry point."""
    from .config import LOG_LEVEL, NODE_URL

    parser = argparse.ArgumentParser(
        description="Ceremony - Validation Session Engine",
        prog="ceremony",
    )
    parser.add_argument("--url", default=NODE_URL, help="Node JSON-RPC endpoint")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Status command
    subparsers.add_parser("status", help="Show the epoch clock")

    # Flips command
    flips_parser = subparsers.add_parser("flips", help="List flips for a session")
    flips_parser.add_argument(
        "session_type",
        nargs="?",
        choices=["short", "long"],
        default="short",
        help="Session to list flips for",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "status":
        sys.exit(asyncio.run(cmd_status(args)))
    elif args.command == "flips":
        sys.exit(asyncio.run(cmd_flips(args)))
    else:
        parser.print_help()
        sys.exit(1)


async def cmd_status(args) -> int:
    """Print epoch, period and remaining seconds."""
    from .node import NodeClient, RpcError
    from .session.timer import compute_remaining_seconds

    async with NodeClient(args.url) as client:
        try:
            epoch = await client.fetch_epoch()
            timing = await client.fetch_ceremony_intervals()
        except RpcError as e:
            print(f"Error: {e}")
            return 1

    if epoch is None:
        print("Error: node returned no epoch")
        return 1

    print(f"Epoch: {epoch.epoch}")
    print(f"Period: {epoch.current_period.value}")
    if epoch.next_validation:
        print(f"Next validation: {epoch.next_validation.isoformat()}")
    if timing:
        print(f"Short session: {timing.short_session_duration}s")
        print(f"Long session: {timing.long_session_duration}s")
        seconds = compute_remaining_seconds(epoch, timing)
        if seconds is not None:
            print(f"Time left in phase: {seconds}s")
    return 0


async def cmd_flips(args) -> int:
    """List flips with their decode status."""
    from .engine_core import Flip, SessionType
    from .engine_core.flips import decode_flips, reorder_flips
    from .node import NodeClient
    from .session.effects import EffectRunner

    session_type = SessionType(args.session_type)
    async with NodeClient(args.url) as client:
        action = await EffectRunner(client).fetch_flips(session_type, [])

    if action.payload.error:
        print(f"Error: {action.payload.error}")
        return 1

    flips: list[Flip] = reorder_flips(decode_flips(action.payload.data or [], []))
    print(f"{len(flips)} {session_type.value} flip(s)")
    for flip in flips:
        if flip.is_loaded:
            status = f"loaded ({len(flip.pics or [])} pics, {len(flip.orders or [])} orders)"
        elif flip.failed:
            status = "failed"
        else:
            status = "pending"
        extra = " [hidden]" if flip.hidden else ""
        print(f"  {flip.hash}: {status}{extra}")
    return 0


if __name__ == "__main__":
    main()
