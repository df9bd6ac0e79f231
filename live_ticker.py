#!/usr/bin/env python3
"""
Live Ticker CLI

Runs a live poll: fetches the feed, scores every entrant with provisional
bonus and auto-subs, and prints the standings plus anything that changed
since the previous poll. Ticker state is kept in data/ticker_state.json so
consecutive runs diff against each other.

With --watch the script keeps running and polls only inside kickoff windows.

Usage:
    python live_ticker.py --entries 123456 654321
    python live_ticker.py --league 314 --output web/data/live.json
    python live_ticker.py --league 314 --watch
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from fplive import BaselineStore, FPLDataFetcher, LiveEngine, PollResult, UpstreamUnavailable, fetch_payload
from fplive.config import get_config
from fplive.feed import build_catalogue, parse_fixtures
from fplive.logging_config import setup_logging
from fplive.scheduler import PollScheduler
from fplive.ticker import utc_now
from fplive.utils import save_json

logger = logging.getLogger('fplive.cli')


def format_change(event: dict) -> str:
    """One line of ticker output for a change event."""
    minute = f"{event['minute']}'"
    if event['type'] == 'bonus_change':
        moves = ', '.join(f"{c['name']} {c['from']}->{c['to']}" for c in event['changes'])
        return f"  {minute:>4} Bonus change (fixture {event['fixtureId']}): {moves}"
    if event['type'] == 'cs_lost':
        return f"  {minute:>4} Clean sheet lost: {event['name']}"
    return f"  {minute:>4} Defensive contribution: {event['name']}"


def print_result(result: PollResult, quiet: bool = False) -> None:
    print("\n" + "="*60)
    print(f"GAMEWEEK {result.gameweek} LIVE STANDINGS")
    print("="*60)

    for row in result.standings:
        label = row['entryName'] or f"Entry {row['entryId']}"
        print(
            f"  {row['rank']}. {label}: {row['netScore']} pts "
            f"(GW {row['totalPoints']}, +{row['liveAdjustment']} live, bench {row['benchPoints']})"
        )

    if not quiet:
        for entry_id, score in result.entrants.items():
            for sub in score.auto_substitutions:
                print(f"  ↺ Entry {entry_id}: {sub.name_out} -> {sub.name_in}")
            for anomaly in score.anomalies:
                print(f"  ⚠️  {anomaly}")

    if result.new_change_events:
        print("\nNEW CHANGES")
        for event in result.new_change_events:
            print(format_change(event.to_dict()))


def poll_once(engine, store, fetcher, entry_ids, league_id, output=None, quiet=False) -> PollResult:
    """
    Fetch, process and persist one poll.

    Raises:
        UpstreamUnavailable: If the feed could not be fetched; state is untouched
    """
    payload = fetch_payload(fetcher, entry_ids=entry_ids, league_id=league_id)
    result = engine.process_poll(payload)
    engine.save(store)

    if result.gameweek is None:
        print("⚠️  No live gameweek right now.")
        return result

    print_result(result, quiet)

    if output:
        save_json(output, result.to_dict())
        print(f"Poll result saved: {output}")
    return result


def watch(engine, store, fetcher, scheduler, entry_ids, league_id, output=None, quiet=False) -> None:
    """Poll inside kickoff windows until interrupted."""
    while True:
        fetcher.refresh()
        try:
            catalogue = build_catalogue(fetcher.bootstrap)
            fixtures = parse_fixtures(fetcher.fixtures, catalogue.current_gameweek)
            decision = scheduler.reschedule(fixtures)
            if decision.should_poll:
                poll_once(engine, store, fetcher, entry_ids, league_id, output, quiet)
        except UpstreamUnavailable as e:
            # Retry on the next poll interval with the baseline untouched
            logger.error(str(e))
            decision = None

        now = utc_now()
        next_check = decision.next_check_at if decision else now + scheduler.poll_interval
        wait = max(0.0, (next_check - now).total_seconds())
        logger.info(f'Next check at {next_check.isoformat()} ({scheduler.state.value})')
        time.sleep(wait)


def main():
    parser = argparse.ArgumentParser(description="Live fantasy scoring and event ticker")
    parser.add_argument(
        "--entries", "-e",
        type=int,
        nargs="*",
        default=None,
        help="Entry ids to score (defaults to entry_ids in config)",
    )
    parser.add_argument(
        "--league", "-l",
        type=int,
        default=None,
        help="Classic league id whose entries to score (defaults to league_id in config)",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to live config JSON (defaults to data/live_config.json)",
    )
    parser.add_argument(
        "--state", "-s",
        default="data/ticker_state.json",
        help="Path to persisted ticker state",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Write the poll result as JSON to this path",
    )
    parser.add_argument(
        "--watch", "-w",
        action="store_true",
        help="Keep running and poll during kickoff windows",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...)",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress detailed output",
    )

    args = parser.parse_args()

    setup_logging(level=args.log_level, log_to_file=args.watch, log_to_console=not args.quiet)

    try:
        config = get_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Invalid config: {e}")
        sys.exit(1)

    entry_ids = args.entries if args.entries is not None else config.entry_ids
    league_id = args.league if args.league is not None else config.league_id
    if not entry_ids and league_id is None:
        print("❌ No entries to score: pass --entries or --league, or set them in config")
        sys.exit(1)

    store = BaselineStore(Path(args.state))
    engine = LiveEngine.from_store(store, config)
    fetcher = FPLDataFetcher(config.api_base_url, timeout=config.api_timeout_seconds)

    if args.watch:
        scheduler = PollScheduler.from_config(config)
        try:
            watch(engine, store, fetcher, scheduler, entry_ids, league_id, args.output, args.quiet)
        except KeyboardInterrupt:
            print("\nStopped.")
        return

    try:
        poll_once(engine, store, fetcher, entry_ids, league_id, args.output, args.quiet)
    except UpstreamUnavailable as e:
        print(f"❌ {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
