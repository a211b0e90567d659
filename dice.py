#!/usr/bin/env python3
"""
Bounty Dice - Focus Mission CLI
================================

Rolls a random HackerOne program and holds you to it for 15-30 days.

Usage:
    python dice.py                         # Show current mission or roll a new one
    python dice.py --bounty --scope url    # Only bounty programs with web assets
    python dice.py --hq --min-req 2        # Only programs with 2+ high-quality signals
    python dice.py --reroll                # Abandon the current mission (max 5 charges)

Requires HACKERONE_API_USER and HACKERONE_API_TOKEN in the environment.
"""

import sys
import logging
import argparse
from pathlib import Path

from bounty_dice.controller import MissionController
from bounty_dice.display import Display
from bounty_dice.errors import ConfigError
from bounty_dice.programs import SCOPE_CATEGORIES
from bounty_dice.utils.config import (
    MIN_MISSION_DAYS,
    MAX_MISSION_DAYS,
    configure_logging,
    default_config_file,
    get_dice_config,
    load_config,
)

logger = logging.getLogger("bounty_dice")

SCOPE_CHOICES = ["all"] + sorted(SCOPE_CATEGORIES)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Bounty Dice - pick one bug bounty program and stay focused on it',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Config file (YAML) keys mirror the long options:
  duration, bounty_only, scope, hq, force, min_req,
  session_cookie, csrf_token, verbose, mission_file, cache_file
Command-line options override the config file. The --no-bounty, --no-hq,
--no-force and --quiet flags switch off a setting the config file turns on.
        '''
    )

    parser.add_argument('--reroll', '-reroll', action='store_true',
                        help='Abandon your current mission and start a new one')
    parser.add_argument('--bounty', '-bounty', dest='bounty_only', action='store_true', default=None,
                        help='Roll the dice only for programs that offer bounties')
    parser.add_argument('--no-bounty', dest='bounty_only', action='store_false', default=None,
                        help='Include programs without bounties, overriding the config file')
    parser.add_argument('--scope', '-scope', choices=SCOPE_CHOICES, default=None,
                        help='Filter by scope category (default: all)')
    parser.add_argument('--duration', '-duration', type=int, default=None,
                        help=f'Mission duration in days (min: {MIN_MISSION_DAYS}, max: {MAX_MISSION_DAYS})')
    parser.add_argument('--hq', '-hq', action='store_true', default=None,
                        help='Only roll programs that pass the high-quality checks')
    parser.add_argument('--no-hq', dest='hq', action='store_false', default=None,
                        help='Skip the high-quality checks, overriding the config file')
    parser.add_argument('--force', '-force', action='store_true', default=None,
                        help='Re-fetch program data instead of using the cache')
    parser.add_argument('--no-force', dest='force', action='store_false', default=None,
                        help='Use cached program data, overriding the config file')
    parser.add_argument('--min-req', '-min-req', dest='min_req', type=int, default=None,
                        help='Minimum high-quality findings for a program to qualify (default: 1)')
    parser.add_argument('--session', '-session', dest='session_cookie', default=None,
                        help='__Host-session cookie value from hackerone.com')
    parser.add_argument('--token', '-token', dest='csrf_token', default=None,
                        help='X-Csrf-Token value')
    parser.add_argument('-v', '--verbose', action='store_true', default=None,
                        help='Enable verbose output')
    parser.add_argument('-q', '--quiet', dest='verbose', action='store_false', default=None,
                        help='Disable verbose output, overriding the config file')
    parser.add_argument('-c', '--config', default=None,
                        help=f'Path to config file (default: {default_config_file()})')
    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        file_config = load_config(Path(args.config) if args.config else default_config_file())
        config = get_dice_config(
            file_config,
            bounty_only=args.bounty_only,
            scope=args.scope,
            duration=args.duration,
            hq=args.hq,
            force=args.force,
            min_req=args.min_req,
            session_cookie=args.session_cookie,
            csrf_token=args.csrf_token,
            verbose=args.verbose,
        )
    except ConfigError as e:
        Display().error(str(e))
        return 1

    configure_logging(config.verbose)
    logger.debug("Verbose mode enabled.")
    logger.debug(f"Reroll: {args.reroll}, {config.summary()}")
    if config.session_cookie:
        logger.debug("HackerOne session cookie provided.")
    if config.csrf_token:
        logger.debug("HackerOne CSRF token provided.")

    controller = MissionController.from_config(config)
    try:
        return controller.run(reroll=args.reroll)
    except KeyboardInterrupt:
        print("\n\n[!] Interrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
