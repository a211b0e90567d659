#!/usr/bin/env python3
"""
Bounty Dice Errors
Exception types raised by the program source, HQ fetcher and mission store
"""


class BountyDiceError(Exception):
    """Base class for all Bounty Dice errors"""


class ConfigError(BountyDiceError):
    """Config file could not be read or parsed"""


class MissingCredentialsError(BountyDiceError):
    """HackerOne API credentials are not set"""


class ProgramSourceError(BountyDiceError):
    """Program listing could not be fetched from HackerOne"""


class HQFetchError(BountyDiceError):
    """Program statistics could not be fetched or read from cache"""


class MissionStoreError(BountyDiceError):
    """Mission file could not be written or removed"""
