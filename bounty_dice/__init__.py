"""
Bounty Dice
Roll a random bug bounty program and commit to it for a fixed mission.

Modules:
- programs: HackerOne program listing
- hq: High-quality payout heuristics and program data cache
- selector: CSPRNG-backed random choice
- mission: Persisted mission record and stores
- controller: Mission lifecycle and reroll rules
- display: Terminal briefings
"""

from .controller import MissionController, MissionState, classify
from .errors import (
    BountyDiceError,
    ConfigError,
    HQFetchError,
    MissingCredentialsError,
    MissionStoreError,
    ProgramSourceError,
)
from .hq import HQProgram, HQSession, check_program_data, fetch_and_check
from .mission import (
    JsonMissionStore,
    MemoryMissionStore,
    Mission,
    MissionStore,
    reconcile_duration,
)
from .programs import HackerOneProgramSource, Program, ScopeElement
from .selector import select

__version__ = "1.0.0"
__all__ = [
    # Controller
    "MissionController",
    "MissionState",
    "classify",
    # Errors
    "BountyDiceError",
    "ConfigError",
    "HQFetchError",
    "MissingCredentialsError",
    "MissionStoreError",
    "ProgramSourceError",
    # HQ
    "HQProgram",
    "HQSession",
    "check_program_data",
    "fetch_and_check",
    # Mission
    "JsonMissionStore",
    "MemoryMissionStore",
    "Mission",
    "MissionStore",
    "reconcile_duration",
    # Programs
    "HackerOneProgramSource",
    "Program",
    "ScopeElement",
    "select",
]
