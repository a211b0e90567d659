#!/usr/bin/env python3
"""
Mission Controller
Decides on each run whether to show the current mission, expire it,
reroll it, or roll a new one.

States:
  NO_MISSION       nothing stored (or the file could not be read)
  ACTIVE_MISSION   stored mission whose end date is still ahead
  EXPIRED_MISSION  stored mission whose end date has passed
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from .display import Display
from .errors import HQFetchError, MissingCredentialsError, MissionStoreError, ProgramSourceError
from .hq import HQProgram, HQSession, fetch_and_check
from .mission import JsonMissionStore, Mission, MissionStore, utcnow
from .programs import HackerOneProgramSource, Program
from .selector import select
from .utils.config import DiceConfig, MAX_REROLLS, MIN_MISSION_DAYS, MAX_MISSION_DAYS

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1

REROLL_PROMPTS = [
    "Focus is a hunter's greatest asset. Are you sure you want to dull your edge?",
    "The rarest bugs hide from wandering eyes. Stick to the path. Abandon mission?",
    "Discipline is built through commitment. Don't break your streak. Are you absolutely certain?",
    "FINAL WARNING. This action will consume a focus charge. There is no honor in retreat. Proceed?",
]


class MissionState(Enum):
    NO_MISSION = "no_mission"
    ACTIVE_MISSION = "active_mission"
    EXPIRED_MISSION = "expired_mission"


def classify(mission: Optional[Mission], now: datetime) -> MissionState:
    if mission is None:
        return MissionState.NO_MISSION
    if mission.is_active(now):
        return MissionState.ACTIVE_MISSION
    return MissionState.EXPIRED_MISSION


def valid_duration(days: int) -> bool:
    return MIN_MISSION_DAYS <= days <= MAX_MISSION_DAYS


def default_hq_checker(config: DiceConfig, display: Display) -> Callable[[List[str]], List[HQProgram]]:
    """Scores handles against the HQ rules using the program data cache"""
    def check(handles: List[str]) -> List[HQProgram]:
        session = HQSession(config.session_cookie, config.csrf_token,
                            timeout=config.request_timeout, user_agent=config.user_agent)
        return fetch_and_check(session, handles, config.force, config.min_req,
                               config.cache_file, show_progress=not config.verbose,
                               info=display.info, warning=display.warning)
    return check


class MissionController:
    """Runs one invocation of the dice against the stored mission"""

    def __init__(self,
                 config: DiceConfig,
                 store: MissionStore,
                 source,
                 hq_checker: Optional[Callable[[List[str]], List[HQProgram]]] = None,
                 selector: Callable[[Sequence[Program]], Optional[Program]] = select,
                 display: Optional[Display] = None,
                 input_fn: Callable[[str], str] = input,
                 clock: Callable[[], datetime] = utcnow):
        self.config = config
        self.store = store
        self.source = source
        self.display = display or Display()
        self.hq_checker = hq_checker or default_hq_checker(config, self.display)
        self.selector = selector
        self.input_fn = input_fn
        self.clock = clock

    @classmethod
    def from_config(cls, config: DiceConfig, **kwargs) -> 'MissionController':
        store = JsonMissionStore(config.mission_file)
        source = HackerOneProgramSource(config.api_user, config.api_token,
                                        timeout=config.request_timeout,
                                        user_agent=config.user_agent)
        return cls(config, store, source, **kwargs)

    def run(self, reroll: bool = False) -> int:
        """Returns the process exit code"""
        now = self.clock()
        mission = self.store.load()
        state = classify(mission, now)
        reroll_count = mission.reroll_count if mission else 0
        logger.debug(f"Mission state: {state.value}, reroll count: {reroll_count}")

        if state is MissionState.ACTIVE_MISSION and not reroll:
            logger.debug("Active mission found and it's not expired. Displaying it.")
            self.display.active_mission(mission, now)
            return EXIT_OK

        if not valid_duration(self.config.duration):
            logger.debug(f"Duration {self.config.duration} is outside the allowed range "
                         f"({MIN_MISSION_DAYS}-{MAX_MISSION_DAYS} days).")
            self.display.invalid_duration()
            return EXIT_OK

        if state is MissionState.EXPIRED_MISSION and not reroll:
            logger.debug("Mission found, but it has expired. Resetting reroll counter.")
            mission.reroll_count = 0
            self._save(mission)
            reroll_count = 0

        if reroll:
            if not self._confirm_reroll(reroll_count):
                return EXIT_OK
            try:
                self.store.delete()
            except MissionStoreError as e:
                self.display.error(str(e))
            reroll_count += 1

        return self._roll(reroll_count)

    def _confirm_reroll(self, reroll_count: int) -> bool:
        if reroll_count >= MAX_REROLLS:
            logger.debug(f"User has reached the maximum reroll limit of {MAX_REROLLS}.")
            self.display.reroll_lockout()
            return False

        self.display.reroll_warning(reroll_count + 1)
        for step, text in enumerate(REROLL_PROMPTS, 1):
            try:
                answer = self.input_fn(self.display.prompt(text, step, len(REROLL_PROMPTS)))
            except EOFError:
                answer = ""
            if answer.strip().lower() != "y":
                logger.debug(f"User aborted the reroll at step {step}.")
                self.display.reroll_aborted()
                return False

        logger.debug("User confirmed reroll.")
        self.display.reroll_confirmed()
        return True

    def _save(self, mission: Mission):
        try:
            self.store.save(mission)
        except MissionStoreError as e:
            self.display.error(str(e))

    def _hq_filter(self, programs: List[Program]) -> Optional[Dict[str, List[str]]]:
        """Findings per qualifying handle, None when the HQ data could not be fetched"""
        handles = [p.handle for p in programs]
        logger.debug(f"Extracted {len(handles)} handles for high-quality checking.")
        self.display.info("Finding high-quality programs...")
        try:
            hq_programs = self.hq_checker(handles)
        except HQFetchError as e:
            self.display.error(f"Error fetching high-quality programs: {e}")
            return None
        logger.debug(f"Found {len(hq_programs)} high-quality programs.")
        return {p.handle: p.findings for p in hq_programs}

    def _roll(self, reroll_count: int) -> int:
        config = self.config
        self.display.info("Rolling the dice...")
        try:
            programs = self.source.get_programs(config.bounty_only, config.scope)
        except (MissingCredentialsError, ProgramSourceError, ValueError) as e:
            self.display.error(f"Error fetching programs: {e}")
            return EXIT_ERROR
        logger.debug(f"Fetched {len(programs)} programs.")

        if not programs:
            self.display.info("No programs found matching your criteria. Try different filters!")
            return EXIT_OK

        findings = {}
        if config.hq:
            findings = self._hq_filter(programs)
            if findings is None:
                return EXIT_ERROR
            programs = [p for p in programs if p.handle in findings]
            logger.debug(f"Filtered down to {len(programs)} high-quality programs matching initial criteria.")
            if not programs:
                self.display.info("No high-quality programs found matching your criteria. Try different filters!")
                return EXIT_OK

        chosen = self.selector(programs)
        if chosen is None:
            self.display.error("Error selecting random program")
            return EXIT_ERROR

        mission = Mission.create(
            program=chosen,
            duration_days=config.duration,
            reroll_count=reroll_count,
            now=self.clock(),
            hq_findings=findings.get(chosen.handle),
        )
        self._save(mission)
        logger.debug(f"New mission created for program: {chosen.url}")
        self.display.new_mission(mission, len(programs))
        return EXIT_OK
