#!/usr/bin/env python3
"""
Mission briefings and messages printed to the terminal
"""

import random
import sys
from datetime import datetime
from typing import List, TextIO

from .mission import Mission, reconcile_duration
from .utils.config import MAX_REROLLS, MIN_MISSION_DAYS, MAX_MISSION_DAYS

WIDTH = 70
MAX_SCOPE_LINES = 5

MOTIVATIONS = [
    "For the next few weeks, this is your world. Explore every corner.",
    "A focused hunter finds the rarest beasts. Good luck.",
    "Commit to the target. The bugs will reveal themselves to the dedicated.",
    "A focused sprint can change everything. Let the hunt begin.",
    "Your mission, should you choose to accept it. This message will not self-destruct.",
]


def encounter_rate(total: int) -> float:
    """Chance, in percent, of rolling any one of total candidates"""
    return 100.0 / total


class Display:
    """Renders mission state to a text stream"""

    def __init__(self, out: TextIO = None, rng: random.Random = None):
        self.out = out or sys.stdout
        self.rng = rng or random.Random()

    def _print(self, text: str = "", end: str = "\n"):
        print(text, file=self.out, end=end, flush=True)

    def _box(self, title: str, lines: List[str]):
        self._print(f"\n{'=' * WIDTH}")
        self._print(f"  {title}")
        self._print('=' * WIDTH)
        for line in lines:
            self._print(f"  {line}" if line else "")
        self._print(f"{'=' * WIDTH}\n")

    def active_mission(self, mission: Mission, now: datetime):
        self._box("ACTIVE MISSION BRIEFING", [
            "CURRENT TARGET:",
            f"  {mission.program.url}",
            "",
            "MISSION DURATION:",
            f"  {reconcile_duration(mission)} Days",
            "",
            "DAYS REMAINING:",
            f"  {mission.days_remaining(now)} days",
            "",
            "Your focus is sharp. Your dedication is unwavering. Keep hunting.",
            "",
            f"Reroll charges remaining: {MAX_REROLLS - mission.reroll_count}",
            "To start a new mission, use the --reroll flag.",
        ])

    def new_mission(self, mission: Mission, total: int):
        scope_lines = []
        for i, element in enumerate(mission.program.in_scope):
            if i >= MAX_SCOPE_LINES:
                scope_lines.append("  ...and more")
                break
            scope_lines.append(f"  - {element.target}")

        lines = [
            "TARGET:",
            f"  {mission.program.url}",
            "",
            "MISSION DURATION:",
            f"  {mission.duration} Days",
            "",
            "MATCHING SCOPE:",
            *scope_lines,
        ]
        if mission.hq_findings:
            lines += ["", "HIGH-QUALITY SIGNALS:"]
            lines += [f"  + {finding}" for finding in mission.hq_findings]

        lines += [
            "",
            "Pledge to focus solely on this target. Let your curiosity guide you.",
            "",
            f"Encounter Rate: {encounter_rate(total):.2f}%. This target was chosen from {total} possibilities.",
            "",
            self.rng.choice(MOTIVATIONS),
        ]
        self._box("YOUR NEXT MISSION", lines)

    def invalid_duration(self):
        self._box("INVALID DURATION", [
            f"Mission duration must be between {MIN_MISSION_DAYS} and {MAX_MISSION_DAYS} days.",
            "A true focus sprint requires a meaningful, but achievable, timeframe.",
        ])

    def reroll_lockout(self):
        self._box("REROLL LOCKOUT", [
            "You have exhausted all your reroll charges.",
            "Complete your current mission to reset your focus.",
        ])

    def reroll_warning(self, charge: int):
        self._print("[!] WARNING: A true hunter values focus. Rerolling is a sign of a wandering mind.")
        self._print(f"You are about to use reroll charge {charge} of {MAX_REROLLS}.\n")

    def prompt(self, text: str, step: int, total: int) -> str:
        return f"{text} ({step}/{total}) (y/n): "

    def reroll_aborted(self):
        self._print("\nMission aborted. Your current mission remains active. A wise choice.")

    def reroll_confirmed(self):
        self._print("\nFocus broken. Reroll charge consumed...")

    def info(self, message: str):
        self._print(f"[*] {message}")

    def warning(self, message: str):
        self._print(f"[!] {message}")

    def error(self, message: str):
        self._print(f"[-] {message}")
