#!/usr/bin/env python3
"""
Mission State
The single persisted mission record and the stores that hold it.

File format (pretty-printed JSON):
  {"program": {...}, "start_date": "...", "end_date": "...",
   "reroll_count": 0, "duration": 15, "hq_findings": [...]}
"""

import json
import math
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

from .errors import MissionStoreError
from .programs import Program

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp. Naive values are taken as UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    # older mission files carry nanoseconds; fromisoformat stops at microseconds
    if "." in value:
        head, _, rest = value.partition(".")
        digits = ""
        while rest and rest[0].isdigit():
            digits, rest = digits + rest[0], rest[1:]
        value = f"{head}.{digits[:6].ljust(6, '0')}{rest}"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Mission:
    program: Program
    start_date: datetime
    end_date: datetime
    reroll_count: int = 0
    duration: int = 0
    hq_findings: Optional[List[str]] = None

    @classmethod
    def create(cls, program: Program, duration_days: int, reroll_count: int,
               now: datetime, hq_findings: Optional[List[str]] = None) -> 'Mission':
        return cls(
            program=program,
            start_date=now,
            end_date=now + timedelta(days=duration_days),
            reroll_count=reroll_count,
            duration=duration_days,
            hq_findings=hq_findings or None,
        )

    def is_active(self, now: datetime) -> bool:
        return now < self.end_date

    def days_remaining(self, now: datetime) -> int:
        return math.ceil((self.end_date - now).total_seconds() / 86400)

    def to_dict(self) -> Dict:
        data = {
            "program": self.program.to_dict(),
            "start_date": format_timestamp(self.start_date),
            "end_date": format_timestamp(self.end_date),
            "reroll_count": self.reroll_count,
            "duration": self.duration,
        }
        if self.hq_findings:
            data["hq_findings"] = list(self.hq_findings)
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Mission':
        """Raises KeyError/ValueError/TypeError on malformed records"""
        mission = cls(
            program=Program.from_dict(data["program"]),
            start_date=parse_timestamp(data["start_date"]),
            end_date=parse_timestamp(data["end_date"]),
            reroll_count=int(data.get("reroll_count", 0)),
            duration=int(data.get("duration") or 0),
            hq_findings=_findings(data.get("hq_findings")),
        )
        mission.duration = reconcile_duration(mission)
        return mission


def _findings(value) -> Optional[List[str]]:
    """HQ findings from a record; anything but a list of strings is malformed"""
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"hq_findings must be a list of strings, got {value!r}")
    return value or None


def reconcile_duration(mission: Mission) -> int:
    """Duration in days; records written before the field existed derive it from the dates"""
    if mission.duration:
        return mission.duration
    return int((mission.end_date - mission.start_date).total_seconds() // 86400)


class MissionStore(ABC):
    """Single-slot storage for the current mission"""

    @abstractmethod
    def load(self) -> Optional[Mission]:
        """The stored mission, or None when absent or unreadable"""

    @abstractmethod
    def save(self, mission: Mission) -> None:
        pass

    @abstractmethod
    def delete(self) -> None:
        pass


def _decode(text: str, source: str) -> Optional[Mission]:
    try:
        return Mission.from_dict(json.loads(text))
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        logger.debug(f"Failed to parse mission from {source}: {e}")
        return None


class JsonMissionStore(MissionStore):
    """Mission kept as a JSON file at a fixed path"""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[Mission]:
        logger.debug(f"Attempting to load mission from {self.path}")
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.debug(f"Failed to read mission file: {e}")
            return None
        mission = _decode(text, str(self.path))
        if mission:
            logger.debug(f"Successfully loaded mission for program: {mission.program.url}")
        return mission

    def save(self, mission: Mission) -> None:
        logger.debug(f"Saving mission for program: {mission.program.url} to {self.path}")
        try:
            self.path.write_text(mission.to_json(), encoding="utf-8")
        except OSError as e:
            raise MissionStoreError(f"Error saving mission: {e}") from e

    def delete(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise MissionStoreError(f"Error removing mission file: {e}") from e


class MemoryMissionStore(MissionStore):
    """Keeps the serialised mission in memory"""

    def __init__(self, text: Optional[str] = None):
        self.text = text
        self.writes = 0

    def load(self) -> Optional[Mission]:
        if self.text is None:
            return None
        return _decode(self.text, "memory")

    def save(self, mission: Mission) -> None:
        self.text = mission.to_json()
        self.writes += 1

    def delete(self) -> None:
        self.text = None
        self.writes += 1
