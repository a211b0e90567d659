import io
import random
from datetime import datetime, timedelta, timezone

import pytest

from bounty_dice.display import Display
from bounty_dice.errors import MissionStoreError
from bounty_dice.mission import MemoryMissionStore, Mission
from bounty_dice.programs import Program, ScopeElement
from bounty_dice.utils.config import DiceConfig

NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_program(handle: str, targets=None, offers_bounties: bool = True) -> Program:
    targets = targets or [f"*.{handle}.com"]
    return Program(
        url=f"https://hackerone.com/{handle}",
        in_scope=[ScopeElement(target=t, category="WILDCARD") for t in targets],
        offers_bounties=offers_bounties,
    )


class FakeSource:
    """Program source returning a fixed list"""

    def __init__(self, programs=None, error=None):
        self.programs = programs or []
        self.error = error
        self.calls = []

    def get_programs(self, bounty_only, scope_category):
        self.calls.append((bounty_only, scope_category))
        if self.error:
            raise self.error
        return list(self.programs)


class ScriptedInput:
    """Answers prompts from a list, raising EOFError when it runs out"""

    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


class RecordingStore(MemoryMissionStore):
    """Memory store that also keeps every saved mission"""

    def __init__(self, text=None):
        super().__init__(text)
        self.saved = []
        self.deleted = 0

    def save(self, mission):
        super().save(mission)
        self.saved.append(Mission.from_dict(mission.to_dict()))

    def delete(self):
        super().delete()
        self.deleted += 1


class FailingStore(MemoryMissionStore):
    def save(self, mission):
        raise MissionStoreError("Error saving mission: disk full")


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def programs():
    return [make_program(h) for h in ("alpha", "bravo", "charlie", "delta")]


@pytest.fixture
def config(tmp_path):
    return DiceConfig(
        duration=15,
        mission_file=tmp_path / "mission.json",
        cache_file=tmp_path / "cache" / "program_data.json",
        api_user="hunter",
        api_token="secret",
    )


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def display(output):
    return Display(out=output, rng=random.Random(7))


@pytest.fixture
def active_mission(now):
    return Mission.create(make_program("current"), 20, 0, now - timedelta(days=5))


@pytest.fixture
def expired_mission(now):
    return Mission.create(make_program("old"), 15, 3, now - timedelta(days=16))
