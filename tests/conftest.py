from __future__ import annotations

import pytest

from core.config import StudioSettings
from core.data_models import Character, Project
from core.project_store import ProjectStore
from fakes import RecordingSleep, make_plan


@pytest.fixture
def fast_settings() -> StudioSettings:
    return StudioSettings(max_retries=2, retry_base_delay=3.0, pacing_delay=1.0)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def store() -> ProjectStore:
    project = Project(
        name="Night Shift",
        idea="A night nurse hears patients who died years ago.",
        genre="Mystery",
        outline="# Night Shift\nA nurse, a ward, a voice on the intercom.",
        characters=[
            Character(id="c1", name="Mara", age="34", role="protagonist", personality="stubborn", appearance="short dark hair"),
            Character(id="c2", name="Dr. Imre", age="58", role="antagonist", personality="charming", appearance="silver beard"),
        ],
        episode_plan=make_plan(1, 2, 3, 4, 5),
    )
    return ProjectStore(project)
