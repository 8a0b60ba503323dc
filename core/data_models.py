import uuid
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer


def _new_id() -> str:
    return uuid.uuid4().hex


class Character(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    age: str = ""
    role: str = ""
    personality: str = ""
    appearance: str = ""
    visual_prompt: Optional[str] = None
    image_url: Optional[str] = None
    # true only while a portrait call for this id is in flight
    image_loading: bool = False

    @field_serializer("image_loading")
    def _never_persist_loading(self, value: bool) -> bool:
        return False


class Scene(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    location: str = ""
    time_of_day: str = ""
    description: str = ""
    atmosphere: str = ""
    visual_prompt: Optional[str] = None
    image_url: Optional[str] = None
    image_loading: bool = False

    @field_serializer("image_loading")
    def _never_persist_loading(self, value: bool) -> bool:
        return False


class EpisodePlanEntry(BaseModel):
    number: int = Field(ge=1)
    title: str = ""
    summary: str = ""


class BatchProgress(BaseModel):
    current: int = Field(default=0, ge=0)
    total: int = Field(ge=1)


class Project(BaseModel):
    name: str = "untitled"
    idea: str = ""
    genre: str = ""
    outline_options: List[str] = []
    outline: str = ""
    characters: List[Character] = []
    scenes: List[Scene] = []
    episode_plan: List[EpisodePlanEntry] = []
    # absent key = not generated; "" is a generated-but-empty episode
    episodes: Dict[int, str] = {}
    script_bible: str = ""

    def plan_entry(self, number: int) -> Optional[EpisodePlanEntry]:
        for e in self.episode_plan:
            if e.number == number:
                return e
        return None
