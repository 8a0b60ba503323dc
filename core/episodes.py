"""
Episode planning and single-episode writing.

These are one-shot operations: one backend call, no retry. Failures go
straight back to the caller and leave the project untouched.
"""
import logging
from typing import List, Optional

from core.config import StudioSettings
from core.data_models import EpisodePlanEntry, Project
from core.episode_plan import entries_from_payload
from core.errors import InvalidEpisodeNumber
from core.gemini_helpers import GenerationClient, GenerationRequest
from core.project_store import ProjectStore
from core.prompt_builders import (
    EPISODE_PLAN_SCHEMA,
    build_episode_plan_prompt,
    build_episode_script_prompt,
    build_extend_plan_prompt,
)
from core.text_utils import clean_episode_title

logger = logging.getLogger(__name__)


def previous_content(project: Project, number: int) -> str:
    # "previous" is structural: always number - 1, whatever order things were generated in
    return project.episodes.get(number - 1, "")


def episode_request(project: Project, entry: EpisodePlanEntry, settings: StudioSettings) -> GenerationRequest:
    prompt = build_episode_script_prompt(
        project.outline,
        project.characters,
        entry,
        previous_content(project, entry.number),
        outline_window=settings.outline_window,
        previous_window=settings.previous_window,
        genre=project.genre,
    )
    return GenerationRequest.text(prompt)


async def plan_episodes(client: GenerationClient, store: ProjectStore, count: int) -> List[EpisodePlanEntry]:
    if count < 1:
        raise ValueError("episode count must be at least 1")
    project = store.project
    prompt = build_episode_plan_prompt(project.outline, count)
    data = await client.complete(GenerationRequest.structured(prompt, EPISODE_PLAN_SCHEMA))
    entries = entries_from_payload(data, clean_title=clean_episode_title)
    if len(entries) != count:
        # accepted as-is; the prompt is the only thing asking for the exact count
        logger.warning("asked for %d episodes, model planned %d", count, len(entries))
    store.replace_plan(entries)
    return entries


async def extend_plan(client: GenerationClient, store: ProjectStore, count: int) -> List[EpisodePlanEntry]:
    if count < 1:
        raise ValueError("extension count must be at least 1")
    project = store.project
    if not project.episode_plan:
        raise InvalidEpisodeNumber("there is no plan to extend yet")
    last = max(project.episode_plan, key=lambda e: e.number)
    prompt = build_extend_plan_prompt(project.outline, last, count)
    data = await client.complete(GenerationRequest.structured(prompt, EPISODE_PLAN_SCHEMA))
    entries = entries_from_payload(data, clean_title=clean_episode_title)
    store.append_entries(entries)
    return entries


async def generate_one(
    client: GenerationClient,
    store: ProjectStore,
    number: int,
    settings: Optional[StudioSettings] = None,
) -> str:
    """Write (or rewrite) one episode. Single attempt."""
    settings = settings or client.settings
    project = store.project
    entry = project.plan_entry(number)
    if entry is None:
        raise InvalidEpisodeNumber(f"episode {number} is not in the plan", number)
    text = await client.complete(episode_request(project, entry, settings))
    store.set_episode(number, text)
    return text
