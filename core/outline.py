from typing import List

from core.gemini_helpers import GenerationClient, GenerationRequest
from core.presets import GENRES, resolve_genre
from core.project_store import ProjectStore
from core.prompt_builders import (
    ANALYZE_SCHEMA,
    OUTLINE_OPTIONS_SCHEMA,
    build_analyze_prompt,
    build_outline_options_prompt,
)


async def generate_outline_options(client: GenerationClient, store: ProjectStore) -> List[str]:
    project = store.project
    prompt = build_outline_options_prompt(project.idea, project.genre)
    options = await client.complete(GenerationRequest.structured(prompt, OUTLINE_OPTIONS_SCHEMA))
    options = [o.strip() for o in options if o.strip()]
    store.set_outline_options(options)
    return options


async def analyze_text(client: GenerationClient, store: ProjectStore, text: str) -> dict:
    """Idea, genre and outline recovered from an existing text, written into the project."""
    prompt = build_analyze_prompt(text, list(GENRES), window=client.settings.analyze_window)
    data = await client.complete(GenerationRequest.structured(prompt, ANALYZE_SCHEMA))
    store.set_idea(data["idea"])
    store.set_genre(resolve_genre(data["genre"]))
    store.set_outline(data["outline"])
    return data
