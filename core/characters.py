"""
Character / scene extraction and portrait generation.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from core.data_models import Character, Scene
from core.errors import StudioError
from core.gemini_helpers import GenerationClient, GenerationRequest
from core.project_store import ProjectStore
from core.prompt_builders import (
    CHARACTERS_SCHEMA,
    SCENES_SCHEMA,
    build_character_prompt,
    build_portrait_prompt,
    build_scene_prompt,
)

logger = logging.getLogger(__name__)


async def extract_characters(client: GenerationClient, store: ProjectStore, corpus: str = "") -> List[Character]:
    prompt = build_character_prompt(store.project.outline, corpus)
    data = await client.complete(GenerationRequest.structured(prompt, CHARACTERS_SCHEMA))
    # every extraction hands out fresh ids
    characters = [Character(**item) for item in data]
    store.set_characters(characters)
    return characters


async def extract_scenes(client: GenerationClient, store: ProjectStore, corpus: str = "") -> List[Scene]:
    prompt = build_scene_prompt(store.project.outline, corpus)
    data = await client.complete(GenerationRequest.structured(prompt, SCENES_SCHEMA))
    scenes = [Scene(**item) for item in data]
    store.set_scenes(scenes)
    return scenes


async def generate_portrait(
    client: GenerationClient,
    store: ProjectStore,
    kind: str,
    record_id: str,
    size_hint: Optional[str] = None,
) -> Optional[str]:
    """
    Generate and attach an image for one character/scene. Returns the data URL,
    or None when a call for this id is already in flight or the record was
    replaced or removed before the image arrived. On failure the loading
    flag is cleared, the previous image is kept and the error is re-raised.
    """
    record = store.find_record(kind, record_id)
    prompt = build_portrait_prompt(record, store.project.genre, size_hint=size_hint)
    if not store.begin_image(kind, record_id):
        logger.info("%s %s already has an image call in flight", kind, record_id)
        return None
    try:
        image = await client.complete(GenerationRequest.image(prompt))
    except BaseException:
        store.fail_image(kind, record_id)
        raise
    url = image.to_data_url()
    if not store.finish_image(kind, record_id, url):
        return None
    return url


async def generate_portraits(
    client: GenerationClient,
    store: ProjectStore,
    kind: str,
    record_ids: Sequence[str],
) -> Dict[str, object]:
    """
    Portraits for several records at once (they share no context). Returns
    id -> data URL, None (already loading) or the exception for that id.
    """
    ids = list(dict.fromkeys(record_ids))
    results = await asyncio.gather(
        *(generate_portrait(client, store, kind, rid) for rid in ids),
        return_exceptions=True,
    )
    out = {}
    for rid, res in zip(ids, results):
        if isinstance(res, StudioError):
            logger.warning("%s %s portrait failed [%s]: %s", kind, rid, getattr(res, "kind", "error"), res)
        elif isinstance(res, BaseException):
            raise res
        out[rid] = res
    return out

