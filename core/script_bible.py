from core.gemini_helpers import GenerationClient, GenerationRequest
from core.project_store import ProjectStore
from core.prompt_builders import build_bible_prompt


async def generate_bible(client: GenerationClient, store: ProjectStore) -> str:
    """(Re)write the series bible from outline, cast and locations. Episodes are not touched."""
    project = store.project
    if not project.outline.strip():
        raise ValueError("write or choose an outline before generating the bible")
    prompt = build_bible_prompt(project.outline, project.characters, project.scenes)
    text = await client.complete(GenerationRequest.text(prompt))
    store.set_bible(text)
    return text
