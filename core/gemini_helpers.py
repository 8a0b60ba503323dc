import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from google import genai
from google.genai import types as gai_types

from core.config import StudioSettings
from core.env_loader import require_api_key
from core.errors import EmptyOutput, NoImageData, TransportError
from core.gemini_image import GeneratedImage, first_image_from_parts
from core.schema import Schema, parse_structured, to_genai

logger = logging.getLogger(__name__)

MODE_STRUCTURED = "structured"
MODE_TEXT = "text"
MODE_IMAGE = "image"


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    mode: str = MODE_TEXT
    schema: Optional[Schema] = None

    @classmethod
    def structured(cls, prompt: str, schema: Schema) -> "GenerationRequest":
        return cls(prompt=prompt, mode=MODE_STRUCTURED, schema=schema)

    @classmethod
    def text(cls, prompt: str) -> "GenerationRequest":
        return cls(prompt=prompt, mode=MODE_TEXT)

    @classmethod
    def image(cls, prompt: str) -> "GenerationRequest":
        return cls(prompt=prompt, mode=MODE_IMAGE)


def _default_factory(api_key: str):
    return genai.Client(api_key=api_key)


class GenerationClient:
    """
    One request/response call to Gemini per complete(). Holds configuration
    only: the SDK client is built fresh for every call, and the key is
    re-resolved (explicit key, then env/.env) before anything goes out.
    """

    def __init__(
        self,
        api_key: str = "",
        settings: Optional[StudioSettings] = None,
        client_factory: Callable[[str], Any] = _default_factory,
    ):
        self.api_key = api_key
        self.settings = settings or StudioSettings()
        self.client_factory = client_factory

    def ensure_credentials(self) -> str:
        return require_api_key(self.api_key)

    async def complete(self, request: GenerationRequest) -> Any:
        key = self.ensure_credentials()
        if request.mode == MODE_IMAGE:
            resp = await self._call(key, self.settings.image_model, request.prompt, None)
            return self._image_from(resp)

        config = None
        if request.mode == MODE_STRUCTURED:
            config = gai_types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=to_genai(request.schema),
            )
        resp = await self._call(key, self.settings.text_model, request.prompt, config)
        text = getattr(resp, "text", None)
        if request.mode == MODE_STRUCTURED:
            return parse_structured(text or "", request.schema)
        if not text:
            raise EmptyOutput("model returned no text")
        return text

    async def _call(self, key: str, model: str, prompt: str, config):
        try:
            client = self.client_factory(key)
            return await client.aio.models.generate_content(model=model, contents=prompt, config=config)
        except Exception as e:
            logger.debug("generate_content failed on %s: %r", model, e)
            raise TransportError(f"{model} call failed: {e}") from e

    @staticmethod
    def _image_from(resp) -> GeneratedImage:
        candidates = getattr(resp, "candidates", None) or []
        for cand in candidates:
            content = getattr(cand, "content", None)
            img = first_image_from_parts(getattr(content, "parts", None))
            if img is not None:
                return img
        raise NoImageData("No image data in response. Check the image model name and that your key has image access.")
