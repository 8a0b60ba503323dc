from __future__ import annotations

import re
from types import SimpleNamespace
from typing import Any, Callable

from core.config import StudioSettings
from core.data_models import EpisodePlanEntry
from core.gemini_helpers import GenerationClient, GenerationRequest

_EPISODE_HEADING = re.compile(r"\*\*Episode (\d+):")


def episode_number(request: GenerationRequest) -> int:
    m = _EPISODE_HEADING.search(request.prompt)
    if not m:
        raise AssertionError(f"not an episode prompt: {request.prompt[:80]!r}")
    return int(m.group(1))


class ScriptedClient(GenerationClient):
    """GenerationClient whose backend is a plain function of the request."""

    def __init__(self, responder: Callable[[GenerationRequest], Any], settings: StudioSettings | None = None) -> None:
        super().__init__(api_key="test-key", settings=settings or StudioSettings())
        self.responder = responder
        self.requests: list[GenerationRequest] = []

    async def complete(self, request: GenerationRequest) -> Any:
        self.ensure_credentials()
        self.requests.append(request)
        result = self.responder(request)
        if isinstance(result, BaseException):
            raise result
        return result


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class _FakeModels:
    def __init__(self, outcome: Any, calls: list[dict[str, Any]]) -> None:
        self.outcome = outcome
        self.calls = calls

    async def generate_content(self, *, model: str, contents: Any, config: Any = None) -> Any:
        self.calls.append({"model": model, "contents": contents, "config": config})
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


class FakeSDKFactory:
    """Stands in for genai.Client; records every key it was built with and every call."""

    def __init__(self, outcome: Any) -> None:
        self.outcome = outcome
        self.keys: list[str] = []
        self.calls: list[dict[str, Any]] = []

    def __call__(self, api_key: str) -> Any:
        self.keys.append(api_key)
        return SimpleNamespace(aio=SimpleNamespace(models=_FakeModels(self.outcome, self.calls)))


def text_response(text: str | None) -> Any:
    return SimpleNamespace(text=text, candidates=[])


def image_response(data: bytes | None, mime_type: str = "image/png") -> Any:
    parts = [SimpleNamespace(inline_data=None, text="here you go")]
    if data is not None:
        parts.append(SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type)))
    return SimpleNamespace(text=None, candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])


def make_plan(*numbers: int) -> list[EpisodePlanEntry]:
    return [EpisodePlanEntry(number=n, title=f"Title {n}", summary=f"Summary {n}") for n in numbers]
