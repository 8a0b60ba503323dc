from __future__ import annotations

import asyncio
import logging

import pytest

from core.characters import extract_characters, extract_scenes, generate_portrait, generate_portraits
from core.errors import InvalidEpisodeNumber, NoImageData, TransportError
from core.episodes import extend_plan, generate_one, plan_episodes
from core.gemini_helpers import MODE_IMAGE, MODE_STRUCTURED, MODE_TEXT
from core.gemini_image import GeneratedImage
from core.outline import analyze_text, generate_outline_options
from core.project_store import KIND_CHARACTER, KIND_SCENE, ProjectStore
from core.script_bible import generate_bible
from fakes import ScriptedClient


def _plan_payload(*numbers: int) -> list[dict]:
    return [{"number": n, "title": f"Episode {n}: Beat {n}", "summary": f"Plot {n}"} for n in numbers]


def test_plan_replaces_entries_and_cleans_titles(store: ProjectStore) -> None:
    store.set_episode(1, "kept")
    client = ScriptedClient(lambda r: _plan_payload(1, 2, 3))

    entries = asyncio.run(plan_episodes(client, store, 3))

    assert [(e.number, e.title) for e in entries] == [(1, "Beat 1"), (2, "Beat 2"), (3, "Beat 3")]
    assert store.project.episode_plan == entries
    assert store.project.episodes == {1: "kept"}
    assert client.requests[0].mode == MODE_STRUCTURED
    assert "EXACTLY 3 episodes" in client.requests[0].prompt


def test_short_plan_is_accepted_with_a_warning(store: ProjectStore, caplog: pytest.LogCaptureFixture) -> None:
    client = ScriptedClient(lambda r: _plan_payload(1, 2))

    with caplog.at_level(logging.WARNING, logger="core.episodes"):
        entries = asyncio.run(plan_episodes(client, store, 4))

    assert len(entries) == 2
    assert "asked for 4 episodes, model planned 2" in caplog.text


def test_plan_count_must_be_positive(store: ProjectStore) -> None:
    client = ScriptedClient(lambda r: [])

    with pytest.raises(ValueError):
        asyncio.run(plan_episodes(client, store, 0))

    assert client.requests == []


def test_extend_appends_after_the_last_entry(store: ProjectStore) -> None:
    client = ScriptedClient(lambda r: _plan_payload(6, 7))

    asyncio.run(extend_plan(client, store, 2))

    assert [e.number for e in store.project.episode_plan] == [1, 2, 3, 4, 5, 6, 7]
    assert "Number the new episodes 6 to 7" in client.requests[0].prompt


def test_extend_with_colliding_numbers_changes_nothing(store: ProjectStore) -> None:
    client = ScriptedClient(lambda r: _plan_payload(5, 6))

    with pytest.raises(InvalidEpisodeNumber):
        asyncio.run(extend_plan(client, store, 2))

    assert len(store.project.episode_plan) == 5


def test_extend_without_a_plan_is_refused(store: ProjectStore) -> None:
    store.reset_plan()
    client = ScriptedClient(lambda r: _plan_payload(1))

    with pytest.raises(InvalidEpisodeNumber):
        asyncio.run(extend_plan(client, store, 1))

    assert client.requests == []


def test_generate_one_writes_the_episode(store: ProjectStore) -> None:
    store.set_episode(1, "EPISODE ONE TEXT")
    client = ScriptedClient(lambda r: "EPISODE TWO TEXT")

    text = asyncio.run(generate_one(client, store, 2))

    assert text == "EPISODE TWO TEXT"
    assert store.project.episodes[2] == "EPISODE TWO TEXT"
    assert client.requests[0].mode == MODE_TEXT
    assert "EPISODE ONE TEXT" in client.requests[0].prompt


def test_generate_one_makes_a_single_attempt_and_leaves_the_project_alone(store: ProjectStore) -> None:
    store.set_episode(3, "old draft")
    client = ScriptedClient(lambda r: TransportError("timeout"))

    with pytest.raises(TransportError):
        asyncio.run(generate_one(client, store, 3))

    assert len(client.requests) == 1
    assert store.project.episodes[3] == "old draft"


def test_generate_one_for_unknown_number(store: ProjectStore) -> None:
    client = ScriptedClient(lambda r: "x")

    with pytest.raises(InvalidEpisodeNumber):
        asyncio.run(generate_one(client, store, 99))


def test_portrait_success_stores_data_url(store: ProjectStore) -> None:
    client = ScriptedClient(lambda r: GeneratedImage(data=b"png", mime_type="image/png"))

    url = asyncio.run(generate_portrait(client, store, KIND_CHARACTER, "c1"))

    mara = store.find_record(KIND_CHARACTER, "c1")
    assert url == mara.image_url == "data:image/png;base64,cG5n"
    assert mara.image_loading is False
    assert client.requests[0].mode == MODE_IMAGE
    assert "Character design sheet for Mara" in client.requests[0].prompt


def test_portrait_failure_clears_flag_and_keeps_old_image(store: ProjectStore) -> None:
    store.finish_image(KIND_CHARACTER, "c1", "data:image/png;base64,T0xE")
    client = ScriptedClient(lambda r: NoImageData("text only"))

    with pytest.raises(NoImageData):
        asyncio.run(generate_portrait(client, store, KIND_CHARACTER, "c1"))

    mara = store.find_record(KIND_CHARACTER, "c1")
    assert mara.image_loading is False
    assert mara.image_url == "data:image/png;base64,T0xE"


def test_portrait_already_in_flight_is_not_requested_again(store: ProjectStore) -> None:
    store.begin_image(KIND_CHARACTER, "c2")
    client = ScriptedClient(lambda r: GeneratedImage(data=b"png", mime_type="image/png"))

    assert asyncio.run(generate_portrait(client, store, KIND_CHARACTER, "c2")) is None
    assert client.requests == []


def test_portraits_run_together_and_report_per_id(store: ProjectStore) -> None:
    def respond(request):
        if "Dr. Imre" in request.prompt:
            return NoImageData("refused")
        return GeneratedImage(data=b"png", mime_type="image/png")

    client = ScriptedClient(respond)

    results = asyncio.run(generate_portraits(client, store, KIND_CHARACTER, ["c1", "c2", "c1"]))

    assert list(results) == ["c1", "c2"]
    assert results["c1"].startswith("data:image/png;base64,")
    assert isinstance(results["c2"], NoImageData)
    assert store.find_record(KIND_CHARACTER, "c2").image_url is None
    assert not any(c.image_loading for c in store.project.characters)


def test_extraction_hands_out_fresh_ids(store: ProjectStore) -> None:
    cast = [
        {"name": "Mara", "age": "34", "role": "protagonist", "personality": "p", "appearance": "a", "visual_prompt": "v"},
        {"name": "Imre", "age": "58", "role": "antagonist", "personality": "p", "appearance": "a", "visual_prompt": "v"},
    ]
    client = ScriptedClient(lambda r: cast)

    characters = asyncio.run(extract_characters(client, store, corpus="INT. WARD"))

    ids = [c.id for c in characters]
    assert len(set(ids)) == 2
    assert "c1" not in ids
    assert store.project.characters == characters
    assert "INT. WARD" in client.requests[0].prompt


def test_scene_extraction(store: ProjectStore) -> None:
    payload = [
        {
            "name": "Ward 7",
            "location": "hospital",
            "time_of_day": "night",
            "description": "Empty beds.",
            "atmosphere": "cold",
            "visual_prompt": "A long dark ward.",
        }
    ]
    client = ScriptedClient(lambda r: payload)

    scenes = asyncio.run(extract_scenes(client, store))

    assert [s.name for s in store.project.scenes] == ["Ward 7"]
    assert store.find_record(KIND_SCENE, scenes[0].id).visual_prompt == "A long dark ward."


def test_outline_options_are_stored_trimmed(store: ProjectStore) -> None:
    client = ScriptedClient(lambda r: ["  Option A  ", "", "Option B", "Option C"])

    options = asyncio.run(generate_outline_options(client, store))

    assert options == ["Option A", "Option B", "Option C"]
    assert store.project.outline_options == options
    assert store.project.idea in client.requests[0].prompt


def test_analyze_sets_idea_genre_and_outline(store: ProjectStore) -> None:
    client = ScriptedClient(lambda r: {"idea": "New idea", "genre": " fantasy", "outline": "# New"})

    asyncio.run(analyze_text(client, store, "Once upon a time " * 10))

    assert (store.project.idea, store.project.genre, store.project.outline) == ("New idea", "Fantasy", "# New")
    assert "'Wuxia'" in client.requests[0].prompt


def test_bible_is_written_without_touching_episodes(store: ProjectStore) -> None:
    store.set_episode(1, "one")
    client = ScriptedClient(lambda r: "# Logline\nA nurse listens.")

    asyncio.run(generate_bible(client, store))

    assert store.project.script_bible.startswith("# Logline")
    assert store.project.episodes == {1: "one"}


def test_bible_needs_an_outline(store: ProjectStore) -> None:
    store.set_outline("   ")
    client = ScriptedClient(lambda r: "unused")

    with pytest.raises(ValueError):
        asyncio.run(generate_bible(client, store))

    assert client.requests == []



def test_extracted_character_without_visual_prompt_gets_a_synthesized_portrait(store: ProjectStore) -> None:
    cast = [{"name": "Nell", "age": "19", "role": "witness", "personality": "quiet", "appearance": "red coat"}]
    client = ScriptedClient(lambda r: cast if r.mode == MODE_STRUCTURED else GeneratedImage(b"png"))

    nell = asyncio.run(extract_characters(client, store))[0]
    asyncio.run(generate_portrait(client, store, KIND_CHARACTER, nell.id))

    assert nell.visual_prompt is None
    assert "Appearance: red coat." in client.requests[1].prompt


def test_portrait_for_a_record_replaced_mid_call_is_dropped(store: ProjectStore) -> None:
    imre = store.find_record(KIND_CHARACTER, "c2")

    def respond(request):
        store.set_characters([imre])
        return GeneratedImage(data=b"png", mime_type="image/png")

    client = ScriptedClient(respond)

    assert asyncio.run(generate_portrait(client, store, KIND_CHARACTER, "c1")) is None
    assert [c.id for c in store.project.characters] == ["c2"]
    assert store.project.characters[0].image_url is None


def test_failed_portrait_for_a_removed_record_keeps_the_real_error(store: ProjectStore) -> None:
    def respond(request):
        store.remove_record(KIND_CHARACTER, "c1")
        return NoImageData("refused")

    client = ScriptedClient(respond)

    with pytest.raises(NoImageData):
        asyncio.run(generate_portrait(client, store, KIND_CHARACTER, "c1"))


def test_concurrent_portraits_survive_a_record_vanishing(store: ProjectStore) -> None:
    def respond(request):
        if "Mara" in request.prompt:
            store.remove_record(KIND_CHARACTER, "c1")
        return GeneratedImage(data=b"png", mime_type="image/png")

    client = ScriptedClient(respond)

    results = asyncio.run(generate_portraits(client, store, KIND_CHARACTER, ["c1", "c2"]))

    assert results["c1"] is None
    assert results["c2"].startswith("data:image/png;base64,")
    assert store.find_record(KIND_CHARACTER, "c2").image_url == results["c2"]
