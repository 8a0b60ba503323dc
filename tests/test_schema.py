from __future__ import annotations

import json

import pytest
from google.genai import types as gai_types

from core.errors import MalformedOutput
from core.prompt_builders import ANALYZE_SCHEMA, CHARACTERS_SCHEMA, EPISODE_PLAN_SCHEMA, SCENES_SCHEMA
from core.schema import ArraySchema, IntegerSchema, StringSchema, object_of, parse_structured, to_genai

PLAN = [
    {"number": 1, "title": "Arrival", "summary": "Mara starts the night shift.\nNothing is wrong. Yet."},
    {"number": 2, "title": "Intercom", "summary": 'A voice says "room 12".'},
    {"number": 3, "title": "Room 12", "summary": "The room has been sealed since 1994."},
]


def test_plan_array_parses_with_fields_verbatim() -> None:
    parsed = parse_structured(json.dumps(PLAN), EPISODE_PLAN_SCHEMA)

    assert len(parsed) == 3
    assert parsed == PLAN


def test_fenced_json_is_accepted() -> None:
    raw = "```json\n" + json.dumps(PLAN[:1]) + "\n```"

    assert parse_structured(raw, EPISODE_PLAN_SCHEMA) == PLAN[:1]


@pytest.mark.parametrize(
    "raw",
    [
        json.dumps(PLAN)[:-20],  # cut mid-array
        "Here is your plan: " + json.dumps(PLAN),
        "",
        "[{'number': 1}]",
    ],
)
def test_invalid_syntax_is_malformed_not_partial(raw: str) -> None:
    with pytest.raises(MalformedOutput) as info:
        parse_structured(raw, EPISODE_PLAN_SCHEMA)

    assert info.value.raw == raw


@pytest.mark.parametrize(
    "value, where",
    [
        ([{"number": 1, "title": "x"}], "summary"),
        ([{"number": "one", "title": "x", "summary": "y"}], "$[0].number"),
        ([{"number": True, "title": "x", "summary": "y"}], "$[0].number"),
        ({"number": 1, "title": "x", "summary": "y"}, "expected array"),
    ],
)
def test_wrong_shape_is_malformed(value: object, where: str) -> None:
    with pytest.raises(MalformedOutput) as info:
        parse_structured(json.dumps(value), EPISODE_PLAN_SCHEMA)

    assert where in str(info.value)


def test_integral_float_is_an_integer() -> None:
    parsed = parse_structured('[{"number": 2.0, "title": "t", "summary": "s"}]', EPISODE_PLAN_SCHEMA)

    assert parsed[0]["number"] == 2
    assert isinstance(parsed[0]["number"], int)


def test_optional_fields_may_be_absent() -> None:
    schema = object_of(required=False, name=StringSchema(), age=IntegerSchema())

    assert parse_structured('{"name": "Mara"}', schema) == {"name": "Mara"}


def test_to_genai_keeps_structure_and_required_order() -> None:
    converted = to_genai(ANALYZE_SCHEMA)

    assert converted.type == gai_types.Type.OBJECT
    assert list(converted.properties) == ["idea", "genre", "outline"]
    assert converted.required == ["idea", "genre", "outline"]

    nested = to_genai(ArraySchema(items=ArraySchema(items=IntegerSchema())))
    assert nested.items.items.type == gai_types.Type.INTEGER


def test_cast_and_scenes_parse_without_visual_prompt() -> None:
    cast = '[{"name": "Mara", "age": "34", "role": "lead", "personality": "stubborn", "appearance": "dark hair"}]'
    scenes = '[{"name": "Ward 7", "location": "hospital", "time_of_day": "night", "description": "d", "atmosphere": "a"}]'

    assert parse_structured(cast, CHARACTERS_SCHEMA)[0]["name"] == "Mara"
    assert "visual_prompt" not in parse_structured(scenes, SCENES_SCHEMA)[0]
    assert "visual_prompt" not in to_genai(CHARACTERS_SCHEMA).items.required


def test_cast_still_needs_its_core_fields() -> None:
    with pytest.raises(MalformedOutput) as info:
        parse_structured('[{"name": "Mara", "visual_prompt": "v"}]', CHARACTERS_SCHEMA)

    assert "appearance" in str(info.value)
