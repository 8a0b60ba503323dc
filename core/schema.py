# -*- coding: utf-8 -*-
"""
Closed schema type for structured (JSON) generation.

A schema is one of StringSchema, IntegerSchema, ArraySchema, ObjectSchema.
The same value is sent to the backend (to_genai) and used to check what comes
back (parse_structured), so the request and the validation never drift apart.
"""
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Union

from google.genai import types as gai_types

from core.errors import MalformedOutput


@dataclass(frozen=True)
class StringSchema:
    description: str = ""


@dataclass(frozen=True)
class IntegerSchema:
    description: str = ""


@dataclass(frozen=True)
class ArraySchema:
    items: "Schema"
    description: str = ""


@dataclass(frozen=True)
class ObjectSchema:
    properties: Dict[str, "Schema"] = field(default_factory=dict)
    required: FrozenSet[str] = frozenset()
    description: str = ""


Schema = Union[StringSchema, IntegerSchema, ArraySchema, ObjectSchema]


def object_of(required: bool = True, **properties: Schema) -> ObjectSchema:
    """ObjectSchema shorthand; every property is required unless required=False."""
    return ObjectSchema(
        properties=dict(properties),
        required=frozenset(properties) if required else frozenset(),
    )


def to_genai(schema: Schema) -> gai_types.Schema:
    desc = schema.description or None
    if isinstance(schema, StringSchema):
        return gai_types.Schema(type=gai_types.Type.STRING, description=desc)
    if isinstance(schema, IntegerSchema):
        return gai_types.Schema(type=gai_types.Type.INTEGER, description=desc)
    if isinstance(schema, ArraySchema):
        return gai_types.Schema(type=gai_types.Type.ARRAY, items=to_genai(schema.items), description=desc)
    if isinstance(schema, ObjectSchema):
        return gai_types.Schema(
            type=gai_types.Type.OBJECT,
            properties={name: to_genai(sub) for name, sub in schema.properties.items()},
            # keep declaration order so the request is reproducible
            required=[name for name in schema.properties if name in schema.required],
            description=desc,
        )
    raise TypeError(f"not a schema: {schema!r}")


def validate(schema: Schema, value: Any, path: str = "$") -> Any:
    if isinstance(schema, StringSchema):
        if not isinstance(value, str):
            raise MalformedOutput(f"{path}: expected string, got {type(value).__name__}")
        return value
    if isinstance(schema, IntegerSchema):
        if isinstance(value, bool):
            raise MalformedOutput(f"{path}: expected integer, got boolean")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise MalformedOutput(f"{path}: expected integer, got {type(value).__name__}")
    if isinstance(schema, ArraySchema):
        if not isinstance(value, list):
            raise MalformedOutput(f"{path}: expected array, got {type(value).__name__}")
        return [validate(schema.items, item, f"{path}[{i}]") for i, item in enumerate(value)]
    if isinstance(schema, ObjectSchema):
        if not isinstance(value, dict):
            raise MalformedOutput(f"{path}: expected object, got {type(value).__name__}")
        missing = [name for name in schema.properties if name in schema.required and name not in value]
        if missing:
            raise MalformedOutput(f"{path}: missing required field(s) {', '.join(missing)}")
        out = {}
        for name, sub in schema.properties.items():
            if name in value:
                out[name] = validate(sub, value[name], f"{path}.{name}")
        return out
    raise TypeError(f"not a schema: {schema!r}")


_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", flags=re.S | re.I)


def parse_structured(raw: str, schema: Schema) -> Any:
    """
    Parse raw model output as `schema`. A single surrounding ```json fence is
    tolerated; anything else that is not valid JSON of the declared shape
    raises MalformedOutput.
    """
    text = raw or ""
    m = _FENCE.match(text)
    if m:
        text = m.group(1)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedOutput(f"output is not valid JSON: {e}", raw=raw) from e
    try:
        return validate(schema, data)
    except MalformedOutput as e:
        e.raw = raw
        raise
