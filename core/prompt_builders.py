# -*- coding: utf-8 -*-
"""
Prompt text (and response schema) for every generation call.

Builders are pure: same inputs, byte-identical prompt. Nothing here reads the
clock, randomness or global state, so a retried episode asks exactly the same
question as the first attempt.
"""
from typing import Optional, Sequence, Union

from core.data_models import Character, EpisodePlanEntry, Scene
from core.presets import genre_block, image_style_for
from core.schema import ArraySchema, IntegerSchema, ObjectSchema, StringSchema, object_of
from core.text_utils import head_window, tail_window

OUTLINE_OPTION_COUNT = 3

OUTLINE_OPTIONS_SCHEMA = ArraySchema(items=StringSchema())

ANALYZE_SCHEMA = object_of(
    idea=StringSchema(),
    genre=StringSchema(),
    outline=StringSchema(),
)

CHARACTERS_SCHEMA = ArraySchema(
    items=ObjectSchema(
        properties=dict(
            name=StringSchema(),
            age=StringSchema(),
            role=StringSchema(),
            personality=StringSchema(),
            appearance=StringSchema(
                description="Detailed visual description for image generation: hair, eyes, build, clothing style."
            ),
            visual_prompt=StringSchema(description="One-paragraph English prompt for a character portrait."),
        ),
        required=frozenset({"name", "age", "role", "personality", "appearance"}),
    )
)

SCENES_SCHEMA = ArraySchema(
    items=ObjectSchema(
        properties=dict(
            name=StringSchema(),
            location=StringSchema(),
            time_of_day=StringSchema(),
            description=StringSchema(),
            atmosphere=StringSchema(),
            visual_prompt=StringSchema(description="One-paragraph English prompt for a location concept image."),
        ),
        required=frozenset({"name", "location", "time_of_day", "description", "atmosphere"}),
    )
)

EPISODE_PLAN_SCHEMA = ArraySchema(
    items=object_of(
        number=IntegerSchema(),
        title=StringSchema(),
        summary=StringSchema(),
    )
)


def _roster_text(characters: Sequence[Character]) -> str:
    if not characters:
        return "(no character sheet yet)"
    return "\n".join(f"- {c.name} ({c.role}): {c.personality}" for c in characters)


def _scenes_text(scenes: Sequence[Scene]) -> str:
    return "\n".join(
        f"- {s.name}: {s.location} {s.time_of_day}. {s.description} Atmosphere: {s.atmosphere}".strip()
        for s in scenes
    )


def build_outline_options_prompt(idea: str, genre: str) -> str:
    """
    Three materially different outlines from one idea. JSON array of strings.
    """
    profile = genre_block(genre)
    return f"""
You are a veteran head writer. Based on the idea below, draft {OUTLINE_OPTION_COUNT} STRONGLY DIFFERENT story outlines.

Genre: {genre}
Core idea: {idea}

{profile}

Each version must take a different angle (for example: A leans on suspense and reversals,
B on emotional entanglement, C on a large-scale epic). Each outline is complete on its own:
premise, main conflict, key characters, act structure and ending.

Return ONLY a JSON array of exactly {OUTLINE_OPTION_COUNT} strings, one full outline per string. No markdown around the JSON.
""".strip()


def build_analyze_prompt(text: str, genres: Sequence[str], window: int = 5000) -> str:
    """Recover idea / genre / outline from an existing text or script."""
    genre_list = ", ".join(f"'{g}'" for g in genres)
    return f"""
Analyze the text or script below. Extract its core idea, infer the closest genre, and rewrite
its story as a clean outline.

Input text:
{head_window(text, window)}

Return JSON:
{{
  "idea": "one-sentence core idea",
  "genre": "the closest of [{genre_list}]",
  "outline": "the reorganized outline, in Markdown"
}}
""".strip()


def build_character_prompt(outline: str, corpus: str = "") -> str:
    """Main cast (3-5) with portrait-ready appearance notes."""
    corpus_part = f"\nExisting script material (for reference):\n{corpus}\n" if corpus else ""
    return f"""
From the story outline below, extract the main characters (3-5 people).
For each: name, age, role (protagonist, antagonist, ...), personality, and a detailed
appearance description usable for AI illustration. Also write a visual_prompt: one English
paragraph describing the character for a portrait.

Outline:
{outline}
{corpus_part}
Return a JSON array of character objects only.
""".strip()


def build_scene_prompt(outline: str, corpus: str = "") -> str:
    corpus_part = f"\nExisting script material (for reference):\n{corpus}\n" if corpus else ""
    return f"""
From the story outline below, extract the recurring key locations / scenes (3-8).
For each: name, location, time_of_day, a short description, the atmosphere, and a
visual_prompt: one English paragraph for a location concept image.

Outline:
{outline}
{corpus_part}
Return a JSON array of scene objects only.
""".strip()


def build_episode_plan_prompt(outline: str, count: int) -> str:
    """
    Season plan with EXACTLY `count` episodes numbered 1..count.
    A shorter answer is accepted by the caller; the prompt is what asks for the count.
    """
    return f"""
Based on the story outline below, plan a short-drama series of EXACTLY {count} episodes.

Outline:
{outline}

Requirements:
- Produce exactly {count} entries, numbered 1 to {count} with no gaps and no repeats.
- Each entry has a number, a short title and a 2-4 sentence summary of that episode's plot.
- Keep continuity between episodes: setup, escalation, turn and payoff; every episode ends on a hook.

Return a JSON array of {{"number", "title", "summary"}} objects only.
""".strip()


def build_extend_plan_prompt(outline: str, last: EpisodePlanEntry, count: int) -> str:
    first = last.number + 1
    final = last.number + count
    return f"""
The series below is being extended. Continue the episode plan with EXACTLY {count} new episode(s).

Outline:
{outline}

The current last episode is {last.number}: "{last.title}"
{last.summary}

Requirements:
- Number the new episodes {first} to {final}, continuing directly from episode {last.number}.
- Each entry has a number, a short title and a 2-4 sentence summary.
- Pick up the threads left open by episode {last.number}; do not restart or recap the story.

Return a JSON array of {{"number", "title", "summary"}} objects only.
""".strip()


def build_episode_script_prompt(
    outline: str,
    characters: Sequence[Character],
    entry: EpisodePlanEntry,
    prev_content: str,
    outline_window: int = 1000,
    previous_window: int = 800,
    genre: str = "",
) -> str:
    """
    Full script for one planned episode, in screenplay format.
    Outline and previous-episode text are windowed so the prompt stays bounded
    no matter how long the project grows.
    """
    profile = genre_block(genre)
    previously = tail_window(prev_content, previous_window) if prev_content else "This is the first episode."
    return f"""
You are a professional screenwriter. Write the complete script for **Episode {entry.number}: {entry.title}**.

[Series outline]
{head_window(outline, outline_window)}

[This episode]
{entry.summary}

[Characters]
{_roster_text(characters)}

[Previously]
{previously}

{profile}

[Format rules]
1. Scene headings: "number. PLACE - DAY/NIGHT - INT/EXT", bold, e.g. "**1. LI FAMILY LIVING ROOM - DAY - INT**".
2. Action lines flush left, describing what we see; no "Shot:" prefix.
3. Dialogue: **Name**: "line"
4. Voice-over / inner monologue: **Name (V.O.)**: "line"; narration: **Narrator**: "line";
   acting cues in parentheses before the line: **Ai**: (impatient) "Are you coming or not?"

Output the script body only.
""".strip()


def build_bible_prompt(outline: str, characters: Sequence[Character], scenes: Sequence[Scene] = ()) -> str:
    """Series bible in Markdown: logline, world rules, character sheets, key locations."""
    scenes_part = f"\n[Key locations]\n{_scenes_text(scenes)}\n" if scenes else ""
    return f"""
Write the SERIES BIBLE for this project in Markdown.

[Outline]
{outline}

[Characters]
{_roster_text(characters)}
{scenes_part}
Sections:
# Logline
# Themes & Tone
# World Rules
# Characters (one subsection each: arc, relationships, voice)
# Key Locations
# Season Arc

Output Markdown only.
""".strip()


def build_portrait_prompt(record: Union[Character, Scene], genre: str, size_hint: Optional[str] = None) -> str:
    """
    Image prompt for a character sheet or a location still. A precomputed
    visual_prompt wins; otherwise one is composed from the record's fields.
    """
    style = image_style_for(genre)
    style_part = f" Genre look: {style}." if style else ""
    size_part = f"Generate an image ~{size_hint}. " if size_hint else ""
    if record.visual_prompt:
        return f"{size_part}{record.visual_prompt.strip()}{style_part}".strip()

    if isinstance(record, Character):
        return f"""
{size_part}Character design sheet for {record.name}, a {record.age} year old {record.role} in a {genre} story.

Make a 2x2 grid image (4 panels):
1. Top left: detailed close-up face portrait.
2. Top right: full body, front view.
3. Bottom left: full body, side view.
4. Bottom right: back view or a dynamic action pose.

Appearance: {record.appearance}.
Personality: {record.personality}.

Style: high quality concept art, cinematic lighting, detailed texture, clean background.{style_part}
""".strip()

    return f"""
{size_part}Location concept art for "{record.name}" in a {genre} story.
Place: {record.location}. Time: {record.time_of_day}.
{record.description}
Atmosphere: {record.atmosphere}.
Style: wide establishing shot, cinematic lighting, no people in focus.{style_part}
""".strip()
