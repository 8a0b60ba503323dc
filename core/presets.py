# -*- coding: utf-8 -*-
"""
Genre registry for the script studio.
Each genre carries tone/style/world hints that prompt builders inject as a
profile block. Genres not listed here are accepted as free text and simply
get no profile block.
"""
from core.text_utils import _fold

GENRES = {
    "Wuxia": {
        "tagline": "Sworn brothers, lost manuals and debts paid in blood.",
        "tone": "chivalrous, tragic, sweeping",
        "style": "named techniques, footwork and inner energy; formal address",
        "world": "sects, clans, mountain inns and a martial alliance",
        "tropes": ["tournament duel", "stolen manual", "brother against brother"],
        "taboos": ["future weapons", "modern slang"],
        "image_style": "misty rope bridges, flowing robes, palm force rippling leaves",
    },
    "Urban Romance": {
        "tagline": "Two careers, one city, a misunderstanding that will not die.",
        "tone": "warm, teasing, with sharp emotional turns",
        "style": "quick dialogue, subtext, inner monologue at turning points",
        "world": "offices, rooftops, late-night convenience stores",
        "tropes": ["contract relationship", "rival colleagues", "second chance"],
        "taboos": ["melodrama without motive"],
        "image_style": "soft city bokeh, warm interior light, close-ups of hands and eyes",
    },
    "CEO Romance": {
        "tagline": "Power, pride and a love that hurts before it heals.",
        "tone": "high-stakes, angsty, cathartic reversals",
        "style": "short punchy scenes, cliffhanger endings, strong reversals",
        "world": "corporate towers, family banquets, hospital corridors",
        "tropes": ["mistaken identity", "arranged marriage", "secret child", "regret arc"],
        "taboos": ["abuse played as romance without consequence"],
        "image_style": "glass towers at night, tailored suits, cold blue palette",
    },
    "Time Travel": {
        "tagline": "A modern mind in an old world, and a clock that will not wait.",
        "tone": "dramatic opening, shock then adaptation, rising pace",
        "style": "clash of eras, sharp inner monologue",
        "world": "a historical or invented dynasty with unfamiliar rules",
        "tropes": ["new body", "modern knowledge in an old court", "changing fate"],
        "taboos": ["long scientific explanations that stall the story"],
        "image_style": "swirling light transitions, warm/cold contrast",
    },
    "Sci-Fi": {
        "tagline": "One invention, every consequence.",
        "tone": "tense, curious, ethically loaded",
        "style": "grounded technical detail, sparse exposition",
        "world": "near-future cities, stations, labs",
        "tropes": ["first contact", "rogue AI", "corporate cover-up"],
        "taboos": ["technobabble as plot resolution"],
        "image_style": "clean hard surfaces, volumetric light, cool teal palette",
    },
    "Mystery": {
        "tagline": "A cold scene, a warm lie, and a twist at the end.",
        "tone": "calm, logical, escalating unease",
        "style": "investigation language, planted clues, fair-play reveals",
        "world": "task forces, city cameras, old houses",
        "tropes": ["confrontation", "scene reconstruction", "false time of death"],
        "taboos": ["supernatural solutions without setup"],
        "image_style": "sodium street lights, crime scene tape, red string boards",
    },
    "Fantasy": {
        "tagline": "An old magic waking in the wrong hands.",
        "tone": "wondrous, perilous, mythic",
        "style": "clear magic rules, vivid set pieces",
        "world": "kingdoms, ruins, hidden realms",
        "tropes": ["chosen heir", "forbidden spell", "quest companions"],
        "taboos": ["magic that solves everything"],
        "image_style": "painterly landscapes, glowing runes, rich fabric texture",
    },
}

PROFILE_KEYS = ["tagline", "tone", "style", "world", "tropes", "taboos", "image_style"]


def resolve_genre(name: str) -> str:
    """Registry spelling of `name` (case and accents ignored), else `name` as given."""
    wanted = _fold(name or "")
    for key in GENRES:
        if _fold(key) == wanted:
            return key
    return (name or "").strip()


def genre_block(name: str) -> str:
    g = GENRES.get(resolve_genre(name), {})
    if not g:
        return ""
    lines = ["[GENRE PROFILE]"]
    for k in PROFILE_KEYS:
        v = g.get(k)
        if v is None:
            continue
        if isinstance(v, (list, tuple)):
            vv = ", ".join(v)
        else:
            vv = str(v)
        lines.append(f"- {k}: {vv}")
    return "\n".join(lines)


def image_style_for(name: str) -> str:
    return GENRES.get(resolve_genre(name), {}).get("image_style", "")
