from __future__ import annotations

import pytest

from core.text_utils import _safe_name, clean_episode_title, head_window, tail_window


@pytest.mark.parametrize(
    "raw, number, expected",
    [
        ("Episode 3: The Intercom", 3, "The Intercom"),
        ("Ep 03 - The Intercom", 3, "The Intercom"),
        ("EPISODE 12：Flood", 12, "Flood"),
        ("Part 2 — Night", 2, "Night"),
        ("Chapter 4 Dawn", 4, "Dawn"),
        ("\u200bEpisode\u00a01: Arrival", 1, "Arrival"),
        ("Episode 5:", 5, "Episode 5"),
        ("", 5, "Episode 5"),
    ],
)
def test_clean_episode_title(raw: str, number: int, expected: str) -> None:
    assert clean_episode_title(raw, number) == expected


def test_windows_leave_short_text_alone() -> None:
    assert head_window("short", 10) == "short"
    assert tail_window("short", 10) == "short"
    assert head_window(None, 10) == ""


def test_windows_mark_the_cut() -> None:
    assert head_window("abcdef", 3) == "abc..."
    assert tail_window("abcdef", 3) == "...def"


def test_safe_name() -> None:
    assert _safe_name("Night Shift: Ward #7") == "Night_Shift_Ward_7"
