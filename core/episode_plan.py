"""
Pure operations on an episode plan (ordered EpisodePlanEntry list) and the
generated-episode mapping keyed by episode number.

Nothing here mutates its arguments; ProjectStore applies the results.
"""
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from core.data_models import EpisodePlanEntry
from core.errors import InvalidEpisodeNumber


def pending_numbers(plan: Sequence[EpisodePlanEntry], episodes: Mapping[int, str]) -> List[int]:
    """
    Plan numbers with no generated text, ascending by number. The store keeps
    the plan sorted, so this is also plan order. "" counts as generated.
    """
    return sorted(e.number for e in plan if e.number not in episodes)


def max_number(plan: Sequence[EpisodePlanEntry]) -> int:
    return max((e.number for e in plan), default=0)


def next_number(plan: Sequence[EpisodePlanEntry]) -> int:
    return max_number(plan) + 1


def check_unique(entries: Iterable[EpisodePlanEntry]):
    seen = set()
    for e in entries:
        if e.number in seen:
            raise InvalidEpisodeNumber(f"episode number {e.number} appears more than once", e.number)
        seen.add(e.number)


def check_append(plan: Sequence[EpisodePlanEntry], entries: Sequence[EpisodePlanEntry]):
    """New numbers must be unique and strictly above the current maximum."""
    check_unique(entries)
    floor = max_number(plan)
    for e in entries:
        if e.number <= floor:
            raise InvalidEpisodeNumber(
                f"episode {e.number} does not continue the plan (current last is {floor})", e.number
            )


def entries_from_payload(items: Sequence[Mapping], clean_title=None) -> List[EpisodePlanEntry]:
    """Structured-mode dicts ({number, title, summary}) to plan entries, order kept."""
    out = []
    for item in items:
        number = int(item["number"])
        if number < 1:
            raise InvalidEpisodeNumber(f"episode number must be >= 1, got {number}", number)
        title = item.get("title", "")
        if clean_title is not None:
            title = clean_title(title, number)
        out.append(EpisodePlanEntry(number=number, title=title, summary=item.get("summary", "")))
    return out


def delete_and_renumber(
    plan: Sequence[EpisodePlanEntry],
    episodes: Mapping[int, str],
    number: int,
) -> Tuple[List[EpisodePlanEntry], Dict[int, str]]:
    """
    Drop entry `number` and renumber the plan to 1..N-1 in plan order.
    Generated text moves with its entry. The deleted entry's text is dropped,
    as is any text keyed to a number the plan never had: after renumbering
    such a key could land on a live entry.
    """
    if not any(e.number == number for e in plan):
        raise InvalidEpisodeNumber(f"episode {number} is not in the plan", number)

    kept = [e for e in plan if e.number != number]
    mapping = {e.number: i for i, e in enumerate(kept, start=1)}
    new_plan = [e.model_copy(update={"number": mapping[e.number]}) for e in kept]

    new_episodes = {}
    for old, new in mapping.items():
        if old in episodes:
            new_episodes[new] = episodes[old]
    return new_plan, new_episodes
