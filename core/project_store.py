"""
ProjectStore: the one owner of a Project.

All mutation goes through the named methods below so invariants (unique plan
numbers, reset clearing dependent fields, transient image flags) live in one
place. Listeners are told which field changed after every mutation, which is
how batch progress becomes visible entry by entry.
"""
import logging
from typing import Callable, Iterable, List, Optional, Sequence

from core import episode_plan
from core.data_models import BatchProgress, Character, EpisodePlanEntry, Project, Scene
from core.errors import BatchAlreadyRunning, InvalidEpisodeNumber

logger = logging.getLogger(__name__)

Listener = Callable[[str, "ProjectStore"], None]

KIND_CHARACTER = "character"
KIND_SCENE = "scene"


def _sorted_plan(project: Project) -> Project:
    project.episode_plan = sorted(project.episode_plan, key=lambda e: e.number)
    return project


class ProjectStore:
    def __init__(self, project: Optional[Project] = None):
        self._project = _sorted_plan(project or Project())
        self._batch: Optional[BatchProgress] = None
        self._listeners: List[Listener] = []

    # ---- observation -------------------------------------------------

    @property
    def project(self) -> Project:
        """Live view; read it, change it through the store."""
        return self._project

    def snapshot(self) -> Project:
        return self._project.model_copy(deep=True)

    @property
    def batch_progress(self) -> Optional[BatchProgress]:
        return self._batch

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self, what: str):
        for listener in list(self._listeners):
            listener(what, self)

    # ---- whole project -----------------------------------------------

    def load(self, project: Project):
        if self._batch is not None:
            raise BatchAlreadyRunning("cannot replace the project while a batch is running")
        self._project = _sorted_plan(project)
        self._changed("project")

    def set_name(self, name: str):
        self._project.name = name
        self._changed("name")

    def set_idea(self, idea: str):
        self._project.idea = idea
        self._changed("idea")

    def set_genre(self, genre: str):
        self._project.genre = genre
        self._changed("genre")

    def set_outline_options(self, options: Sequence[str]):
        self._project.outline_options = list(options)
        self._changed("outline_options")

    def set_outline(self, outline: str):
        self._project.outline = outline
        self._changed("outline")

    def set_bible(self, text: str):
        self._project.script_bible = text
        self._changed("script_bible")

    # ---- characters / scenes -----------------------------------------

    def set_characters(self, characters: Sequence[Character]):
        self._project.characters = list(characters)
        self._changed("characters")

    def set_scenes(self, scenes: Sequence[Scene]):
        self._project.scenes = list(scenes)
        self._changed("scenes")

    def _records(self, kind: str):
        if kind == KIND_CHARACTER:
            return self._project.characters, "characters"
        if kind == KIND_SCENE:
            return self._project.scenes, "scenes"
        raise ValueError(f"unknown record kind: {kind}")

    def find_record(self, kind: str, record_id: str):
        records, _ = self._records(kind)
        for r in records:
            if r.id == record_id:
                return r
        raise KeyError(f"no {kind} with id {record_id}")

    def update_record(self, kind: str, record_id: str, **changes):
        records, field = self._records(kind)
        for i, r in enumerate(records):
            if r.id == record_id:
                changes.pop("id", None)
                records[i] = r.model_copy(update=changes)
                self._changed(field)
                return records[i]
        raise KeyError(f"no {kind} with id {record_id}")

    def remove_record(self, kind: str, record_id: str):
        records, field = self._records(kind)
        records[:] = [r for r in records if r.id != record_id]
        self._changed(field)

    def begin_image(self, kind: str, record_id: str) -> bool:
        """Flag an image call as in flight; False if one already is."""
        if self.find_record(kind, record_id).image_loading:
            return False
        self.update_record(kind, record_id, image_loading=True)
        return True

    def finish_image(self, kind: str, record_id: str, image_url: str) -> bool:
        """Attach a finished image. False if the record was replaced or removed meanwhile."""
        return self._settle_image(kind, record_id, image_url=image_url, image_loading=False)

    def fail_image(self, kind: str, record_id: str) -> bool:
        # previous image_url (if any) stays
        return self._settle_image(kind, record_id, image_loading=False)

    def _settle_image(self, kind: str, record_id: str, **changes) -> bool:
        try:
            self.update_record(kind, record_id, **changes)
        except KeyError:
            logger.info("%s %s is gone; image result dropped", kind, record_id)
            return False
        return True

    # ---- episode plan ------------------------------------------------

    def replace_plan(self, entries: Sequence[EpisodePlanEntry]):
        """Bulk-set the plan, kept in number order. Generated episodes are kept."""
        entries = sorted(entries, key=lambda e: e.number)
        episode_plan.check_unique(entries)
        self._project.episode_plan = entries
        self._changed("episode_plan")

    def append_entries(self, entries: Sequence[EpisodePlanEntry]):
        entries = sorted(entries, key=lambda e: e.number)
        episode_plan.check_append(self._project.episode_plan, entries)
        self._project.episode_plan = self._project.episode_plan + entries
        self._changed("episode_plan")

    def append_blank_entry(self, title: str = "", summary: str = "") -> EpisodePlanEntry:
        number = episode_plan.next_number(self._project.episode_plan)
        entry = EpisodePlanEntry(number=number, title=title or f"Episode {number}", summary=summary)
        self.append_entries([entry])
        return entry

    def _entry_index(self, number: int) -> int:
        for i, e in enumerate(self._project.episode_plan):
            if e.number == number:
                return i
        raise InvalidEpisodeNumber(f"episode {number} is not in the plan", number)

    def update_summary(self, number: int, summary: str):
        """Takes effect on the next (re)generation; existing text is untouched."""
        i = self._entry_index(number)
        plan = self._project.episode_plan
        plan[i] = plan[i].model_copy(update={"summary": summary})
        self._changed("episode_plan")

    def update_title(self, number: int, title: str):
        i = self._entry_index(number)
        plan = self._project.episode_plan
        plan[i] = plan[i].model_copy(update={"title": title})
        self._changed("episode_plan")

    def delete_entry(self, number: int):
        if self._batch is not None:
            raise BatchAlreadyRunning("cannot renumber the plan while a batch is running")
        plan, episodes = episode_plan.delete_and_renumber(
            self._project.episode_plan, self._project.episodes, number
        )
        self._project.episode_plan = plan
        self._project.episodes = episodes
        self._changed("episode_plan")
        self._changed("episodes")

    def reset_plan(self):
        """Clear plan, episodes and bible together so nothing refers to a stale plan."""
        if self._batch is not None:
            raise BatchAlreadyRunning("cannot reset the plan while a batch is running")
        self._project.episode_plan = []
        self._project.episodes = {}
        self._project.script_bible = ""
        self._changed("episode_plan")
        self._changed("episodes")
        self._changed("script_bible")

    # ---- episodes ----------------------------------------------------

    def set_episode(self, number: int, text: str):
        self._entry_index(number)
        # new dict so readers holding the old mapping never see it change under them
        episodes = dict(self._project.episodes)
        episodes[number] = text
        self._project.episodes = episodes
        self._changed("episodes")

    def clear_episode(self, number: int):
        """Forget generated text so the next batch picks the entry up again."""
        if number in self._project.episodes:
            episodes = dict(self._project.episodes)
            del episodes[number]
            self._project.episodes = episodes
            self._changed("episodes")

    def pending_numbers(self, exclude: Iterable[int] = ()) -> List[int]:
        skip = set(exclude)
        pending = episode_plan.pending_numbers(self._project.episode_plan, self._project.episodes)
        return [n for n in pending if n not in skip]

    # ---- batch progress ----------------------------------------------

    def start_batch(self, total: int) -> BatchProgress:
        if self._batch is not None:
            raise BatchAlreadyRunning("a batch is already running")
        self._batch = BatchProgress(current=0, total=total)
        self._changed("batch_progress")
        return self._batch

    def advance_batch(self, current: int) -> BatchProgress:
        if self._batch is None:
            raise RuntimeError("no batch is running")
        self._batch = BatchProgress(current=current, total=self._batch.total)
        self._changed("batch_progress")
        return self._batch

    def end_batch(self):
        self._batch = None
        self._changed("batch_progress")
