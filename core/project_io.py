# -*- coding: utf-8 -*-
import html
import io
import json
import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.data_models import Project
from core.gemini_image import to_png
from core.text_utils import _safe_name

logger = logging.getLogger(__name__)

APP_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = APP_DIR / "projects"

NOT_GENERATED = "(not generated yet)"

# camelCase keys written by the browser version of the studio
_KEY_ALIASES = {
    "episodePlan": "episode_plan",
    "scriptBible": "script_bible",
    "outlineOptions": "outline_options",
    "imageUrl": "image_url",
    "imageLoading": "image_loading",
    "visualPrompt": "visual_prompt",
    "timeOfDay": "time_of_day",
}


def _rename_keys(d: Dict[str, Any]) -> Dict[str, Any]:
    return {_KEY_ALIASES.get(k, k): v for k, v in (d or {}).items()}


def _migrate_project_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    data = _rename_keys(dict(data or {}))
    data.setdefault("name", "untitled")
    data.setdefault("outline_options", [])
    data.setdefault("characters", [])
    data.setdefault("scenes", [])
    data.setdefault("episode_plan", [])
    data.setdefault("episodes", {})
    data.setdefault("script_bible", "")

    for key in ("characters", "scenes"):
        records = []
        for r in data.get(key) or []:
            r = _rename_keys(r)
            r["image_loading"] = False
            records.append(r)
        data[key] = records

    episodes = {}
    for k, v in (data.get("episodes") or {}).items():
        try:
            n = int(k)
        except (TypeError, ValueError):
            logger.warning("dropping episode with non-numeric key %r", k)
            continue
        episodes[n] = v if isinstance(v, str) else str(v or "")
    data["episodes"] = episodes
    return data


def save_project(proj: Project, data_dir: Optional[Path] = None) -> Path:
    data_dir = Path(data_dir or DATA_DIR)
    data_dir.mkdir(parents=True, exist_ok=True)
    f = data_dir / f"{_safe_name(proj.name) or 'untitled'}.json"
    with f.open("w", encoding="utf-8") as fp:
        fp.write(proj.model_dump_json(indent=2))
    return f


def load_project(path: Path, data_dir: Optional[Path] = None) -> Project:
    p = Path(path)
    if not p.is_absolute():
        p = Path(data_dir or DATA_DIR) / p
    with p.open("r", encoding="utf-8") as fp:
        raw = json.load(fp)
    return Project.model_validate(_migrate_project_dict(raw))


def list_projects(data_dir: Optional[Path] = None) -> List[Path]:
    d = Path(data_dir or DATA_DIR)
    if not d.exists():
        return []
    return sorted(d.glob("*.json"))


def export_txt(proj: Project) -> str:
    parts = [f"[SERIES BIBLE]\n\n{proj.script_bible or ''}\n"]
    for e in proj.episode_plan:
        parts.append(
            f"\n====================\nEpisode {e.number}: {e.title}\n====================\n\n"
            f"{proj.episodes.get(e.number, NOT_GENERATED)}"
        )
    return "\n".join(parts)


def _html_block(text: str) -> str:
    return html.escape(text or "").replace("\n", "<br/>")


def export_doc(proj: Project) -> str:
    """Word-compatible HTML (.doc): bible first, then one page per episode."""
    out = [
        "<html xmlns:o='urn:schemas-microsoft-com:office:office' "
        "xmlns:w='urn:schemas-microsoft-com:office:word' xmlns='http://www.w3.org/TR/REC-html40'>",
        f"<head><meta charset='utf-8'><title>{html.escape(proj.name)}</title></head>",
        "<body>",
        "<h1>Series Bible</h1>",
        f"<div style=\"white-space: pre-wrap;\">{_html_block(proj.script_bible)}</div>",
        "<hr/>",
    ]
    for e in proj.episode_plan:
        out.append(f"<h2 style=\"page-break-before: always;\">Episode {e.number}: {html.escape(e.title)}</h2>")
        out.append(f"<div style=\"white-space: pre-wrap;\">{_html_block(proj.episodes.get(e.number, NOT_GENERATED))}</div>")
    out.append("</body></html>")
    return "\n".join(out)


def export_zip(proj: Project) -> bytes:
    mem = io.BytesIO()
    with zipfile.ZipFile(mem, "w", zipfile.ZIP_DEFLATED) as z:
        z.writestr("project.json", proj.model_dump_json(indent=2))
        z.writestr("outline.md", proj.outline or "")
        z.writestr("bible.md", proj.script_bible or "")
        z.writestr("plan.json", json.dumps([e.model_dump() for e in proj.episode_plan], ensure_ascii=False, indent=2))

        for e in proj.episode_plan:
            if e.number in proj.episodes:
                z.writestr(f"episodes/episode_{e.number:03d}_{_safe_name(e.title)}.md", proj.episodes[e.number])

        for kind, records in (("characters", proj.characters), ("scenes", proj.scenes)):
            for r in records:
                if not r.image_url:
                    continue
                try:
                    png = to_png(r.image_url)
                except (ValueError, OSError) as e:
                    logger.warning("skipping unreadable image for %s: %s", r.name, e)
                    continue
                z.writestr(f"images/{kind}/{_safe_name(r.name) or r.id}.png", png)

    mem.seek(0)
    return mem.read()
