import re
import unicodedata


def _fold(s: str) -> str:
    s = ''.join(c for c in unicodedata.normalize('NFD', s) if unicodedata.category(c) != 'Mn')
    return s.lower().strip()


def _safe_name(s: str) -> str:
    s = re.sub(r"[^\w\- ]+", "", s, flags=re.U)
    return s.strip().replace(" ", "_")[:60]


def head_window(text: str, limit: int) -> str:
    """First `limit` characters, with an ellipsis marker when cut."""
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def tail_window(text: str, limit: int) -> str:
    """Last `limit` characters (the part closest to the next episode)."""
    text = text or ""
    if len(text) <= limit:
        return text
    return "..." + text[-limit:]


_TITLE_PREFIX_PUNCT = re.compile(
    r'^\s*(?:ep(?:isode)?|part|chapter)\s*\.?\s*\d+\s*[:：\-\–\—\.\·•]\s*', flags=re.IGNORECASE
)
_TITLE_PREFIX_BARE = re.compile(r'^\s*(?:ep(?:isode)?|part|chapter)\s*\.?\s*\d+\s+', flags=re.IGNORECASE)


def clean_episode_title(raw_title: str, number: int) -> str:
    """
    Normalize a model-produced episode title:
    - strip numbering prefixes such as 'Episode 3:', 'Ep 03 -', 'Part 2 —'
      (NBSP / zero-width spaces and fullwidth colons included)
    - fall back to 'Episode {number}' when nothing is left.
    """
    t = (raw_title or "").replace("\u00A0", " ").replace("\u200b", "").strip()
    if not t:
        return f"Episode {number}"
    t = _TITLE_PREFIX_PUNCT.sub('', t)
    t = _TITLE_PREFIX_BARE.sub('', t)
    t = t.strip(" -:：·.•—–").strip()
    return t or f"Episode {number}"
