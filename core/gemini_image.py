# core/gemini_image.py
# -*- coding: utf-8 -*-
import base64
import binascii
import io
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image


@dataclass(frozen=True)
class GeneratedImage:
    data: bytes
    mime_type: str = "image/png"

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"

    def to_pil(self) -> Image.Image:
        return Image.open(io.BytesIO(self.data))


def first_image_from_parts(parts) -> Optional[GeneratedImage]:
    """First inline_data payload among response parts, or None."""
    if not parts:
        return None
    for p in parts:
        inline = getattr(p, "inline_data", None)
        if inline and getattr(inline, "data", None):
            data = inline.data
            if isinstance(data, str):
                # some transports hand back base64 text instead of bytes
                data = base64.b64decode(data)
            return GeneratedImage(data=data, mime_type=getattr(inline, "mime_type", None) or "image/png")
    return None


_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<payload>.+)$", flags=re.S)


def decode_data_url(url: str) -> Tuple[str, bytes]:
    m = _DATA_URL.match(url or "")
    if not m:
        raise ValueError("not a base64 data URL")
    try:
        return m.group("mime"), base64.b64decode(m.group("payload"), validate=True)
    except binascii.Error as e:
        raise ValueError(f"bad base64 payload: {e}") from e


def to_png(url: str) -> bytes:
    """Re-encode a portrait data URL as PNG bytes (export uses one format)."""
    mime, payload = decode_data_url(url)
    img = GeneratedImage(payload, mime).to_pil()
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA")
    out = io.BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()
