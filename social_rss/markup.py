from __future__ import annotations

import html
import re

_LINE_BREAK_RE = re.compile(r"(\r\n|\n\r|\n|\r)")


def _attr(value: str) -> str:
    return html.escape(value or "", quote=True)


def make_link(url: str, label: str = "") -> str:
    """
    Inline hyperlink. The label falls back to the url; without a url only the label
    is returned as plain text.
    """
    target = (url or "").strip()
    text = label or target
    if not target:
        return text
    return f'<a href="{_attr(target)}">{text}</a>'


def make_img(url: str, link_url: str | None = None) -> str:
    src = (url or "").strip()
    if not src:
        return ""
    img = f'<img src="{_attr(src)}" />'
    if link_url:
        return make_link(link_url, img)
    return img


def make_video(video_url: str, poster_url: str) -> str:
    src = (video_url or "").strip()
    if not src:
        return make_img(poster_url)
    poster = (poster_url or "").strip()
    if poster:
        return f'<video src="{_attr(src)}" poster="{_attr(poster)}" controls></video>'
    return f'<video src="{_attr(src)}" controls></video>'


def nl2br(text: str) -> str:
    """Insert <br /> before every line break, keeping the break itself."""
    return _LINE_BREAK_RE.sub(r"<br />\1", text or "")
