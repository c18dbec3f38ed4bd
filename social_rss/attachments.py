from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from .markup import make_img, make_link

VK_URL = "https://vk.com/"


class AttachmentKind(str, Enum):
    PHOTO = "photo"
    POSTED_PHOTO = "posted_photo"
    VIDEO = "video"
    AUDIO = "audio"
    DOC = "doc"
    GRAFFITI = "graffiti"
    LINK = "link"
    NOTE = "note"
    APP = "app"
    POLL = "poll"
    PAGE = "page"
    ALBUM = "album"
    PHOTOS_LIST = "photos_list"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: str | None) -> "AttachmentKind":
        try:
            return cls((name or "").strip())
        except ValueError:
            return cls.UNKNOWN


LABELS: dict[str, dict[str, str]] = {
    "ru": {
        "audio": "Аудиозапись",
        "doc": "Документ",
        "graffiti": "Граффити",
        "link": "Ссылка",
        "note": "Заметка",
        "app": "Приложение",
        "poll": "Опрос",
        "page": "Страница",
        "album": "Альбом",
        "album_size": "фото",
        "photos_list": "Список фотографий",
        "unknown_attachment": "Item contains unknown attachment type",
        "repost": "репост",
    },
    "en": {
        "audio": "Audio",
        "doc": "Document",
        "graffiti": "Graffiti",
        "link": "Link",
        "note": "Note",
        "app": "Application",
        "poll": "Poll",
        "page": "Page",
        "album": "Album",
        "album_size": "photos",
        "photos_list": "Photo list",
        "unknown_attachment": "Item contains unknown attachment type",
        "repost": "repost by",
    },
}

DEFAULT_LANGUAGE = "ru"


def labels_for(language: str) -> dict[str, str]:
    lang = (language or "").strip().casefold()
    if lang not in LABELS:
        raise ValueError(f"Unsupported label language: {language!r}")
    return LABELS[lang]


@dataclass(frozen=True)
class Attachment:
    kind: AttachmentKind
    payload: Mapping[str, Any] = field(default_factory=dict)
    type_name: str = ""


@dataclass(frozen=True)
class RenderContext:
    labels: Mapping[str, str]
    base_url: str = VK_URL


def attachment_from_raw(raw: Mapping[str, Any]) -> Attachment:
    """
    Build an Attachment from a VK attachment object: {"type": T, T: {...}}.
    """
    type_name = raw.get("type") if isinstance(raw, Mapping) else None
    type_name = type_name if isinstance(type_name, str) else ""

    payload = raw.get(type_name) if type_name and isinstance(raw, Mapping) else None
    if not isinstance(payload, Mapping):
        payload = {}

    return Attachment(
        kind=AttachmentKind.from_name(type_name),
        payload=payload,
        type_name=type_name,
    )


def _text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value)
    return ""


def _first_text(payload: Mapping[str, Any], keys: Iterable[str]) -> str:
    for key in keys:
        value = _text(payload, key).strip()
        if value:
            return value
    return ""


def _largest_size_url(sizes: Any, *, url_key: str = "url") -> str:
    if not isinstance(sizes, list):
        return ""

    best_url = ""
    best_area = -1
    for size in sizes:
        if not isinstance(size, Mapping):
            continue
        url = _text(size, url_key) or _text(size, "src")
        if not url:
            continue
        try:
            area = int(size.get("width") or 0) * int(size.get("height") or 0)
        except (TypeError, ValueError, OverflowError):
            area = 0
        if area > best_area:
            best_area = area
            best_url = url
    return best_url


_PHOTO_KEYS = ("photo_2560", "photo_1280", "photo_807", "photo_604", "photo_130", "src_big", "src")
_VIDEO_PREVIEW_KEYS = ("photo_800", "photo_640", "photo_320", "photo_130")


def _photo_url(payload: Mapping[str, Any]) -> str:
    return _largest_size_url(payload.get("sizes")) or _first_text(payload, _PHOTO_KEYS)


Renderer = Callable[[Attachment, RenderContext], str]


def _render_photo(att: Attachment, ctx: RenderContext) -> str:
    return make_img(_photo_url(att.payload))


def _render_posted_photo(att: Attachment, ctx: RenderContext) -> str:
    return make_img(_text(att.payload, "photo_604") or _photo_url(att.payload))


def _render_video(att: Attachment, ctx: RenderContext) -> str:
    payload = att.payload
    preview = _largest_size_url(payload.get("image")) or _first_text(payload, _VIDEO_PREVIEW_KEYS)

    owner_id = _text(payload, "owner_id")
    video_id = _text(payload, "id")
    link = f"{ctx.base_url}video{owner_id}_{video_id}" if owner_id and video_id else ""

    title = _text(payload, "title")
    parts = [p for p in (make_img(preview, link or None), make_link(link, title)) if p]
    return "\n".join(parts)


def _render_audio(att: Attachment, ctx: RenderContext) -> str:
    artist = _text(att.payload, "artist")
    title = _text(att.payload, "title")
    return f"{ctx.labels['audio']}: {artist} &ndash; {title}"


def _render_doc(att: Attachment, ctx: RenderContext) -> str:
    return f"{ctx.labels['doc']}: " + make_link(_text(att.payload, "url"), _text(att.payload, "title"))


def _render_graffiti(att: Attachment, ctx: RenderContext) -> str:
    url = _first_text(att.payload, ("photo_604", "url", "photo_586", "photo_200"))
    return f"{ctx.labels['graffiti']}: " + make_img(url)


def _render_link(att: Attachment, ctx: RenderContext) -> str:
    payload = att.payload
    url = _text(payload, "url")
    link = make_link(url, _text(payload, "title"))
    description = _text(payload, "description")

    preview = _text(payload, "image_src")
    if not preview:
        photo = payload.get("photo")
        if isinstance(photo, Mapping):
            preview = _photo_url(photo)
    if preview:
        description = make_img(preview, url or None) + "\n" + description

    return f"\n{ctx.labels['link']}: {link}\n{description}"


def _render_note(att: Attachment, ctx: RenderContext) -> str:
    return f"{ctx.labels['note']}: " + make_link(_text(att.payload, "view_url"), _text(att.payload, "title"))


def _render_app(att: Attachment, ctx: RenderContext) -> str:
    return f"{ctx.labels['app']}: {_text(att.payload, 'name')}"


def _render_poll(att: Attachment, ctx: RenderContext) -> str:
    return f"{ctx.labels['poll']}: {_text(att.payload, 'question')}"


def _render_page(att: Attachment, ctx: RenderContext) -> str:
    return f"{ctx.labels['page']}: " + make_link(_text(att.payload, "view_url"), _text(att.payload, "title"))


def _render_album(att: Attachment, ctx: RenderContext) -> str:
    title = _text(att.payload, "title")
    size = _text(att.payload, "size")
    return f"{ctx.labels['album']}: {title} ({size} {ctx.labels['album_size']})"


def _render_photos_list(att: Attachment, ctx: RenderContext) -> str:
    return f"[{ctx.labels['photos_list']}]"


def _render_unknown(att: Attachment, ctx: RenderContext) -> str:
    name = att.type_name or att.kind.value
    return f"[{ctx.labels['unknown_attachment']} {name}]"


RENDERERS: dict[AttachmentKind, Renderer] = {
    AttachmentKind.PHOTO: _render_photo,
    AttachmentKind.POSTED_PHOTO: _render_posted_photo,
    AttachmentKind.VIDEO: _render_video,
    AttachmentKind.AUDIO: _render_audio,
    AttachmentKind.DOC: _render_doc,
    AttachmentKind.GRAFFITI: _render_graffiti,
    AttachmentKind.LINK: _render_link,
    AttachmentKind.NOTE: _render_note,
    AttachmentKind.APP: _render_app,
    AttachmentKind.POLL: _render_poll,
    AttachmentKind.PAGE: _render_page,
    AttachmentKind.ALBUM: _render_album,
    AttachmentKind.PHOTOS_LIST: _render_photos_list,
    AttachmentKind.UNKNOWN: _render_unknown,
}


def render_attachment(attachment: Attachment, *, ctx: RenderContext) -> str:
    renderer = RENDERERS.get(attachment.kind, _render_unknown)
    return renderer(attachment, ctx)


def render_attachments(
    attachments: Iterable[Attachment | Mapping[str, Any]],
    *,
    language: str = DEFAULT_LANGUAGE,
    base_url: str = VK_URL,
) -> str:
    """
    Render attachments into text blocks joined by line breaks, in input order.

    Raw VK attachment mappings are accepted and converted with attachment_from_raw.
    """
    ctx = RenderContext(labels=labels_for(language), base_url=base_url)

    blocks: list[str] = []
    for item in attachments:
        att = item if isinstance(item, Attachment) else attachment_from_raw(item)
        blocks.append(render_attachment(att, ctx=ctx))
    return "\n".join(blocks)
