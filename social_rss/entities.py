from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import reduce
from typing import Iterable, Sequence

from .markup import make_img, make_link, make_video, nl2br


class EntityKind(str, Enum):
    HASHTAG = "hashtag"
    MENTION = "mention"
    URL = "url"
    SYMBOL = "symbol"
    MEDIA = "media"
    UNKNOWN = "unknown"


class MediaSubtype(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"
    ANIMATED_GIF = "animated_gif"
    OTHER = "other"

    @classmethod
    def from_name(cls, name: str | None) -> "MediaSubtype":
        try:
            return cls((name or "").strip())
        except ValueError:
            return cls.OTHER


# Entities are applied kind by kind in this order, list order within a kind.
# With repeated tokens the order decides which occurrence each entity claims.
KIND_ORDER: tuple[EntityKind, ...] = (
    EntityKind.HASHTAG,
    EntityKind.MENTION,
    EntityKind.URL,
    EntityKind.SYMBOL,
    EntityKind.MEDIA,
    EntityKind.UNKNOWN,
)

_KIND_RANK = {kind: rank for rank, kind in enumerate(KIND_ORDER)}

MP4_CONTENT_TYPE = "video/mp4"


@dataclass(frozen=True)
class VideoVariant:
    content_type: str
    url: str


@dataclass(frozen=True)
class Entity:
    """
    An inline annotation of post text. Entities carry no offsets: the target span
    is found by searching for match_text in the text being rewritten.
    """

    kind: EntityKind
    match_text: str = ""
    display_text: str = ""
    target_url: str = ""

    media_subtype: MediaSubtype | None = None
    media_url: str = ""
    video_variants: tuple[VideoVariant, ...] = ()

    type_name: str = ""


def substitute_first(text: str, search: str, replacement: str) -> str:
    """
    Replace the first case-insensitive occurrence of search that is followed by
    whitespace or the end of the text. Whitespace after the match is kept.
    """
    if not search:
        return text
    pattern = re.compile(re.escape(search) + r"(?=\s|$)", re.IGNORECASE)
    return pattern.sub(lambda _m: replacement, text, count=1)


def first_mp4_url(variants: Iterable[VideoVariant]) -> str | None:
    for variant in variants:
        if variant.content_type == MP4_CONTENT_TYPE and variant.url:
            return variant.url
    return None


def _apply_media(text: str, entity: Entity, subject: str) -> str:
    subtype = entity.media_subtype or MediaSubtype.OTHER

    if subtype is MediaSubtype.PHOTO:
        media = make_img(entity.media_url, entity.target_url or None)
    elif subtype in (MediaSubtype.VIDEO, MediaSubtype.ANIMATED_GIF):
        video_url = first_mp4_url(entity.video_variants)
        if video_url is None:
            media = make_img(entity.media_url)
        else:
            media = make_video(video_url, entity.media_url)
    else:
        name = entity.type_name or subtype.value
        return f"{text}\n[{subject} contains unknown media type {name}]"

    return substitute_first(text, entity.match_text, "") + "\n" + media


def apply_entity(text: str, entity: Entity, *, subject: str = "Tweet") -> str:
    """Apply a single entity to the text; one step of the render_content fold."""
    kind = entity.kind

    if kind in (EntityKind.HASHTAG, EntityKind.MENTION, EntityKind.URL, EntityKind.SYMBOL):
        return substitute_first(
            text,
            entity.match_text,
            make_link(entity.target_url, entity.display_text or entity.match_text),
        )

    if kind is EntityKind.MEDIA:
        return _apply_media(text, entity, subject)

    name = entity.type_name or kind.value
    return f"{text}\n[{subject} contains unknown entity type {name}]"


def order_entities(entities: Iterable[Entity]) -> list[Entity]:
    # sorted() is stable, so list order survives within each kind.
    return sorted(entities, key=lambda e: _KIND_RANK.get(e.kind, len(KIND_ORDER)))


def render_content(text: str, entities: Sequence[Entity], *, subject: str = "Tweet") -> str:
    """
    Rewrite post text into markup.

    Entities are folded over the text in KIND_ORDER; each one sees the output of
    the previous step and rewrites at most one occurrence. The result is trimmed
    and line breaks become <br />.
    """
    rendered = reduce(
        lambda acc, entity: apply_entity(acc, entity, subject=subject),
        order_entities(entities),
        text or "",
    )
    return nl2br(rendered.strip())
