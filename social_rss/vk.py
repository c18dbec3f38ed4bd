from __future__ import annotations

import math
import re
from typing import Any, Iterable, Mapping

from .attachments import DEFAULT_LANGUAGE, VK_URL, labels_for, render_attachments
from .entities import Entity, EntityKind, render_content
from .errors import ProviderError
from .feed import Author, Feed, FeedItem, normalize_feed, unique_tags
from .markup import make_link, nl2br
from .run_log import RunLogger
from .schema import VkFeedResponse, VkGroup, VkPost, VkProfile, parse_model

PROVIDER_NAME = "VK"

# [id123|Name], [club45|Name], [public45|Name], [event45|Name]
_MENTION_RE = re.compile(r"\[((?:id|club|public|event)\d+)\|([^\]\[]+)\]")
_HASHTAG_RE = re.compile(r"(?<![\w#])#(\w+)")


def check_vk_response(payload: Any) -> Mapping[str, Any]:
    """
    Unwrap {"response": {...}} and raise ProviderError for {"error": {...}}.
    """
    if not isinstance(payload, Mapping):
        raise ProviderError(PROVIDER_NAME, "Unexpected response: expected an object")

    error = payload.get("error")
    if error:
        message = error.get("error_msg") if isinstance(error, Mapping) else error
        raise ProviderError(PROVIDER_NAME, str(message or "unknown error"))

    inner = payload.get("response", payload)
    if not isinstance(inner, Mapping):
        raise ProviderError(PROVIDER_NAME, "Unexpected response: missing response object")
    return inner


def _profile_author(profile: VkProfile, base_url: str) -> Author:
    name = f"{profile.first_name} {profile.last_name}".strip() or f"id{profile.id}"
    return Author(
        name=name,
        avatar_url=profile.photo_100 or profile.photo_50 or "",
        link=f"{base_url}{profile.screen_name or f'id{profile.id}'}",
    )


def _group_author(group: VkGroup, base_url: str) -> Author:
    return Author(
        name=group.name or f"club{group.id}",
        avatar_url=group.photo_100 or group.photo_50 or "",
        link=f"{base_url}{group.screen_name or f'club{group.id}'}",
    )


def build_author_index(
    profiles: Iterable[Any],
    groups: Iterable[Any],
    base_url: str = VK_URL,
) -> dict[int, Author]:
    """
    Map VK owner ids to authors: users by id, communities by negative id.
    Entries that do not validate are skipped.
    """
    index: dict[int, Author] = {}

    for raw in profiles:
        profile = parse_model(VkProfile, raw)
        if profile is not None:
            index[profile.id] = _profile_author(profile, base_url)

    for raw in groups:
        group = parse_model(VkGroup, raw)
        if group is not None:
            index[-abs(group.id)] = _group_author(group, base_url)

    return index


def parse_vk_date(value: Any) -> int | None:
    """Unix seconds from a VK date; None for anything that is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdecimal()):
            return None
    elif not isinstance(value, (int, float)):
        return None
    try:
        return int(value)
    except (ValueError, OverflowError):
        return None


def link_mentions(text: str, base_url: str = VK_URL) -> str:
    """Turn [id123|Name] style mentions into links."""
    return _MENTION_RE.sub(lambda m: make_link(f"{base_url}{m.group(1)}", m.group(2)), text or "")


def hashtags(text: str) -> list[str]:
    return [m.group(1) for m in _HASHTAG_RE.finditer(text or "")]


def hashtag_entities(text: str, base_url: str = VK_URL) -> list[Entity]:
    return [
        Entity(
            kind=EntityKind.HASHTAG,
            match_text=f"#{tag}",
            display_text=f"#{tag}",
            target_url=f"{base_url}feed?section=search&q=%23{tag}",
        )
        for tag in hashtags(text)
    ]


def render_vk_text(text: str, base_url: str = VK_URL) -> str:
    return render_content(
        link_mentions(text, base_url),
        hashtag_entities(text, base_url),
        subject="Item",
    )


def _find_author(post: VkPost, authors: Mapping[int, Author]) -> Author | None:
    author = authors.get(post.owner_id)
    if author is None and post.from_id is not None:
        author = authors.get(post.from_id)
    return author


def normalize_vk_post(
    raw: Mapping[str, Any],
    base_url: str = VK_URL,
    *,
    authors: Mapping[int, Author],
    language: str = DEFAULT_LANGUAGE,
) -> FeedItem | None:
    """
    Normalize one VK post. A repost is rendered as the original post, with the
    reposting author in the title and their comment above the original text.

    Returns None when the post id or a resolvable author is missing.
    """
    post = parse_model(VkPost, raw)
    if post is None:
        return None

    labels = labels_for(language)

    effective = post
    title_suffix = ""
    comment = ""
    if post.copy_history:
        reposter = _find_author(post, authors)
        if reposter is None:
            return None
        effective = post.copy_history[0]
        title_suffix = f" ({labels['repost']} {reposter.name})"
        comment = post.text

    author = _find_author(effective, authors)
    if author is None:
        return None

    blocks: list[str] = []
    if comment.strip():
        blocks.append(render_vk_text(comment, base_url))
    blocks.append(render_vk_text(effective.text, base_url))
    if effective.attachments:
        rendered = render_attachments(effective.attachments, language=language, base_url=base_url)
        blocks.append(nl2br(rendered.strip()))

    return FeedItem(
        title=author.name + title_suffix,
        link=f"{base_url}wall{effective.owner_id}_{effective.post_id}",
        content="<br />\n".join(b for b in blocks if b),
        timestamp=parse_vk_date(post.date),
        tags=unique_tags(hashtags(comment) + hashtags(effective.text)),
        author=author,
    )


def normalize_vk_feed(
    response: Any,
    *,
    base_url: str = VK_URL,
    title: str = PROVIDER_NAME,
    language: str = DEFAULT_LANGUAGE,
    logger: RunLogger | None = None,
) -> Feed:
    """
    Normalize a newsfeed.get / wall.get (extended=1) response: items plus the
    profiles and groups that own them.
    """
    parsed = parse_model(VkFeedResponse, response)
    if parsed is None:
        raise ProviderError(PROVIDER_NAME, "Unexpected response: items/profiles/groups must be lists")

    authors = build_author_index(parsed.profiles, parsed.groups, base_url)

    return normalize_feed(
        parsed.items,
        title,
        base_url,
        normalize_post=lambda raw: normalize_vk_post(
            raw, base_url, authors=authors, language=language
        ),
        logger=logger,
    )
