from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Protocol

from .run_log import RunLogger


@dataclass(frozen=True)
class Author:
    name: str
    avatar_url: str = ""
    link: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "avatar_url": self.avatar_url, "link": self.link}


@dataclass(frozen=True)
class Quote:
    """An abbreviated nested post: no author, tags or quote of its own."""

    title: str
    link: str
    content: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "link": self.link, "content": self.content}


@dataclass(frozen=True)
class FeedItem:
    """
    Provider-neutral feed entry, ready for RSS/Atom rendering by the caller.

    content is always a string (possibly empty); timestamp is unix seconds or None
    when the provider date could not be parsed.
    """

    title: str
    link: str
    content: str
    author: Author
    timestamp: int | None = None
    tags: tuple[str, ...] = ()
    quote: Quote | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "content": self.content,
            "timestamp": self.timestamp,
            "tags": list(self.tags),
            "author": self.author.to_dict(),
            "quote": self.quote.to_dict() if self.quote is not None else None,
        }


@dataclass(frozen=True)
class Feed:
    title: str
    link: str
    items: tuple[FeedItem, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "items": [item.to_dict() for item in self.items],
        }


class FeedSource(Protocol):
    """
    Fetch side of a provider. Returns the decoded provider response for the home
    timeline (username=None) or a single user.
    """

    def fetch_feed(self, username: str | None = None) -> Any: ...


PostNormalizer = Callable[[Mapping[str, Any]], FeedItem | None]


def unique_tags(values: Iterable[str]) -> tuple[str, ...]:
    out: list[str] = []
    seen: set[str] = set()
    for value in values:
        tag = (value or "").strip()
        if not tag or tag in seen:
            continue
        seen.add(tag)
        out.append(tag)
    return tuple(out)


def normalize_feed(
    raw_feed: Iterable[Any],
    title: str,
    link: str,
    *,
    normalize_post: PostNormalizer,
    logger: RunLogger | None = None,
) -> Feed:
    """
    Map raw posts to feed items, keeping their order.

    Posts the normalizer cannot parse (it returns None) are dropped; nothing is
    reordered or deduplicated.
    """
    items: list[FeedItem] = []
    dropped = 0

    for index, raw in enumerate(raw_feed):
        item = normalize_post(raw) if isinstance(raw, Mapping) else None
        if item is None:
            dropped += 1
            if logger is not None:
                logger.warning("post_dropped", index=index, reason="unparseable_post")
            continue
        items.append(item)

    if logger is not None:
        logger.info("feed_normalized", title=title, items=len(items), dropped=dropped)

    return Feed(title=title, link=link, items=tuple(items))
