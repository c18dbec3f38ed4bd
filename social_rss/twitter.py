from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from .entities import Entity, EntityKind, MediaSubtype, VideoVariant, render_content
from .errors import ProviderError
from .feed import Author, Feed, FeedItem, Quote, normalize_feed, unique_tags
from .run_log import RunLogger
from .schema import MediaEntity, Tweet, TweetEntities, parse_model

PROVIDER_NAME = "Twitter"
TWITTER_URL = "https://twitter.com/"

_CREATED_AT_FORMAT = "%a %b %d %H:%M:%S %z %Y"


def parse_created_at(value: Any) -> int | None:
    """
    Unix seconds from a Twitter created_at ("Wed Oct 10 20:19:24 +0000 2018").
    ISO-8601 strings are accepted as well; anything else gives None.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    s = value.strip()
    try:
        return int(datetime.strptime(s, _CREATED_AT_FORMAT).timestamp())
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return int(parsed.timestamp())


def check_twitter_response(payload: Any) -> list[Any]:
    """
    Return the list of raw tweets, or raise ProviderError for an error payload.
    """
    if isinstance(payload, Mapping):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            message = first.get("message") if isinstance(first, Mapping) else None
            raise ProviderError(PROVIDER_NAME, str(message or first))
        if errors:
            raise ProviderError(PROVIDER_NAME, str(errors))
        raise ProviderError(PROVIDER_NAME, "Unexpected response: expected a list of tweets")

    if not isinstance(payload, list):
        raise ProviderError(PROVIDER_NAME, "Unexpected response: expected a list of tweets")
    return payload


def _merged_entity_groups(tweet: Tweet) -> dict[str, Any]:
    groups: dict[str, Any] = {
        "hashtags": tweet.entities.hashtags,
        "user_mentions": tweet.entities.user_mentions,
        "urls": tweet.entities.urls,
        "symbols": tweet.entities.symbols,
        "media": tweet.entities.media or [],
    }
    groups.update(tweet.entities.model_extra or {})

    extended: TweetEntities | None = tweet.extended_entities
    if extended is not None:
        # extended_entities carries the full media list (up to four photos).
        if extended.media is not None:
            groups["media"] = extended.media
        for key, value in (extended.model_extra or {}).items():
            groups[key] = value
    return groups


def _media_entity(media: MediaEntity) -> Entity:
    variants: tuple[VideoVariant, ...] = ()
    if media.video_info is not None:
        variants = tuple(
            VideoVariant(content_type=v.content_type, url=v.url) for v in media.video_info.variants
        )

    return Entity(
        kind=EntityKind.MEDIA,
        match_text=media.url,
        target_url=media.expanded_url or "",
        media_subtype=MediaSubtype.from_name(media.type),
        media_url=media.media_url_https or "",
        video_variants=variants,
        type_name=media.type,
    )


def tweet_entities(tweet: Tweet, base_url: str = TWITTER_URL) -> list[Entity]:
    """
    Flatten entities and extended_entities into Entity records.

    Known groups come first (hashtags, mentions, urls, symbols, media); any other
    entity group becomes unknown entities named after its key.
    """
    groups = _merged_entity_groups(tweet)
    out: list[Entity] = []

    for tag in groups["hashtags"]:
        out.append(
            Entity(
                kind=EntityKind.HASHTAG,
                match_text=f"#{tag.text}" if tag.text else "",
                display_text=f"#{tag.text}",
                target_url=f"{base_url}hashtag/{tag.text}",
            )
        )

    for mention in groups["user_mentions"]:
        name = mention.screen_name
        out.append(
            Entity(
                kind=EntityKind.MENTION,
                match_text=f"@{name}" if name else "",
                display_text=f"@{name}",
                target_url=f"{base_url}{name}",
            )
        )

    for url in groups["urls"]:
        out.append(
            Entity(
                kind=EntityKind.URL,
                match_text=url.url,
                display_text=url.display_url or url.expanded_url or url.url,
                target_url=url.expanded_url or url.url,
            )
        )

    for symbol in groups["symbols"]:
        out.append(
            Entity(
                kind=EntityKind.SYMBOL,
                match_text=f"${symbol.text}" if symbol.text else "",
                display_text=f"${symbol.text}",
                target_url=f"{base_url}search?q=%24{symbol.text}",
            )
        )

    for media in groups["media"]:
        out.append(_media_entity(media))

    for key, value in groups.items():
        if key in ("hashtags", "user_mentions", "urls", "symbols", "media"):
            continue
        values = value if isinstance(value, list) else [value]
        for _ in values:
            out.append(Entity(kind=EntityKind.UNKNOWN, type_name=key))

    return out


def tweet_permalink(tweet: Tweet, base_url: str = TWITTER_URL) -> str:
    return f"{base_url}{tweet.user.screen_name}/status/{tweet.id_str}"


def render_tweet(tweet: Tweet, base_url: str = TWITTER_URL) -> str:
    return render_content(tweet.full_text, tweet_entities(tweet, base_url))


def _quote(tweet: Tweet, base_url: str) -> Quote | None:
    if tweet.quoted_status is None:
        return None
    quoted = parse_model(Tweet, tweet.quoted_status)
    if quoted is None:
        return None
    return Quote(
        title=quoted.user.name,
        link=tweet_permalink(quoted, base_url),
        content=render_tweet(quoted, base_url),
    )


def normalize_tweet(raw: Mapping[str, Any], base_url: str = TWITTER_URL) -> FeedItem | None:
    """
    Normalize one timeline entry. Returns None when the tweet (or the original of
    a retweet) lacks its author or id.
    """
    wrapper = parse_model(Tweet, raw)
    if wrapper is None:
        return None

    tweet = wrapper
    title_suffix = ""
    if wrapper.retweeted_status is not None:
        tweet = wrapper.retweeted_status
        title_suffix = f" (RT by {wrapper.user.name})"

    user = tweet.user
    return FeedItem(
        title=user.name + title_suffix,
        link=tweet_permalink(tweet, base_url),
        content=render_tweet(tweet, base_url),
        # The wrapper's date: when the entry appeared in the timeline.
        timestamp=parse_created_at(wrapper.created_at),
        tags=unique_tags(tag.text for tag in tweet.entities.hashtags),
        author=Author(
            name=user.name,
            avatar_url=user.profile_image_url_https or "",
            link=f"{base_url}{user.screen_name}",
        ),
        quote=_quote(tweet, base_url),
    )


def normalize_twitter_feed(
    raw_feed: Iterable[Any],
    *,
    base_url: str = TWITTER_URL,
    title: str = PROVIDER_NAME,
    logger: RunLogger | None = None,
) -> Feed:
    return normalize_feed(
        raw_feed,
        title,
        base_url,
        normalize_post=lambda raw: normalize_tweet(raw, base_url),
        logger=logger,
    )
