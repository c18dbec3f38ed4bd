from __future__ import annotations

from typing import Any, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

M = TypeVar("M", bound=BaseModel)

# Raw provider posts are validated here, once, before normalization. Required
# fields are declared without defaults; everything else is optional so a
# missing sub-field degrades to an empty value instead of dropping the post.


def _with_fallback(data: Any, target: str, source: str) -> Any:
    if not isinstance(data, Mapping):
        return data
    if data.get(target) not in (None, ""):
        return data
    fallback = data.get(source)
    if fallback is None:
        return data
    out = dict(data)
    out[target] = fallback
    return out


def _id_to_str(data: Any, key: str) -> Any:
    if isinstance(data, Mapping) and isinstance(data.get(key), int):
        out = dict(data)
        out[key] = str(data[key])
        return out
    return data


def _drop_nulls(data: Any) -> Any:
    # null means "absent": optional fields fall back to defaults, required ones fail.
    if isinstance(data, Mapping):
        return {k: v for k, v in data.items() if v is not None}
    return data


# Twitter (API v1.1, tweet_mode=extended)


class _EntityModel(BaseModel):
    """Entity sub-objects: null fields fall back to their defaults."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _skip_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)


class TwitterUser(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(min_length=1)
    screen_name: str = Field(min_length=1)
    profile_image_url_https: str | None = None


class HashtagEntity(_EntityModel):
    text: str = ""


class MentionEntity(_EntityModel):
    screen_name: str = ""
    name: str | None = None


class UrlEntity(_EntityModel):
    url: str = ""
    expanded_url: str | None = None
    display_url: str | None = None


class VideoVariantModel(_EntityModel):
    content_type: str = ""
    url: str = ""
    bitrate: int | None = None


class VideoInfo(_EntityModel):
    variants: list[VideoVariantModel] = Field(default_factory=list)


class MediaEntity(_EntityModel):
    type: str = ""
    url: str = ""
    media_url_https: str | None = None
    expanded_url: str | None = None
    video_info: VideoInfo | None = None


class TweetEntities(BaseModel):
    """
    The entities / extended_entities object. Keys the package does not know are
    kept in model_extra, in payload order.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    hashtags: list[HashtagEntity] = Field(default_factory=list)
    user_mentions: list[MentionEntity] = Field(default_factory=list)
    urls: list[UrlEntity] = Field(default_factory=list)
    symbols: list[HashtagEntity] = Field(default_factory=list)
    media: list[MediaEntity] | None = None

    @model_validator(mode="before")
    @classmethod
    def _skip_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)


class Tweet(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id_str: str = Field(min_length=1)
    full_text: str = ""
    created_at: Any = None
    user: TwitterUser
    entities: TweetEntities = Field(default_factory=TweetEntities)
    extended_entities: TweetEntities | None = None
    retweeted_status: Tweet | None = None
    # Validated separately: a broken quote drops the quote, not the tweet.
    quoted_status: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _fill_fallbacks(cls, data: Any) -> Any:
        data = _id_to_str(_with_fallback(data, "id_str", "id"), "id_str")
        data = _with_fallback(data, "full_text", "text")
        return _drop_nulls(data)


# VK (newsfeed.get / wall.get, extended=1)


class VkProfile(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    first_name: str = ""
    last_name: str = ""
    screen_name: str | None = None
    photo_50: str | None = None
    photo_100: str | None = None


class VkGroup(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    name: str = ""
    screen_name: str | None = None
    photo_50: str | None = None
    photo_100: str | None = None


class VkPost(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    post_id: int
    owner_id: int
    from_id: int | None = None
    date: Any = None
    text: str = ""
    attachments: list[Any] = Field(default_factory=list)
    copy_history: list[VkPost] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _fill_fallbacks(cls, data: Any) -> Any:
        data = _with_fallback(data, "post_id", "id")
        data = _with_fallback(data, "owner_id", "source_id")
        return _drop_nulls(data)


class VkFeedResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    items: list[Any] = Field(default_factory=list)
    profiles: list[Any] = Field(default_factory=list)
    groups: list[Any] = Field(default_factory=list)


def parse_model(model: type[M], raw: Any) -> M | None:
    """Validate raw into model; None when the payload does not fit."""
    try:
        return model.model_validate(raw)
    except ValidationError:
        return None
