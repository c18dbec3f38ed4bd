from __future__ import annotations

from .attachments import Attachment, AttachmentKind, render_attachments
from .config import load_config
from .config_schema import AppConfig
from .entities import Entity, EntityKind, MediaSubtype, render_content
from .errors import ConfigError, PayloadError, ProviderError
from .feed import Author, Feed, FeedItem, FeedSource, Quote, normalize_feed
from .providers import Provider, get_provider
from .twitter import normalize_tweet, normalize_twitter_feed
from .vk import normalize_vk_feed, normalize_vk_post

__all__ = [
    "AppConfig",
    "Attachment",
    "AttachmentKind",
    "Author",
    "ConfigError",
    "Entity",
    "EntityKind",
    "Feed",
    "FeedItem",
    "FeedSource",
    "MediaSubtype",
    "PayloadError",
    "Provider",
    "ProviderError",
    "Quote",
    "get_provider",
    "load_config",
    "normalize_feed",
    "normalize_tweet",
    "normalize_twitter_feed",
    "normalize_vk_feed",
    "normalize_vk_post",
    "render_attachments",
    "render_content",
]
