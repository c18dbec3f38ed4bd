from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .config_schema import AppConfig
from .feed import Feed
from .run_log import RunLogger
from .twitter import check_twitter_response, normalize_twitter_feed
from .vk import check_vk_response, normalize_vk_feed

FeedBuilder = Callable[[Any, AppConfig, RunLogger | None], Feed]


def _twitter_feed(payload: Any, config: AppConfig, logger: RunLogger | None) -> Feed:
    return normalize_twitter_feed(
        check_twitter_response(payload),
        base_url=config.twitter.base_url,
        title=config.twitter.title,
        logger=logger,
    )


def _vk_feed(payload: Any, config: AppConfig, logger: RunLogger | None) -> Feed:
    return normalize_vk_feed(
        check_vk_response(payload),
        base_url=config.vk.base_url,
        title=config.vk.title,
        language=config.vk.language,
        logger=logger,
    )


@dataclass(frozen=True)
class Provider:
    name: str
    build_feed: FeedBuilder

    def normalize(
        self,
        payload: Any,
        config: AppConfig | None = None,
        *,
        logger: RunLogger | None = None,
    ) -> Feed:
        """
        Turn a decoded provider response into a Feed.

        Raises ProviderError when the response is an error payload.
        """
        return self.build_feed(payload, config or AppConfig(), logger)


PROVIDERS: dict[str, Provider] = {
    "twitter": Provider(name="twitter", build_feed=_twitter_feed),
    "vk": Provider(name="vk", build_feed=_vk_feed),
}


def get_provider(name: str) -> Provider:
    key = (name or "").strip().casefold()
    provider = PROVIDERS.get(key)
    if provider is None:
        raise ValueError(f"Unknown provider type: {name}")
    return provider
