from __future__ import annotations

import copy
import unittest
from typing import Any

from social_rss.entities import EntityKind
from social_rss.errors import ProviderError
from social_rss.feed import Quote
from social_rss.schema import Tweet
from social_rss.twitter import (
    check_twitter_response,
    normalize_tweet,
    normalize_twitter_feed,
    parse_created_at,
    tweet_entities,
)


def _tweet(**overrides: Any) -> dict[str, Any]:
    base: dict[str, Any] = {
        "created_at": "Wed Oct 10 20:19:24 +0000 2018",
        "id": 1050118621198921728,
        "id_str": "1050118621198921728",
        "full_text": "Hello #python and @bob https://t.co/abc",
        "user": {
            "name": "Alice",
            "screen_name": "alice",
            "profile_image_url_https": "https://pbs.example/alice.jpg",
        },
        "entities": {
            "hashtags": [{"text": "python", "indices": [6, 13]}],
            "symbols": [],
            "user_mentions": [{"screen_name": "bob", "name": "Bob", "id": 2}],
            "urls": [
                {
                    "url": "https://t.co/abc",
                    "expanded_url": "https://example.com/page",
                    "display_url": "example.com/page",
                }
            ],
        },
    }
    base.update(overrides)
    return base


_EXPECTED_CONTENT = (
    'Hello <a href="https://twitter.com/hashtag/python">#python</a> and '
    '<a href="https://twitter.com/bob">@bob</a> '
    '<a href="https://example.com/page">example.com/page</a>'
)


class TestNormalizeTweet(unittest.TestCase):
    def test_plain_tweet(self) -> None:
        item = normalize_tweet(_tweet())
        self.assertIsNotNone(item)
        assert item is not None

        self.assertEqual(item.title, "Alice")
        self.assertEqual(item.link, "https://twitter.com/alice/status/1050118621198921728")
        self.assertEqual(item.content, _EXPECTED_CONTENT)
        self.assertEqual(item.timestamp, 1539202764)
        self.assertEqual(item.tags, ("python",))
        self.assertEqual(item.author.name, "Alice")
        self.assertEqual(item.author.avatar_url, "https://pbs.example/alice.jpg")
        self.assertEqual(item.author.link, "https://twitter.com/alice")
        self.assertIsNone(item.quote)

    def test_retweet_uses_original_author_and_id(self) -> None:
        raw = _tweet(
            id_str="999",
            full_text="RT @alice: Hello",
            user={"name": "Carol", "screen_name": "carol"},
            entities={},
            retweeted_status=_tweet(),
        )
        item = normalize_tweet(raw)
        assert item is not None

        self.assertEqual(item.title, "Alice (RT by Carol)")
        self.assertEqual(item.link, "https://twitter.com/alice/status/1050118621198921728")
        self.assertEqual(item.author.link, "https://twitter.com/alice")
        self.assertEqual(item.content, _EXPECTED_CONTENT)

    def test_quoted_tweet_becomes_quote(self) -> None:
        quoted = {
            "id_str": "2",
            "full_text": "quoted text",
            "user": {"name": "Dave", "screen_name": "dave"},
            "entities": {},
        }
        item = normalize_tweet(_tweet(quoted_status=quoted))
        assert item is not None

        self.assertEqual(
            item.quote,
            Quote(title="Dave", link="https://twitter.com/dave/status/2", content="quoted text"),
        )

    def test_broken_quote_is_dropped_not_the_tweet(self) -> None:
        item = normalize_tweet(_tweet(quoted_status={"full_text": "no user"}))
        assert item is not None
        self.assertIsNone(item.quote)

    def test_missing_user_is_unparseable(self) -> None:
        raw = _tweet()
        del raw["user"]
        self.assertIsNone(normalize_tweet(raw))

    def test_missing_id_is_unparseable(self) -> None:
        raw = _tweet()
        del raw["id"]
        del raw["id_str"]
        self.assertIsNone(normalize_tweet(raw))

    def test_numeric_id_and_plain_text_fallbacks(self) -> None:
        raw = _tweet(id=7, full_text=None, text="short text", entities={})
        del raw["id_str"]
        item = normalize_tweet(raw)
        assert item is not None
        self.assertEqual(item.link, "https://twitter.com/alice/status/7")
        self.assertEqual(item.content, "short text")

    def test_unparsable_date(self) -> None:
        item = normalize_tweet(_tweet(created_at="yesterday"))
        assert item is not None
        self.assertIsNone(item.timestamp)

    def test_custom_base_url(self) -> None:
        item = normalize_tweet(_tweet(entities={}), "https://x.com/")
        assert item is not None
        self.assertEqual(item.link, "https://x.com/alice/status/1050118621198921728")

    def test_extended_media_supersedes_plain_media(self) -> None:
        photo = {
            "type": "photo",
            "url": "https://t.co/m",
            "expanded_url": "https://twitter.com/alice/status/1/photo/1",
        }
        raw = _tweet(
            full_text="Pics https://t.co/m",
            entities={"media": [dict(photo, media_url_https="https://pbs.example/1.jpg")]},
            extended_entities={
                "media": [
                    dict(photo, media_url_https="https://pbs.example/1.jpg"),
                    dict(photo, media_url_https="https://pbs.example/2.jpg"),
                ]
            },
        )
        item = normalize_tweet(raw)
        assert item is not None

        link = "https://twitter.com/alice/status/1/photo/1"
        self.assertEqual(
            item.content,
            f'Pics <br />\n<a href="{link}"><img src="https://pbs.example/1.jpg" /></a>'
            f'<br />\n<a href="{link}"><img src="https://pbs.example/2.jpg" /></a>',
        )

    def test_unknown_entity_group_appends_placeholder(self) -> None:
        raw = _tweet(full_text="Vote now", entities={"polls": [{"options": []}]})
        item = normalize_tweet(raw)
        assert item is not None
        self.assertEqual(item.content, "Vote now<br />\n[Tweet contains unknown entity type polls]")

    def test_symbol_entity(self) -> None:
        raw = _tweet(full_text="Buying $AAPL today", entities={"symbols": [{"text": "AAPL"}]})
        item = normalize_tweet(raw)
        assert item is not None
        self.assertEqual(
            item.content,
            'Buying <a href="https://twitter.com/search?q=%24AAPL">$AAPL</a> today',
        )

    def test_null_entity_fields_keep_the_tweet(self) -> None:
        raw = _tweet(
            full_text="Hello world",
            entities={"hashtags": [{"text": None}], "urls": [{"url": None, "expanded_url": None}]},
        )

        feed = normalize_twitter_feed([raw])

        self.assertEqual(len(feed.items), 1)
        self.assertEqual(feed.items[0].content, "Hello world")
        self.assertEqual(feed.items[0].tags, ())

    def test_does_not_mutate_input(self) -> None:
        raw = _tweet(retweeted_status=_tweet())
        snapshot = copy.deepcopy(raw)
        normalize_tweet(raw)
        self.assertEqual(raw, snapshot)


class TestTweetEntities(unittest.TestCase):
    def test_known_groups_in_fixed_order(self) -> None:
        tweet = Tweet.model_validate(
            _tweet(
                entities={
                    "urls": [{"url": "https://t.co/u", "expanded_url": "https://e.com"}],
                    "symbols": [{"text": "X"}],
                    "user_mentions": [{"screen_name": "m"}],
                    "hashtags": [{"text": "h"}],
                }
            )
        )
        kinds = [e.kind for e in tweet_entities(tweet)]
        self.assertEqual(
            kinds,
            [EntityKind.HASHTAG, EntityKind.MENTION, EntityKind.URL, EntityKind.SYMBOL],
        )


class TestFeedAndResponse(unittest.TestCase):
    def test_feed_drops_item_without_author(self) -> None:
        broken = _tweet(id_str="3")
        del broken["user"]
        raw_feed = [_tweet(id_str="1"), broken, _tweet(id_str="2")]

        feed = normalize_twitter_feed(raw_feed)

        self.assertEqual(feed.title, "Twitter")
        self.assertEqual(feed.link, "https://twitter.com/")
        self.assertEqual(len(feed.items), len(raw_feed) - 1)
        self.assertEqual(
            [i.link.rsplit("/", 1)[-1] for i in feed.items],
            ["1", "2"],
        )

    def test_error_payload_raises_provider_error(self) -> None:
        with self.assertRaises(ProviderError) as ctx:
            check_twitter_response({"errors": [{"code": 88, "message": "Rate limit exceeded"}]})
        self.assertEqual(ctx.exception.message, "Rate limit exceeded")

    def test_list_payload_passes_through(self) -> None:
        self.assertEqual(check_twitter_response([{"a": 1}]), [{"a": 1}])

    def test_unexpected_payload(self) -> None:
        with self.assertRaises(ProviderError):
            check_twitter_response("nope")


class TestParseCreatedAt(unittest.TestCase):
    def test_twitter_and_iso_formats(self) -> None:
        self.assertEqual(parse_created_at("Wed Oct 10 20:19:24 +0000 2018"), 1539202764)
        self.assertEqual(parse_created_at("2018-10-10T20:19:24Z"), 1539202764)

    def test_invalid_values(self) -> None:
        self.assertIsNone(parse_created_at(None))
        self.assertIsNone(parse_created_at(""))
        self.assertIsNone(parse_created_at("2018-10-10T20:19:24"))
        self.assertIsNone(parse_created_at(12345))


if __name__ == "__main__":
    unittest.main()
