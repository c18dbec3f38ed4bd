from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from typing import Any, Mapping

from social_rss.feed import Author, Feed, FeedItem, Quote, normalize_feed, unique_tags
from social_rss.run_log import RunLogger


def _normalizer(raw: Mapping[str, Any]) -> FeedItem | None:
    if "author" not in raw:
        return None
    return FeedItem(
        title=str(raw["title"]),
        link=f"https://example.com/{raw['title']}",
        content="",
        author=Author(name=str(raw["author"])),
    )


class TestNormalizeFeed(unittest.TestCase):
    def test_drops_unparseable_and_keeps_order(self) -> None:
        raw_feed = [
            {"title": "b", "author": "x"},
            {"title": "a"},
            {"title": "a", "author": "y"},
            "not a post",
            {"title": "b", "author": "x"},
        ]
        feed = normalize_feed(raw_feed, "T", "https://example.com/", normalize_post=_normalizer)

        self.assertEqual(feed.title, "T")
        self.assertEqual(feed.link, "https://example.com/")
        # Same-titled items are kept: no deduplication.
        self.assertEqual([i.title for i in feed.items], ["b", "a", "b"])

    def test_logs_dropped_posts(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            log_path = Path(td) / "run.log"
            with RunLogger.open(log_path, provider="test") as log:
                normalize_feed(
                    [{"title": "a"}, {"title": "b", "author": "x"}],
                    "T",
                    "L",
                    normalize_post=_normalizer,
                    logger=log,
                )

            records = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]

        self.assertEqual([r["event"] for r in records], ["post_dropped", "feed_normalized"])
        self.assertEqual(records[0]["level"], "WARN")
        self.assertEqual(records[0]["data"]["index"], 0)
        self.assertEqual(records[1]["data"]["items"], 1)
        self.assertEqual(records[1]["data"]["dropped"], 1)

    def test_empty_feed(self) -> None:
        feed = normalize_feed([], "T", "L", normalize_post=_normalizer)
        self.assertEqual(feed.items, ())


class TestModels(unittest.TestCase):
    def test_to_dict_is_plain_data(self) -> None:
        item = FeedItem(
            title="t",
            link="l",
            content="c",
            author=Author(name="n", avatar_url="a", link="al"),
            timestamp=1,
            tags=("x", "y"),
            quote=Quote(title="qt", link="ql", content="qc"),
        )
        feed = Feed(title="F", link="FL", items=(item,))

        self.assertEqual(
            feed.to_dict(),
            {
                "title": "F",
                "link": "FL",
                "items": [
                    {
                        "title": "t",
                        "link": "l",
                        "content": "c",
                        "timestamp": 1,
                        "tags": ["x", "y"],
                        "author": {"name": "n", "avatar_url": "a", "link": "al"},
                        "quote": {"title": "qt", "link": "ql", "content": "qc"},
                    }
                ],
            },
        )

    def test_unique_tags(self) -> None:
        self.assertEqual(unique_tags(["a", " b ", "a", "", "c"]), ("a", "b", "c"))


if __name__ == "__main__":
    unittest.main()
