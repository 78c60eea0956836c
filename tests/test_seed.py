from __future__ import annotations

import json
from pathlib import Path

import pytest

from news_briefing.seed import read_pack
from news_briefing.services.content_loader import ContentError


def test_bundled_pack_is_used_without_a_path() -> None:
    pack = read_pack(None)

    assert len(pack.topics) == 6
    assert pack.regions[0].slug == "north-america"


def test_pack_is_read_from_the_given_path(tmp_path: Path) -> None:
    path = tmp_path / "pack.json"
    path.write_text(
        json.dumps(
            {
                "regions": [{"slug": "oceania", "name": "Oceania"}],
                "topics": [{"slug": "reefs", "title": "Reef bleaching", "regions": ["oceania"]}],
            }
        ),
        encoding="utf-8",
    )

    pack = read_pack(path)

    assert [topic.slug for topic in pack.topics] == ["reefs"]


def test_broken_pack_file_names_its_path(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{", encoding="utf-8")

    with pytest.raises(ContentError, match="broken.json"):
        read_pack(path)
