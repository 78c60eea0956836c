from __future__ import annotations

import importlib

import pytest


@pytest.mark.parametrize(
    "name",
    [
        "news_briefing",
        "news_briefing.db",
        "news_briefing.repositories",
        "news_briefing.services",
        "news_briefing.web",
        "news_briefing.data",
    ],
)
def test_packages_are_namespace_packages(name: str) -> None:
    module = importlib.import_module(name)

    assert getattr(module, "__file__", None) is None
    assert list(module.__path__)
