"""Tests for achievement endpoints."""

import pytest

from habitflow.api.v1.endpoints.achievements import get_habit_repository
from habitflow.main import app


@pytest.fixture
def use_repository(repository):
    app.dependency_overrides[get_habit_repository] = lambda: repository
    return repository


def test_get_achievement_catalog(client, api_base):
    r = client.get(f"{api_base}/achievements/catalog")

    assert r.status_code == 200
    catalog = r.json()
    assert len(catalog) == 21
    assert catalog[0]["id"] == "first-step"


def test_get_user_achievements(client, api_base, use_repository):
    r = client.get(f"{api_base}/users/user-1/achievements")

    assert r.status_code == 200
    data = r.json()
    assert data["stats"]["max_streak"] == 5
    assert data["stats"]["total_completions"] == 7
    assert data["unlocked_ids"] == ["first-step", "getting-started", "night-owl"]
    assert [a["id"] for a in data["newly_unlocked"]] == data["unlocked_ids"]
    assert len(data["progress"]) == 21


def test_seen_achievements_are_not_new(client, api_base, use_repository):
    r = client.get(
        f"{api_base}/users/user-1/achievements",
        params={"seen": ["first-step", "night-owl"]},
    )

    data = r.json()
    assert [a["id"] for a in data["newly_unlocked"]] == ["getting-started"]
    assert data["seen_ids"] == ["first-step", "getting-started", "night-owl"]


def test_timezone_moves_special_achievements(client, api_base, use_repository):
    # Morning meditations at 07:00 UTC are 03:00 in New York; runs at 22:30
    # UTC are 18:30 there
    r = client.get(
        f"{api_base}/users/user-1/achievements",
        params={"timezone": "America/New_York"},
    )

    unlocked = r.json()["unlocked_ids"]
    assert "early-bird" in unlocked
    assert "night-owl" not in unlocked


def test_unknown_timezone_is_400(client, api_base, use_repository):
    r = client.get(
        f"{api_base}/users/user-1/achievements", params={"timezone": "Mars/Olympus"}
    )
    assert r.status_code == 400
