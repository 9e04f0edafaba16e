"""Shared fixtures for conntree tests."""

import pytest

from conntree.models import Entity, Relation


LINK_COLOR = "#2196F3"
PLAYMARKET_COLOR = "#9E9E9E"


@pytest.fixture
def category_colors():
    return {"link": LINK_COLOR, "playmarket": PLAYMARKET_COLOR}


@pytest.fixture
def default_color():
    return PLAYMARKET_COLOR


@pytest.fixture
def fixture_entities():
    """1 declares link, 3 declares playmarket, 2 and 4 declare nothing."""
    return [
        Entity(1, "link"),
        Entity(2),
        Entity(3, "playmarket"),
        Entity(4),
    ]


@pytest.fixture
def fixture_relations():
    """2 and 3 befriend 1 first, 4 befriends 3 first."""
    return [
        Relation(2, 1, "2023-01-02T10:00:00Z"),
        Relation(3, 1, "2023-01-03T10:00:00Z"),
        Relation(4, 3, "2023-01-04T10:00:00Z"),
    ]


@pytest.fixture
def fixture_document():
    """The same fixture in the users/friendships file layout."""
    return {
        "users": [
            {"user_id": 1, "source": "link"},
            {"user_id": 2},
            {"user_id": 3, "source": "playmarket"},
            {"user_id": 4},
        ],
        "friendships": [
            {"user_id": 2, "friend_id": 1, "created_at": "2023-01-02T10:00:00Z"},
            {"user_id": 3, "friend_id": 1, "created_at": "2023-01-03T10:00:00Z"},
            {"user_id": 4, "friend_id": 3, "created_at": "2023-01-04T10:00:00Z"},
        ],
    }
