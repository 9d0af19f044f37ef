"""Shared fixtures for unit tests."""

import pytest

from fakes import FakeRecipeIndex, make_record


@pytest.fixture
def egg_flour_index() -> FakeRecipeIndex:
    """Index where "egg" returns [1, 2] and "flour" returns [1].

    Recipe 1 covers egg and flour; recipe 2 lacks flour.
    """
    return FakeRecipeIndex(
        search_results={"egg": ["1", "2"], "flour": ["1"]},
        records={
            "1": make_record("1", ["Egg", "Flour", "Milk"], name="Pancakes"),
            "2": make_record("2", ["Rice", "Egg"], name="Egg Fried Rice", category="Side", cuisine="Chinese"),
        },
    )
