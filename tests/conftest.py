"""Shared fixtures for scene tests."""

import pytest

from vrscene.models.asset import Asset


@pytest.fixture
def cube() -> Asset:
    return Asset(id="cube", src="./cube.json")


@pytest.fixture
def kangaroo() -> Asset:
    return Asset(id="kangaroo", src="./Kangaroo_01.gltf", parts="./Kangaroo_01.bin")
