import pytest
from aioresponses import aioresponses


@pytest.fixture
def api_key() -> str:
    return "tlk_test_key_123"


@pytest.fixture
def base_url() -> str:
    return "https://test.twelvelabs.io/v1.3"


@pytest.fixture
def mock_api():
    with aioresponses() as m:
        yield m
