"""
Shared fixtures for the expert service tests.
"""
import pytest

from gost_expert.services.property_store import InMemoryPropertyStore, GEMINI_API_KEY
from gost_expert.services.gemini_client import GeminiClient
from tests.helpers import TEST_API_URL


@pytest.fixture
def property_store():
    return InMemoryPropertyStore({GEMINI_API_KEY: 'test-api-key'})


@pytest.fixture
def empty_store():
    return InMemoryPropertyStore()


@pytest.fixture
def gemini_client(property_store):
    return GeminiClient(property_store, api_url=TEST_API_URL, timeout=5)
