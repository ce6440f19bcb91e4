"""
Tests for the property stores.
"""
from gost_expert.services.property_store import (
    GEMINI_API_KEY,
    LONG_TERM_MEMORY,
    InMemoryPropertyStore,
    JsonFilePropertyStore
)


def test_in_memory_store():
    store = InMemoryPropertyStore({GEMINI_API_KEY: 'k'})

    assert store.get_property(GEMINI_API_KEY) == 'k'
    assert store.get_property(LONG_TERM_MEMORY) is None

    store.set_property(LONG_TERM_MEMORY, 'mem')
    assert store.get_property(LONG_TERM_MEMORY) == 'mem'


def test_json_store_persists_between_instances(tmp_path):
    path = tmp_path / 'nested' / 'properties.json'

    JsonFilePropertyStore(str(path)).set_property(LONG_TERM_MEMORY, 'Всегда отвечай кратко')

    assert JsonFilePropertyStore(str(path)).get_property(LONG_TERM_MEMORY) == 'Всегда отвечай кратко'


def test_json_store_falls_back_to_environment(tmp_path, monkeypatch):
    monkeypatch.setenv(GEMINI_API_KEY, 'env-key')
    store = JsonFilePropertyStore(str(tmp_path / 'properties.json'))

    assert store.get_property(GEMINI_API_KEY) == 'env-key'

    store.set_property(GEMINI_API_KEY, 'stored-key')
    assert store.get_property(GEMINI_API_KEY) == 'stored-key'


def test_json_store_last_write_wins(tmp_path):
    path = str(tmp_path / 'properties.json')
    first = JsonFilePropertyStore(path)
    second = JsonFilePropertyStore(path)

    first.set_property(LONG_TERM_MEMORY, 'one')
    second.set_property(LONG_TERM_MEMORY, 'two')

    assert first.get_property(LONG_TERM_MEMORY) == 'two'


def test_json_store_ignores_corrupt_file(tmp_path, monkeypatch):
    monkeypatch.delenv(LONG_TERM_MEMORY, raising=False)
    path = tmp_path / 'properties.json'
    path.write_text('{broken', encoding='utf-8')

    store = JsonFilePropertyStore(str(path))

    assert store.get_property(LONG_TERM_MEMORY) is None
