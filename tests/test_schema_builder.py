"""
Unit tests for the analysis response schema.
"""
import pytest

from gost_expert.services.schema_builder import OptionalColumns, build_response_schema

MANDATORY = {'requestedDesignation', 'exists', 'fullName', 'status', 'aiNote'}


@pytest.mark.parametrize('replaced_by,sources', [
    (False, False),
    (True, False),
    (False, True),
    (True, True),
])
def test_property_set_matches_requested_columns(replaced_by, sources):
    schema = build_response_schema(OptionalColumns(replaced_by=replaced_by, sources=sources))

    expected = set(MANDATORY)
    if replaced_by:
        expected.add('replacedBy')
    if sources:
        expected.add('sources')

    item = schema['items']
    assert schema['type'] == 'ARRAY'
    assert item['type'] == 'OBJECT'
    assert set(item['properties']) == expected
    assert set(item['required']) == expected
    assert item['propertyOrdering'] == list(item['properties'])


def test_mandatory_properties_are_strings():
    properties = build_response_schema(OptionalColumns())['items']['properties']
    for name in MANDATORY:
        assert properties[name]['type'] == 'STRING'
        assert properties[name]['description']


def test_optional_property_types():
    properties = build_response_schema(OptionalColumns(True, True))['items']['properties']

    assert properties['replacedBy']['type'] == 'STRING'
    assert properties['sources']['type'] == 'ARRAY'
    assert properties['sources']['items'] == {'type': 'STRING'}


def test_schemas_do_not_share_state():
    first = build_response_schema(OptionalColumns(sources=True))
    first['items']['properties']['sources']['items']['type'] = 'NUMBER'

    second = build_response_schema(OptionalColumns(sources=True))
    assert second['items']['properties']['sources']['items']['type'] == 'STRING'


class TestOptionalColumnsFromMapping:

    def test_ui_keys(self):
        columns = OptionalColumns.from_mapping({'replacedBy': True, 'sources': False})
        assert columns == OptionalColumns(replaced_by=True, sources=False)

    def test_missing_mapping(self):
        assert OptionalColumns.from_mapping(None) == OptionalColumns()

    def test_partial_mapping_defaults_to_false(self):
        assert OptionalColumns.from_mapping({'sources': True}) == OptionalColumns(sources=True)

    @pytest.mark.parametrize('data', [True, ['replacedBy'], 'sources', 1])
    def test_rejects_non_object(self, data):
        with pytest.raises(ValueError, match='optionalColumns'):
            OptionalColumns.from_mapping(data)

    @pytest.mark.parametrize('data', [
        {'replacedBy': 'false'},
        {'sources': 1},
        {'replacedBy': True, 'sources': None}
    ])
    def test_rejects_non_boolean_flags(self, data):
        with pytest.raises(ValueError, match='must be a boolean'):
            OptionalColumns.from_mapping(data)
