"""
Response schema for the batch standards analysis.
Passed to Gemini as generationConfig.responseSchema to constrain the JSON output.
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


MANDATORY_PROPERTIES = {
    'requestedDesignation': {
        'type': 'STRING',
        'description': 'Обозначение стандарта, как его запросил пользователь.'
    },
    'exists': {
        'type': 'STRING',
        'description': 'Существует ли стандарт ("Да" или "Нет").'
    },
    'fullName': {
        'type': 'STRING',
        'description': 'Полное официальное наименование стандарта.'
    },
    'status': {
        'type': 'STRING',
        'description': 'Текущий статус (Действующий, Отменен, Заменен и т.д.).'
    },
    'aiNote': {
        'type': 'STRING',
        'description': 'Краткое примечание от ИИ по стандарту (до 100 символов).'
    },
}

REPLACED_BY_PROPERTY = {
    'type': 'STRING',
    'description': 'Обозначение стандарта, на который был произведен замен.'
}

SOURCES_PROPERTY = {
    'type': 'ARRAY',
    'description': 'Список URL-адресов или названий документов, подтверждающих информацию.',
    'items': {'type': 'STRING'}
}


@dataclass(frozen=True)
class OptionalColumns:
    """Optional result columns the user asked for."""
    replaced_by: bool = False
    sources: bool = False

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> 'OptionalColumns':
        """
        Build from the UI payload, e.g. {"replacedBy": true, "sources": false}.

        Missing keys and a missing payload mean False.

        Raises:
            ValueError: If the payload is not an object or a flag is not a boolean.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError('Field "optionalColumns" must be an object')

        flags = {}
        for key in ('replacedBy', 'sources'):
            value = data.get(key, False)
            if not isinstance(value, bool):
                raise ValueError(f'Field "optionalColumns.{key}" must be a boolean')
            flags[key] = value

        return cls(replaced_by=flags['replacedBy'], sources=flags['sources'])


def build_response_schema(optional_columns: OptionalColumns) -> Dict[str, Any]:
    """
    Build the array-of-objects schema for the analysis response.

    Args:
        optional_columns: Which optional properties to add.

    Returns:
        Schema dict: an ARRAY whose items are OBJECTs with the five mandatory
        STRING properties plus exactly the requested optional ones.
    """
    properties = {name: dict(spec) for name, spec in MANDATORY_PROPERTIES.items()}

    if optional_columns.replaced_by:
        properties['replacedBy'] = dict(REPLACED_BY_PROPERTY)
    if optional_columns.sources:
        properties['sources'] = {
            **SOURCES_PROPERTY,
            'items': dict(SOURCES_PROPERTY['items'])
        }

    return {
        'type': 'ARRAY',
        'items': {
            'type': 'OBJECT',
            'properties': properties,
            'required': list(properties),
            'propertyOrdering': list(properties)
        }
    }
