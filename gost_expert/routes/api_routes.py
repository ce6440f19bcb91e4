from flask import Blueprint, request, jsonify, current_app
import json
import logging

from gost_expert.errors import ApiError, ConfigurationError
from gost_expert.services.prompt_builder import parse_memory_proposal
from gost_expert.services.schema_builder import OptionalColumns

api_bp = Blueprint('api', __name__, url_prefix='/api')
logger = logging.getLogger(__name__)


def get_expert_service():
    """ExpertService wired in main.py"""
    return current_app.extensions['expert_service']


def _error(message, status):
    return jsonify({'success': False, 'message': message}), status


@api_bp.route('/model-name', methods=['GET'])
def model_name():
    """Model id shown in the UI header"""
    return jsonify({'success': True, 'modelName': get_expert_service().get_model_name()})


@api_bp.route('/memory', methods=['GET'])
def get_memory():
    return jsonify({'success': True, 'memory': get_expert_service().get_memory()})


@api_bp.route('/memory', methods=['POST'])
def set_memory():
    """Overwrite the long-term memory"""
    data = request.get_json(silent=True) or {}
    memory = data.get('memory')

    if not isinstance(memory, str):
        return _error('Field "memory" must be a string', 400)

    try:
        get_expert_service().set_memory(memory)
    except OSError as e:
        logger.error(f"Failed to save long-term memory: {e}")
        return _error('Не удалось сохранить память.', 500)

    return jsonify({'success': True, 'memory': memory})


@api_bp.route('/chat', methods=['POST'])
def chat():
    """Send the conversation to the expert and return the reply"""
    data = request.get_json(silent=True) or {}
    history = data.get('history')
    context = data.get('context') or ''

    if not isinstance(history, list) or not history:
        return _error('Field "history" must be a non-empty list', 400)
    if not isinstance(context, str):
        return _error('Field "context" must be a string', 400)

    try:
        reply = get_expert_service().chat(history, context)
    except ConfigurationError as e:
        logger.error(f"Chat configuration error: {e}")
        return _error(str(e), 500)
    except ApiError as e:
        logger.error(f"Chat API error: {e}")
        return _error(str(e), 502)
    except Exception as e:
        logger.exception(f"Unexpected chat error: {e}")
        return _error(f'Внутренняя ошибка сервера: {type(e).__name__}', 500)

    return jsonify({
        'success': True,
        'reply': reply,
        'memoryProposal': parse_memory_proposal(reply)
    })


@api_bp.route('/analyze', methods=['POST'])
def analyze():
    """Analyze a list of standards for the selected country"""
    data = request.get_json(silent=True) or {}
    standards = data.get('standards')
    country = data.get('country')

    if not isinstance(standards, list) or not all(isinstance(s, str) for s in standards):
        return _error('Field "standards" must be a list of strings', 400)
    if not isinstance(country, str) or not country.strip():
        return _error('Field "country" is required', 400)

    try:
        optional_columns = OptionalColumns.from_mapping(data.get('optionalColumns'))
    except ValueError as e:
        return _error(str(e), 400)

    try:
        results = get_expert_service().analyze(standards, country, optional_columns)
    except json.JSONDecodeError as e:
        logger.error(f"Model returned invalid JSON: {e}")
        return _error(f'Не удалось разобрать ответ модели: {e}', 502)
    except ValueError as e:
        return _error(str(e), 400)
    except ConfigurationError as e:
        logger.error(f"Analysis configuration error: {e}")
        return _error(str(e), 500)
    except ApiError as e:
        logger.error(f"Analysis API error: {e}")
        return _error(str(e), 502)
    except Exception as e:
        logger.exception(f"Unexpected analysis error: {e}")
        return _error(f'Внутренняя ошибка сервера: {type(e).__name__}', 500)

    return jsonify({'success': True, 'results': results})
