"""
Fake Gemini responses for the tests.
"""
import json
from unittest.mock import MagicMock

TEST_API_URL = 'https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent'


def make_response(status_code=200, body=None):
    """Fake requests.Response; dict bodies are JSON-encoded."""
    response = MagicMock()
    response.status_code = status_code
    response.text = body if isinstance(body, str) else json.dumps(body or {}, ensure_ascii=False)
    return response


def make_envelope(text=None, finish_reason='STOP', usage=None, include_content=True):
    """Gemini generateContent response envelope with one candidate."""
    candidate = {'finishReason': finish_reason}
    if include_content:
        candidate['content'] = {'parts': [{'text': text}] if text is not None else [{}], 'role': 'model'}
    envelope = {'candidates': [candidate]}
    if usage is not None:
        envelope['usageMetadata'] = usage
    return envelope
