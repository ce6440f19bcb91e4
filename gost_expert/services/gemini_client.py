"""
Gemini REST client for the expert chat and the batch standards analysis.

Every call performs exactly one POST to the generateContent endpoint.
Non-200 statuses are interpreted explicitly rather than raised by the transport.
"""
import re
import json
import logging
from dataclasses import dataclass, asdict, field
from typing import Any, Callable, Dict, List, Optional, Union

import requests

from gost_expert.errors import ApiError, ConfigurationError
from gost_expert.services.property_store import GEMINI_API_KEY, PropertyStore

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent'

FALLBACK_REPLY = 'Не удалось получить ответ от ИИ. Попробуйте переформулировать запрос.'

_MODEL_NAME_RE = re.compile(r'models/(.*?):')


@dataclass(frozen=True)
class GenerationConfig:
    """Fixed sampling parameters sent as generationConfig."""
    temperature: float
    topK: int
    topP: float
    maxOutputTokens: int

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


CHAT_GENERATION_CONFIG = GenerationConfig(temperature=0.1, topK=20, topP=0.8, maxOutputTokens=8192)
ANALYSIS_GENERATION_CONFIG = GenerationConfig(temperature=0.1, topK=40, topP=0.95, maxOutputTokens=8192)


@dataclass(frozen=True)
class UsageMetadata:
    """Token counts reported by the API (0 when absent)."""
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0

    @classmethod
    def from_envelope(cls, data: Optional[Dict[str, Any]]) -> 'UsageMetadata':
        data = data or {}
        return cls(
            prompt_token_count=data.get('promptTokenCount') or 0,
            candidates_token_count=data.get('candidatesTokenCount') or 0,
            total_token_count=data.get('totalTokenCount') or 0
        )


# Outcomes of a single generateContent call

@dataclass(frozen=True)
class TextReply:
    text: str
    finish_reason: Optional[str] = None
    usage: UsageMetadata = field(default_factory=UsageMetadata)


@dataclass(frozen=True)
class NoTextReply:
    """200 with a candidate content that has no text part."""
    finish_reason: Optional[str] = None
    usage: UsageMetadata = field(default_factory=UsageMetadata)


@dataclass(frozen=True)
class NoContentReply:
    """200 without candidates or without candidates[0].content (safety block, malformed envelope)."""
    finish_reason: Optional[str] = None
    usage: UsageMetadata = field(default_factory=UsageMetadata)


@dataclass(frozen=True)
class MalformedReply:
    """200 whose body is not JSON (proxy or gateway page)."""
    body: str


@dataclass(frozen=True)
class HttpFailure:
    status_code: int
    body: str


Outcome = Union[TextReply, NoTextReply, NoContentReply, MalformedReply, HttpFailure]


@dataclass(frozen=True)
class AnalysisReply:
    """Parsed structured output of an analysis call."""
    items: Any
    usage: UsageMetadata
    finish_reason: str


def interpret_response(status_code: int, body: str) -> Outcome:
    """
    Classify a raw HTTP response from generateContent.

    Args:
        status_code: HTTP status.
        body: Raw response body.

    Returns:
        One of TextReply, NoTextReply, NoContentReply, MalformedReply, HttpFailure.
    """
    if status_code != 200:
        return HttpFailure(status_code=status_code, body=body)

    try:
        envelope = json.loads(body)
    except json.JSONDecodeError:
        return MalformedReply(body=body)

    if not isinstance(envelope, dict):
        return NoContentReply()

    usage = UsageMetadata.from_envelope(envelope.get('usageMetadata'))

    candidates = envelope.get('candidates') or []
    if not isinstance(candidates, list) or not candidates:
        return NoContentReply(finish_reason=None, usage=usage)

    candidate = candidates[0]
    if not isinstance(candidate, dict):
        return NoContentReply(finish_reason=None, usage=usage)

    finish_reason = candidate.get('finishReason')
    content = candidate.get('content')
    if not content or not isinstance(content, dict):
        return NoContentReply(finish_reason=finish_reason, usage=usage)

    parts = content.get('parts') or []
    first_part = parts[0] if isinstance(parts, list) and parts else None
    text = first_part.get('text') if isinstance(first_part, dict) else None
    if not text or not isinstance(text, str):
        return NoTextReply(finish_reason=finish_reason, usage=usage)

    return TextReply(text=text, finish_reason=finish_reason, usage=usage)


def build_payload(
    contents: List[Dict[str, Any]],
    system_instruction: str,
    config: GenerationConfig,
    schema: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Build a generateContent request body; a schema switches on JSON output."""
    generation_config = config.to_payload()
    if schema is not None:
        generation_config['responseMimeType'] = 'application/json'
        generation_config['responseSchema'] = schema

    return {
        'contents': contents,
        'systemInstruction': {'parts': [{'text': system_instruction}]},
        'generationConfig': generation_config
    }


def model_name_from_url(api_url: str) -> str:
    """Extract the model id from an endpoint URL, or 'unknown' if it has none."""
    match = _MODEL_NAME_RE.search(api_url)
    return match.group(1) if match and match.group(1) else 'unknown'


class GeminiClient:
    """Client for the Gemini generateContent endpoint."""

    def __init__(self, property_store: PropertyStore, api_url: str = DEFAULT_API_URL, timeout: float = 120):
        self.property_store = property_store
        self.api_url = api_url
        self.timeout = timeout

    def _get_api_key(self) -> str:
        api_key = self.property_store.get_property(GEMINI_API_KEY)
        if not api_key:
            raise ConfigurationError('API-ключ Gemini не установлен.')
        return api_key

    def _post(self, api_key: str, payload: Dict[str, Any]) -> requests.Response:
        try:
            return requests.post(
                self.api_url,
                params={'key': api_key},
                json=payload,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            # Only the exception type is logged, the message may contain the keyed URL
            logger.error(f"Gemini request failed: {type(e).__name__}")
            raise ApiError(f"Ошибка соединения с API: {type(e).__name__}") from e

    def _raise_for_outcome(self, outcome: Outcome, error_prefix: str) -> None:
        """Raise ApiError for outcomes that carry no usable envelope."""
        if isinstance(outcome, HttpFailure):
            logger.error(f"Gemini API error: status={outcome.status_code}")
            raise ApiError(
                f"{error_prefix}: Код {outcome.status_code}. Ответ: {outcome.body}",
                status_code=outcome.status_code,
                body=outcome.body
            )
        if isinstance(outcome, MalformedReply):
            logger.error("Gemini API returned a non-JSON body")
            raise ApiError(
                f"Некорректный ответ от API: тело ответа не является JSON. Ответ: {outcome.body[:500]}",
                status_code=200,
                body=outcome.body
            )

    def invoke_chat(
        self,
        history: List[Dict[str, Any]],
        system_instruction: str,
        config: GenerationConfig = CHAT_GENERATION_CONFIG
    ) -> str:
        """
        Send the conversation to the model and return its reply.

        Args:
            history: Conversation turns, oldest first, passed through unmodified.
            system_instruction: Expert system instruction.
            config: Generation parameters.

        Returns:
            Generated text, or FALLBACK_REPLY if the model produced no text.

        Raises:
            ConfigurationError: If the API key is not set.
            ApiError: On a transport failure, a non-200 status or a non-JSON body.
        """
        api_key = self._get_api_key()
        logger.info(f"Chat request: {len(history)} turns")

        payload = build_payload(history, system_instruction, config)
        response = self._post(api_key, payload)
        outcome = interpret_response(response.status_code, response.text)

        self._raise_for_outcome(outcome, 'Ошибка API чата')

        if isinstance(outcome, TextReply):
            return outcome.text

        logger.warning(f"Chat response has no text. Finish reason: {outcome.finish_reason or 'N/A'}")
        return FALLBACK_REPLY

    def invoke_analysis(
        self,
        prompt: str,
        system_instruction: str,
        schema: Dict[str, Any],
        config: GenerationConfig = ANALYSIS_GENERATION_CONFIG,
        on_usage: Optional[Callable[[UsageMetadata, str], Any]] = None
    ) -> AnalysisReply:
        """
        Run a schema-constrained analysis request.

        Args:
            prompt: Single user turn.
            system_instruction: Analysis system instruction.
            schema: Response schema the output must conform to.
            config: Generation parameters.
            on_usage: Called with (usage, finish_reason) for every 200 response,
                before the content is checked. Exceptions it raises are logged and ignored.

        Returns:
            AnalysisReply with the parsed JSON array.

        Raises:
            ConfigurationError: If the API key is not set.
            ApiError: On a transport failure, a non-200 status, a non-JSON body
                or a 200 without candidates[0].content.
            json.JSONDecodeError: If the generated text is not valid JSON.
        """
        api_key = self._get_api_key()

        payload = build_payload([{'parts': [{'text': prompt}]}], system_instruction, config, schema=schema)
        response = self._post(api_key, payload)
        logger.info(f"Gemini API response code: {response.status_code}")

        outcome = interpret_response(response.status_code, response.text)

        self._raise_for_outcome(outcome, 'Ошибка API анализа')

        finish_reason = outcome.finish_reason or 'UNKNOWN'

        if on_usage is not None:
            try:
                on_usage(outcome.usage, finish_reason)
            except Exception as e:
                logger.warning(f"Usage callback failed: {type(e).__name__} - {e}")

        if isinstance(outcome, NoContentReply):
            reason = outcome.finish_reason or 'N/A'
            raise ApiError(
                f"Некорректный ответ от API. Возможно, сработали фильтры безопасности. Причина: {reason}",
                status_code=200,
                finish_reason=reason
            )

        text = outcome.text if isinstance(outcome, TextReply) else ''
        # responseSchema constrains the output, a decode error here is not expected
        items = json.loads(text)

        return AnalysisReply(items=items, usage=outcome.usage, finish_reason=finish_reason)
