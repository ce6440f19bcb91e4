"""
Expert service - the operations exposed to the web UI.
Combines prompt and schema building with the Gemini client and usage logging.
"""
import logging
from typing import Any, Dict, List, Optional

from gost_expert.services.gemini_client import GeminiClient, UsageMetadata, model_name_from_url
from gost_expert.services.property_store import LONG_TERM_MEMORY, PropertyStore
from gost_expert.services.prompt_builder import (
    build_analysis_instruction,
    build_analysis_prompt,
    build_chat_instruction
)
from gost_expert.services.schema_builder import OptionalColumns, build_response_schema
from gost_expert.services.usage_logger import UsageLogger

logger = logging.getLogger(__name__)


class ExpertService:
    """Entry points for chat, batch analysis, memory and model info."""

    def __init__(
        self,
        property_store: PropertyStore,
        gemini_client: GeminiClient,
        usage_logger: Optional[UsageLogger] = None
    ):
        self.property_store = property_store
        self.gemini_client = gemini_client
        self.usage_logger = usage_logger

    def get_memory(self) -> str:
        """Return the long-term memory, '' when unset."""
        return self.property_store.get_property(LONG_TERM_MEMORY) or ''

    def set_memory(self, value: str) -> None:
        self.property_store.set_property(LONG_TERM_MEMORY, value)

    def get_model_name(self) -> str:
        """Model id from the configured endpoint URL ('unknown' / 'error')."""
        try:
            model_name = model_name_from_url(self.gemini_client.api_url)
            logger.info(f"Model name requested: {model_name}")
            return model_name
        except Exception as e:
            logger.error(f"Failed to extract model name: {e}")
            return 'error'

    def chat(self, history: List[Dict[str, Any]], analysis_context: str) -> str:
        """
        Answer the latest user turn as the standardization expert.

        Args:
            history: Conversation turns in Gemini `contents` format, oldest first.
            analysis_context: Text of the latest analysis ('' if none).

        Returns:
            Model reply text, unmodified.
        """
        logger.info(f"Chat called with {len(history)} messages")
        system_instruction = build_chat_instruction(analysis_context, self.get_memory())
        return self.gemini_client.invoke_chat(history, system_instruction)

    def analyze(
        self,
        designations: List[str],
        country: str,
        optional_columns: OptionalColumns
    ) -> List[Dict[str, Any]]:
        """
        Analyze a batch of standard designations for a country.

        The result is trusted to follow the request one-to-one in order and count;
        it is not checked against the designations.

        Args:
            designations: Standard designations, duplicates preserved.
            country: Country to analyze for.
            optional_columns: Extra columns to request.

        Returns:
            List of result objects as returned by the model.

        Raises:
            ValueError: If no designations are given.
        """
        if not designations:
            raise ValueError("Standards list cannot be empty")

        logger.info(f"Analyzing {len(designations)} standards for country: {country}")

        system_instruction = build_analysis_instruction(self.get_memory())
        prompt = build_analysis_prompt(designations, country)
        schema = build_response_schema(optional_columns)

        def record_usage(usage: UsageMetadata, finish_reason: str) -> None:
            if self.usage_logger is not None:
                self.usage_logger.log_usage(len(designations), country, usage, finish_reason)

        reply = self.gemini_client.invoke_analysis(
            prompt,
            system_instruction,
            schema,
            on_usage=record_usage
        )

        logger.info(
            f"Analysis complete: {len(designations)} requested, "
            f"finish_reason={reply.finish_reason}"
        )
        return reply.items
