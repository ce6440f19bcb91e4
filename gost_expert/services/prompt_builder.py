"""
System instruction templates for the chat expert and the batch standards analysis.

Instructions are assembled from ordered, optional blocks. A block is included
only when its text is non-empty; injected text is used verbatim.
"""
import re
import json
from dataclasses import dataclass
from typing import Iterable, List, Optional


EXPERT_ROLE_TEMPLATE = '''# РОЛЬ И ЗАДАЧА
Ты — «Вова-Стандарт», ИИ-эксперт мирового класса в области международной и национальной стандартизации (ISO, IEC, EN, ГОСТ, ДСТУ и др.). Твоя основная задача — предоставлять пользователю исчерпывающие, точные и профессиональные консультации.

# СТИЛЬ И ТОН
- **Тон:** Вежливый, деловой, но при этом проактивный и готовый помочь.
- **Структура ответа:** Используй Markdown для форматирования. Ключевые моменты выделяй жирным шрифтом, списки — для перечислений. Ответы должны быть хорошо структурированы и легко читаемы.
- **Полнота важнее краткости:** Сначала дай полный и точный ответ, и только потом стремись к сжатости. Не упускай важные детали ради краткости.

# ПРАВИЛА ПОВЕДЕНИЯ
1.  **Точность и ссылки:** Всегда ссылайся на конкретные стандарты по их полному обозначению (например, "ГОСТ Р ИСО 9001-2015"). Если возможно, указывай конкретные пункты или разделы стандарта.
2.  **Обработка неясностей:** Если запрос пользователя неоднозначен (например, "ГОСТ 12345" без года), НЕ ПРЕДПОЛАГАЙ. Задай уточняющий вопрос. Пример: "Уточните, пожалуйста, год стандарта ГОСТ 12345, так как существует несколько версий."
3.  **Признание ограничений:** Если ты не знаешь ответа или не уверен в его точности, честно сообщи об этом. Пример: "Я не могу найти точную информацию по вашему запросу. Рекомендую обратиться к официальному тексту стандарта."

# СПЕЦИАЛЬНЫЕ КОМАНДЫ
- **[ИНСТРУКЦИЯ ПО ЗАПОМИНАНИЮ]:** Если пользователь просит тебя что-то запомнить (используя фразы "запомни", "запиши в память", "нужно помнить" и т.п.), твоим ЕДИНСТВЕННЫМ ответом должен быть JSON-объект. Не добавляй никакого текста до или после него. JSON должен иметь строго следующую структуру: {"action": "propose_memory_update", "data": "сформулированная_суть_для_запоминания"}.'''

CONTEXT_BLOCK_TEMPLATE = '''# АКТУАЛЬНЫЙ КОНТЕКСТ АНАЛИЗА
Пользователь только что проанализировал следующие стандарты. Учитывай эту информацию при ответах.
{context}'''

CHAT_MEMORY_BLOCK_TEMPLATE = '''# ДОЛГОВРЕМЕННАЯ ПАМЯТЬ (ВЫСШИЙ ПРИОРИТЕТ)
Следуй этим инструкциям пользователя в первую очередь.
{memory}'''

ANALYSIS_MEMORY_BLOCK_TEMPLATE = (
    '[ДОЛГОВРЕМЕННАЯ ПАМЯТЬ ПОЛЬЗОВАТЕЛЯ - ЭТИ ИНСТРУКЦИИ ИМЕЮТ ВЫСШИЙ ПРИОРИТЕТ]\n'
    '{memory}\n'
    '[/ДОЛГОВРЕМЕННАЯ ПАМЯТЬ ПОЛЬЗОВАТЕЛЯ]'
)

ANALYSIS_BASE_INSTRUCTION = (
    'Вы — экспертный ИИ-помощник, специализирующийся на стандартизации. '
    'Ваша задача — проанализировать список стандартов для указанной страны. '
    'Для каждого стандарта определите его существование, полное наименование и текущий статус. '
    'Предоставьте точную и краткую информацию. '
    'Ваш ответ должен быть ТОЛЬКО JSON-массивом, соответствующим предоставленной схеме. '
    'Не добавляйте текст до или после JSON.'
)

ANALYSIS_PROMPT_TEMPLATE = '''Проанализируй следующие стандарты для страны "{country}".
Список стандартов:
{standards}'''

MEMORY_UPDATE_ACTION = 'propose_memory_update'

_JSON_FENCE_RE = re.compile(r'^```(?:json)?\s*(.*?)\s*```$', re.DOTALL)


@dataclass(frozen=True)
class PromptBlock:
    """A named section of a system instruction."""
    name: str
    text: str
    present: bool = True


def join_blocks(blocks: Iterable[PromptBlock], separator: str = '\n\n') -> str:
    """Join the present blocks in the given order."""
    return separator.join(block.text for block in blocks if block.present)


def chat_instruction_blocks(analysis_context: str, long_term_memory: str) -> List[PromptBlock]:
    """
    Build the ordered blocks of the chat system instruction.

    Args:
        analysis_context: Summary of the latest analysis shown to the user ('' if none).
        long_term_memory: Persisted user instructions ('' if unset).

    Returns:
        Blocks in fixed order: role rules, analysis context, long-term memory.
    """
    analysis_context = analysis_context or ''
    long_term_memory = long_term_memory or ''

    return [
        PromptBlock('role', EXPERT_ROLE_TEMPLATE),
        PromptBlock(
            'context',
            CONTEXT_BLOCK_TEMPLATE.format(context=analysis_context),
            present=bool(analysis_context)
        ),
        PromptBlock(
            'memory',
            CHAT_MEMORY_BLOCK_TEMPLATE.format(memory=long_term_memory),
            present=bool(long_term_memory)
        ),
    ]


def build_chat_instruction(analysis_context: str, long_term_memory: str) -> str:
    """Assemble the system instruction for the free-form expert chat."""
    return join_blocks(chat_instruction_blocks(analysis_context, long_term_memory))


def build_analysis_instruction(long_term_memory: str) -> str:
    """
    Assemble the system instruction for the batch analysis mode.

    The memory block is prepended only when the memory holds more than whitespace.
    """
    long_term_memory = long_term_memory or ''
    blocks = [
        PromptBlock(
            'memory',
            ANALYSIS_MEMORY_BLOCK_TEMPLATE.format(memory=long_term_memory),
            present=bool(long_term_memory.strip())
        ),
        PromptBlock('base', ANALYSIS_BASE_INSTRUCTION),
    ]
    return join_blocks(blocks)


def build_analysis_prompt(designations: List[str], country: str) -> str:
    """User turn listing the designations to analyze, one per line."""
    return ANALYSIS_PROMPT_TEMPLATE.format(
        country=country,
        standards='\n'.join(designations)
    )


def parse_memory_proposal(reply: str) -> Optional[str]:
    """
    Detect a chat reply that proposes a long-term memory update.

    Args:
        reply: Raw model reply.

    Returns:
        The proposed memory text, or None if the reply is an ordinary answer.
    """
    if not reply:
        return None

    text = reply.strip()
    fenced = _JSON_FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)

    if not text.startswith('{'):
        return None

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None

    if not isinstance(data, dict) or data.get('action') != MEMORY_UPDATE_ACTION:
        return None

    proposal = data.get('data')
    return proposal if isinstance(proposal, str) else None
