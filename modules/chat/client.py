"""OpenAI-compatible chat completion client."""

import logging

from flask import current_app
from openai import OpenAI, OpenAIError

logger = logging.getLogger(__name__)

ROLES = ("user", "assistant")
FALLBACK_REPLY = "Sorry, I could not generate a response."

SYSTEM_PROMPT = (
    "You are an AI assistant specialised in stock and equipment management. "
    "You help users with questions about equipment handling, procedures and "
    "organisation: inventory, maintenance, equipment assignment and staff. "
    "Be professional, precise and practical."
)

ENHANCED_SYSTEM_PROMPT = """You are an expert AI assistant for company stock and equipment management.

You specialise in:
- stock and inventory management and optimisation
- preventive and corrective equipment maintenance
- assigning equipment to employees and tracking it
- safety procedures and good practice
- replenishment strategy and resource planning

Give concrete, actionable advice, step by step when useful, structured and easy to read.
Base your answers on the current data below when the question is about it.

CURRENT DATA:
{context}
"""


class ChatServiceError(Exception):
    """The chat completion API could not produce a reply."""


def validate_messages(messages) -> list[dict]:
    """Normalise ``[{role, content}, ...]``; raises ValueError on bad input."""
    if not isinstance(messages, list) or not messages:
        raise ValueError("'messages' must be a non-empty list.")
    turns = []
    for msg in messages:
        if not isinstance(msg, dict):
            raise ValueError("Each message must be an object with role and content.")
        role, content = msg.get("role"), msg.get("content")
        if role not in ROLES:
            raise ValueError(f"Message role must be one of: {', '.join(ROLES)}")
        if not isinstance(content, str) or not content.strip():
            raise ValueError("Message content must be a non-empty string.")
        turns.append({"role": role, "content": content})
    return turns


def complete(messages: list[dict], system_prompt: str = SYSTEM_PROMPT, api_key: str | None = None) -> str:
    """Send the ordered turns with a system prompt and return the reply text."""
    cfg = current_app.config
    api_key = api_key or cfg.get("OPENAI_API_KEY")
    if not api_key:
        raise ChatServiceError("No OpenAI API key configured.")

    client = OpenAI(
        api_key=api_key,
        base_url=cfg["OPENAI_BASE_URL"],
        timeout=cfg["HTTP_TIMEOUT"],
        max_retries=0,
    )
    logger.debug(f"Sending {len(messages)} message(s) to {cfg['OPENAI_BASE_URL']}")
    try:
        response = client.chat.completions.create(
            model=cfg["OPENAI_MODEL"],
            messages=[{"role": "system", "content": system_prompt}, *messages],
            max_tokens=cfg["CHAT_MAX_TOKENS"],
            temperature=cfg["CHAT_TEMPERATURE"],
        )
    except OpenAIError as e:
        logger.error(f"Chat API request failed: {str(e)}")
        raise ChatServiceError(str(e)) from e

    if not response.choices:
        return FALLBACK_REPLY
    return response.choices[0].message.content or FALLBACK_REPLY
