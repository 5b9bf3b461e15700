"""Text generator factory."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

import openai

from dayflow.core.config import settings
from dayflow.services.text_generation.base import TextGenerator
from dayflow.services.text_generation.openai_generator import OpenAITextGenerator

logger = logging.getLogger(__name__)


@lru_cache
def get_text_generator() -> Optional[TextGenerator]:
    """Return the configured generator, or None when no API key is set."""
    api_key = settings.openai_api_key
    if not api_key:
        logger.warning("OPENAI_API_KEY missing; schedule generation is disabled.")
        return None
    return OpenAITextGenerator(openai.OpenAI(api_key=api_key), settings.openai_model)
