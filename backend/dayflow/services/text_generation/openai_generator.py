"""OpenAI chat-completions backed text generator."""
from __future__ import annotations

import json
import logging
from typing import Type

import openai
from pydantic import BaseModel, ValidationError as PydanticValidationError

from dayflow.core.errors import GenerationFailure
from dayflow.observability.metrics import timed_metric
from dayflow.observability.tracing import annotate, trace
from dayflow.services.text_generation.base import OutputT, TextGenerator

logger = logging.getLogger(__name__)


class OpenAITextGenerator(TextGenerator):
    def __init__(self, client: openai.OpenAI, model: str) -> None:
        self._client = client
        self._model = model

    def generate(
        self,
        *,
        name: str,
        system_prompt: str,
        user_prompt: str,
        output_model: Type[OutputT],
        request_id: str | None = None,
    ) -> OutputT:
        metadata = {"model": self._model, "llm_input_text": user_prompt[:500]}
        with timed_metric("llm.duration_ms", {"flow": name}), trace(
            f"llm.{name}", metadata=metadata, request_id=request_id
        ) as span:
            try:
                completion = self._client.chat.completions.create(
                    model=self._model,
                    response_format={"type": "json_object"},
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                )
            except openai.OpenAIError as exc:
                logger.warning("Text generation %s failed: %s", name, exc)
                raise GenerationFailure("The planning assistant is unavailable right now. Please try again.") from exc

            content = completion.choices[0].message.content if completion.choices else None
            if not content or not content.strip():
                raise GenerationFailure("The planning assistant returned an empty response.")
            annotate(span, llm_output_text=content[:500])

            try:
                output = output_model.model_validate_json(content)
            except PydanticValidationError as exc:
                logger.warning("Text generation %s returned an invalid payload: %s", name, exc)
                raise GenerationFailure("The planning assistant returned a response in an unexpected shape.") from exc

        return output


def response_schema(model: Type[BaseModel]) -> str:
    """JSON schema text embedded in prompts so the model knows the target shape."""
    return json.dumps(model.model_json_schema(), indent=2)
