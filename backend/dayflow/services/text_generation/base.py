"""Text-generation collaborator interface."""
from __future__ import annotations

from typing import Type, TypeVar

from pydantic import BaseModel

OutputT = TypeVar("OutputT", bound=BaseModel)


class TextGenerator:
    """Turns instructions plus structured input into a schema-validated model."""

    def generate(
        self,
        *,
        name: str,
        system_prompt: str,
        user_prompt: str,
        output_model: Type[OutputT],
        request_id: str | None = None,
    ) -> OutputT:
        """Return ``output_model`` parsed from the response or raise GenerationFailure."""
        raise NotImplementedError
