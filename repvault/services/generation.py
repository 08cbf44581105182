"""Boundary to the generative-AI provider.

Prompt construction and provider calls live outside this service. The
handler only needs something that turns an admitted request into output.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

from repvault.core.errors import InternalError
from repvault.identity.types import IdentityContext


class GenerationType(StrEnum):
    WORKOUT_TEMPLATE = "workout_template"
    WORKOUT_INSIGHTS = "workout_insights"


OUTPUT_SHAPES = {
    GenerationType.WORKOUT_TEMPLATE: "exercise_template_array",
    GenerationType.WORKOUT_INSIGHTS: "insights_object",
}


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    generation_type: GenerationType
    identity: IdentityContext
    payload: Any = None


class GenerationBackend(Protocol):
    def generate(self, request: GenerationRequest) -> Any: ...


class UnconfiguredBackend:
    def generate(self, request: GenerationRequest) -> Any:
        raise InternalError("Generation backend is not configured.")


_backend: GenerationBackend = UnconfiguredBackend()


def set_generation_backend(backend: GenerationBackend) -> None:
    global _backend
    _backend = backend


def get_generation_backend() -> GenerationBackend:
    return _backend
