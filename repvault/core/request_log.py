from __future__ import annotations

from dataclasses import dataclass

from loguru import logger


@dataclass
class RequestSummary:
    """One structured ``generate_request`` log line per handled request."""

    user_id: str = "unknown"
    generation_type: str = "workout_template"

    def emit(self, status_code: int, output_shape: str) -> None:
        logger.info(
            "Generate request handled",
            event="generate_request",
            userId=self.user_id,
            generationType=self.generation_type,
            statusCode=status_code,
            outputShape=output_shape,
        )
