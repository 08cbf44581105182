"""POST /generate: telemetry actions and governed generation requests.

Telemetry actions skip identity resolution and quota accounting entirely.
Every other request resolves the caller, consumes one quota unit and only
then reaches the generation backend.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from loguru import logger

from repvault.api.dependencies import get_trusted_claims
from repvault.core.errors import GovernanceError, InvalidInput
from repvault.core.request_log import RequestSummary
from repvault.identity.claims import Claims, subject_from_claims
from repvault.services.generation import (
    OUTPUT_SHAPES,
    GenerationBackend,
    GenerationRequest,
    GenerationType,
    get_generation_backend,
)
from repvault.services.governance import GovernanceService, get_governance_service

REPORT_MIGRATION_STATUS = "reportMigrationStatus"
GET_MIGRATION_STATS = "getMigrationStats"
TELEMETRY_OUTPUT_SHAPE = "telemetry"

router = APIRouter(tags=["generate"])


def _require_object(payload: Any) -> dict[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be a JSON object.", code="INVALID_JSON")
    return payload


def _generation_type(body: dict[str, Any]) -> GenerationType:
    raw = body.get("generationType")
    if raw is None:
        return GenerationType.WORKOUT_TEMPLATE
    if isinstance(raw, str) and raw in {t.value for t in GenerationType}:
        return GenerationType(raw)
    raise InvalidInput(
        "generationType must be workout_template or workout_insights.",
        code="INVALID_GENERATION_TYPE",
    )


def _handle_telemetry(
    action: str,
    body: dict[str, Any],
    claims: Claims | None,
    service: GovernanceService,
) -> dict[str, Any]:
    summary = RequestSummary(user_id=subject_from_claims(claims) or "unknown", generation_type=action)
    try:
        if action == REPORT_MIGRATION_STATUS:
            result = service.ingest_migration_report(body, claims)
        else:
            result = service.get_migration_stats(claims, body.get("days")).model_dump(by_alias=True)
    except GovernanceError as e:
        summary.emit(e.status_code, "error")
        raise
    except Exception:
        summary.emit(500, "error")
        raise

    summary.emit(200, TELEMETRY_OUTPUT_SHAPE)
    return result


@router.post("/generate")
def generate(
    payload: Any = Body(default=None),
    claims: dict[str, Any] | None = Depends(get_trusted_claims),
    service: GovernanceService = Depends(get_governance_service),
    backend: GenerationBackend = Depends(get_generation_backend),
) -> dict[str, Any]:
    body = _require_object(payload)

    action = body.get("action")
    if action in (REPORT_MIGRATION_STATUS, GET_MIGRATION_STATS):
        return _handle_telemetry(action, body, claims, service)

    summary = RequestSummary()
    try:
        generation_type = _generation_type(body)
        summary.generation_type = generation_type.value

        prompt = body.get("prompt")
        if not isinstance(prompt, str) or not prompt.strip():
            raise InvalidInput("Missing required field: prompt.")

        identity = service.resolve_identity(claims, body.get("userId"))
        summary.user_id = identity.id
        logger.info(
            "User context resolved",
            event="user_context_resolved",
            userId=identity.id,
            tier=identity.tier.value,
            tierSource=identity.tier_source.value,
        )

        service.check_and_consume_quota(identity.id, identity.tier)

        output = backend.generate(
            GenerationRequest(
                prompt=prompt,
                generation_type=generation_type,
                identity=identity,
                payload=body.get("payload"),
            )
        )
    except GovernanceError as e:
        summary.emit(e.status_code, "error")
        raise
    except Exception:
        summary.emit(500, "error")
        raise

    summary.emit(200, OUTPUT_SHAPES[generation_type])
    return {"output": output}
