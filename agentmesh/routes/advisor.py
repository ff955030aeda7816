"""Advisory report endpoints backed by the hosted model."""

from __future__ import annotations

import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException

from ..advisor import (
    CloudCostInput,
    CloudCostOutput,
    GenAIClient,
    GenAIClientError,
    GenAIConfigError,
    InsightSharingInput,
    InsightSharingOutput,
    SecurityRemediationInput,
    SecurityRemediationOutput,
    automated_security_compliance_remediation,
    cross_client_insight_sharing,
    get_cloud_cost_optimization_suggestions,
)

logger = logging.getLogger("agentmesh.routes.advisor")

router = APIRouter(prefix="/api/v2/advisor", tags=["advisor"])


async def get_genai_client() -> AsyncGenerator[GenAIClient, None]:
    """FastAPI dependency yielding a configured client, closed after the request."""
    try:
        client = GenAIClient()
    except GenAIConfigError as e:
        raise HTTPException(status_code=503, detail=str(e))
    try:
        yield client
    finally:
        await client.close()


def _provider_failure(flow: str, exc: GenAIClientError) -> HTTPException:
    if isinstance(exc, GenAIConfigError):
        return HTTPException(status_code=503, detail=str(exc))
    logger.error(f"{flow} failed: {exc}")
    return HTTPException(status_code=502, detail=f"Advisory request failed: {exc}")


@router.post("/security-remediation", response_model=SecurityRemediationOutput)
async def security_remediation(
    payload: SecurityRemediationInput,
    client: GenAIClient = Depends(get_genai_client),
):
    """Vulnerability scan, compliance violations and a remediation plan."""
    try:
        return await automated_security_compliance_remediation(payload, client)
    except GenAIClientError as e:
        raise _provider_failure("security-remediation", e)


@router.post("/cloud-cost", response_model=CloudCostOutput)
async def cloud_cost(
    payload: CloudCostInput,
    client: GenAIClient = Depends(get_genai_client),
):
    """Cost optimization suggestions for one cloud provider's spending data."""
    try:
        return await get_cloud_cost_optimization_suggestions(payload, client)
    except GenAIClientError as e:
        raise _provider_failure("cloud-cost", e)


@router.post("/insight-sharing", response_model=InsightSharingOutput)
async def insight_sharing(
    payload: InsightSharingInput,
    client: GenAIClient = Depends(get_genai_client),
):
    try:
        return await cross_client_insight_sharing(payload, client)
    except GenAIClientError as e:
        raise _provider_failure("insight-sharing", e)
