"""Advisory flows backed by the hosted generative-AI model."""

from .client import GenAIClient, GenAIClientError, GenAIConfigError, GenAIResponseError
from .flows import (
    CloudCostInput,
    CloudCostOutput,
    InsightSharingInput,
    InsightSharingOutput,
    SecurityRemediationInput,
    SecurityRemediationOutput,
    automated_security_compliance_remediation,
    cross_client_insight_sharing,
    get_cloud_cost_optimization_suggestions,
)

__all__ = [
    "GenAIClient",
    "GenAIClientError",
    "GenAIConfigError",
    "GenAIResponseError",
    "CloudCostInput",
    "CloudCostOutput",
    "InsightSharingInput",
    "InsightSharingOutput",
    "SecurityRemediationInput",
    "SecurityRemediationOutput",
    "automated_security_compliance_remediation",
    "cross_client_insight_sharing",
    "get_cloud_cost_optimization_suggestions",
]
