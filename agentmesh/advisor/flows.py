"""Advisory flows: three prompt-templated calls to the hosted model.

Each flow pairs a fixed input model, a prompt template and a fixed output
model. The rendered prompt ends with the output shape; the model's JSON
reply is validated against the output model before it is returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Type

from pydantic import BaseModel, Field, ValidationError

from .client import GenAIClient, GenAIResponseError
from .llm_utils import describe_output_schema, parse_llm_json

logger = logging.getLogger("agentmesh.advisor.flows")


# ─── Security compliance remediation ─────────────────────────────────


class SecurityRemediationInput(BaseModel):
    enterprise_environment_description: str = Field(
        ..., min_length=1,
        description="A detailed description of the enterprise environment, including cloud platforms, "
                    "on-premise systems, and security tools.",
    )
    industry_standards: str = Field(
        ..., min_length=1,
        description="The industry standards and regulatory requirements to comply with "
                    "(e.g., SOC 2, HIPAA, PCI DSS).",
    )


class SecurityRemediationOutput(BaseModel):
    vulnerability_scan_report: str = Field(
        ..., description="A report summarizing the identified security vulnerabilities.",
    )
    compliance_violation_report: str = Field(
        ..., description="A report detailing compliance violations against the specified industry standards.",
    )
    remediation_plan: str = Field(
        ..., description="A detailed plan for automatically remediating the identified vulnerabilities "
                         "and compliance violations.",
    )
    remediation_execution_status: str = Field(
        ..., description="The execution status of the automated remediation plan.",
    )


SECURITY_REMEDIATION_PROMPT = """\
You are an expert security engineer specializing in identifying security vulnerabilities and automatically remediating compliance violations based on industry standards.

You will use this information to scan the enterprise environment for vulnerabilities, identify compliance violations, create a remediation plan, and execute it automatically.

Enterprise Environment Description: {enterprise_environment_description}
Industry Standards: {industry_standards}

Based on the enterprise environment description and the specified industry standards, generate the following:
1. A vulnerability scan report summarizing the identified security vulnerabilities.
2. A compliance violation report detailing the compliance violations against the specified industry standards.
3. A detailed plan for automatically remediating the identified vulnerabilities and compliance violations.
4. The execution status of the automated remediation plan.

Ensure that the output is well-structured and easy to understand.
"""


# ─── Cloud cost optimization ─────────────────────────────────────────


class CloudCostInput(BaseModel):
    cloud_provider: Literal["AWS", "Azure", "GCP"] = Field(
        ..., description="The cloud provider to analyze.",
    )
    spending_data: str = Field(
        ..., min_length=10,
        description="A JSON string containing detailed spending data for the specified cloud provider.",
    )


class CloudCostOutput(BaseModel):
    suggestions: str = Field(
        ..., description="A list of actionable recommendations for cost optimization.",
    )


CLOUD_COST_PROMPT = """\
You are an expert cloud cost optimization consultant.

Analyze the provided cloud spending data and provide actionable recommendations for cost optimization.

Cloud Provider: {cloud_provider}
Spending Data: {spending_data}

Provide suggestions for:
- Reducing unused resources
- Optimizing instance sizes
- Utilizing reserved instances or committed use discounts
- Identifying and eliminating waste

Format your suggestions as a bulleted list.
"""


# ─── Cross-client insight sharing ────────────────────────────────────


class InsightSharingInput(BaseModel):
    current_client_environment: str = Field(
        ..., min_length=1, description="The current client environment identifier.",
    )
    performance_metrics: str = Field(
        ..., description="Performance metrics from the current client environment.",
    )
    security_alerts: str = Field(
        ..., description="Security alerts from the current client environment.",
    )
    optimization_suggestions: str = Field(
        ..., description="Optimization suggestions applicable to multiple client environments.",
    )


class InsightSharingOutput(BaseModel):
    shared_insights: str = Field(
        ..., description="Insights that can be shared across client environments.",
    )
    coordination_activities: str = Field(
        ..., description="Coordinated activities to improve service delivery across clients.",
    )
    security_considerations: str = Field(
        ..., description="Security considerations for sharing insights across client environments.",
    )


INSIGHT_SHARING_PROMPT = """\
You are an MSP agent responsible for sharing insights and coordinating activities across multiple client environments.

Current Client Environment: {current_client_environment}
Performance Metrics: {performance_metrics}
Security Alerts: {security_alerts}
Optimization Suggestions: {optimization_suggestions}

Based on the information above, identify insights that can be shared across client environments, coordinated activities to improve service delivery, and security considerations for sharing insights.

Ensure that client isolation and data security are not compromised when sharing insights and coordinating activities.

Output the shared insights, coordination activities, and security considerations in a structured format.
"""


# ─── Flow runner ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class AdvisoryFlow:
    """A prompt template bound to its input and output models."""

    name: str
    input_model: Type[BaseModel]
    output_model: Type[BaseModel]
    template: str

    def render(self, payload: BaseModel) -> str:
        prompt = self.template.format(**payload.model_dump())
        return f"{prompt}\n{describe_output_schema(self.output_model)}\n"

    async def run(self, payload: BaseModel, client: Optional[GenAIClient] = None) -> BaseModel:
        """Render, call the model and validate its reply.

        A client passed in stays open; one created here is closed afterwards.

        Raises:
            GenAIConfigError: No API key configured
            GenAIClientError: Provider call failed
            GenAIResponseError: Reply is not JSON or misses output fields
        """
        owned = client is None
        client = client or GenAIClient()
        try:
            raw = await client.generate(self.render(payload), caller=self.name)
        finally:
            if owned:
                await client.close()

        data = parse_llm_json(raw, caller=self.name)
        if data is None:
            raise GenAIResponseError(f"{self.name}: reply is not a JSON object")
        try:
            return self.output_model.model_validate(data)
        except ValidationError as e:
            raise GenAIResponseError(f"{self.name}: reply does not match output schema: {e}") from e


SECURITY_REMEDIATION_FLOW = AdvisoryFlow(
    name="automatedSecurityComplianceRemediation",
    input_model=SecurityRemediationInput,
    output_model=SecurityRemediationOutput,
    template=SECURITY_REMEDIATION_PROMPT,
)

CLOUD_COST_FLOW = AdvisoryFlow(
    name="cloudCostOptimization",
    input_model=CloudCostInput,
    output_model=CloudCostOutput,
    template=CLOUD_COST_PROMPT,
)

INSIGHT_SHARING_FLOW = AdvisoryFlow(
    name="crossClientInsightSharing",
    input_model=InsightSharingInput,
    output_model=InsightSharingOutput,
    template=INSIGHT_SHARING_PROMPT,
)


async def automated_security_compliance_remediation(
    payload: SecurityRemediationInput,
    client: Optional[GenAIClient] = None,
) -> SecurityRemediationOutput:
    return await SECURITY_REMEDIATION_FLOW.run(payload, client)


async def get_cloud_cost_optimization_suggestions(
    payload: CloudCostInput,
    client: Optional[GenAIClient] = None,
) -> CloudCostOutput:
    return await CLOUD_COST_FLOW.run(payload, client)


async def cross_client_insight_sharing(
    payload: InsightSharingInput,
    client: Optional[GenAIClient] = None,
) -> InsightSharingOutput:
    return await INSIGHT_SHARING_FLOW.run(payload, client)
