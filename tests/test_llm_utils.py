"""Tests for agentmesh/advisor/llm_utils.py."""

from __future__ import annotations

from agentmesh.advisor.flows import CloudCostOutput, SecurityRemediationOutput
from agentmesh.advisor.llm_utils import describe_output_schema, parse_llm_json


class TestParseLlmJson:

    def test_plain_json(self):
        assert parse_llm_json('{"suggestions": "- stop idle VMs"}') == {
            "suggestions": "- stop idle VMs",
        }

    def test_leading_fence(self):
        raw = '```json\n{"a": 1}\n```'
        assert parse_llm_json(raw) == {"a": 1}

    def test_fence_after_preamble(self):
        raw = 'Here is the report:\n```json\n{"a": 1}\n```\nThanks.'
        assert parse_llm_json(raw) == {"a": 1}

    def test_outermost_braces(self):
        raw = 'Sure! {"a": {"b": 2}} hope that helps'
        assert parse_llm_json(raw) == {"a": {"b": 2}}

    def test_garbage_and_empty(self):
        assert parse_llm_json("not json at all") is None
        assert parse_llm_json("") is None

    def test_non_object_json_is_rejected(self):
        assert parse_llm_json("[1, 2, 3]") is None
        assert parse_llm_json("\"just a string\"") is None
        assert parse_llm_json("42") is None

    def test_fenced_object_preferred_over_leading_array(self):
        raw = "[1, 2]\n```json\n{\"a\": 1}\n```"
        assert parse_llm_json(raw) == {"a": 1}

    def test_none_reply(self):
        assert parse_llm_json(None) is None


class TestDescribeOutputSchema:

    def test_lists_every_output_field(self):
        text = describe_output_schema(SecurityRemediationOutput)
        for field in (
            "vulnerability_scan_report",
            "compliance_violation_report",
            "remediation_plan",
            "remediation_execution_status",
        ):
            assert f'"{field}" (string)' in text

    def test_includes_field_description(self):
        text = describe_output_schema(CloudCostOutput)
        assert "actionable recommendations for cost optimization" in text
