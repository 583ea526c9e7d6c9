"""Unit tests for SemanticTask parsing."""

import pytest

from steer_router.errors import PayloadValidationError
from steer_router.models.task import SemanticTask, parse_semantic_task
from tests.helpers.factories import CAPABILITY, TENANT, make_task_payload


class TestParseSemanticTask:

    def test_valid_payload(self):
        task = parse_semantic_task(make_task_payload(constraints={"maxParallel": 2}))

        assert isinstance(task, SemanticTask)
        assert task.tenant_id == TENANT
        assert task.capability == CAPABILITY
        assert task.context.correlation_id == "corr-123"
        assert task.requester.scopes == ["patients:read"]
        assert task.constraints.max_parallel == 2

    def test_optional_sections_may_be_absent(self):
        task = parse_semantic_task(make_task_payload(correlation_id=None))

        assert task.context.correlation_id is None
        assert task.constraints is None

    @pytest.mark.parametrize("payload", [None, [], "task", 42])
    def test_non_object_payload(self, payload):
        with pytest.raises(PayloadValidationError) as exc_info:
            parse_semantic_task(payload)

        assert str(exc_info.value) == "Invalid SemanticTask payload"
        assert exc_info.value.issues == ["Payload must be a JSON object."]

    def test_missing_sections_are_reported(self):
        with pytest.raises(PayloadValidationError) as exc_info:
            parse_semantic_task({"context": {"tenant": TENANT}})

        issues = " ".join(exc_info.value.issues)
        assert "requester" in issues
        assert "goal" in issues

    @pytest.mark.parametrize("path", [("context", "tenant"), ("goal", "capability"), ("requester", "id")])
    def test_blank_identifiers_are_rejected(self, path):
        payload = make_task_payload()
        section, field = path
        payload[section][field] = "   "

        with pytest.raises(PayloadValidationError) as exc_info:
            parse_semantic_task(payload)

        assert any(field in issue for issue in exc_info.value.issues)

    def test_unknown_requester_type(self):
        payload = make_task_payload()
        payload["requester"]["type"] = "robot"

        with pytest.raises(PayloadValidationError):
            parse_semantic_task(payload)

    @pytest.mark.parametrize("constraints", [
        {"overallTimeoutMs": -1},
        {"maxParallel": 0},
        {"costBudget": -0.5},
        {"overallTimeoutMs": float("inf")},
        {"denyNetworkWhen": "sometimes"},
    ])
    def test_invalid_constraints(self, constraints):
        with pytest.raises(PayloadValidationError):
            parse_semantic_task(make_task_payload(constraints=constraints))

    def test_goal_input_must_be_object(self):
        payload = make_task_payload()
        payload["goal"]["input"] = "Doe"

        with pytest.raises(PayloadValidationError) as exc_info:
            parse_semantic_task(payload)

        assert any("input" in issue for issue in exc_info.value.issues)

    def test_snake_case_names_are_accepted(self):
        task = SemanticTask.model_validate({
            "context": {"tenant": TENANT, "correlation_id": "abc"},
            "requester": {"type": "service", "id": "svc-1"},
            "goal": {"capability": CAPABILITY, "input": {}},
        })
        assert task.context.correlation_id == "abc"
