import json

import pytest

from careeros.models.models import PersistedAuditRecord
from careeros.services.planning import ProjectIdeaBuilder, SprintPlanner
from careeros.utils.exceptions import ModelError

SPRINT = {
    "week_number": 2,
    "tasks": [
        {"id": "t1", "type": "Skill Development", "description": "Deploy to k8s", "time_estimate": "4h",
         "measurable_outcome": "Running cluster", "completed": True},
        {"type": "Networking", "description": "Message two engineers"},
        "not a task",
    ],
}
IDEAS = [
    {"title": "Event-sourced ledger", "tech_stack": ["Python", "Kafka"], "features": "audit trail, replay"},
    {"title": "Edge cache", "description": "CDN-like cache"},
]


class TestSprintPlanner:
    async def test_generates_plan(self, inference, sample_audit):
        inference.extract_structured.return_value = f"```json\n{json.dumps(SPRINT)}\n```"

        plan = await SprintPlanner(inference).generate(sample_audit, "Platform Engineer", 3)

        assert plan.week_number == 3
        assert plan.target_role == "Platform Engineer"
        assert len(plan.tasks) == 2
        assert all(task.completed is False for task in plan.tasks)
        assert plan.tasks[1].id == "task-2"
        prompt = inference.extract_structured.call_args.args[0]
        assert "Kubernetes" in prompt
        assert "WEEK NUMBER: 3" in prompt

    async def test_malformed_output(self, inference, sample_audit):
        inference.extract_structured.return_value = "Here are some ideas: learn things."

        with pytest.raises(ModelError):
            await SprintPlanner(inference).generate(sample_audit, "SRE")

    async def test_persisted_record_is_accepted_as_audit(self, inference, sample_audit):
        inference.extract_structured.return_value = json.dumps(SPRINT)
        record = PersistedAuditRecord(id="a1", user_id="u1", embedding=[0.1] * 4, **sample_audit.dict())

        await SprintPlanner(inference).generate(record, "SRE")

        prompt = inference.extract_structured.call_args.args[0]
        assert "embedding" not in prompt
        assert "created_at" in prompt


class TestProjectIdeaBuilder:
    async def test_array_output(self, inference, sample_audit):
        inference.extract_structured.return_value = json.dumps(IDEAS)

        ideas = await ProjectIdeaBuilder(inference).generate(sample_audit, "SRE")

        assert [i.title for i in ideas] == ["Event-sourced ledger", "Edge cache"]
        assert ideas[0].features == ["audit trail", "replay"]

    async def test_wrapped_output(self, inference):
        inference.extract_structured.return_value = json.dumps({"ideas": IDEAS})

        ideas = await ProjectIdeaBuilder(inference).generate(None, "SRE")

        assert len(ideas) == 2
        assert "USER AUDIT: None" in inference.extract_structured.call_args.args[0]

    async def test_malformed_output(self, inference):
        inference.extract_structured.return_value = "no ideas"

        with pytest.raises(ModelError):
            await ProjectIdeaBuilder(inference).generate(None, "SRE")
