import json
import logging
from pathlib import Path
from typing import Any

import pytest

from chain_llm.context import LLMContext
from chain_llm.dynamic_extract import DynamicDataExtractor
from chain_llm.dynamic_extract import build_step_variables
from chain_llm.dynamic_extract import compare_values
from chain_llm.dynamic_extract import parse_next_prompt_config
from chain_llm.dynamic_extract import resolve_next_prompt
from chain_llm.json_path import MISSING
from chain_llm.models import DynamicDataExtractParams
from chain_llm.models import ImageTextParams
from chain_llm.models import LLMResponse
from chain_llm.models import NextPromptConfig
from chain_llm.models import PromptRecord
from chain_llm.models import ServiceType
from chain_llm.models import TextTextParams
from chain_llm.orchestrator import Orchestrator
from chain_llm.prompts import InMemoryPromptStore
from chain_llm.prompts.store import load_prompt_file
from chain_llm.providers import LLMProvider
from chain_llm.providers import ProviderRegistry
from chain_llm.service_calls import ServiceCaller


class ScriptedProvider(LLMProvider):
    def __init__(self, responses: list[LLMResponse]) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, Any]] = []

    def get_name(self) -> str:
        return "scripted"

    def get_capabilities(self) -> set[ServiceType]:
        return {ServiceType.TEXT_TEXT, ServiceType.IMAGE_TEXT}

    async def text_text(self, params: TextTextParams) -> LLMResponse:
        self.calls.append(("text_text", params))
        return self.responses.pop(0)

    async def image_text(self, params: ImageTextParams) -> LLMResponse:
        self.calls.append(("image_text", params))
        return self.responses.pop(0)


def prompt(key: str, text: str, next_prompt: dict[str, Any] | None = None) -> PromptRecord:
    return PromptRecord(
        id=key,
        prompt_area="extract",
        prompt_key=key,
        prompt_text=text,
        next_prompt=json.dumps(next_prompt) if next_prompt is not None else None,
    )


ROUTER = {
    "branches": [
        {
            "conditions": [{"field": "$.document_type", "operator": "==", "value": "invoice"}],
            "static_prompt_area": "extract",
            "static_prompt_key": "invoice",
        },
        {
            "conditions": [{"field": "$.pages", "operator": ">", "value": 10}],
            "static_prompt_area": "extract",
            "dynamic_prompt_key": "$.long_form",
        },
    ],
    "default_branch": {"static_prompt_area": "extract", "static_prompt_key": "generic"},
}

PROMPTS = [
    prompt("classify", "Classify this document.", ROUTER),
    prompt("invoice", "Extract invoice fields for $customer.", {"static_prompt_area": "extract", "static_prompt_key": "totals"}),
    prompt("totals", "Sum the totals for $document_type in $region."),
    prompt("generic", "Summarize."),
    prompt("loop", "Again.", {"static_prompt_area": "extract", "static_prompt_key": "loop"}),
]


def text(payload: Any) -> LLMResponse:
    return LLMResponse(success=True, text=payload if isinstance(payload, str) else json.dumps(payload))


def make_extractor(provider: ScriptedProvider, records: list[PromptRecord] = PROMPTS) -> DynamicDataExtractor:
    registry = ProviderRegistry()
    registry.register_provider(provider)
    registry.set_enabled_llms(["scripted"])
    registry.set_primary_llm("scripted")
    context = LLMContext.create(registry=registry, store=InMemoryPromptStore(records))
    return DynamicDataExtractor(ServiceCaller(context), context.lookup)


@pytest.mark.anyio
async def test_branch_routing_merges_every_step() -> None:
    provider = ScriptedProvider(
        [
            text({"document_type": "invoice", "customer": "Acme"}),
            text('```json\n{"invoice": {"number": "INV-9"}}\n```'),
            text({"total": 42}),
        ]
    )

    response = await make_extractor(provider).run(
        DynamicDataExtractParams(
            initial_prompt_area="extract",
            initial_prompt_key="classify",
            initial_prompt_variables=[{"unused": "x"}],
            context_data={"region": "EU"},
        )
    )

    assert response.success
    assert response.final_stop_reason == "no_next_prompt"
    assert [step.prompt_key for step in response.step_results] == ["classify", "invoice", "totals"]
    assert response.merged_result == {"document_type": "invoice", "customer": "Acme", "invoice": {"number": "INV-9"}, "total": 42}
    assert provider.calls[0][1].prompt_variables == [{"unused": "x"}]
    assert provider.calls[1][1].prompt == "Extract invoice fields for Acme."
    assert provider.calls[2][1].prompt == "Sum the totals for invoice in EU."
    first = response.step_results[0].next_prompt_resolution
    assert first is not None
    assert (first.matched_branch, first.branch_index, first.resolved_key) == ("branch", 0, "invoice")
    assert response.step_results[1].next_prompt_resolution.matched_branch == "simple"


@pytest.mark.anyio
async def test_default_branch_and_dynamic_key() -> None:
    provider = ScriptedProvider([text({"document_type": "memo", "pages": 2}), text({"summary": "short"})])
    response = await make_extractor(provider).run(
        DynamicDataExtractParams(initial_prompt_area="extract", initial_prompt_key="classify")
    )
    assert [step.prompt_key for step in response.step_results] == ["classify", "generic"]
    assert response.step_results[0].next_prompt_resolution.matched_branch == "default"

    provider = ScriptedProvider([text({"document_type": "memo", "pages": "12", "long_form": "generic"}), text("{}")])
    response = await make_extractor(provider).run(
        DynamicDataExtractParams(initial_prompt_area="extract", initial_prompt_key="classify")
    )
    resolution = response.step_results[0].next_prompt_resolution
    assert (resolution.matched_branch, resolution.branch_index) == ("branch", 1)


@pytest.mark.anyio
async def test_missing_next_prompt_stops_with_reason() -> None:
    records = [prompt("start", "Go.", {"static_prompt_area": "extract", "static_prompt_key": "gone"})]
    provider = ScriptedProvider([text({"a": 1})])

    response = await make_extractor(provider, records).run(
        DynamicDataExtractParams(initial_prompt_area="extract", initial_prompt_key="start")
    )

    assert response.success
    assert response.final_stop_reason == "next_prompt_not_found"
    assert response.errors[0].step_index == 1
    assert response.errors[0].error == "Prompt not found: extract/gone"
    assert response.merged_result == {"a": 1}
    assert (response.total_steps, response.successful_steps) == (2, 1)


@pytest.mark.anyio
async def test_failed_call_stops_unless_continue_on_error() -> None:
    provider = ScriptedProvider([LLMResponse(success=False, error="backend down")])
    response = await make_extractor(provider).run(
        DynamicDataExtractParams(initial_prompt_area="extract", initial_prompt_key="generic")
    )
    assert response.success is False
    assert response.final_stop_reason == "error"
    assert response.step_results[0].error == "backend down"

    provider = ScriptedProvider([LLMResponse(success=False, error="flaky"), text({"ok": True})])
    response = await make_extractor(provider).run(
        DynamicDataExtractParams(initial_prompt_area="extract", initial_prompt_key="generic", continue_on_error=True)
    )
    assert [step.success for step in response.step_results] == [False, True]
    assert response.final_stop_reason == "no_next_prompt"
    assert response.merged_result == {"ok": True}


@pytest.mark.anyio
async def test_max_depth_stops_a_routing_loop(caplog: pytest.LogCaptureFixture) -> None:
    provider = ScriptedProvider([text({"n": index}) for index in range(3)])

    with caplog.at_level(logging.WARNING):
        response = await make_extractor(provider).run(
            DynamicDataExtractParams(initial_prompt_area="extract", initial_prompt_key="loop", max_depth=3)
        )

    assert response.final_stop_reason == "max_depth"
    assert response.total_steps == 3
    assert response.merged_result == {"n": 2}
    assert "max_depth 3" in caplog.text


@pytest.mark.anyio
async def test_document_is_sent_with_every_step() -> None:
    provider = ScriptedProvider([text({"document_type": "memo"}), text({"done": True})])

    await make_extractor(provider).run(
        DynamicDataExtractParams(
            initial_prompt_area="extract",
            initial_prompt_key="classify",
            image_b64="cGRm",
            image_mime_type="application/pdf",
        )
    )

    assert [service for service, _ in provider.calls] == ["image_text", "image_text"]
    assert all(params.image_b64 == "cGRm" for _, params in provider.calls)


@pytest.mark.anyio
async def test_orchestrator_runs_dynamic_extract() -> None:
    provider = ScriptedProvider([text({"summary": "ok"})])
    registry = ProviderRegistry()
    registry.register_provider(provider)
    registry.set_enabled_llms(["scripted"])
    registry.set_primary_llm("scripted")
    orch = Orchestrator(context=LLMContext.create(registry=registry, store=InMemoryPromptStore(PROMPTS)))

    response = await orch.dynamic_data_extract(
        DynamicDataExtractParams(initial_prompt_area="extract", initial_prompt_key="generic")
    )

    assert response.successful_steps == 1
    assert response.merged_result == {"summary": "ok"}


@pytest.mark.parametrize(
    ("left", "op", "right", "expected"),
    [
        ("invoice", "==", "invoice", True),
        (5, "==", "5", True),
        (5, "==", 5.0, True),
        (True, "==", "true", True),
        ("12", ">", 10, True),
        ("b", ">", "a", True),
        (3, "<=", 3, True),
        ("Invoice 2024", "contains", "2024", True),
        ("Invoice", "startsWith", "Inv", True),
        ("Invoice", "endsWith", "ice", True),
        ("memo", "!=", "memo", False),
        (None, "==", "x", False),
        (MISSING, "!=", "x", True),
        (MISSING, ">", 1, False),
    ],
)
def test_compare_values(left: Any, op: Any, right: Any, expected: bool) -> None:
    assert compare_values(left, op, right) is expected


def test_parse_next_prompt_config_rejects_bad_input(caplog: pytest.LogCaptureFixture) -> None:
    assert parse_next_prompt_config(None) is None
    assert parse_next_prompt_config("  ") is None
    with caplog.at_level(logging.WARNING):
        assert parse_next_prompt_config("{not json") is None
        assert parse_next_prompt_config("[1, 2]") is None
        assert parse_next_prompt_config('{"branches": [{"conditions": [{"field": "$.a", "operator": "~"}]}]}') is None
    assert "must be a JSON object" in caplog.text


def test_resolve_next_prompt_requires_complete_target() -> None:
    config = NextPromptConfig(static_prompt_area="extract", dynamic_prompt_key="$.next")
    assert resolve_next_prompt(config, {"other": 1}) is None
    resolved = resolve_next_prompt(config, {"next": "totals"})
    assert resolved is not None
    assert (resolved.prompt_area, resolved.prompt_key, resolved.resolution_type) == ("extract", "totals", "simple")
    assert config.is_routable()
    assert not NextPromptConfig(static_prompt_area="extract").is_routable()


def test_build_step_variables_flattens_context_then_results() -> None:
    variables = build_step_variables(
        {"customer": {"name": "Acme", "vip": True}, "items": [1, 2], "skip": None, "region": "US"},
        {"region": "EU", "tenant": "t-1"},
    )
    assert variables == [
        {"region": "US", "tenant": "t-1", "customer.name": "Acme", "customer.vip": "true", "items": "[1,2]"}
    ]
    assert build_step_variables({}, {}) == []


def test_prompt_file_next_prompt_front_matter(tmp_path: Path) -> None:
    path = tmp_path / "classify.md"
    path.write_text(
        "---\nprompt_area: extract\nprompt_key: classify\nnext_prompt:\n"
        "  static_prompt_area: extract\n  static_prompt_key: totals\n---\nClassify.\n",
        encoding="utf-8",
    )

    record = load_prompt_file(path)

    config = parse_next_prompt_config(record.next_prompt)
    assert config is not None
    assert (config.static_prompt_area, config.static_prompt_key) == ("extract", "totals")
