from pathlib import Path

import pytest

from chain_llm.context import build_context
from chain_llm.context import load_providers
from chain_llm.errors import ConfigError
from chain_llm.errors import ProviderNotRegisteredError
from chain_llm.models import EngineConfig
from chain_llm.models import ProviderSpec
from chain_llm.models import ServiceType
from chain_llm.providers import ProviderRegistry
from chain_llm.providers.pydantic_ai_provider import PydanticAIProvider

CONFIG_YAML = """
enabled_llms: [openai, local]
primary_llm: openai
cache:
  ttl_ms: 1000
  max_size: 5
providers:
  openai:
    model_name: gpt-4o-mini
    capabilities: [text_text, image_text]
    models:
      image_text: gpt-4o
  local:
    base_url: http://localhost:11434/v1
    api_key_env: LOCAL_LLM_KEY
prompts_dir: prompts
"""


def write_config(tmp_path: Path, text: str = CONFIG_YAML) -> Path:
    path = tmp_path / "chain-llm.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_config(tmp_path: Path) -> None:
    config = EngineConfig.load(write_config(tmp_path))

    assert config.enabled_llms == ["openai", "local"]
    assert config.cache.max_size == 5
    assert config.cache.enabled is True
    assert config.providers["openai"].model_for(ServiceType.IMAGE_TEXT) == "gpt-4o"
    assert config.providers["openai"].model_for(ServiceType.TEXT_TEXT) == "gpt-4o-mini"
    assert config.providers["openai"].env_var_name("openai") == "OPENAI_API_KEY"
    assert config.providers["local"].env_var_name("local") == "LOCAL_LLM_KEY"
    assert config.prompts_dir == str(tmp_path / "prompts")


def test_load_config_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        EngineConfig.load(tmp_path / "missing.yaml")
    with pytest.raises(ConfigError, match="Invalid YAML"):
        EngineConfig.load(write_config(tmp_path, "providers: [unclosed"))
    with pytest.raises(ConfigError, match="Invalid configuration"):
        EngineConfig.load(write_config(tmp_path, "cache:\n  max_size: 0\n"))


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    config = EngineConfig.load(write_config(tmp_path, ""))
    assert config.primary_llm is None
    assert config.providers == {}


def test_load_providers_registers_only_with_api_key(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.delenv("LOCAL_LLM_KEY", raising=False)
    registry = ProviderRegistry()

    load_providers(EngineConfig.load(write_config(tmp_path)), registry)

    assert registry.get_registered_providers() == ["openai"]
    assert isinstance(registry.get_provider(), PydanticAIProvider)
    with pytest.raises(ProviderNotRegisteredError) as excinfo:
        registry.get_provider("local")
    assert excinfo.value.env_var_name == "LOCAL_LLM_KEY"


def test_build_context_loads_prompts(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    prompts = tmp_path / "prompts"
    prompts.mkdir()
    (prompts / "news.md").write_text("---\nprompt_area: general\nprompt_key: news\n---\nPick one\n", encoding="utf-8")

    context = build_context(EngineConfig.load(write_config(tmp_path)))

    assert context.lookup.get_prompt_text("general", "news") == "Pick one"
    assert context.cache.get_stats().max_size == 5
    assert context.registry.get_primary_llm() == "openai"


def test_provider_spec_defaults() -> None:
    spec = ProviderSpec()
    assert spec.capabilities == [ServiceType.TEXT_TEXT]
    assert spec.env_var_name("Gemini") == "GEMINI_API_KEY"
