import pytest

from chain_llm import errors
from chain_llm.errors import CapabilityNotSupportedError
from chain_llm.errors import NoProviderConfiguredError
from chain_llm.errors import ProviderNotEnabledError
from chain_llm.errors import ProviderNotRegisteredError
from chain_llm.models import ServiceType
from chain_llm.providers import LLMProvider
from chain_llm.providers import ProviderRegistry


class StaticProvider(LLMProvider):
    def __init__(self, name: str, capabilities: set[ServiceType]) -> None:
        self.name = name
        self.capabilities = capabilities

    def get_name(self) -> str:
        return self.name

    def get_capabilities(self) -> set[ServiceType]:
        return self.capabilities


def make_registry() -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register_provider(StaticProvider("Gemini", {ServiceType.TEXT_TEXT, ServiceType.IMAGE_TEXT}))
    registry.set_enabled_llms(["gemini", "qwen"])
    registry.set_primary_llm("gemini")
    return registry


def test_get_provider_uses_primary_when_unnamed() -> None:
    registry = make_registry()
    assert registry.get_provider().get_name() == "Gemini"
    assert registry.get_primary_llm() == "gemini"


def test_names_are_case_insensitive() -> None:
    registry = make_registry()
    assert registry.get_provider("GEMINI").get_name() == "Gemini"
    assert registry.is_llm_enabled("Qwen")
    assert registry.get_registered_providers() == ["gemini"]


def test_no_provider_configured() -> None:
    registry = ProviderRegistry()
    with pytest.raises(NoProviderConfiguredError) as excinfo:
        registry.get_provider()
    assert excinfo.value.code == errors.NO_PROVIDER_CONFIGURED


def test_not_enabled_lists_enabled_set() -> None:
    registry = make_registry()
    with pytest.raises(ProviderNotEnabledError) as excinfo:
        registry.get_provider("openai")
    assert excinfo.value.code == errors.PROVIDER_NOT_ENABLED
    assert excinfo.value.details["enabled_llms"] == ["gemini", "qwen"]


def test_enabled_but_unregistered_names_env_var() -> None:
    registry = make_registry()
    with pytest.raises(ProviderNotRegisteredError) as excinfo:
        registry.get_provider("qwen")
    assert excinfo.value.code == errors.PROVIDER_NOT_REGISTERED
    assert excinfo.value.env_var_name == "QWEN_API_KEY"
    assert excinfo.value.registered == ["gemini"]
    assert "QWEN_API_KEY" in str(excinfo.value)


def test_unregistered_uses_configured_env_var_hint() -> None:
    registry = make_registry()
    registry.set_api_key_env("qwen", "DASHSCOPE_KEY")
    with pytest.raises(ProviderNotRegisteredError) as excinfo:
        registry.get_provider("qwen")
    assert excinfo.value.env_var_name == "DASHSCOPE_KEY"


def test_validate_capability() -> None:
    registry = make_registry()
    provider = registry.get_provider()
    assert registry.has_capability(provider, ServiceType.IMAGE_TEXT)
    registry.validate_capability(provider, ServiceType.TEXT_TEXT)
    with pytest.raises(CapabilityNotSupportedError) as excinfo:
        registry.validate_capability(provider, ServiceType.TEXT_IMAGE)
    assert excinfo.value.code == errors.CAPABILITY_NOT_SUPPORTED
    assert excinfo.value.capabilities == ["image_text", "text_text"]


def test_get_validated_provider_checks_both() -> None:
    registry = make_registry()
    assert registry.get_validated_provider(None, ServiceType.TEXT_TEXT).get_name() == "Gemini"
    with pytest.raises(CapabilityNotSupportedError):
        registry.get_validated_provider("gemini", ServiceType.IMAGE_IMAGE)


def test_clear_resets_everything() -> None:
    registry = make_registry()
    registry.clear()
    assert registry.get_registered_providers() == []
    assert registry.get_enabled_llms() == []
    assert registry.get_primary_llm() is None


def test_registries_are_isolated() -> None:
    first = make_registry()
    second = ProviderRegistry()
    assert first.get_registered_providers() == ["gemini"]
    assert second.get_registered_providers() == []
