"""Exception types raised by the chain engine and provider registry."""

from __future__ import annotations

from typing import Any

NO_PROVIDER_CONFIGURED = "NO_PROVIDER_CONFIGURED"
PROVIDER_NOT_ENABLED = "PROVIDER_NOT_ENABLED"
PROVIDER_NOT_REGISTERED = "PROVIDER_NOT_REGISTERED"
CAPABILITY_NOT_SUPPORTED = "CAPABILITY_NOT_SUPPORTED"
PROMPT_NOT_FOUND = "PROMPT_NOT_FOUND"
NETWORK_ERROR = "NETWORK_ERROR"
TIMEOUT = "TIMEOUT"
RATE_LIMITED = "RATE_LIMITED"
API_KEY_MISSING = "API_KEY_MISSING"
INVALID_REQUEST = "INVALID_REQUEST"
UNKNOWN = "UNKNOWN"


class ChainLLMError(Exception):
    """Base class for all errors raised by chain_llm."""


class ConfigError(ChainLLMError):
    pass


class ChainReferenceError(ChainLLMError):
    """A call_chain path points at a call that has not produced a result yet."""

    def __init__(self, path: str, call_index: int, available_calls: int) -> None:
        self.path = path
        self.call_index = call_index
        self.available_calls = available_calls
        super().__init__(
            f"call_chain path {path!r} references call {call_index}, "
            f"but only {available_calls} earlier call result(s) exist."
        )


class ChainStepError(ChainLLMError):
    """A chain step could not be turned into service call parameters."""


class PromptNotFoundError(ChainLLMError):
    code = PROMPT_NOT_FOUND

    def __init__(self, prompt_area: str, prompt_key: str) -> None:
        self.prompt_area = prompt_area
        self.prompt_key = prompt_key
        super().__init__(f'Prompt not found for area="{prompt_area}" key="{prompt_key}"')


class ProviderError(ChainLLMError):
    """Provider lookup or validation failure carrying a user-facing code."""

    code = UNKNOWN

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}


class NoProviderConfiguredError(ProviderError):
    code = NO_PROVIDER_CONFIGURED

    def __init__(self) -> None:
        super().__init__(
            "No LLM provider specified and no primary LLM configured. "
            "Check enabled_llms and primary_llm in the configuration."
        )


class ProviderNotEnabledError(ProviderError):
    code = PROVIDER_NOT_ENABLED

    def __init__(self, provider: str, enabled: list[str]) -> None:
        super().__init__(
            f'LLM provider "{provider}" is not enabled. Enabled providers: {enabled}',
            {"provider": provider, "enabled_llms": enabled},
        )


class ProviderNotRegisteredError(ProviderError):
    code = PROVIDER_NOT_REGISTERED

    def __init__(self, provider: str, env_var_name: str, registered: list[str]) -> None:
        self.env_var_name = env_var_name
        self.registered = registered
        super().__init__(
            f'LLM provider "{provider}" is enabled in config but not loaded. '
            f"Check {env_var_name} in environment variables and provider configuration. "
            f"Registered providers: {registered}",
            {"provider": provider, "env_var_name": env_var_name, "registered_providers": registered},
        )


class CapabilityNotSupportedError(ProviderError):
    code = CAPABILITY_NOT_SUPPORTED

    def __init__(self, provider: str, service_type: str, capabilities: list[str]) -> None:
        self.capabilities = capabilities
        super().__init__(
            f'LLM provider "{provider}" does not support {service_type} service. '
            f"Supported: {capabilities}",
            {"provider": provider, "service_type": service_type, "supported_capabilities": capabilities},
        )
