"""Provider registry with enabled-set and capability checks."""

from __future__ import annotations

import logging
import threading

from chain_llm.errors import CapabilityNotSupportedError
from chain_llm.errors import NoProviderConfiguredError
from chain_llm.errors import ProviderNotEnabledError
from chain_llm.errors import ProviderNotRegisteredError
from chain_llm.models.provider_spec import api_key_env_var
from chain_llm.models.service_type import ServiceType
from chain_llm.providers.base import LLMProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Maps provider names (case-insensitive) to handlers. Populated at startup and
    read afterwards; writes are serialized by a lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._providers: dict[str, LLMProvider] = {}
        self._enabled: frozenset[str] = frozenset()
        self._primary: str | None = None
        self._api_key_envs: dict[str, str] = {}

    def register_provider(self, provider: LLMProvider) -> None:
        name = provider.get_name().lower()
        with self._lock:
            self._providers = {**self._providers, name: provider}
        logger.debug("Registered LLM provider %s", name)

    def set_api_key_env(self, name: str, env_var_name: str) -> None:
        with self._lock:
            self._api_key_envs = {**self._api_key_envs, name.lower(): env_var_name}

    def set_enabled_llms(self, names: list[str]) -> None:
        with self._lock:
            self._enabled = frozenset(name.lower() for name in names)

    def set_primary_llm(self, name: str | None) -> None:
        with self._lock:
            self._primary = name.lower() if name else None

    def get_primary_llm(self) -> str | None:
        return self._primary

    def is_llm_enabled(self, name: str) -> bool:
        return name.lower() in self._enabled

    def get_enabled_llms(self) -> list[str]:
        return sorted(self._enabled)

    def get_registered_providers(self) -> list[str]:
        return sorted(self._providers.keys())

    def get_provider(self, name: str | None = None) -> LLMProvider:
        provider_name = (name or self._primary or "").lower()
        if not provider_name:
            logger.error("No LLM provider specified and no primary LLM configured")
            raise NoProviderConfiguredError()

        if not self.is_llm_enabled(provider_name):
            logger.error("Requested LLM %s is not enabled (enabled: %s)", provider_name, self.get_enabled_llms())
            raise ProviderNotEnabledError(provider_name, self.get_enabled_llms())

        provider = self._providers.get(provider_name)
        if provider is None:
            env_var_name = self._api_key_envs.get(provider_name) or api_key_env_var(provider_name)
            registered = self.get_registered_providers()
            logger.error(
                "LLM provider %s is enabled but not registered; check %s (registered: %s)",
                provider_name,
                env_var_name,
                registered,
            )
            raise ProviderNotRegisteredError(provider_name, env_var_name, registered)
        return provider

    def has_capability(self, provider: LLMProvider, service_type: ServiceType) -> bool:
        return service_type in provider.get_capabilities()

    def validate_capability(self, provider: LLMProvider, service_type: ServiceType) -> None:
        if self.has_capability(provider, service_type):
            return
        capabilities = sorted(capability.value for capability in provider.get_capabilities())
        logger.error(
            "Provider %s does not support %s (supports: %s)", provider.get_name(), service_type.value, capabilities
        )
        raise CapabilityNotSupportedError(provider.get_name(), service_type.value, capabilities)

    def get_validated_provider(self, name: str | None, service_type: ServiceType) -> LLMProvider:
        provider = self.get_provider(name)
        self.validate_capability(provider, service_type)
        return provider

    def clear(self) -> None:
        with self._lock:
            self._providers = {}
            self._enabled = frozenset()
            self._primary = None
            self._api_key_envs = {}
