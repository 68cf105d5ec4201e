"""Model types for chain definitions, results, prompts and configuration."""

from chain_llm.models.cache_config import CacheStats
from chain_llm.models.cache_config import PromptCacheConfig
from chain_llm.models.chain_call import ChainCallDefinition
from chain_llm.models.chain_call import PromptChainParams
from chain_llm.models.chain_field import CallChainField
from chain_llm.models.chain_field import ChainFieldDefinition
from chain_llm.models.chain_field import ChainImageDefinition
from chain_llm.models.chain_field import ChainVariableDefinition
from chain_llm.models.chain_field import DirectField
from chain_llm.models.chain_result import ChainCallError
from chain_llm.models.chain_result import ChainCallResult
from chain_llm.models.chain_result import PromptChainResponse
from chain_llm.models.composite_params import ImageImageTextParams
from chain_llm.models.composite_params import TextImageTextParams
from chain_llm.models.dynamic_extract import DynamicDataExtractParams
from chain_llm.models.dynamic_extract import DynamicDataExtractResponse
from chain_llm.models.dynamic_extract import DynamicExtractError
from chain_llm.models.dynamic_extract import DynamicExtractStepResult
from chain_llm.models.dynamic_extract import NextPromptResolution
from chain_llm.models.engine_config import EngineConfig
from chain_llm.models.llm_response import Base64Data
from chain_llm.models.llm_response import LLMErrorInfo
from chain_llm.models.llm_response import LLMResponse
from chain_llm.models.next_prompt import NextPromptBranch
from chain_llm.models.next_prompt import NextPromptCondition
from chain_llm.models.next_prompt import NextPromptConfig
from chain_llm.models.prompt_record import LocalFilters
from chain_llm.models.prompt_record import PromptRecord
from chain_llm.models.provider_spec import ProviderSpec
from chain_llm.models.service_params import ImageImageParams
from chain_llm.models.service_params import ImageTextParams
from chain_llm.models.service_params import PromptVariables
from chain_llm.models.service_params import TextImageParams
from chain_llm.models.service_params import TextTextParams
from chain_llm.models.service_type import ServiceType

__all__ = [
    "Base64Data",
    "CacheStats",
    "CallChainField",
    "ChainCallDefinition",
    "ChainCallError",
    "ChainCallResult",
    "ChainFieldDefinition",
    "ChainImageDefinition",
    "ChainVariableDefinition",
    "DirectField",
    "DynamicDataExtractParams",
    "DynamicDataExtractResponse",
    "DynamicExtractError",
    "DynamicExtractStepResult",
    "EngineConfig",
    "ImageImageParams",
    "ImageImageTextParams",
    "ImageTextParams",
    "LLMErrorInfo",
    "LLMResponse",
    "LocalFilters",
    "NextPromptBranch",
    "NextPromptCondition",
    "NextPromptConfig",
    "NextPromptResolution",
    "PromptCacheConfig",
    "PromptChainParams",
    "PromptChainResponse",
    "PromptRecord",
    "PromptVariables",
    "ProviderSpec",
    "ServiceType",
    "TextImageParams",
    "TextImageTextParams",
    "TextTextParams",
]
