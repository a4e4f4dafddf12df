"""
AI Processing module for ResumePilot.

This module provides LLM integration, the generation contracts and the
invoker that runs them.
"""

from .llm_manager import (
    LLMManager,
    LLMProvider,
    LLMResponse,
    OpenRouterProvider,
    GeminiProvider,
    OllamaProvider,
    get_llm_manager
)

from .contracts import (
    Operation,
    GenerationContract,
    CONTRACTS,
    get_contract,
    SuitabilityInput,
    SuitabilityOutput,
    OptimizeResumeInput,
    OptimizeResumeOutput,
    ProfileInput,
    CoverLetterInput,
    CoverLetterOutput,
    InterviewQuestionsInput,
    InterviewQuestionsOutput,
    FollowUpEmailInput,
    FollowUpEmailOutput,
    JobDetailsInput,
    JobDetailsOutput
)

from .templates import (
    ConditionalBlock,
    render_optional_blocks
)

from .generation import (
    GenerationInvoker,
    GenerationError,
    InputValidationError
)

__all__ = [
    'LLMManager',
    'LLMProvider',
    'LLMResponse',
    'OpenRouterProvider',
    'GeminiProvider',
    'OllamaProvider',
    'get_llm_manager',
    'Operation',
    'GenerationContract',
    'CONTRACTS',
    'get_contract',
    'SuitabilityInput',
    'SuitabilityOutput',
    'OptimizeResumeInput',
    'OptimizeResumeOutput',
    'ProfileInput',
    'CoverLetterInput',
    'CoverLetterOutput',
    'InterviewQuestionsInput',
    'InterviewQuestionsOutput',
    'FollowUpEmailInput',
    'FollowUpEmailOutput',
    'JobDetailsInput',
    'JobDetailsOutput',
    'ConditionalBlock',
    'render_optional_blocks',
    'GenerationInvoker',
    'GenerationError',
    'InputValidationError'
]
