"""
Generation invoker.

Formats an operation's instruction template, sends it to the LLM manager as a
structured request and validates the reply against the operation's output
schema. Every way a call can go wrong ends in a single GenerationError; no
partial results are returned and nothing is retried.
"""

import time
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from .contracts import Operation, GenerationContract, get_contract
from .llm_manager import LLMManager, get_llm_manager
from ..utils import get_ai_logger

logger = get_ai_logger()

class InputValidationError(Exception):
    """Generation input is missing or malformed; raised before any external call."""

    def __init__(self, message: str, field_errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.field_errors = field_errors or {}

class GenerationError(Exception):
    """The generation service failed or answered outside the contract."""

    def __init__(self, operation: Operation, message: str):
        super().__init__(message)
        self.operation = operation

def field_errors_from(error: ValidationError) -> Dict[str, List[str]]:
    """Group pydantic error messages by top-level field name."""
    errors: Dict[str, List[str]] = {}
    for item in error.errors():
        location = item.get("loc") or ("__root__",)
        errors.setdefault(str(location[0]), []).append(item.get("msg", "Invalid value"))
    return errors

class GenerationInvoker:
    """Runs one generation operation against the configured LLM provider."""

    def __init__(self, llm_manager: Optional[LLMManager] = None):
        self.llm_manager = llm_manager or get_llm_manager()

    def validate_input(self, operation: Operation, payload: Union[BaseModel, Mapping[str, Any]]) -> BaseModel:
        """Coerce the payload into the operation's input model."""
        contract = get_contract(operation)
        if isinstance(payload, contract.input_model):
            return payload
        data = payload.model_dump() if isinstance(payload, BaseModel) else dict(payload)
        try:
            return contract.input_model.model_validate(data)
        except ValidationError as e:
            raise InputValidationError(
                f"Invalid input for {contract.operation.value}", field_errors_from(e)
            ) from e

    async def invoke(self, operation: Operation, payload: Union[BaseModel, Mapping[str, Any]]) -> BaseModel:
        """
        Execute an operation and return its validated output model.

        Raises:
            InputValidationError: the payload does not satisfy the input schema
            GenerationError: service failure, malformed JSON or schema mismatch
        """
        contract = get_contract(operation)
        validated = self.validate_input(contract.operation, payload)
        prompt = contract.build_prompt(validated)

        start_time = time.monotonic()
        logger.info(f"Invoking {contract.operation.value}", prompt_chars=len(prompt))

        response = await self.llm_manager.generate_structured_response(
            prompt=prompt,
            system_prompt=contract.system_prompt,
            response_format=contract.response_format(),
            max_tokens=contract.max_tokens,
        )

        if not response.success:
            logger.error(f"{contract.operation.value} failed: {response.error}")
            raise GenerationError(contract.operation, response.error or "Generation service error")

        output = self._validate_output(contract, response.data)
        if contract.postprocess:
            output = contract.postprocess(validated, output)

        logger.info(
            f"Completed {contract.operation.value}",
            model=response.model,
            elapsed_seconds=round(time.monotonic() - start_time, 2),
        )
        return output

    def _validate_output(self, contract: GenerationContract, data: Optional[Dict[str, Any]]) -> BaseModel:
        if data is None:
            raise GenerationError(contract.operation, "Generation service returned no structured data")
        try:
            return contract.output_model.model_validate(data)
        except ValidationError as e:
            logger.error(f"{contract.operation.value} response failed schema validation: {e}")
            raise GenerationError(
                contract.operation,
                f"Response did not match the {contract.operation.value} schema"
            ) from e
