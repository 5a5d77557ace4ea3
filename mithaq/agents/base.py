"""
Capability Agent Interface
==========================
Abstract base class for every capability agent.

Each agent owns a handler table keyed by request class. process() looks the
request's class up in that table; a request the agent does not own fails
with invalid_response. Handlers raise AgentException; process() converts
it to a failed Result so nothing untyped leaves the agent.

Agents are stateless between invocations. The only side effect is the
oracle call.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type

from pydantic import BaseModel

from mithaq.agents.models import AgentType
from mithaq.agents.oracle import TextOracle
from mithaq.agents.parsing import M, parse_structured
from mithaq.shared.result import AgentError, AgentException, Result

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[BaseModel]]

RESPONSE_CONTRACT = (
    "Respond with a single JSON object and nothing else. "
    "It must validate against this JSON schema:\n"
)


class CapabilityAgent(ABC):
    """
    One specialized reasoning task behind a uniform process() entry point.
    """

    agent_type: AgentType

    # Oracle parameters for this agent; None falls back to the client's defaults
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None

    def __init__(self, oracle: TextOracle):
        self.oracle = oracle

    @abstractmethod
    def handlers(self) -> Dict[Type[BaseModel], Handler]:
        """Map each accepted request class to its coroutine handler."""
        pass

    @property
    def accepts(self) -> Tuple[Type[BaseModel], ...]:
        return tuple(self.handlers())

    async def process(self, request: Any) -> Result:
        handler = self.handlers().get(type(request))
        if handler is None:
            return Result.fail(AgentError.invalid_response(
                f"{self.agent_type.value} agent does not accept {type(request).__name__}"
            ))
        try:
            return Result.ok(await handler(request))
        except AgentException as e:
            logger.info(f"{self.agent_type.value} agent failed: {e.error.kind.value}")
            return Result.fail(e.error)

    async def _complete(self, prompt: str) -> str:
        result = await self.oracle.complete(
            prompt,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return result.unwrap()

    async def _ask_structured(self, instruction: str, response_model: Type[M], **extra: Any) -> M:
        """
        Send instruction plus the response schema; validate the reply.

        extra: response fields the agent fills itself; they override
        whatever the oracle returned for the same keys.
        """
        schema = json.dumps(response_model.model_json_schema(), separators=(",", ":"))
        text = await self._complete(f"{instruction}\n\n{RESPONSE_CONTRACT}{schema}")
        return parse_structured(text, response_model, **extra)


class UnavailableAgent(CapabilityAgent):
    """
    Placeholder capability: accepts nothing, always insufficient_data.
    """

    def handlers(self) -> Dict[Type[BaseModel], Handler]:
        return {}

    async def process(self, request: Any) -> Result:
        return Result.fail(AgentError.insufficient_data())
