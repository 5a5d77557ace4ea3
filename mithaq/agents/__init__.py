"""
Mithaq Capability Agents

Polymorphic agent layer: six capability agents behind one dispatcher,
all reporting through the shared Result envelope.

- authentication  login risk assessment, registration validation
- verification    identity documents
- communication   message moderation
- guardian        placeholder (insufficient_data)
- security        placeholder (insufficient_data)
- personality     personality analysis, pair compatibility assessment
"""

from .models import AgentType
from .oracle import OracleClient, TextOracle
from .dispatcher import AgentDispatcher, build_agent_registry

__all__ = [
    "AgentType",
    "OracleClient",
    "TextOracle",
    "AgentDispatcher",
    "build_agent_registry",
]
