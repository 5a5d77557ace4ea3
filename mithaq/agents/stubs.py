"""
Guardian and Security agents.

Both capabilities are placeholders: every request fails with
insufficient_data until the workflows behind them exist.
"""

from mithaq.agents.base import UnavailableAgent
from mithaq.agents.models import AgentType


class GuardianAgent(UnavailableAgent):
    agent_type = AgentType.GUARDIAN


class SecurityMonitoringAgent(UnavailableAgent):
    agent_type = AgentType.SECURITY
