from ugc_agent.models.agent_chat_message import AgentChatMessage
from ugc_agent.models.agent_execution_log import AgentExecutionLog, LogStatus
from ugc_agent.models.agent_memory import AgentMemory, MemoryType
from ugc_agent.models.agent_session import AgentSession, SessionState

__all__ = [
    "AgentChatMessage",
    "AgentExecutionLog",
    "AgentMemory",
    "AgentSession",
    "LogStatus",
    "MemoryType",
    "SessionState",
]
