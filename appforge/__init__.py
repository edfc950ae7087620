# Version is kept in sync with pyproject.toml
__version__ = "0.1.0"

from .agents.agent import Agent, AgentResponse, OutputItem
from .agents.completion import (
    TASK_SUMMARY_MARKER,
    completion_hook,
    detect_completion,
    latch_summary,
    summary_router,
)
from .agents.conversation import prime_conversation
from .agents.network import Network, NetworkRun
from .appforge import AppForge
from .core.checkpoints import (
    CheckpointRecord,
    CheckpointStore,
    HttpCheckpointStore,
    InMemoryCheckpointStore,
)
from .core.context import WorkflowContext
from .core.state import RunState, WorkflowState
from .core.workflow import (
    StepExecutionError,
    Workflow,
    get_workflow,
    workflow,
)
from .execution import (
    CommandFailedError,
    CommandResult,
    E2BSandboxConfig,
    LocalSandboxConfig,
    RoutingConflictError,
    SandboxConfig,
    SandboxHandle,
    SandboxProvider,
    SandboxUnavailableError,
    get_sandbox_provider,
    sandbox_tools,
)
from .features.events import EventPayload, publish
from .llm import LLMProvider, LLMResponse, get_provider, llm_generate, register_provider
from .persistence import (
    Fragment,
    HttpMessageStore,
    InMemoryMessageStore,
    Message,
    MessageRole,
    MessageStore,
    MessageType,
    NewMessage,
)
from .pipeline import CODE_AGENT_EVENT, RunRequested, RunResult, code_agent_function
from .runtime import AppServer, ExecutionRecord, ExecutionStatus, Worker, create_app
from .tools import Tool, ToolDiagnostic, ToolKind, ToolResult, ToolSet, ToolSuccess
from .utils.config import AppForgeConfig

__all__ = [
    "__version__",
    "AppForge",
    "AppForgeConfig",
    # Core
    "workflow",
    "Workflow",
    "WorkflowContext",
    "WorkflowState",
    "RunState",
    "StepExecutionError",
    "get_workflow",
    "CheckpointRecord",
    "CheckpointStore",
    "InMemoryCheckpointStore",
    "HttpCheckpointStore",
    # Sandbox
    "SandboxHandle",
    "SandboxProvider",
    "SandboxConfig",
    "E2BSandboxConfig",
    "LocalSandboxConfig",
    "CommandResult",
    "SandboxUnavailableError",
    "CommandFailedError",
    "RoutingConflictError",
    "get_sandbox_provider",
    "sandbox_tools",
    # Tools
    "Tool",
    "ToolKind",
    "ToolSet",
    "ToolSuccess",
    "ToolDiagnostic",
    "ToolResult",
    # LLM
    "LLMProvider",
    "LLMResponse",
    "get_provider",
    "register_provider",
    "llm_generate",
    # Agents
    "Agent",
    "AgentResponse",
    "OutputItem",
    "Network",
    "NetworkRun",
    "TASK_SUMMARY_MARKER",
    "detect_completion",
    "latch_summary",
    "completion_hook",
    "summary_router",
    "prime_conversation",
    # Persistence
    "Fragment",
    "Message",
    "NewMessage",
    "MessageRole",
    "MessageType",
    "MessageStore",
    "InMemoryMessageStore",
    "HttpMessageStore",
    # Pipeline
    "CODE_AGENT_EVENT",
    "RunRequested",
    "RunResult",
    "code_agent_function",
    # Runtime
    "Worker",
    "ExecutionRecord",
    "ExecutionStatus",
    "AppServer",
    "create_app",
    "EventPayload",
    "publish",
]
