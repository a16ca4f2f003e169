# ollama_tool_bridge/ollama_tool_bridge/__init__.py
import logging
import os
from dotenv import load_dotenv

# Library logging: the host application decides where records go
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Load a .env file from the working directory so OLLAMA_* variables are
# visible before any configuration is resolved
try:
    dotenv_path = os.path.join(os.getcwd(), ".env")
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path=dotenv_path)
except Exception as e:
    logging.getLogger(__name__).warning(f"Could not load .env file: {e}")


from .client import BridgeClient  # noqa: E402
from .cancellation import CancellationToken  # noqa: E402
from .config import OllamaConfig, config_from_env, load_ollama_config  # noqa: E402
from .models import (  # noqa: E402
    Content,
    CountTokensResponse,
    FinishReason,
    GenerationReply,
    GenerationRequest,
    Part,
)
from .parsing import parse_model_reply  # noqa: E402
from .prompts import build_follow_up_prompt, build_prompt  # noqa: E402
from .providers import ContentGenerator, create_provider_instance  # noqa: E402
from .providers.ollama import OllamaAdapter  # noqa: E402
from .tools.tool_factory import ToolFactory  # noqa: E402
from .tools.base_tool import BaseTool  # noqa: E402
from .tools.executor import execute_all  # noqa: E402
from .exceptions import (  # noqa: E402
    BridgeError,
    ConfigurationError,
    NoUserPromptError,
    OperationCancelledError,
    ProviderError,
    ToolError,
    TransportError,
    UnsupportedFeatureError,
)

__all__ = [
    "BridgeClient",
    "OllamaAdapter",
    "ContentGenerator",
    "OllamaConfig",
    "load_ollama_config",
    "config_from_env",
    "CancellationToken",
    "GenerationRequest",
    "GenerationReply",
    "Content",
    "Part",
    "FinishReason",
    "CountTokensResponse",
    "ToolFactory",
    "BaseTool",
    "build_prompt",
    "build_follow_up_prompt",
    "parse_model_reply",
    "execute_all",
    "create_provider_instance",
    "BridgeError",
    "ConfigurationError",
    "NoUserPromptError",
    "OperationCancelledError",
    "ProviderError",
    "ToolError",
    "TransportError",
    "UnsupportedFeatureError",
]

try:
    from importlib.metadata import version

    __version__ = version("ollama_tool_bridge")
except Exception:
    __version__ = "0.0.0-unknown"
