from .client import CompletionClient, CompletionResult
from .config import ClientConfig
from .errors import (
    ApiError,
    CompletionError,
    ConfigurationError,
    DecodeError,
    RequestValidationError,
    StreamProtocolError,
    TransportError,
)
from .messages import (
    AssistantMessage,
    FunctionCall,
    Message,
    SystemMessage,
    ToolCall,
    ToolMessage,
    UserMessage,
)
from .request import CompletionRequest, FunctionDefinition, NamedToolChoice, RequestBuilder, ResponseFormat, Tool
from .responses import ChatCompletion, ChatCompletionChunk, ErrorResponse, Usage, assemble_content

__all__ = [
    "ApiError",
    "AssistantMessage",
    "ChatCompletion",
    "ChatCompletionChunk",
    "ClientConfig",
    "CompletionClient",
    "CompletionError",
    "CompletionRequest",
    "CompletionResult",
    "ConfigurationError",
    "DecodeError",
    "ErrorResponse",
    "FunctionCall",
    "FunctionDefinition",
    "Message",
    "NamedToolChoice",
    "RequestBuilder",
    "RequestValidationError",
    "ResponseFormat",
    "StreamProtocolError",
    "SystemMessage",
    "Tool",
    "ToolCall",
    "ToolMessage",
    "TransportError",
    "Usage",
    "UserMessage",
    "assemble_content",
]
