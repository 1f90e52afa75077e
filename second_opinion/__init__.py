"""Second opinions on coding problems from local context and external insight services."""

from .handler import SecondOpinionHandler, tool_definitions
from .models import FileContext, InsightBundle, Request, ToolResult

__version__ = "0.1.0"

__all__ = [
    "FileContext",
    "InsightBundle",
    "Request",
    "SecondOpinionHandler",
    "ToolResult",
    "tool_definitions",
]
