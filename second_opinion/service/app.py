"""FastAPI application exposing the get_second_opinion tool over HTTP."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from fastapi import Body, Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..handler import (
    InvalidRequestError,
    SecondOpinionHandler,
    UnknownToolError,
    tool_definitions,
)


class TextContent(BaseModel):
    type: str = "text"
    text: str


class ToolCallResponse(BaseModel):
    content: List[TextContent]
    isError: Optional[bool] = None


class ToolDefinition(BaseModel):
    name: str
    description: str
    inputSchema: Dict[str, Any]


class ToolListResponse(BaseModel):
    tools: List[ToolDefinition]


class HealthResponse(BaseModel):
    status: str


def _default_handler() -> SecondOpinionHandler:
    return SecondOpinionHandler()


def create_app(
    handler_factory: Callable[[], SecondOpinionHandler] = _default_handler,
) -> FastAPI:
    """Create the FastAPI application exposing the tool boundary."""
    app = FastAPI(title="Second Opinion Service", version="0.1.0")

    async def get_handler() -> SecondOpinionHandler:
        return handler_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/tools", response_model=ToolListResponse)
    async def list_tools() -> ToolListResponse:
        return ToolListResponse(tools=[ToolDefinition(**tool) for tool in tool_definitions()])

    @app.post(
        "/tools/{name}",
        response_model=ToolCallResponse,
        response_model_exclude_none=True,
    )
    async def call_tool(
        name: str,
        arguments: Any = Body(default=None),
        handler: SecondOpinionHandler = Depends(get_handler),
    ) -> ToolCallResponse:
        result = await handler.call_tool(name, arguments)
        return ToolCallResponse(**result.to_payload())

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(
        _: Any, exc: InvalidRequestError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(UnknownToolError)
    async def unknown_tool_handler(
        _: Any, exc: UnknownToolError
    ) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    return app


def run_service(
    handler_factory: Callable[[], SecondOpinionHandler] = _default_handler,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(handler_factory)
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
