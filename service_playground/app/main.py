"""
Playground service for Zest Access: compile and explain-code proxies.
"""

from typing import Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import PlaygroundConfig, get_playground_config
from shared.errors import ConfigurationError, RateLimitError, UpstreamError, ValidationError
from .compiler.client import CompileRequest, CompilerClient
from .explain.client import ExplainClient


class PlaygroundService(BaseService):
    """Playground service implementation."""

    def __init__(self, config: Optional[PlaygroundConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        config = config or get_playground_config()
        super().__init__("playground", 8020, config)

        self.compiler = CompilerClient(config, transport=transport, metrics=self.metrics)
        self.explainer = ExplainClient(config, transport=transport, metrics=self.metrics)

        if not config.compiler_configured:
            self.logger.warning("Execution API credentials missing; /api/compile will fail")
        if not config.explain_configured:
            self.logger.warning("Model API key missing; /api/explain-code will fail")

        self._setup_playground_routes()

    def _setup_playground_routes(self):
        """Set up playground-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "playground",
                "message": "Zest Access - Playground Service",
                "version": "1.0.0"
            }

        @self.app.post("/api/compile")
        async def compile_code(request: CompileRequest):
            """Run Java/C code through the execution API."""
            try:
                status_code, result = await self.compiler.execute(request)
                return JSONResponse(result, status_code=status_code)
            except (ConfigurationError, UpstreamError) as e:
                self.metrics.record_error(e.code)
                return JSONResponse({"error": e.message}, status_code=e.status_code)

        @self.app.post("/api/explain-code")
        async def explain_code(request: Request):
            """Explain a Python snippet block by block, with a flowchart."""
            try:
                body = await request.json()
                code = body.get("code") if isinstance(body, dict) else None
                explanation = await self.explainer.explain(code)
                self.metrics.record_business_event("code_explained")
                return explanation
            except (ConfigurationError, ValidationError, RateLimitError) as e:
                self.metrics.record_error(e.code)
                return JSONResponse({"error": e.message}, status_code=e.status_code)
            except Exception as e:
                self.logger.error("Explanation generation failed", error=str(e), exc_info=True)
                self.metrics.record_error("EXPLAIN_FAILED")
                return JSONResponse({"error": "Failed to generate explanation"}, status_code=500)

    async def shutdown(self):
        await self.compiler.close()
        await self.explainer.close()


def create_app(config: Optional[PlaygroundConfig] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None):
    """Create FastAPI application."""
    service = PlaygroundService(config, transport=transport)
    return service.app


if __name__ == "__main__":
    service = PlaygroundService()
    service.run()
