"""
Client for the third-party code execution API used by the Java and C playgrounds.
"""

import time
from typing import Any, Dict, Optional, Tuple, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field

from shared.config import PlaygroundConfig
from shared.errors import ConfigurationError, UpstreamError
from shared.logging import get_logger
from shared.metrics import MetricsCollector


class CompileRequest(BaseModel):
    """Body of POST /api/compile."""

    code: str
    stdin: Optional[str] = ""
    language: str
    version_index: Union[str, int] = Field(default="0", alias="versionIndex")

    model_config = ConfigDict(populate_by_name=True)


class CompilerClient:
    """Forwards code to the execution API with server-side credentials."""

    def __init__(self, config: PlaygroundConfig,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.config = config
        self.metrics = metrics
        self.logger = get_logger("playground.compiler")
        self._client = httpx.AsyncClient(timeout=config.http_timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def execute(self, request: CompileRequest) -> Tuple[int, Dict[str, Any]]:
        """Run the code and return the execution API's status and JSON body."""
        if not self.config.compiler_configured:
            raise ConfigurationError(
                "Compiler API credentials are not configured. Please contact the administrator."
            )

        body = {
            "clientId": self.config.compiler_client_id.get_secret_value(),
            "clientSecret": self.config.compiler_client_secret.get_secret_value(),
            "script": request.code,
            "stdin": request.stdin or "",
            "language": request.language,
            "versionIndex": request.version_index,
        }

        start_time = time.time()
        try:
            response = await self._client.post(self.config.compiler_api_url, json=body)
        except httpx.HTTPError as e:
            self._record("error", start_time)
            self.logger.error("Execution API unreachable", error=str(e))
            raise UpstreamError("compiler-api", "Execution service unavailable") from e

        try:
            result = response.json()
        except ValueError as e:
            self._record("error", start_time)
            raise UpstreamError(
                "compiler-api", "Execution service returned an invalid response",
                status_code=response.status_code,
            ) from e

        self._record("ok" if response.is_success else "error", start_time)
        self.logger.info(
            "Code executed",
            language=request.language,
            status_code=response.status_code,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return response.status_code, result

    def _record(self, status: str, start_time: float) -> None:
        if self.metrics is None:
            return
        self.metrics.increment_counter("upstream_calls_total", upstream="compiler", status=status)
        self.metrics.get_metric("upstream_call_duration_seconds").labels(
            upstream="compiler"
        ).observe(time.time() - start_time)
