"""
Client for the generative model behind the "explain code" feature.
"""

import time
from typing import Any, Dict, Optional

import httpx

from shared.config import PlaygroundConfig
from shared.errors import ConfigurationError, RateLimitError, UpstreamError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .prompt import build_prompt, parse_explanation, preprocess_code


HIGH_TRAFFIC_MESSAGE = "High traffic: The AI model is currently busy. Please try again in a minute."
_QUOTA_MARKERS = ("Too Many Requests", "Quota exceeded", "RESOURCE_EXHAUSTED")


class ExplainClient:
    """Builds the tutoring prompt and calls the model's generateContent API."""

    def __init__(self, config: PlaygroundConfig,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.config = config
        self.metrics = metrics
        self.logger = get_logger("playground.explain")
        self._client = httpx.AsyncClient(timeout=config.http_timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def endpoint(self) -> str:
        return f"{self.config.gemini_api_base}/models/{self.config.gemini_model}:generateContent"

    async def explain(self, code: Any) -> Dict[str, Any]:
        """Return ``{language, mermaid_code, blocks}`` for a snippet of Python."""
        if not self.config.explain_configured:
            self.logger.warning("GEMINI_API_KEY is not set")
            raise ConfigurationError("Server configuration error: API key missing")

        code = preprocess_code(code, self.config.max_explain_chars)

        start_time = time.time()
        response = await self._client.post(
            self.endpoint,
            headers={"x-goog-api-key": self.config.gemini_api_key.get_secret_value()},
            json={
                "contents": [{"role": "user", "parts": [{"text": build_prompt(code)}]}],
                "generationConfig": {"responseMimeType": "application/json"},
            },
        )
        self._record(response.status_code, start_time)

        if not response.is_success:
            if response.status_code == 429 or any(m in response.text for m in _QUOTA_MARKERS):
                raise RateLimitError(HIGH_TRAFFIC_MESSAGE, details={"status_code": response.status_code})
            raise UpstreamError("model-api", "generateContent failed", status_code=response.status_code)

        try:
            text = response.json()["candidates"][0]["content"]["parts"][0]["text"]
            explanation = parse_explanation(text)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise UpstreamError("model-api", f"Invalid response structure: {e}") from e

        self.logger.info(
            "Explanation generated",
            blocks=len(explanation["blocks"]),
            code_chars=len(code),
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return explanation

    def _record(self, status_code: int, start_time: float) -> None:
        if self.metrics is None:
            return
        status = "ok" if 200 <= status_code < 300 else str(status_code)
        self.metrics.increment_counter("upstream_calls_total", upstream="model", status=status)
        self.metrics.get_metric("upstream_call_duration_seconds").labels(
            upstream="model"
        ).observe(time.time() - start_time)
