"""Gemini-based product analyzer.

Calls the Gemini ``generateContent`` REST endpoint with a JSON response
schema, so the model replies with an AnalysisResult-shaped document that
can be validated directly.

Requirements:
    - A Gemini API key: https://aistudio.google.com/apikey
    - GEMINI_API_KEY set in the environment (or .env)
"""

import logging

import httpx
from pydantic import ValidationError

from impact_cache.config import settings
from impact_cache.dto import AnalysisResultPayload
from impact_cache.entities import AnalysisResult
from impact_cache.exceptions import AnalyzerError

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """\
You are an environmental sustainability analyst. Assess the environmental \
impact of the following product across its life cycle (raw materials, \
manufacturing, transport, use and end of life).

Product: {description}

Respond with:
- overallScore: a single letter grade from A (minimal impact) to F (severe impact)
- summary: two or three sentences summarizing the assessment
- breakdown: four to six metrics such as Carbon Footprint, Water Usage, \
Material Sourcing, Recyclability and Durability, each with a score from 1 \
(worst) to 10 (best) and a one-sentence explanation
- recommendations: three to five concrete suggestions for a lower-impact \
alternative or usage
"""

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "overallScore": {"type": "STRING"},
        "summary": {"type": "STRING"},
        "breakdown": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "metric": {"type": "STRING"},
                    "score": {"type": "NUMBER"},
                    "explanation": {"type": "STRING"},
                },
                "required": ["metric", "score", "explanation"],
            },
        },
        "recommendations": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["overallScore", "summary", "breakdown", "recommendations"],
}


class GeminiAnalyzer:
    """Gemini implementation of the Analyzer protocol.

    This class satisfies the Analyzer protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        analyzer = GeminiAnalyzer.create(api_key="...")
        result = await analyzer.analyze("Reusable steel water bottle")
        print(result.overall_score)
        ```
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Gemini analyzer.

        Args:
            api_key: Gemini API key. Defaults to settings.gemini_api_key.
            model_name: Gemini model. Defaults to settings.gemini_model.
            base_url: API base URL. Defaults to settings.gemini_base_url.
            timeout: Request timeout in seconds. Defaults to settings.gemini_timeout.
            client: Pre-built HTTP client (mainly for tests).
        """
        self._api_key = api_key or settings.gemini_api_key
        self._model_name = model_name or settings.gemini_model
        self._base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self._timeout = timeout or settings.gemini_timeout
        self._client = client

    @classmethod
    def create(
        cls,
        api_key: str | None = None,
        model_name: str | None = None,
    ) -> "GeminiAnalyzer":
        """Factory method to create GeminiAnalyzer with defaults.

        Args:
            api_key: API key. If None, uses settings.
            model_name: Model name. If None, uses settings.

        Returns:
            Configured GeminiAnalyzer
        """
        return cls(api_key=api_key, model_name=model_name)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @property
    def model_name(self) -> str:
        """Get the model name/identifier."""
        return self._model_name

    def build_request(self, description: str) -> dict:
        """Build the generateContent request body for a description."""
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": PROMPT_TEMPLATE.format(description=description.strip())}],
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    async def analyze(self, description: str) -> AnalysisResult:
        """Assess the environmental impact of a product.

        Args:
            description: Free-text product description

        Returns:
            The structured assessment

        Raises:
            AnalyzerError: If no API key is configured, the request fails,
                or the reply does not match the expected structure
        """
        if not self._api_key:
            raise AnalyzerError("Gemini API key is not configured. Set GEMINI_API_KEY.")

        url = f"{self._base_url}/models/{self._model_name}:generateContent"
        headers = {"x-goog-api-key": self._api_key}

        try:
            response = await self.client.post(
                url, json=self.build_request(description), headers=headers
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise AnalyzerError(
                f"Gemini API returned {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise AnalyzerError(f"Gemini API error: {e}") from e
        except ValueError as e:
            raise AnalyzerError(f"Gemini API returned invalid JSON: {e}") from e

        text = self._extract_text(data)

        try:
            payload = AnalysisResultPayload.model_validate_json(text)
        except ValidationError as e:
            raise AnalyzerError(f"Gemini returned a malformed analysis: {e}") from e

        logger.info("Gemini (%s) analyzed %r", self._model_name, description[:80])
        return payload.to_entity()

    @staticmethod
    def _extract_text(data: dict) -> str:
        """Pull the generated JSON text out of a generateContent reply."""
        if not isinstance(data, dict):
            raise AnalyzerError(f"Unexpected Gemini response format: {data}")

        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise AnalyzerError(f"Gemini blocked the request: {block_reason}")

        try:
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise AnalyzerError(f"Unexpected Gemini response format: {data}") from e

        if not text:
            raise AnalyzerError("Gemini returned an empty response")
        return text

    async def is_available(self) -> bool:
        """Check if the analyzer can be called.

        Returns:
            True if an API key is configured, False otherwise
        """
        return bool(self._api_key)

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
