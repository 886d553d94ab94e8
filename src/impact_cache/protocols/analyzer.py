"""Analyzer protocol.

Defines the interface for the external service that turns a product
description into an environmental-impact assessment.

Implementations can include:
- Google Gemini over REST (default)
- Any other generative model returning the same structure
- Stubs in tests
"""

from typing import Protocol, runtime_checkable

from impact_cache.entities import AnalysisResult


@runtime_checkable
class Analyzer(Protocol):
    """Protocol for product analyzers.

    Example:
        ```python
        from impact_cache.protocols import Analyzer

        analyzer: Analyzer = GeminiAnalyzer.create()
        result = await analyzer.analyze("Plastic water bottle")
        ```
    """

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the underlying model."""
        ...

    async def analyze(self, description: str) -> AnalysisResult:
        """Assess the environmental impact of a product.

        Args:
            description: Free-text product description

        Returns:
            The structured assessment

        Raises:
            AnalyzerError: If the request fails or the reply is malformed
        """
        ...

    async def is_available(self) -> bool:
        """Check if the analyzer can be called.

        Returns:
            True if available, False otherwise
        """
        ...
