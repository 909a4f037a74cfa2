"""
Analysis module - prompt protocol and structured result validation.
"""

from .client import AnalysisClient
from .parser import parse_analysis_result
from .prompts import DEFAULT_WELCOME_MESSAGE

__all__ = ["AnalysisClient", "DEFAULT_WELCOME_MESSAGE", "create_analysis_client", "parse_analysis_result"]


def create_analysis_client(provider: str | None = None, **kwargs) -> AnalysisClient:
    """Build an ``AnalysisClient`` around the configured LLM provider.

    Args:
        provider: LLM provider name; defaults to ``settings.llm_provider``.
        **kwargs: Passed to the provider constructor.
    """
    from microphenom.core.config import get_settings
    from microphenom.services.llm import create_llm

    llm = create_llm(provider or get_settings().llm_provider, **kwargs)
    return AnalysisClient(llm)
