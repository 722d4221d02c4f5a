from .chunking import RecursiveTextSplitter
from .pipeline import AnalysisPipeline, PacingPolicy
from .router import AllProvidersFailedError, ProviderFailure, ProviderRouter

__all__ = [
    "RecursiveTextSplitter",
    "AnalysisPipeline", "PacingPolicy",
    "AllProvidersFailedError", "ProviderFailure", "ProviderRouter",
]
