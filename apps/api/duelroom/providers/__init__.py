from .base import GeneratedImage, GeneratorProvider, ProviderError
from .registry import get_provider, provider_health

__all__ = ["GeneratedImage", "GeneratorProvider", "ProviderError", "get_provider", "provider_health"]
