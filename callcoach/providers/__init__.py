"""Language model backends for the advice service."""

from typing import Awaitable, Callable, Dict, List

from callcoach.providers import gateway, gemini, ollama

ProviderFn = Callable[[List[Dict[str, str]]], Awaitable[str]]

# Provider registry
PROVIDERS: Dict[str, ProviderFn] = {
    "gateway": gateway.generate,
    "ollama": ollama.generate,
    "gemini": gemini.generate,
}


def get_provider(name: str) -> ProviderFn:
    provider = PROVIDERS.get(name.strip().lower())
    if provider is None:
        raise ValueError(
            f"Unknown provider '{name}'. Valid: {', '.join(PROVIDERS.keys())}"
        )
    return provider


__all__ = ["PROVIDERS", "ProviderFn", "get_provider"]
