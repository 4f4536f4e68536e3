"""Pibling mirror virtual attribute provider and its host registration."""

from .aggregator import aggregate
from .config import ConfigHolder, ProviderConfig, coerce_provider_config, define_config_arguments
from .context import DirectoryServerContext, InternalOperationContext
from .engine import PiblingMirrorEngine
from .pibling_mirror import PiblingMirrorProvider
from .planner import plan
from .registry import (
    generate,
    get_provider,
    register_provider,
    registered_providers,
    reload_provider,
    unregister_provider,
)

__all__ = [
    "ConfigHolder",
    "DirectoryServerContext",
    "InternalOperationContext",
    "PiblingMirrorEngine",
    "PiblingMirrorProvider",
    "ProviderConfig",
    "aggregate",
    "coerce_provider_config",
    "define_config_arguments",
    "generate",
    "get_provider",
    "plan",
    "register_provider",
    "registered_providers",
    "reload_provider",
    "unregister_provider",
]
