"""
Registration of virtual attribute providers with their host.

The host keeps one provider per virtual attribute name. Registering validates
and initializes the provider; unregistering finalizes it.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from box import Box

from common.errors import ConfigurationError, ResultCode
from connectors.directory_interface import OperationContext, ServerContext
from directory.models import DerivedAttribute, Entry, Location

logger = logging.getLogger(__name__)


class VirtualAttributeProvider(Protocol):
    """The contract a provider implements to be registered."""
    def define_config_arguments(self) -> list[Box]: ...
    def is_configuration_acceptable(self, raw: Any, unacceptable_reasons: list[str]) -> bool: ...
    def initialize(self, server_context: ServerContext, raw: Any) -> None: ...
    def apply_configuration(self, raw: Any, admin_actions_required: list[str],
                            messages: list[str]) -> ResultCode: ...
    def finalize(self) -> None: ...
    def may_cache_in_operation(self) -> bool: ...
    def is_multi_valued(self) -> bool: ...
    def generate(self, operation_context: OperationContext | None, entry: Entry | Location | str,
                 attribute_name: str) -> DerivedAttribute | None: ...


# key: virtual attribute name (lowercase)
# value: the provider generating it
_registered: dict[str, VirtualAttributeProvider] = {}


def register_provider(name: str, provider: VirtualAttributeProvider,
                      server_context: ServerContext, raw_config: Any) -> VirtualAttributeProvider:
    """Validate ``raw_config``, initialize ``provider`` and register it under ``name``.

    Raises ConfigurationError if the configuration is rejected and ValueError
    if ``name`` is already taken.
    """
    key = name.lower()
    if key in _registered:
        raise ValueError(f"A provider is already registered for {name}")
    reasons: list[str] = []
    if not provider.is_configuration_acceptable(raw_config, reasons):
        raise ConfigurationError(f"Configuration for {name} is not acceptable: {'; '.join(reasons)}",
                                 reasons=reasons, log=True)
    provider.initialize(server_context, raw_config)
    _registered[key] = provider
    logger.info("Registered virtual attribute provider for %s", name)
    return provider


def get_provider(name: str) -> VirtualAttributeProvider:
    try:
        return _registered[name.lower()]
    except KeyError:
        raise KeyError(f"No provider registered for {name}") from None


def reload_provider(name: str, raw_config: Any) -> list[str]:
    """Apply a new configuration to a registered provider and return its messages.

    Raises ConfigurationError when the provider rejects it; the old
    configuration then stays active.
    """
    provider = get_provider(name)
    admin_actions_required: list[str] = []
    messages: list[str] = []
    result = provider.apply_configuration(raw_config, admin_actions_required, messages)
    if result is not ResultCode.SUCCESS:
        raise ConfigurationError(f"Reload of {name} failed with result code {result.value}",
                                 reasons=messages, log=True)
    for action in admin_actions_required:
        logger.warning("Administrative action required for %s: %s", name, action)
    return messages


def unregister_provider(name: str) -> None:
    provider = _registered.pop(name.lower(), None)
    if provider is None:
        raise KeyError(f"No provider registered for {name}")
    provider.finalize()
    logger.info("Unregistered virtual attribute provider for %s", name)


def registered_providers() -> list[str]:
    return sorted(_registered)


def generate(name: str, operation_context: OperationContext | None,
             entry: Entry | Location | str) -> DerivedAttribute | None:
    """Host entry point: evaluate the virtual attribute ``name`` for ``entry``."""
    return get_provider(name).generate(operation_context, entry, name)


__all__ = [
    "VirtualAttributeProvider",
    "generate",
    "get_provider",
    "register_provider",
    "registered_providers",
    "reload_provider",
    "unregister_provider",
]
