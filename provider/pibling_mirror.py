"""
Pibling mirror virtual attribute provider.

Generates a virtual attribute whose values are all values of
``source-attribute`` found in the children of the entry's parent that have
the objectclass ``source-objectclass``. Configuration arguments:

    source-attribute   -- the attribute in the pibling entries whose values
                          are mirrored.
    source-objectclass -- the objectclass the pibling entries must have.
"""

from __future__ import annotations

import logging
from typing import Any

from box import Box

from common.diagnostics import LogSeverity
from common.errors import ConfigurationError, ResultCode
from connectors.directory_interface import OperationContext, ServerContext
from directory.models import DerivedAttribute, Entry, Location

from .config import ConfigHolder, ProviderConfig, coerce_provider_config, define_config_arguments
from .engine import PiblingMirrorEngine
from .planner import plan

logger = logging.getLogger(__name__)


class PiblingMirrorProvider:
    """Virtual attribute provider handed to the host through ``register_provider``.

    Lifecycle: ``define_config_arguments`` → ``is_configuration_acceptable`` →
    ``initialize`` → any number of ``generate`` and ``apply_configuration``
    calls → ``finalize``.
    """

    def __init__(self) -> None:
        self.server_context: ServerContext | None = None
        self._holder = ConfigHolder()
        self._engine: PiblingMirrorEngine | None = None

    @property
    def config(self) -> ProviderConfig | None:
        return self._holder.get()

    def define_config_arguments(self) -> list[Box]:
        return define_config_arguments()

    def is_configuration_acceptable(self, raw: Any, unacceptable_reasons: list[str]) -> bool:
        """Check a proposed configuration, appending a reason per problem found."""
        try:
            coerce_provider_config(raw)
        except ConfigurationError as exc:
            unacceptable_reasons.extend(exc.reasons or [exc.message])
            return False
        return True

    def initialize(self, server_context: ServerContext, raw: Any) -> None:
        """Install the first configuration snapshot.

        Raises ConfigurationError when ``raw`` is not acceptable.
        """
        config = coerce_provider_config(raw)
        self.server_context = server_context
        self._holder.swap(config)
        self._engine = PiblingMirrorEngine(self._holder, server_context.diagnostics,
                                           server_context.naming_contexts)
        logger.info("Pibling mirror initialized: attribute=%s objectclass=%s",
                    config.source_attribute, config.source_objectclass)

    def apply_configuration(self, raw: Any, admin_actions_required: list[str],
                            messages: list[str]) -> ResultCode:
        """Swap in a new configuration. Both arguments change together or not at all."""
        try:
            config = coerce_provider_config(raw)
        except ConfigurationError as exc:
            messages.extend(exc.reasons or [exc.message])
            return ResultCode.CONSTRAINT_VIOLATION
        previous = self._holder.swap(config)
        if previous != config:
            messages.append(f"Mirroring attribute {config.source_attribute} "
                            f"from {config.source_objectclass} entries")
            logger.info("Pibling mirror reconfigured: attribute=%s objectclass=%s",
                        config.source_attribute, config.source_objectclass)
        return ResultCode.SUCCESS

    def finalize(self) -> None:
        self._holder.clear()
        self._engine = None
        logger.info("Pibling mirror finalized")

    def may_cache_in_operation(self) -> bool:
        # values depend only on the store contents, not on the request
        return True

    def is_multi_valued(self) -> bool:
        return True

    @property
    def info(self) -> Box:
        config = self.config
        return Box({
            "type": "pibling-mirror",
            "initialized": self._engine is not None,
            "may_cache_in_operation": self.may_cache_in_operation(),
            "multi_valued": self.is_multi_valued(),
            "configuration": config.as_arguments() if config is not None else None,
        })

    def describe_search(self, entry: Entry | Location | str) -> str:
        """Human readable form of the search ``generate`` would run for ``entry``."""
        config = self.config
        if config is None:
            raise RuntimeError("Provider is not initialized")
        location = entry.location if isinstance(entry, Entry) else entry
        roots = self.server_context.naming_contexts if self.server_context is not None else ()
        descriptor = plan(location, config, roots)
        return (f"base={descriptor.base} scope={descriptor.scope.value} "
                f"filter={descriptor.filter_text} attributes={descriptor.attribute}")

    def generate(self, operation_context: OperationContext | None, entry: Entry | Location | str,
                 attribute_name: str) -> DerivedAttribute | None:
        """Generate the attribute for ``entry``, or None if no attribute should be produced."""
        if self._engine is None or self.server_context is None:
            return None
        connection = operation_context.internal_connection if operation_context is not None else None
        if connection is None:
            connection = self.server_context.connection
        if connection is None:
            self.server_context.diagnostics.log_message(
                LogSeverity.MILD_ERROR, "No directory connection is available to search pibling entries")
            return None
        return self._engine.generate(entry, attribute_name, connection)


__all__ = ["PiblingMirrorProvider"]
