"""Provider configuration: validated snapshots and their atomic holder."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Mapping

from box import Box
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from common.errors import ConfigurationError
from directory.models import load_text_payload

ARG_NAME_ATTR = "source-attribute"
ARG_NAME_OBJECTCLASS = "source-objectclass"

NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9-]*$"

_INVALID_VALUE_MESSAGES = {
    ARG_NAME_ATTR: "A valid attribute name is required.",
    ARG_NAME_OBJECTCLASS: "A valid objectclass name is required.",
}


class ProviderConfig(BaseModel):
    """One immutable configuration snapshot.

    Requests read a single snapshot from start to finish; reloads replace the
    whole object, never one field at a time.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    source_attribute: str = Field(
        ...,
        alias=ARG_NAME_ATTR,
        pattern=NAME_PATTERN,
        description="Attribute whose values are mirrored from the pibling entries",
    )
    source_objectclass: str = Field(
        ...,
        alias=ARG_NAME_OBJECTCLASS,
        pattern=NAME_PATTERN,
        description="Objectclass the pibling entries must have",
    )

    @field_validator("source_attribute", "source_objectclass", mode="before")
    @classmethod
    def _single_value(cls, value: Any) -> Any:
        # argument values may arrive as a list holding one occurrence
        if isinstance(value, (list, tuple)):
            if len(value) != 1:
                raise ValueError("exactly one value is allowed")
            return value[0]
        return value

    def as_arguments(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


def define_config_arguments() -> list[Box]:
    """Describe the configuration arguments the provider accepts."""
    return [
        Box(
            name=ARG_NAME_ATTR,
            required=True,
            max_occurrences=1,
            placeholder="{attr}",
            description="The name of the attribute whose values should be mirrored "
                        "to generate the values for the virtual attribute.",
            value_regex=NAME_PATTERN,
            invalid_value_message=_INVALID_VALUE_MESSAGES[ARG_NAME_ATTR],
        ),
        Box(
            name=ARG_NAME_OBJECTCLASS,
            required=True,
            max_occurrences=1,
            placeholder="{objectclass}",
            description="The name of the objectclass that entries must have "
                        "to be mirrored for the values for the virtual attribute.",
            value_regex=NAME_PATTERN,
            invalid_value_message=_INVALID_VALUE_MESSAGES[ARG_NAME_OBJECTCLASS],
        ),
    ]


def coerce_provider_config(value: Any) -> ProviderConfig:
    """Normalize supported inputs into a ProviderConfig.

    Accepts a ProviderConfig, a mapping, YAML/JSON text or a path to such a
    file. Raises ConfigurationError listing every problem found.
    """
    if isinstance(value, ProviderConfig):
        return value
    payload: Any
    if isinstance(value, Path):
        payload = load_text_payload(value.read_text())
    elif isinstance(value, (str, bytes)):
        payload = load_text_payload(value)
    else:
        payload = value
    if not isinstance(payload, Mapping):
        raise ConfigurationError("Provider configuration must be a mapping",
                                 reasons=["The configuration is not a set of named arguments."])
    try:
        return ProviderConfig.model_validate(dict(payload))
    except ValidationError as exc:
        raise ConfigurationError("Invalid provider configuration", reasons=describe_validation_error(exc)) from exc


def describe_validation_error(exc: ValidationError) -> list[str]:
    """Turn pydantic errors into the reasons reported to the configuration system."""
    reasons = []
    for error in exc.errors():
        name = str(error["loc"][0]).replace("_", "-") if error["loc"] else "configuration"
        if error["type"] == "missing":
            reasons.append(f"The {name} argument is required.")
        elif error["type"] == "extra_forbidden":
            reasons.append(f"Unrecognized configuration argument {name}.")
        elif error["type"] == "string_pattern_mismatch":
            reasons.append(_INVALID_VALUE_MESSAGES.get(name, f"Invalid value for {name}."))
        else:
            reasons.append(f"{name}: {error['msg']}")
    return reasons


class ConfigHolder:
    """Holds the active ProviderConfig and swaps it atomically."""

    def __init__(self, config: ProviderConfig | None = None):
        self._config = config
        self._lock = threading.Lock()

    def get(self) -> ProviderConfig | None:
        return self._config

    def swap(self, config: ProviderConfig | None) -> ProviderConfig | None:
        """Install ``config`` and return the snapshot it replaced."""
        with self._lock:
            previous, self._config = self._config, config
        return previous

    def clear(self) -> ProviderConfig | None:
        return self.swap(None)


__all__ = [
    "ARG_NAME_ATTR",
    "ARG_NAME_OBJECTCLASS",
    "ConfigHolder",
    "NAME_PATTERN",
    "ProviderConfig",
    "coerce_provider_config",
    "define_config_arguments",
    "describe_validation_error",
]
