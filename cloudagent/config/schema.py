# This file is part of cloud-agent. See LICENSE file for license information.
"""Schema validation of the agent configuration."""

import logging
from typing import List, NamedTuple

from jsonschema import Draft4Validator, FormatChecker

LOG = logging.getLogger(__name__)

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

AGENT_CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-04/schema#",
    "type": "object",
    "properties": {
        "metadata_service_list": {
            **_STRING_LIST,
            "items": {"enum": ["ConfigDrive", "File"]},
        },
        "metadata_service": {
            "type": "object",
            "properties": {
                "ConfigDrive": {
                    "type": "object",
                    "properties": {
                        "disk_paths": {**_STRING_LIST, "minItems": 1},
                        "metadata_path": {"type": "string", "minLength": 1},
                        "userdata_path": {"type": "string", "minLength": 1},
                    },
                    "additionalProperties": False,
                },
                "File": {
                    "type": "object",
                    "properties": {
                        "metadata_path": {"type": "string", "minLength": 1},
                        "userdata_path": {"type": "string", "minLength": 1},
                        "settings_path": {"type": "string", "minLength": 1},
                    },
                    "additionalProperties": False,
                },
            },
            "additionalProperties": False,
        },
        "dns": {
            "type": "object",
            "properties": {
                "lookup_timeout": {"type": "integer", "minimum": 1},
            },
        },
        "log_cfgs": {"type": "array"},
        "log_basic": {"type": "boolean"},
        "conf_d": {"type": ["string", "null"]},
    },
}


class SchemaProblem(NamedTuple):
    path: str
    message: str

    def format(self) -> str:
        return f"{self.path}: {self.message}"


class SchemaValidationError(ValueError):
    """Raised when validating the agent config against its schema."""

    def __init__(self, schema_errors: List[SchemaProblem]):
        self.schema_errors = sorted(set(schema_errors))
        super().__init__(
            "Agent config schema errors: "
            + ", ".join(p.format() for p in self.schema_errors)
        )


def validate_agent_config(config: dict, schema=None, strict=False) -> bool:
    """Validate provided config meets the schema definition.

    @param config: Dict of agent configuration settings.
    @param schema: Optional jsonschema dict, defaults to AGENT_CONFIG_SCHEMA.
    @param strict: Boolean, when True raise SchemaValidationErrors instead of
       logging warnings.

    @raises: SchemaValidationError when strict and the config is invalid.
    @return: True when the config is valid.
    """
    if schema is None:
        schema = AGENT_CONFIG_SCHEMA
    validator = Draft4Validator(schema, format_checker=FormatChecker())

    errors = []
    for schema_error in sorted(
        validator.iter_errors(config),
        key=lambda e: [str(p) for p in e.path],
    ):
        path = ".".join([str(p) for p in schema_error.path])
        errors.append(SchemaProblem(path or "<root>", schema_error.message))

    if not errors:
        return True
    if strict:
        raise SchemaValidationError(errors)
    LOG.warning(
        "Invalid agent config provided: %s",
        ", ".join(p.format() for p in errors),
    )
    return False
