"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_store_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate store parameters."""
        errors = []

        if "db_path" in params:
            value = params["db_path"]
            if not isinstance(value, str) or not value:
                errors.append(ValidationError(
                    field="db_path",
                    message="Must be a non-empty path string",
                    value=value
                ))

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                errors.append(ValidationError(
                    field="timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_run_defaults(params: dict[str, Any]) -> list[ValidationError]:
        """Validate default title, category and split names."""
        errors = []

        for field in ("title", "category"):
            if field in params and not isinstance(params[field], str):
                errors.append(ValidationError(
                    field=field,
                    message="Must be a string",
                    value=params[field]
                ))

        if "split_names" in params:
            value = params["split_names"]
            if (not isinstance(value, (list, tuple)) or not value
                    or not all(isinstance(name, str) for name in value)):
                errors.append(ValidationError(
                    field="split_names",
                    message="Must be a non-empty list of strings",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_import_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate import parameters."""
        errors = []

        if "synthetic_start_offset_hours" in params:
            value = params["synthetic_start_offset_hours"]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                errors.append(ValidationError(
                    field="synthetic_start_offset_hours",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in LOG_LEVELS:
                errors.append(ValidationError(
                    field="level",
                    message=f"Must be one of {', '.join(LOG_LEVELS)}",
                    value=value
                ))

        if "format_json" in params and not isinstance(params["format_json"], bool):
            errors.append(ValidationError(
                field="format_json",
                message="Must be a boolean",
                value=params["format_json"]
            ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "store" in config:
            errors.extend(ConfigValidator.validate_store_params(config["store"]))

        if "defaults" in config:
            errors.extend(ConfigValidator.validate_run_defaults(config["defaults"]))

        if "importer" in config:
            errors.extend(ConfigValidator.validate_import_params(config["importer"]))

        if "logging" in config:
            errors.extend(ConfigValidator.validate_logging_params(config["logging"]))

        return errors
