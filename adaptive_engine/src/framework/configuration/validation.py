"""
Configuration validation utilities.
"""

from typing import Dict, Any, List
from pydantic import BaseModel, ValidationError

from ...infrastructure.exceptions import ConfigurationError
from .models import AdaptiveEngineConfiguration


class ConfigurationValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, validation_errors: List[Dict[str, Any]]):
        super().__init__(message, validation_errors=validation_errors)
        self.validation_errors = validation_errors

    def get_detailed_message(self) -> str:
        """Get a detailed error message with all validation errors."""
        lines = [self.message, "Validation errors:"]

        for error in self.validation_errors:
            location = " -> ".join(str(loc) for loc in error.get('loc', []))
            lines.append(f"- {location}: {error.get('msg', 'Unknown error')}")

        return "\n".join(lines)


class ConfigurationValidator:
    """Validates configuration data and provides detailed error messages."""

    @staticmethod
    def validate_configuration(config_data: Dict[str, Any]) -> List[str]:
        """
        Validate configuration data and return list of warnings.

        Args:
            config_data: Raw merged configuration data

        Returns:
            Warnings for unknown keys

        Raises:
            ConfigurationValidationError: If any section fails validation
        """
        errors: List[Dict[str, Any]] = []
        warnings: List[str] = []
        sections = AdaptiveEngineConfiguration.model_fields

        for key, value in config_data.items():
            if key not in sections:
                warnings.append(f"Unknown configuration key: {key}")
                continue

            section_model = sections[key].annotation
            if not isinstance(value, dict):
                errors.append({'loc': [key], 'msg': "section must be a mapping", 'type': 'type_error'})
                continue

            for field_name in value:
                if issubclass(section_model, BaseModel) and field_name not in section_model.model_fields:
                    warnings.append(f"Unknown configuration key: {key}.{field_name}")

            try:
                section_model(**value)
            except ValidationError as e:
                for error in e.errors():
                    errors.append({
                        'loc': [key] + list(error['loc']),
                        'msg': error['msg'],
                        'type': error['type']
                    })

        if errors:
            raise ConfigurationValidationError("Configuration validation failed", errors)

        return warnings
