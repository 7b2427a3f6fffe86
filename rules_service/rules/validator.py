"""
Structural and semantic validation of rule configurations.
"""

from typing import Any, List, Mapping

from loguru import logger as default_logger
from pydantic import BaseModel, Field, ValidationError

from rules_service.rules.schemas import RULE_CONFIG_VARIANTS


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)


def _format_errors(rule_type: str, exc: ValidationError) -> List[str]:
    """Flatten pydantic errors into readable messages naming the config field."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        message = error["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        if location:
            messages.append(f"rule_config.{location}: {message} ({rule_type})")
        else:
            messages.append(f"rule_config: {message}")
    return messages


class RuleConfigValidator:
    """Validates a rule candidate; never raises."""

    def __init__(self, logger=default_logger):
        self.logger = logger

    def validate(self, candidate: Mapping[str, Any]) -> ValidationResult:
        try:
            return self._validate(candidate)
        except Exception:
            self.logger.exception("Rule validation failed unexpectedly")
            return ValidationResult(
                is_valid=False, errors=["Validation error occurred"]
            )

    def validate_config(self, rule_type: str, rule_config: Any) -> List[str]:
        """Type-specific shape check. Unknown rule types are not checked."""
        variant = RULE_CONFIG_VARIANTS.get(rule_type)
        if variant is None:
            return []
        try:
            variant.model_validate(rule_config)
        except ValidationError as exc:
            return _format_errors(rule_type, exc)
        return []

    def _validate(self, candidate: Mapping[str, Any]) -> ValidationResult:
        errors: List[str] = []

        rule_type = candidate.get("rule_type")
        rule_config = candidate.get("rule_config")

        if not rule_type:
            errors.append("Rule type is required")
        if not candidate.get("rule_name"):
            errors.append("Rule name is required")
        if rule_config is None:
            errors.append("Rule configuration is required")
        elif rule_type:
            errors.extend(self.validate_config(rule_type, rule_config))

        return ValidationResult(is_valid=not errors, errors=errors)
