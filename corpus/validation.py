# WORKFLOW: JSON Schema validation for jurisdiction reference files (hard gate at load).
# Used by: Reference loader, tests
# Functions:
# 1. validate_reference_payload() - Validate a raw reference payload, raising on failure
# 2. get_validation_errors() - Get detailed validation errors without raising
#
# Validation flow: Reference files -> Combined payload -> Schema validation -> Pass/Fail
# No corpus is built from data that fails this gate.

import json
import jsonschema
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from core.config import settings

logger = logging.getLogger(__name__)


class SchemaValidator:
    """JSON Schema validator for reference corpus payloads."""

    def __init__(self, schema_path: Optional[str] = None):
        self.schema_path = Path(schema_path or settings.reference_schema_path)
        if not self.schema_path.is_absolute() and not self.schema_path.exists():
            # Fall back to the schema shipped beside the source tree
            self.schema_path = Path(__file__).parent.parent / "schema" / self.schema_path.name
        self.schema = self._load_schema()

    def _load_schema(self) -> Dict[str, Any]:
        """Load the JSON schema from file."""
        try:
            with open(self.schema_path, 'r') as f:
                return json.load(f)
        except Exception as e:
            logger.error(f"Failed to load JSON schema: {e}")
            raise

    def validate(self, payload: Dict[str, Any]) -> bool:
        """
        Validate a reference payload against the JSON schema.

        Args:
            payload: Dict with 'itemToHsMapping' and 'embeddingsDatabase' keys

        Returns:
            True if valid, raises jsonschema.ValidationError if invalid
        """
        jsonschema.validate(instance=payload, schema=self.schema)
        return True

    def get_validation_errors(self, payload: Dict[str, Any]) -> Optional[str]:
        """
        Get detailed validation errors without raising exception.

        Args:
            payload: Reference payload to validate

        Returns:
            Error message if invalid, None if valid
        """
        try:
            jsonschema.validate(instance=payload, schema=self.schema)
            return None
        except jsonschema.ValidationError as e:
            return f"Schema validation error: {e.message} at path: {'/'.join(str(p) for p in e.path)}"


_schema_validator = None


def get_schema_validator() -> SchemaValidator:
    """Get the global schema validator instance (lazy-loaded)."""
    global _schema_validator
    if _schema_validator is None:
        _schema_validator = SchemaValidator()
    return _schema_validator


def validate_reference_payload(payload: Dict[str, Any]) -> bool:
    """Convenience function to validate a reference payload."""
    return get_schema_validator().validate(payload)


def get_validation_errors(payload: Dict[str, Any]) -> Optional[str]:
    """Convenience function returning schema errors for a reference payload."""
    return get_schema_validator().get_validation_errors(payload)
