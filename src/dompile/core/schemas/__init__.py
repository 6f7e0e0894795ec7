"""JSON Schema validation for configuration payloads."""
from .validation import SchemaValidationError, load_schema, validate_payload

__all__ = ["SchemaValidationError", "load_schema", "validate_payload"]
