"""Core constants."""

# Security and redaction
REDACTED = "[REDACTED]"

# Document layout
SCHEMA_REF_PREFIX = "#/components/schemas/"
RESPONSE_REF_PREFIX = "#/components/responses/"
DEFAULT_OPENAPI_VERSION = "3.1.0"
YAML_HEADER = "# Specification generated by openroute\n\n"

# HTTP methods that may carry an operation, in PathItem order
HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
