"""OpenAPI document model and export.

- **models**: Pydantic models of the OpenAPI 3.1 objects
- **document**: The document under construction, its finalization and export
"""
