"""HTTP layer built on Starlette.

- **wrapper**: ``ApiWrapper``, the entry point owning the document and router
- **group**: Route groups with inherited defaults
- **route**: Parameter, body and response declarations; the operation builder
- **paths**: Translation between router templates and document paths
- **security**: Security requirement evaluation
- **extraction**: The typed result handed to route handlers
- **middleware**: Validation, request context and error handling
- **schemas**: The error response model
- **utils**: orjson-backed responses
"""
