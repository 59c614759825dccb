"""Pydantic models of the HTTP responses the wrapper itself produces.

- **errors**: The error body returned for every failed request
"""
