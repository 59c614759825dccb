"""Type aliases for dynamic data structures throughout the package.

This module centralizes type definitions for data that cannot be statically
typed: security requirement maps and the context dictionaries attached to
errors.
"""

from typing import Any

# Context dictionary for error details and debugging information
type ErrorContext = dict[str, Any]

# One security requirement entry: scheme name -> required scopes.
# An operation lists alternatives; each alternative needs all of its schemes.
type SecurityRequirement = dict[str, list[str]]
