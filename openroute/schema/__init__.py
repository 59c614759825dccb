"""Schema generation from Python types.

- **meta**: ``Meta`` annotations attached with ``typing.Annotated``
- **descriptor**: Normalized, memoized type descriptors
- **walker**: Descriptors to schema fragments
- **registry**: Named, deduplicated schema components of one document
- **validator**: Validation and string coercion against generated schemas
- **binder**: Validated data back to the declared Python shapes
"""
