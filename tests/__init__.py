"""Test package marker.

Making `tests/` a package gives test modules fully-qualified names and avoids
`import file mismatch` collection errors.
"""
