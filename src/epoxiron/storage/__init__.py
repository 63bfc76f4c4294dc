"""Storage subpackage - key-value store contract."""
