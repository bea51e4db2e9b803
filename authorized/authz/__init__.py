"""Authorization engine.

- `rules`: declarative per-field scope rules and redaction defaults
- `engine`: per-entity authorization and the public entry point
- `collection`: sequences and by-reference forwarding
"""
