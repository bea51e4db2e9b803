"""Scope value type, results and errors (no dependency on the rule machinery)."""
