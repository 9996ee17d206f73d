"""Invoice persistence with primary and fallback backends."""
