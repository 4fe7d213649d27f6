"""JobBoard backend."""
