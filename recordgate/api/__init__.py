"""HTTP API for recordgate."""
