"""HTTP API for usage stats."""
