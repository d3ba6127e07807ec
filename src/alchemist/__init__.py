"""Rule-based validation engine for client, worker and task records."""
