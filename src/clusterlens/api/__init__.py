"""HTTP API: dashboard endpoints and the service proxy."""
