"""HTTP API: JSON endpoints, the negotiated web service and health checks."""
