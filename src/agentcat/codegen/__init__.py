"""Response extraction, workspace materialization, and container execution."""
