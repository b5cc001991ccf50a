"""HTTP API for step-through diagrams."""
