"""Infrastructure layer: external service connectors, persistence and CLI."""
