"""Application layer: matching services and export/update use cases."""
