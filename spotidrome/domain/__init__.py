"""Domain layer: entities, matching types and capability interfaces."""
