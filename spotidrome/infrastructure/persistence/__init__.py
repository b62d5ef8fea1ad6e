"""Local persistence for caller-side state."""
