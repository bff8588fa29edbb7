"""Domain layer: models, interfaces and services."""
