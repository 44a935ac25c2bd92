"""Runtime configuration for blob morphology generation and assembly."""
