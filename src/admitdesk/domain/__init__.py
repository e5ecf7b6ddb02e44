"""Domain layer: intents, ports and the resilient mutation pipeline."""
