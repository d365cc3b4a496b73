"""Access key engine — models, store, services and the engine client."""
