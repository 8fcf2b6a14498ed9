"""Application services orchestrating the scheduling use cases."""
