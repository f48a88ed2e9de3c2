"""Abstract provider contracts (adapter pattern) for storage and upstream APIs."""
