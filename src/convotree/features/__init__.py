"""Feature modules built on the conversation engine."""
