"""Chat messages: storage, visibility filtering and owner-only mutation."""
