"""HTTP service exposing a conversation session."""
