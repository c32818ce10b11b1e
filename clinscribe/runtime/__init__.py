"""Runtime helpers for streaming responses."""
