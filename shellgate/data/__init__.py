"""In-memory stores. Nothing here is persisted across restarts."""
