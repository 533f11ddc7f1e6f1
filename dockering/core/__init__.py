"""Core parsing, command building and remote execution for dockering."""
