"""Core infrastructure: logging and the git collaborator."""
