"""Implementations of the collaborators the engine talks to."""
