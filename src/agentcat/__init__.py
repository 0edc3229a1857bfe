"""Prompt-to-container code generation agent."""

__version__ = "0.1.0"
