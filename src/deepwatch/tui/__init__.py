"""Textual TUI for watching a deep agent run."""

from deepwatch.tui.app import DeepwatchApp

__all__ = ["DeepwatchApp"]
