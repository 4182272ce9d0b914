"""deepwatch - live monitor for LangGraph deep agent runs.

Reconstructs what a deep agent is doing (its sub-agents, tool calls, todo
list, and activity) from the engine's streamed events, and shows it in a
terminal UI.

Example:
    # Using CLI
    deepwatch run
    deepwatch replay ~/.deepwatch/traces/run.jsonl

    # Using Python
    from deepwatch.monitor import ExecutionMonitor, ExecutionState
"""

__version__ = "0.1.0"

__all__ = ["__version__", "main"]


def main() -> None:
    """Main entry point for the deepwatch CLI."""
    from deepwatch.cli.main import app

    app()
