"""CLI command implementations for deepwatch.

- run: Run the deep agent under the monitor
- replay: Feed a recorded trace through the monitor
- config: Manage configuration
"""
