"""
Shared utilities.

- **logger.py**: Console (prompt_toolkit) and session log file setup used by
  every module via ``get_logger``.
"""
