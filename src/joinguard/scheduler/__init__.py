"""
Background tasks for Joinguard.

- **config_reload_scheduler.py**: Periodically reloads the YAML configuration
  so exemption and notification lists can change at runtime. Supports clean
  start and shutdown alongside the IRC connection.
"""
