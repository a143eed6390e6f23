"""
Configuration management for Joinguard.

- **app_configuration.py**: YAML configuration loader guarded by fcntl locks.
  Falls back to defaults on missing or malformed files and overlays secrets
  from the environment (``JOINGUARD_API_KEY``, ``JOINGUARD_IRC_PASSWORD``).

- **bot_settings.py**: The immutable BotSettings snapshot built from the raw
  mapping on each load. Reloading swaps the whole snapshot.
"""
