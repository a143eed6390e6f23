"""
IRC transport for Joinguard.

- **irc_client.py**: pydle client that joins the configured channels, turns
  JOIN events into pipeline tasks, and carries out quiet commands and
  operator notifications.
"""
