"""
Plain data types shared across Joinguard.

- **reputation_datatypes.py**: NetworkAddress and the immutable
  ReputationVerdict with its cache-file serialization.
- **irc_datatypes.py**: JoinEvent coming in from the IRC transport and the
  ModerationAction (quiet + notifications) going back out.
"""
