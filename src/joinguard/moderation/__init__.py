"""
Join moderation pipeline.

- **exemptions.py**: Case-insensitive nickname exemption matching that also
  accepts the ``nick_`` fallback form.

- **join_handler.py**: The per-event pipeline: self/exemption checks, address
  resolution, cached reputation lookup, and the quiet + operator notification
  action for flagged addresses.

- **join_dispatcher.py**: Runs one task per join event and drains or cancels
  in-flight tasks on shutdown.
"""
