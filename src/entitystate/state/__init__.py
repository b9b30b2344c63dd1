"""State layer.

Notifications, the per-entity state machine and the store reducer.  Only
this package decides how a notification changes the store state.
"""
