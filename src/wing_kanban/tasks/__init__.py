"""
Task board core.

Components:
- task_models.py: data structures (Task, Stage, Direction, ChangeEvent, Reminder)
- task_store.py: client view of the collection, optimistic writes, reload-on-failure
- change_feed.py: realtime subscription that reloads the store on any change
- snapshot.py: local JSON fallback used when the backend is unreachable
- reminders.py: local-only reminders list
- task_api.py: small high-level helpers (demo seeding, plain-text board)
"""
