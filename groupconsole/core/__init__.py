"""Framework-free core of the group console.

Architecture:
- capabilities.py: Selectable / Extensible / Updatable / Reducible interfaces
- filters.py, query.py: row filters and in-process queries
- backends/: user group backends (memory, yaml, keycloak)
- resolver.py: backend lookup by name and capability
- group_service.py: list/show/remove-member operations
- forms.py, validators.py: create/edit/remove workflows and input checks
- exceptions.py: typed console errors
"""
