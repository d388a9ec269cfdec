"""
Index Bootstrap - client-side reconciliation for a background indexing service.

On activation the client makes sure the shared index service is running,
works out which project the user is in, checks whether the service already
knows the project and whether its on-disk index is current, and then issues
exactly one of register, refresh, watch or nothing.
"""

__version__ = "0.3.0"
