"""
Per-domain repository modules for database access.

`evacuations` owns the evacuation file aggregate and file reads; `supports`
owns the support lifecycle and support search.
"""
