"""College attendance & leave management core.

This package is organized by feature modules (attendance, leaves, notifications, ...)
on top of a hierarchical document store, with a thin Flask JSON layer and
service/repository layers wired together in ``container.py``.
"""
