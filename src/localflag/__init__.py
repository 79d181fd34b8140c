"""localflag: static discovery and in-place toggling of feature-flag defaults.

Scans TypeScript flag definition files for the ``as const``, ``defineFlags``,
``createFlags`` and plain-object declaration idioms, indexes every flag with
its value, type and source location, and rewrites boolean defaults in place
without touching the rest of the file.
"""

__version__ = "0.1.0"
