"""Preview I/O boundary: ``aw``, ``alf-list`` and ``alf-meta``."""
