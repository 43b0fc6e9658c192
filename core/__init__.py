"""Pure core of the alf tool set: records, codecs, peak math and glyph rendering.

Nothing in this package spawns processes or touches the filesystem beyond
path resolution; I/O lives in ``ingestion/``, ``preview/`` and ``playback/``.
"""
