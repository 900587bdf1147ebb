"""
Signature capture feature.

Freehand pen strokes on a canvas, camera snapshots as a fallback source,
and a per-user vault of saved signatures in client-local storage.
"""
