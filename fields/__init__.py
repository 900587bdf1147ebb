"""
Coordinate field model & overlay renderer.

Typed, page-relative fields (plain text, tables, signature slots), the
drag/resize interaction reducer, signer placement buffering and the
scale-to-fit overlay rendering contract.
"""
