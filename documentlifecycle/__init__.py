"""
Document lifecycle feature.

Typed client for the document API, the workflow policy (who may assign,
review, sign or reject), the per-user document session with stale-result
handling, and the Tk document view.
"""
