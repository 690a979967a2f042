"""State layer.

This package owns the local copies of server collections: identity
resolution, in-place reconciliation, observable stores and the filtered,
sorted views derived from them.
"""
