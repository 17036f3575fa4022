"""Routing — fragment codec and identifier resolution.

Fragments are classified into immutable ``Route`` values; identifiers in
route params are resolved to canonical entity ids before dispatch.
"""
