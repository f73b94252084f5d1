"""
Indexing Bounded Context

Compiler report -> typed events -> per-document index -> queries.
"""
