"""
Parallel execution building blocks: the row partition shared by every
distributed variant, the shared-memory thread pool and the process groups.

Note: This package must not import the algorithms.
"""
