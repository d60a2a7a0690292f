"""
The MODEL layer contains the pure data structures of the engine.
It has NO knowledge of threads, process groups or algorithms.
"""
from matmulverify.model.comparison import ComparisonResult, compare_arrays
from matmulverify.model.matrix import Matrix

__all__ = ["ComparisonResult", "Matrix", "compare_arrays"]
