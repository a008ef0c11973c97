"""
Core mathematical primitives, domain models and error taxonomy.

This module contains the foundational building blocks shared by every
calculator: the fixed-precision decimal kernel, dense matrices, the
linear solver and the boundary models.
"""
