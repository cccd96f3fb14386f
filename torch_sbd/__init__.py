"""
torch-sbd: Sparse Block Decomposition for PyTorch

Splits a square sparse system into the four blocks induced by a two-way
partition of its unknowns, and moves vectors between the original numbering
and the two partitioned numberings.

Features
--------
- Stable partition bookkeeping (original <-> subset indices)
- Block extraction (AA, AB, BA, optional BB) with summation of coincident entries
- Exact vector split / merge
- Block-valued (BSR-like) entries and CUDA tensors
- Helpers: identity, diagonal shift, stacking, complex -> real expansion
- Sanity checks: finiteness, symmetry, hermitian

Usage
-----
>>> import torch
>>> from torch_sbd import SparseTensor, block_decompose_square, decompose_vector, reassemble_vector
>>>
>>> val = torch.tensor([4.0, -1.0, -1.0, 4.0, -1.0, -1.0, 4.0], dtype=torch.float64)
>>> row = torch.tensor([0, 0, 1, 1, 1, 2, 2])
>>> col = torch.tensor([0, 1, 0, 1, 2, 1, 2])
>>> A = SparseTensor(val, row, col, (3, 3))
>>>
>>> # unknowns 0 and 2 are free (A), unknown 1 is fixed (B)
>>> decomp = block_decompose_square(A, [True, False, True])
>>> decomp.AA.to_dense()
>>> x_A, x_B = decompose_vector(decomp, torch.tensor([1.0, 2.0, 3.0], dtype=torch.float64))
>>> x = reassemble_vector(decomp, x_A, x_B)
"""

from .check import (
    ShapeException,
    SizeMismatchError,
    DimensionMismatchError,
    ValidationError,
)

from .sparse_tensor import (
    SparseTensor,
    as_sparse_tensor,
)

from .partition import (
    BlockPartition,
    build_partition,
)

from .decompose import (
    BlockDecomposition,
    decompose_matrix,
    block_decompose_square,
    decompose_vector,
    reassemble_vector,
    reassemble_matrix,
)

from .utilities import (
    identity_matrix,
    shift_diagonal,
    vertical_stack,
    horizontal_stack,
    complex_to_real,
    complex_to_real_vector,
    check_finite,
    check_symmetric,
    check_hermitian,
    DEFAULT_DIAGONAL_SHIFT,
    RELATIVE_SYMMETRY_EPS,
)

from .sort import (
    lexsort,
    coalesce_coo,
)

from .convert import (
    coo2csr,
    csr2coo,
    coo2csc,
    csc2coo,
    coo2dense,
    coo_to_scipy,
    scipy_to_coo,
    is_scipy_available,
)

from .compare import (
    coo_eq,
    coo_allclose,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "ShapeException",
    "SizeMismatchError",
    "DimensionMismatchError",
    "ValidationError",
    # SparseTensor class
    "SparseTensor",
    "as_sparse_tensor",
    # Partition
    "BlockPartition",
    "build_partition",
    # Block decomposition
    "BlockDecomposition",
    "decompose_matrix",
    "block_decompose_square",
    "decompose_vector",
    "reassemble_vector",
    "reassemble_matrix",
    # Utilities
    "identity_matrix",
    "shift_diagonal",
    "vertical_stack",
    "horizontal_stack",
    "complex_to_real",
    "complex_to_real_vector",
    "check_finite",
    "check_symmetric",
    "check_hermitian",
    "DEFAULT_DIAGONAL_SHIFT",
    "RELATIVE_SYMMETRY_EPS",
    # COO helpers
    "lexsort",
    "coalesce_coo",
    "coo2csr",
    "csr2coo",
    "coo2csc",
    "csc2coo",
    "coo2dense",
    "coo_to_scipy",
    "scipy_to_coo",
    "is_scipy_available",
    "coo_eq",
    "coo_allclose",
    # Version
    "__version__",
]
