"""
SparseTensor wrapper class for COO sparse matrices.

Supports matrices with shape [M, N, ...block]:
- (M, N) are the sparse matrix dimensions
- Trailing dimensions [K1, K2, ...] are block dimensions, each stored
  non-zero is then a dense block instead of a scalar

Key Features:
- Construction from dense, PyTorch sparse (COO/CSR) and SciPy matrices
- Coalescing (coincident entries are summed)
- Symmetry detection
- Two-way block decomposition of square matrices

Examples
--------
>>> # Create a simple sparse matrix
>>> val = torch.tensor([4.0, -1.0, -1.0, 4.0])
>>> row = torch.tensor([0, 0, 1, 1])
>>> col = torch.tensor([0, 1, 0, 1])
>>> A = SparseTensor(val, row, col, (2, 2))
>>>
>>> A.is_symmetric()  # tensor(True)
>>>
>>> # Split the unknowns into two sets
>>> decomp = A.block_decompose([True, False])
>>> decomp.AA.to_dense()  # tensor([[4.]])
"""

import torch
from typing import Tuple, Optional, Union, Sequence

from .check import check_coo
from .sort import coalesce_coo
from .convert import coo2csr, csr2coo, coo2dense, coo_to_scipy, scipy_to_coo


class SparseTensor:
    """
    COO sparse matrix with optional block-valued entries.

    Parameters
    ----------
    values : torch.Tensor
        Non-zero values with shape [nnz] or [nnz, *block_shape].
    row_indices : torch.Tensor
        Row indices with shape [nnz]. Must be on the same device as values.
    col_indices : torch.Tensor
        Column indices with shape [nnz]. Must be on the same device as values.
    shape : Tuple[int, ...]
        Full shape [M, N, *block_shape].

    Notes
    -----
    Duplicate coordinates are allowed and mean "sum of the entries", as in
    any sparse assembly. Call :meth:`coalesce` to merge them.

    Examples
    --------
    >>> val = torch.tensor([4.0, -1.0, -1.0, 4.0, -1.0, -1.0, 4.0])
    >>> row = torch.tensor([0, 0, 1, 1, 1, 2, 2])
    >>> col = torch.tensor([0, 1, 0, 1, 2, 1, 2])
    >>> A = SparseTensor(val, row, col, (3, 3))
    >>> print(A)
    SparseTensor(shape=(3, 3), sparse=(3, 3), nnz=7, dtype=torch.float32, device=cpu)

    Block-valued entries, a 2x2 block matrix made of 2x2 blocks:

    >>> val_block = torch.randn(3, 2, 2)
    >>> A_block = SparseTensor(val_block, torch.tensor([0, 0, 1]), torch.tensor([0, 1, 1]), (2, 2, 2, 2))
    >>> A_block.block_shape  # (2, 2)
    """

    def __init__(
        self,
        values: torch.Tensor,
        row_indices: torch.Tensor,
        col_indices: torch.Tensor,
        shape: Tuple[int, ...],
    ):
        self.values = values
        self.row_indices = row_indices.long()
        self.col_indices = col_indices.long()
        self._shape = tuple(int(s) for s in shape)

        self._is_symmetric_cache = None

        check_coo(self.values, self.row_indices, self.col_indices, self._shape)

    # =========================================================================
    # Class Methods
    # =========================================================================

    @classmethod
    def from_dense(cls, A: torch.Tensor) -> "SparseTensor":
        """
        Create SparseTensor from a dense tensor [M, N, ...block].

        For block-valued tensors a block is stored when any of its entries
        is non-zero.

        Examples
        --------
        >>> A_dense = torch.randn(3, 3)
        >>> A_dense[A_dense.abs() < 0.5] = 0
        >>> A = SparseTensor.from_dense(A_dense)
        """
        if A.dim() < 2:
            raise ValueError(f"Dense tensor must have at least 2 dimensions, got {A.dim()}")
        M, N = A.shape[:2]
        nonzero = A.reshape(M, N, -1).ne(0).any(dim=-1)
        row, col = torch.nonzero(nonzero, as_tuple=True)
        return cls(A[row, col], row, col, tuple(A.shape))

    @classmethod
    def from_torch_sparse(cls, A: torch.Tensor) -> "SparseTensor":
        """
        Create SparseTensor from PyTorch sparse COO or CSR tensor.

        Examples
        --------
        >>> A_coo = torch.randn(3, 3).to_sparse_coo()
        >>> A = SparseTensor.from_torch_sparse(A_coo)
        """
        if A.layout == torch.sparse_csr:
            val, row, col, shape = csr2coo(
                A.values(), A.crow_indices(), A.col_indices(), tuple(A.shape)
            )
            return cls(val, row, col, shape)
        if A.layout != torch.sparse_coo:
            raise ValueError(f"Expected a sparse COO or CSR tensor, got layout {A.layout}")
        indices = A._indices()
        return cls(A._values(), indices[0], indices[1], tuple(A.shape))

    @classmethod
    def from_scipy(cls, A, device=None) -> "SparseTensor":
        """Create SparseTensor from any ``scipy.sparse`` matrix."""
        return cls(*scipy_to_coo(A, device=device))

    @classmethod
    def from_coo(
        cls,
        values: Sequence,
        row_indices: Sequence[int],
        col_indices: Sequence[int],
        shape: Tuple[int, ...],
        dtype: Optional[torch.dtype] = None,
        device: Optional[Union[str, torch.device]] = None,
    ) -> "SparseTensor":
        """Create SparseTensor from plain Python sequences of triplets."""
        val = torch.as_tensor(values, dtype=dtype, device=device)
        row = torch.as_tensor(row_indices, dtype=torch.long, device=val.device)
        col = torch.as_tensor(col_indices, dtype=torch.long, device=val.device)
        return cls(val, row, col, shape)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def shape(self) -> Tuple[int, ...]:
        """Full shape [M, N, ...block]."""
        return self._shape

    @property
    def sparse_shape(self) -> Tuple[int, int]:
        """The (M, N) sparse matrix dimensions."""
        return self._shape[:2]

    @property
    def block_shape(self) -> Tuple[int, ...]:
        """The block dimensions after the sparse dimensions."""
        return self._shape[2:]

    @property
    def nnz(self) -> int:
        """Number of stored entries (duplicates included)."""
        return self.row_indices.size(0)

    @property
    def dtype(self) -> torch.dtype:
        return self.values.dtype

    @property
    def device(self) -> torch.device:
        return self.values.device

    @property
    def is_block(self) -> bool:
        """Whether the entries are dense blocks."""
        return len(self.block_shape) > 0

    @property
    def is_square(self) -> bool:
        """Whether the sparse dimensions are square (M == N)."""
        M, N = self.sparse_shape
        return M == N

    # =========================================================================
    # Device and Type Management
    # =========================================================================

    def to(
        self,
        device: Optional[Union[str, torch.device]] = None,
        dtype: Optional[torch.dtype] = None
    ) -> "SparseTensor":
        """
        Move tensor to device and/or convert dtype.

        Examples
        --------
        >>> A_cuda = A.to('cuda')
        >>> A_float64 = A.to(dtype=torch.float64)
        """
        new_values = self.values
        new_row = self.row_indices
        new_col = self.col_indices

        if device is not None:
            new_values = new_values.to(device)
            new_row = new_row.to(device)
            new_col = new_col.to(device)

        if dtype is not None:
            new_values = new_values.to(dtype)

        return SparseTensor(new_values, new_row, new_col, self._shape)

    def clone(self) -> "SparseTensor":
        """Create a copy of this SparseTensor."""
        return SparseTensor(
            self.values.clone(),
            self.row_indices.clone(),
            self.col_indices.clone(),
            self._shape,
        )

    # =========================================================================
    # Conversion Methods
    # =========================================================================

    def to_torch_sparse(self) -> torch.Tensor:
        """Convert to PyTorch sparse COO tensor (uncoalesced)."""
        indices = torch.stack([self.row_indices, self.col_indices], dim=0)
        return torch.sparse_coo_tensor(indices, self.values, self._shape)

    def to_dense(self) -> torch.Tensor:
        """Convert to dense tensor, coincident entries are summed."""
        return coo2dense(self.values, self.row_indices, self.col_indices, self._shape)

    def to_csr(self) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor, tuple]:
        """
        Return the CSR components ``(val, rowptr, col, shape)``.

        The matrix is coalesced first so each (row, col) appears once.
        """
        return coo2csr(*self.coalesce().coo())

    def to_scipy(self):
        """Convert to a ``scipy.sparse.coo_matrix`` (scalar values only)."""
        return coo_to_scipy(self.values, self.row_indices, self.col_indices, self._shape)

    def coo(self) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor, tuple]:
        """Return the raw ``(val, row, col, shape)`` quadruple."""
        return self.values, self.row_indices, self.col_indices, self._shape

    # =========================================================================
    # Structural Operations
    # =========================================================================

    def coalesce(self) -> "SparseTensor":
        """
        Sort entries row-major and sum those sharing a coordinate.

        Returns
        -------
        SparseTensor
            New tensor with unique coordinates.
        """
        return SparseTensor(*coalesce_coo(*self.coo()))

    def T(self) -> "SparseTensor":
        """
        Transpose the sparse dimensions.

        Returns
        -------
        SparseTensor
            Transposed tensor with row/col indices swapped.
        """
        M, N = self.sparse_shape
        return SparseTensor(
            self.values,
            self.col_indices,  # Swap row and col
            self.row_indices,
            (N, M) + self.block_shape,
        )

    def is_symmetric(
        self,
        atol: float = 1e-8,
        rtol: float = 1e-5,
        force_recompute: bool = False
    ) -> torch.Tensor:
        """
        Check if the matrix is symmetric (A == A^T).

        Parameters
        ----------
        atol : float, optional
            Absolute tolerance for comparison. Default: 1e-8.
        rtol : float, optional
            Relative tolerance for comparison. Default: 1e-5.
        force_recompute : bool, optional
            If True, recompute even if cached. Default: False.

        Returns
        -------
        torch.Tensor
            Scalar boolean tensor.

        See Also
        --------
        torch_sbd.utilities.check_symmetric : raising variant with an
            absolute tolerance.
        """
        if self._is_symmetric_cache is not None and not force_recompute:
            return self._is_symmetric_cache

        if not self.is_square:
            self._is_symmetric_cache = torch.tensor(False, device=self.device)
            return self._is_symmetric_cache

        A = self.coalesce()
        N = A.sparse_shape[1]
        row = A.row_indices
        col = A.col_indices

        # Create hash for (row, col) pairs
        forward_hash = row * N + col
        transpose_hash = col * N + row

        # Coalesced entries are already sorted by forward hash
        transpose_order = transpose_hash.argsort()

        # Check sparsity pattern
        if not torch.equal(forward_hash, transpose_hash[transpose_order]):
            self._is_symmetric_cache = torch.tensor(False, device=self.device)
            return self._is_symmetric_cache

        vals_forward = A.values
        vals_transpose = A.values[transpose_order]
        diff = (vals_forward - vals_transpose).abs()
        threshold = atol + rtol * vals_forward.abs()
        result = torch.tensor(bool((diff <= threshold).all().item()), device=self.device)

        self._is_symmetric_cache = result
        return result

    def block_decompose(
        self,
        a_set: Union[torch.Tensor, Sequence[bool]],
        build_bb: bool = True,
    ) -> "BlockDecomposition":
        """
        Split this square matrix into the four blocks induced by ``a_set``.

        Parameters
        ----------
        a_set : torch.Tensor or Sequence[bool]
            [N] membership mask, True for the indices of set A.
        build_bb : bool, optional
            Whether to build the B-B block. Default: True.

        Returns
        -------
        BlockDecomposition
            See :func:`torch_sbd.decompose.block_decompose_square`.
        """
        from .decompose import block_decompose_square
        return block_decompose_square(self, a_set, build_bb=build_bb)

    # =========================================================================
    # Arithmetic
    # =========================================================================

    def __add__(self, other: "SparseTensor") -> "SparseTensor":
        """Sparse + Sparse, the result keeps both entry lists (uncoalesced)."""
        if not isinstance(other, SparseTensor):
            return NotImplemented
        if other.shape != self.shape:
            raise ValueError(f"Shape mismatch for addition: {self.shape} and {other.shape}")
        return SparseTensor(
            torch.cat([self.values, other.values.to(self.dtype)], dim=0),
            torch.cat([self.row_indices, other.row_indices]),
            torch.cat([self.col_indices, other.col_indices]),
            self._shape,
        )

    def __mul__(self, other: Union[float, int, complex]) -> "SparseTensor":
        """Scale every value."""
        return SparseTensor(self.values * other, self.row_indices, self.col_indices, self._shape)

    def __rmul__(self, other):
        return self.__mul__(other)

    def __repr__(self) -> str:
        parts = [f"SparseTensor(shape={self._shape}"]
        parts.append(f"sparse={self.sparse_shape}")
        if self.is_block:
            parts.append(f"block={self.block_shape}")
        parts.append(f"nnz={self.nnz}")
        parts.append(f"dtype={self.dtype}")
        parts.append(f"device={self.device}")
        return ", ".join(parts) + ")"


def as_sparse_tensor(A: Union[SparseTensor, torch.Tensor]) -> SparseTensor:
    """Wrap a PyTorch sparse COO/CSR tensor, pass a SparseTensor through."""
    if isinstance(A, SparseTensor):
        return A
    if isinstance(A, torch.Tensor) and A.layout in (torch.sparse_coo, torch.sparse_csr):
        return SparseTensor.from_torch_sparse(A)
    raise TypeError(f"Expected a SparseTensor or a sparse torch.Tensor, got {type(A).__name__}")
