"""
Block decomposition of square sparse systems.

Given a square matrix ``A`` and a two-way partition of its unknowns into the
sets A and B, the system is rewritten as

    [ AA  AB ] [ x_A ]   [ b_A ]
    [ BA  BB ] [ x_B ] = [ b_B ]

which is the starting point of constrained solves (eliminating fixed or
boundary unknowns) and Schur-complement style elimination.

Usage
-----
>>> from torch_sbd import SparseTensor, block_decompose_square, decompose_vector, reassemble_vector
>>> A = SparseTensor.from_coo([5., 2., 2., 9., 7.], [0, 0, 1, 1, 2], [0, 1, 0, 1, 3], (4, 4))
>>> decomp = block_decompose_square(A, [True, False, True, False])
>>> decomp.AB.to_dense()  # tensor([[2., 0.], [0., 7.]])
>>> b_A, b_B = decompose_vector(decomp, torch.arange(4.))
>>> reassemble_vector(decomp, b_A, b_B)  # tensor([0., 1., 2., 3.])
"""

import torch
from dataclasses import dataclass
from typing import Optional, Tuple, Union, Sequence

from .check import check_square, check_vector, check_same_trailing, DimensionMismatchError
from .partition import BlockPartition, build_partition
from .sparse_tensor import SparseTensor, as_sparse_tensor
from .sort import coalesce_coo


MatrixLike = Union[SparseTensor, torch.Tensor]


@dataclass(frozen=True, eq=False)
class BlockDecomposition:
    """
    The four blocks of a square matrix and the partition that induced them.

    Attributes
    ----------
    partition : BlockPartition
        Index bookkeeping (original <-> subset numbering).
    AA : SparseTensor
        [|A|, |A|] rows and columns in A.
    AB : SparseTensor
        [|A|, |B|] rows in A, columns in B.
    BA : SparseTensor
        [|B|, |A|] rows in B, columns in A.
    BB : SparseTensor or None
        [|B|, |B|] rows and columns in B, ``None`` when it was not built.
        A missing BB is *not* the zero matrix.
    """
    partition: BlockPartition
    AA: SparseTensor
    AB: SparseTensor
    BA: SparseTensor
    BB: Optional[SparseTensor] = None

    @property
    def orig_inds_a(self) -> torch.Tensor:
        return self.partition.orig_inds_a

    @property
    def orig_inds_b(self) -> torch.Tensor:
        return self.partition.orig_inds_b

    @property
    def new_inds(self) -> torch.Tensor:
        return self.partition.new_inds

    @property
    def is_a(self) -> torch.Tensor:
        return self.partition.is_a

    @property
    def has_bb(self) -> bool:
        return self.BB is not None


def _as_partition(part: Union[BlockDecomposition, BlockPartition]) -> BlockPartition:
    if isinstance(part, BlockDecomposition):
        return part.partition
    if isinstance(part, BlockPartition):
        return part
    raise TypeError(f"Expected a BlockDecomposition or a BlockPartition, got {type(part).__name__}")


def _extract_block(val, row, col, selected, shape) -> SparseTensor:
    return SparseTensor(*coalesce_coo(val[selected], row[selected], col[selected], shape))


def decompose_matrix(
    A: MatrixLike,
    partition: BlockPartition,
    build_bb: bool = True,
) -> BlockDecomposition:
    """
    Split a square sparse matrix into the blocks induced by ``partition``.

    Every stored entry ``(i, j, v)`` goes to exactly one block, at position
    ``(new_inds[i], new_inds[j])``. Entries landing on the same position are
    summed.

    Parameters
    ----------
    A : SparseTensor or torch.Tensor
        [N, N, ...block] square matrix, a ``SparseTensor`` or a PyTorch
        sparse COO/CSR tensor.
    partition : BlockPartition
        Partition of ``{0, ..., N-1}``, see :func:`build_partition`.
    build_bb : bool, optional
        Whether to build the B-B block. Default: True. Only BB is affected,
        AA, AB and BA are always built.

    Returns
    -------
    BlockDecomposition

    Raises
    ------
    DimensionMismatchError
        If ``A`` is not square or its dimension is not ``partition.n``.
    """
    A = as_sparse_tensor(A)
    check_square(A.shape)
    if A.sparse_shape[0] != partition.n:
        raise DimensionMismatchError("A", A.shape, f"({partition.n}, {partition.n})")

    partition = partition.to(A.device)
    val, row, col, _ = A.coo()
    block_shape = A.block_shape
    size_a, size_b = partition.size_a, partition.size_b

    row_in_a = partition.is_a[row]
    col_in_a = partition.is_a[col]
    new_row = partition.new_inds[row]
    new_col = partition.new_inds[col]

    AA = _extract_block(val, new_row, new_col, row_in_a & col_in_a, (size_a, size_a) + block_shape)
    AB = _extract_block(val, new_row, new_col, row_in_a & ~col_in_a, (size_a, size_b) + block_shape)
    BA = _extract_block(val, new_row, new_col, ~row_in_a & col_in_a, (size_b, size_a) + block_shape)
    BB = None
    if build_bb:
        BB = _extract_block(val, new_row, new_col, ~row_in_a & ~col_in_a, (size_b, size_b) + block_shape)

    return BlockDecomposition(partition, AA, AB, BA, BB)


def block_decompose_square(
    A: MatrixLike,
    a_set: Union[torch.Tensor, Sequence[bool]],
    build_bb: bool = True,
) -> BlockDecomposition:
    """
    Partition the unknowns of ``A`` with ``a_set`` and split ``A`` accordingly.

    Shorthand for ``decompose_matrix(A, build_partition(N, a_set), build_bb)``.

    Parameters
    ----------
    A : SparseTensor or torch.Tensor
        [N, N, ...block] square matrix.
    a_set : torch.Tensor or Sequence[bool]
        [N] membership mask, True for the unknowns in A.
    build_bb : bool, optional
        Whether to build the B-B block. Default: True.

    Returns
    -------
    BlockDecomposition

    Raises
    ------
    DimensionMismatchError
        If ``A`` is not square.
    SizeMismatchError
        If ``a_set`` does not have length N.
    """
    A = as_sparse_tensor(A)
    check_square(A.shape)
    partition = build_partition(A.sparse_shape[0], a_set, device=A.device)
    return decompose_matrix(A, partition, build_bb=build_bb)


def decompose_vector(
    decomp: Union[BlockDecomposition, BlockPartition],
    vec: torch.Tensor,
) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Split a vector of the original system into its A and B parts.

    Parameters
    ----------
    decomp : BlockDecomposition or BlockPartition
    vec : torch.Tensor
        [N, ...] vector (or several vectors stacked along dim 1).

    Returns
    -------
    vec_a : torch.Tensor
        [|A|, ...] entries of ``vec`` at ``orig_inds_a``.
    vec_b : torch.Tensor
        [|B|, ...] entries of ``vec`` at ``orig_inds_b``.
    """
    partition = _as_partition(decomp)
    vec = torch.as_tensor(vec)
    check_vector(vec, partition.n, "vec")

    partition = partition.to(vec.device)
    return vec[partition.orig_inds_a], vec[partition.orig_inds_b]


def reassemble_vector(
    decomp: Union[BlockDecomposition, BlockPartition],
    vec_a: torch.Tensor,
    vec_b: torch.Tensor,
) -> torch.Tensor:
    """
    Inverse of :func:`decompose_vector`.

    Parameters
    ----------
    decomp : BlockDecomposition or BlockPartition
    vec_a : torch.Tensor
        [|A|, ...] values of the A unknowns.
    vec_b : torch.Tensor
        [|B|, ...] values of the B unknowns, same trailing shape as ``vec_a``.

    Returns
    -------
    torch.Tensor
        [N, ...] vector in the original numbering, promoted to the common dtype of
        ``vec_a`` and ``vec_b`` so no value is rounded.
    """
    partition = _as_partition(decomp)
    vec_a = torch.as_tensor(vec_a)
    vec_b = torch.as_tensor(vec_b, device=vec_a.device)
    check_vector(vec_a, partition.size_a, "vec_a")
    check_vector(vec_b, partition.size_b, "vec_b")
    check_same_trailing([vec_a, vec_b], ["vec_a", "vec_b"])

    partition = partition.to(vec_a.device)
    dtype = torch.result_type(vec_a, vec_b)
    vec = vec_a.new_empty((partition.n,) + tuple(vec_a.shape[1:]), dtype=dtype)
    vec[partition.orig_inds_a] = vec_a.to(dtype)
    vec[partition.orig_inds_b] = vec_b.to(dtype)
    return vec


def reassemble_matrix(decomp: BlockDecomposition) -> SparseTensor:
    """
    Rebuild the original N x N matrix from its four blocks.

    The result is coalesced: coincident entries of the source matrix appear
    once, with their sum.

    Raises
    ------
    ValueError
        If the B-B block was not built.
    """
    if decomp.BB is None:
        raise ValueError("Cannot reassemble a decomposition built with build_bb=False")

    partition = decomp.partition
    n = partition.n
    vals, rows, cols = [], [], []
    for block, row_inds, col_inds in (
        (decomp.AA, partition.orig_inds_a, partition.orig_inds_a),
        (decomp.AB, partition.orig_inds_a, partition.orig_inds_b),
        (decomp.BA, partition.orig_inds_b, partition.orig_inds_a),
        (decomp.BB, partition.orig_inds_b, partition.orig_inds_b),
    ):
        vals.append(block.values)
        rows.append(row_inds[block.row_indices])
        cols.append(col_inds[block.col_indices])

    shape = (n, n) + decomp.AA.block_shape
    return SparseTensor(*coalesce_coo(torch.cat(vals), torch.cat(rows), torch.cat(cols), shape))
