#!/usr/bin/env python
"""
Basic Usage Examples for torch-sbd

This example demonstrates:
1. Building a partition from a boolean mask
2. Splitting a sparse matrix into AA / AB / BA / BB blocks
3. Splitting and merging vectors
4. Eliminating fixed (Dirichlet) unknowns from a 2D Poisson system
"""

import torch
from torch_sbd import (
    SparseTensor,
    build_partition,
    block_decompose_square,
    decompose_vector,
    reassemble_vector,
    reassemble_matrix,
    shift_diagonal,
    check_symmetric,
)


def poisson_2d(n: int, dtype=torch.float64) -> SparseTensor:
    """5-point stencil on an n x n grid."""
    N = n * n
    idx = torch.arange(N)
    i, j = idx // n, idx % n

    rows, cols, vals = [idx], [idx], [torch.full((N,), 4.0, dtype=dtype)]
    for mask, offset in [(j > 0, -1), (j < n - 1, 1), (i > 0, -n), (i < n - 1, n)]:
        rows.append(idx[mask])
        cols.append(idx[mask] + offset)
        vals.append(torch.full((int(mask.sum()),), -1.0, dtype=dtype))

    return SparseTensor(torch.cat(vals), torch.cat(rows), torch.cat(cols), (N, N))


# =============================================================================
# 1. Partition
# =============================================================================

def example_1_partition():
    """Rank unknowns inside their own subset."""
    part = build_partition(4, [False, True, False, False])
    print(part)
    print(f"orig_inds_a = {part.orig_inds_a.tolist()}")
    print(f"orig_inds_b = {part.orig_inds_b.tolist()}")
    print(f"new_inds    = {part.new_inds.tolist()}")
    return part


# =============================================================================
# 2. Block extraction
# =============================================================================

def example_2_blocks():
    """Split a 4x4 matrix and inspect every block."""
    A = SparseTensor.from_dense(torch.tensor([[1.0, 2.0, 0.0, 0.0],
                                              [3.0, 4.0, 5.0, 0.0],
                                              [0.0, 6.0, 7.0, 8.0],
                                              [0.0, 0.0, 9.0, 10.0]], dtype=torch.float64))
    decomp = A.block_decompose([False, True, False, False])

    for name in ["AA", "AB", "BA", "BB"]:
        block = getattr(decomp, name)
        print(f"{name} {tuple(block.shape)}:\n{block.to_dense()}")

    # blocks put back into the original numbering give A again
    assert torch.equal(reassemble_matrix(decomp).to_dense(), A.to_dense())
    return decomp


# =============================================================================
# 3. Vectors
# =============================================================================

def example_3_vectors():
    """Gather the A and B parts of a vector, then scatter them back."""
    decomp = example_2_blocks()
    x = torch.tensor([10.0, 20.0, 30.0, 40.0], dtype=torch.float64)

    x_A, x_B = decompose_vector(decomp, x)
    print(f"x_A = {x_A.tolist()}, x_B = {x_B.tolist()}")

    x_back = reassemble_vector(decomp, x_A, x_B)
    assert torch.equal(x_back, x)


# =============================================================================
# 4. Dirichlet elimination
# =============================================================================

def example_4_dirichlet():
    """
    Solve A x = b with boundary values fixed.

    With A the free unknowns and B the fixed ones,
    AA x_A = b_A - AB x_B.
    """
    n = 16
    A = poisson_2d(n)
    check_symmetric(A)

    idx = torch.arange(n * n)
    i, j = idx // n, idx % n
    interior = (i > 0) & (i < n - 1) & (j > 0) & (j < n - 1)

    decomp = block_decompose_square(A, interior, build_bb=False)
    print(f"AA: {decomp.AA}")
    print(f"AB: {decomp.AB}")

    b = torch.ones(n * n, dtype=torch.float64)
    x_fixed = torch.where(i == 0, 1.0, 0.0).to(torch.float64)

    b_A, _ = decompose_vector(decomp, b)
    _, x_B = decompose_vector(decomp, x_fixed)

    rhs = b_A - decomp.AB.to_dense() @ x_B
    x_A = torch.linalg.solve(decomp.AA.to_dense(), rhs)

    x = reassemble_vector(decomp, x_A, x_B)
    residual = (A.to_dense() @ x - b)[interior]
    print(f"max interior residual = {residual.abs().max().item():.2e}")

    # a small diagonal shift keeps near-singular blocks factorizable
    AA_shifted = shift_diagonal(decomp.AA)
    print(f"AA shifted: {AA_shifted}")
    return x


if __name__ == "__main__":
    print("=" * 60)
    print("1. Partition")
    print("=" * 60)
    example_1_partition()

    print("\n" + "=" * 60)
    print("2-3. Blocks and vectors")
    print("=" * 60)
    example_3_vectors()

    print("\n" + "=" * 60)
    print("4. Dirichlet elimination")
    print("=" * 60)
    example_4_dirichlet()
