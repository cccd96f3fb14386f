"""
Tests for the helper constructions and sanity checks.
"""

import pytest
import torch
from itertools import product
import sys

sys.path.insert(0, "..")
from torch_sbd import (
    SparseTensor,
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
    DimensionMismatchError,
    ValidationError,
)
from torch_sbd import random as rnd


DEVICES = ['cpu'] + (['cuda'] if torch.cuda.is_available() else [])


def random_sparse(m, n, density=0.3, seed=0, dtype=torch.float64):
    g = torch.Generator().manual_seed(seed)
    A = torch.randn(m, n, generator=g, dtype=dtype)
    A[torch.rand(m, n, generator=g) > density] = 0
    return SparseTensor.from_dense(A)


# ============================================================================
# Constructions
# ============================================================================

class TestConstructions:

    @pytest.mark.parametrize(['n', 'dtype', 'device'],
                             product([0, 1, 10], [torch.float32, torch.float64, torch.complex64], DEVICES))
    def test_identity(self, n, dtype, device):
        I = identity_matrix(n, dtype=dtype, device=device)
        assert I.shape == (n, n)
        assert I.dtype == dtype
        assert I.nnz == n
        assert torch.equal(I.to_dense(), torch.eye(n, dtype=dtype, device=device))

    def test_shift_diagonal_default(self):
        A = random_sparse(6, 6, seed=1)
        S = shift_diagonal(A)

        expected = A.to_dense() + DEFAULT_DIAGONAL_SHIFT * torch.eye(6, dtype=torch.float64)
        torch.testing.assert_close(S.to_dense(), expected)
        assert S.nnz == S.coalesce().nnz

    def test_shift_diagonal_missing_entries(self):
        A = SparseTensor.from_coo([1.0], [0], [1], (3, 3), dtype=torch.float64)
        S = shift_diagonal(A, 2.0)
        assert S.to_dense().tolist() == [[2.0, 1.0, 0.0], [0.0, 2.0, 0.0], [0.0, 0.0, 2.0]]

    def test_shift_diagonal_does_not_modify_input(self):
        A = random_sparse(4, 4, seed=2)
        before = A.to_dense().clone()
        shift_diagonal(A, 1.0)
        assert torch.equal(A.to_dense(), before)

    def test_shift_diagonal_not_square(self):
        with pytest.raises(DimensionMismatchError):
            shift_diagonal(random_sparse(3, 4))

    def test_vertical_stack(self):
        A = random_sparse(3, 5, seed=3)
        B = random_sparse(4, 5, seed=4)
        C = vertical_stack([A, B.to_torch_sparse()])

        assert C.shape == (7, 5)
        assert torch.equal(C.to_dense(), torch.cat([A.to_dense(), B.to_dense()], dim=0))

    def test_horizontal_stack(self):
        A = random_sparse(3, 2, seed=5)
        B = random_sparse(3, 4, seed=6)
        C = random_sparse(3, 1, seed=7)
        D = horizontal_stack([A, B, C])

        assert D.shape == (3, 7)
        assert torch.equal(D.to_dense(), torch.cat([A.to_dense(), B.to_dense(), C.to_dense()], dim=1))

    def test_stack_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            vertical_stack([random_sparse(3, 5), random_sparse(3, 4)])
        with pytest.raises(DimensionMismatchError):
            horizontal_stack([random_sparse(3, 5), random_sparse(2, 5)])
        with pytest.raises(ValueError):
            vertical_stack([])

    def test_stack_then_decompose(self):
        """[[AA, AB], [BA, BB]] stacked back equals the matrix in A-then-B order."""
        A = random_sparse(8, 8, seed=8)
        mask = torch.tensor([True, False, False, True, True, False, True, False])
        decomp = A.block_decompose(mask)

        top = horizontal_stack([decomp.AA, decomp.AB])
        bottom = horizontal_stack([decomp.BA, decomp.BB])
        permuted = vertical_stack([top, bottom])

        order = torch.cat([decomp.orig_inds_a, decomp.orig_inds_b])
        assert torch.equal(permuted.to_dense(), A.to_dense()[order][:, order])


# ============================================================================
# Complex -> real
# ============================================================================

class TestComplexToReal:

    def test_block_layout(self):
        A = SparseTensor.from_coo([1.0 + 2.0j], [0], [1], (1, 2), dtype=torch.complex128)
        R = complex_to_real(A)

        assert R.shape == (2, 4)
        assert R.dtype == torch.float64
        assert R.to_dense().tolist() == [[0.0, 0.0, 1.0, -2.0], [0.0, 0.0, 2.0, 1.0]]

    @pytest.mark.parametrize('n', [1, 5, 20])
    def test_matvec_consistency(self, n):
        g = torch.Generator().manual_seed(n)
        A_dense = torch.randn(n, n, dtype=torch.complex128, generator=g)
        x = torch.randn(n, dtype=torch.complex128, generator=g)

        R = complex_to_real(SparseTensor.from_dense(A_dense)).to_dense()
        torch.testing.assert_close(R @ complex_to_real_vector(x), complex_to_real_vector(A_dense @ x))

    def test_vector_layout(self):
        v = torch.tensor([1.0 + 2.0j, 3.0 - 4.0j])
        assert complex_to_real_vector(v).tolist() == [1.0, 2.0, 3.0, -4.0]

    def test_vector_multiple_columns(self):
        v = torch.tensor([[1.0 + 2.0j, 5.0j], [3.0, -1.0 - 1.0j]])
        out = complex_to_real_vector(v)
        assert out.shape == (4, 2)
        assert out.tolist() == [[1.0, 0.0], [2.0, 5.0], [3.0, -1.0], [0.0, -1.0]]

    def test_real_input_warns(self):
        A = SparseTensor.from_coo([3.0], [0], [0], (1, 1))
        with pytest.warns(UserWarning):
            R = complex_to_real(A)
        assert R.to_dense().tolist() == [[3.0, 0.0], [0.0, 3.0]]

        with pytest.warns(UserWarning):
            v = complex_to_real_vector(torch.tensor([1.0, 2.0]))
        assert v.tolist() == [1.0, 0.0, 2.0, 0.0]


# ============================================================================
# Sanity checks
# ============================================================================

class TestChecks:

    def test_check_finite_passes(self):
        check_finite(random_sparse(5, 5))
        check_finite(torch.randn(3, 3))

    @pytest.mark.parametrize('bad', [float('nan'), float('inf'), -float('inf')])
    def test_check_finite_sparse(self, bad):
        A = SparseTensor.from_coo([1.0, bad], [0, 2], [1, 1], (3, 3))
        with pytest.raises(ValidationError, match=r"\(2, 1\)"):
            check_finite(A)

    def test_check_finite_dense(self):
        A = torch.zeros(3, 4)
        A[1, 2] = float('nan')
        with pytest.raises(ValidationError, match=r"\(1, 2\)"):
            check_finite(A)

    def test_check_finite_block(self):
        val = torch.ones(2, 2, 2)
        val[1, 0, 1] = float('inf')
        A = SparseTensor(val, torch.tensor([0, 1]), torch.tensor([0, 0]), (2, 2, 2, 2))
        with pytest.raises(ValidationError, match=r"\(1, 0\)"):
            check_finite(A)

    def test_check_symmetric_passes(self):
        g = torch.Generator().manual_seed(0)
        val, row, col, shape = rnd.coo((30, 30), 0.1, symmetric=True, generator=g)
        check_symmetric(SparseTensor(val, row, col, shape))

    def test_check_symmetric_value(self):
        A = SparseTensor.from_coo([1.0, 1.5, 4.0], [0, 1, 1], [1, 0, 1], (2, 2))
        with pytest.raises(ValidationError, match="not symmetric"):
            check_symmetric(A)

    def test_check_symmetric_missing_mirror(self):
        A = SparseTensor.from_coo([1.0, 4.0], [0, 1], [1, 1], (2, 2))
        with pytest.raises(ValidationError):
            check_symmetric(A)

    def test_check_symmetric_tolerance(self):
        A = SparseTensor.from_coo([1.0, 1.0 + 1e-12, 2.0], [0, 1, 1], [1, 0, 1], (2, 2), dtype=torch.float64)
        # derived tolerance is 1e-8 * mean(|A|)
        check_symmetric(A)
        check_symmetric(A, absolute_eps=1e-10)
        with pytest.raises(ValidationError):
            check_symmetric(A, absolute_eps=0.0)

    def test_check_symmetric_not_square(self):
        with pytest.raises(DimensionMismatchError):
            check_symmetric(random_sparse(2, 3))

    def test_check_symmetric_empty(self):
        check_symmetric(SparseTensor.from_coo([], [], [], (3, 3), dtype=torch.float64))

    def test_check_hermitian(self):
        A = SparseTensor.from_coo(
            [2.0, 1.0 + 1.0j, 1.0 - 1.0j, 3.0],
            [0, 0, 1, 1],
            [0, 1, 0, 1],
            (2, 2),
            dtype=torch.complex128,
        )
        check_hermitian(A)
        with pytest.raises(ValidationError, match="not symmetric"):
            check_symmetric(A)

    def test_check_hermitian_complex_diagonal(self):
        A = SparseTensor.from_coo([1.0 + 1.0j], [0], [0], (1, 1), dtype=torch.complex128)
        check_symmetric(A)
        with pytest.raises(ValidationError, match="not hermitian"):
            check_hermitian(A)

    def test_check_hermitian_real(self):
        val, row, col, shape = rnd.coo((10, 10), 0.3, symmetric=True,
                                       generator=torch.Generator().manual_seed(1))
        check_hermitian(SparseTensor(val, row, col, shape))
