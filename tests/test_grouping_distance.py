"""Tests for fingerprint distance metrics."""

import numpy as np
import pytest
from hypothesis import given, strategies as st

from photolot.grouping.distance import (
    LengthMismatchError,
    hamming_distance,
    similarity,
    similarity_matrix,
)
from photolot.grouping.hash import from_bits

from conftest import fingerprint_from_int

fingerprints_64 = st.integers(min_value=0, max_value=2**64 - 1).map(fingerprint_from_int)


class TestHammingDistance:
    def test_identical(self):
        fingerprint = from_bits("1010" * 16)
        assert hamming_distance(fingerprint, fingerprint) == 0

    def test_counts_differing_bits(self):
        a = from_bits("1111000011110000" * 4)
        b = from_bits("1111000011110001" * 4)

        distance = hamming_distance(a, b)
        assert distance == 4
        assert isinstance(distance, int)

    def test_length_mismatch(self):
        """Fingerprints of unequal length fail loudly."""
        with pytest.raises(LengthMismatchError):
            hamming_distance(from_bits("1111"), from_bits("1" * 64))

    @given(fingerprints_64, fingerprints_64)
    def test_symmetric(self, a, b):
        assert hamming_distance(a, b) == hamming_distance(b, a)


class TestSimilarity:
    def test_identical_is_one(self):
        fingerprint = from_bits("1100" * 16)
        assert similarity(fingerprint, fingerprint) == 1.0

    def test_complement_is_zero(self):
        bits = "1110010100001111" * 4
        complement = "".join("0" if ch == "1" else "1" for ch in bits)

        assert similarity(from_bits(bits), from_bits(complement)) == 0.0

    def test_partial_overlap(self):
        a = from_bits("0" * 64)
        b = from_bits("1" * 16 + "0" * 48)

        assert similarity(a, b) == 0.75

    def test_length_mismatch(self):
        with pytest.raises(LengthMismatchError):
            similarity(from_bits("0" * 16), from_bits("0" * 64))

    @given(fingerprints_64)
    def test_self_similarity(self, fingerprint):
        assert similarity(fingerprint, fingerprint) == 1.0

    @given(fingerprints_64, fingerprints_64)
    def test_range_and_symmetry(self, a, b):
        score = similarity(a, b)
        assert 0.0 <= score <= 1.0
        assert score == similarity(b, a)


class TestSimilarityMatrix:
    def test_empty(self):
        assert similarity_matrix([]).shape == (0, 0)

    @given(st.lists(fingerprints_64, min_size=1, max_size=8))
    def test_matches_pairwise_similarity(self, hashes):
        matrix = similarity_matrix(hashes)

        assert matrix.shape == (len(hashes), len(hashes))
        assert np.all(np.diag(matrix) == 1.0)
        assert np.array_equal(matrix, matrix.T)
        for i, a in enumerate(hashes):
            for j, b in enumerate(hashes):
                assert matrix[i, j] == pytest.approx(similarity(a, b))

    def test_mixed_lengths(self):
        with pytest.raises(LengthMismatchError):
            similarity_matrix([from_bits("0" * 64), from_bits("0" * 16)])
