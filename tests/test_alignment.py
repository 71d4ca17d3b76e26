# tests/test_alignment.py
"""Test quaternion-based structural alignment."""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from molsimkit import (
    Superposition,
    align,
    align_frames,
    align_inplace,
    center_of_mass,
    rmsd,
    rmsd_frames,
    rotation_from_quaternion,
    superpose,
)
from molsimkit.exceptions import (
    DegenerateStructureError,
    DimensionMismatchError,
    DomainError,
)


def kabsch_rmsd(x, y):
    """Minimal RMSD via the SVD (Kabsch) solution, used as an independent reference."""
    xc = x - x.mean(axis=0)
    yc = y - y.mean(axis=0)
    h = xc.T @ yc
    u, _, vt = np.linalg.svd(h)
    d = np.sign(np.linalg.det(vt.T @ u.T))
    r = vt.T @ np.diag([1.0, 1.0, d]) @ u.T
    return rmsd(xc @ r.T, yc)


@pytest.fixture
def rigid_pair(rng):
    """A point set and a rotated, translated copy of it."""
    x = rng.random((10, 3))
    rot = Rotation.random(random_state=1).as_matrix()
    y = x @ rot.T + np.array([45.0, -15.0, 31.5])
    return x, y


def test_align_rigid_motion(rigid_pair, backend):
    x, y = rigid_pair
    aligned = align(x, y)
    assert rmsd(aligned, y) < 1e-5


@pytest.mark.parametrize("seed", range(5))
def test_align_random_rotations(rng, seed):
    x = rng.normal(scale=5.0, size=(30, 3))
    rot = Rotation.random(random_state=seed)
    y = rot.apply(x) + rng.normal(scale=20.0, size=3)

    result = superpose(x, y)

    assert result.rmsd < 1e-6
    assert np.allclose(result.rotation, rot.as_matrix(), atol=1e-6)


def test_align_does_not_modify_inputs(rigid_pair):
    x, y = rigid_pair
    x_before, y_before = x.copy(), y.copy()

    align(x, y)
    superpose(x, y)

    assert np.array_equal(x, x_before)
    assert np.array_equal(y, y_before)


def test_aligned_shares_reference_center(rigid_pair):
    x, y = rigid_pair
    assert np.allclose(center_of_mass(align(x, y)), center_of_mass(y))


def test_align_accepts_nested_lists(rigid_pair):
    x, y = rigid_pair
    aligned = align(x.tolist(), y.tolist())
    assert isinstance(aligned, np.ndarray)
    assert rmsd(aligned, y) < 1e-5


def test_align_inplace_array(rigid_pair, backend):
    x, y = rigid_pair
    y_before = y.copy()
    original_id = id(x)

    result = align_inplace(x, y)

    assert result is x
    assert id(x) == original_id
    assert rmsd(x, y) < 1e-5
    assert np.array_equal(y, y_before)


def test_align_inplace_list_of_points(rigid_pair):
    x, y = rigid_pair
    points = [p.copy() for p in x]
    rows = list(points)

    align_inplace(points, y)

    # ndarray elements are updated in place
    assert all(a is b for a, b in zip(points, rows))
    assert rmsd(np.array(points), y) < 1e-5


def test_align_inplace_list_of_lists(rigid_pair):
    x, y = rigid_pair
    points = x.tolist()

    align_inplace(points, y)

    assert all(isinstance(p, list) for p in points)
    assert rmsd(np.array(points), y) < 1e-5


def test_align_inplace_matches_align(rigid_pair):
    x, y = rigid_pair
    expected = align(x, y)
    align_inplace(x, y)
    assert np.allclose(x, expected)


def test_align_inplace_rejects_immutable_targets(rigid_pair):
    x, y = rigid_pair
    with pytest.raises(TypeError):
        align_inplace(np.round(x * 100).astype(int), y)
    with pytest.raises(TypeError):
        align_inplace(tuple(map(tuple, x)), y)

    readonly = x.copy()
    readonly.flags.writeable = False
    with pytest.raises(TypeError):
        align_inplace(readonly, y)


def test_mass_weighted_alignment(rng):
    x = rng.normal(size=(12, 3))
    mass = rng.uniform(1.0, 16.0, size=12)
    rot = Rotation.random(random_state=3)
    y = rot.apply(x) + np.array([1.0, 2.0, 3.0])

    aligned = align(x, y, mass)

    assert rmsd(aligned, y) < 1e-5
    assert np.allclose(center_of_mass(aligned, mass), center_of_mass(y, mass))


def test_mass_length_mismatch(rigid_pair):
    x, y = rigid_pair
    with pytest.raises(DimensionMismatchError):
        align(x, y, np.ones(len(x) + 1))


def test_matches_kabsch_for_noisy_data(rng):
    x = rng.normal(scale=3.0, size=(40, 3))
    y = Rotation.random(random_state=7).apply(x) + rng.normal(scale=0.3, size=x.shape)

    result = superpose(x, y)

    assert result.rmsd == pytest.approx(kabsch_rmsd(x, y), abs=1e-8)
    assert rmsd(align(x, y), y) <= rmsd(x, y)


def test_minimum_eigenvalue_is_residual(rng):
    x = rng.normal(size=(20, 3))
    y = Rotation.random(random_state=11).apply(x) + rng.normal(scale=0.1, size=x.shape)

    result = superpose(x, y)

    assert np.all(np.diff(result.eigenvalues) >= 0)
    assert result.rmsd == pytest.approx(np.sqrt(max(result.eigenvalues[0], 0.0) / len(x)), abs=1e-8)


def test_superposition_is_proper_rotation(rigid_pair):
    x, y = rigid_pair
    result = superpose(x, y)

    assert isinstance(result, Superposition)
    assert np.linalg.det(result.rotation) == pytest.approx(1.0)
    assert np.allclose(result.rotation @ result.rotation.T, np.eye(3))


def test_superposition_apply_and_translation(rigid_pair):
    x, y = rigid_pair
    result = superpose(x, y)

    via_translation = x @ result.rotation.T + result.translation
    assert np.allclose(result.apply(x), via_translation)
    assert np.allclose(result.as_rotation().apply(x) + result.translation, via_translation)


def test_mirror_image_is_not_reflected(rng):
    x = rng.normal(size=(15, 3))
    mirrored = x * np.array([1.0, 1.0, -1.0])

    result = superpose(x, mirrored)

    assert np.linalg.det(result.rotation) == pytest.approx(1.0)
    assert result.rmsd > 1e-3


def test_rotation_from_quaternion_is_conjugate_convention(rng):
    q = rng.normal(size=4)
    q /= np.linalg.norm(q)

    # scipy uses scalar-last (x, y, z, w) quaternions
    conjugate = Rotation.from_quat([-q[1], -q[2], -q[3], q[0]])

    assert np.allclose(rotation_from_quaternion(q), conjugate.as_matrix())


def test_rotation_from_quaternion_quarter_turn():
    q = np.array([1.0, 0.0, 0.0, -1.0]) / np.sqrt(2.0)
    R = rotation_from_quaternion(q)
    assert np.allclose(R @ [1.0, 0.0, 0.0], [0.0, 1.0, 0.0])


def test_rotation_from_quaternion_normalises_and_validates():
    assert np.allclose(rotation_from_quaternion([2.0, 0.0, 0.0, 0.0]), np.eye(3))
    with pytest.raises(DimensionMismatchError):
        rotation_from_quaternion([1.0, 0.0, 0.0])
    with pytest.raises(DomainError):
        rotation_from_quaternion([0.0, 0.0, 0.0, 0.0])


def test_align_length_mismatch(rigid_pair):
    x, y = rigid_pair
    with pytest.raises(DimensionMismatchError):
        align(x, y[:-1])


def test_align_requires_3d_points():
    x = np.random.default_rng(0).random((5, 2))
    with pytest.raises(DimensionMismatchError):
        align(x, x)


def test_align_empty():
    with pytest.raises(DomainError):
        align(np.empty((0, 3)), np.empty((0, 3)))


def test_colinear_points_are_degenerate():
    x = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
    y = np.array([[0.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 2.0, 0.0], [0.0, 3.0, 0.0]])
    with pytest.raises(DegenerateStructureError):
        align(x, y)


def test_two_points_are_degenerate(rng):
    x = rng.normal(size=(2, 3))
    with pytest.raises(DegenerateStructureError):
        align(x, Rotation.random(random_state=2).apply(x))


def test_coincident_points_are_degenerate():
    x = np.ones((4, 3))
    with pytest.raises(DegenerateStructureError):
        align(x, x + 1.0)
    # degenerate input is a domain problem
    with pytest.raises(DomainError):
        align(x, x)


def test_align_frames(rng):
    reference = rng.normal(size=(8, 3))
    frames = np.array([
        Rotation.random(random_state=i).apply(reference) + i
        for i in range(4)
    ])

    aligned = align_frames(frames, reference)

    assert aligned.shape == frames.shape
    assert np.allclose(aligned, reference[None, :, :], atol=1e-6)


def test_rmsd_frames(rng):
    reference = rng.normal(size=(8, 3))
    frames = np.array([reference + shift for shift in (0.0, 1.0, 2.0)])

    values = rmsd_frames(frames, reference)

    assert values.shape == (3,)
    assert np.allclose(values, [0.0, np.sqrt(3.0), 2.0 * np.sqrt(3.0)])


def test_frames_need_a_stack(rng):
    with pytest.raises(ValueError):
        rmsd_frames(np.zeros(3), np.zeros((1, 3)))
