# tests/test_dihedral.py
"""Test dihedral angles."""

import numpy as np
import pytest

from molsimkit import dihedral, dihedrals
from molsimkit.exceptions import DegenerateStructureError, DimensionMismatchError, DomainError

V1 = [[-8.483, -14.912, -6.726], [-5.113, -13.737, -5.466],
      [-3.903, -11.262, -8.062], [-1.162, -9.64, -6.015]]
V2 = [[-9.229, -14.861, -5.481], [-8.483, -14.912, -6.726],
      [-7.227, -14.047, -6.599], [-7.083, -13.048, -7.303]]


def test_dihedral_reference_values(backend):
    d = dihedral(
        [-9.229, -14.861, -5.481],
        [-10.048, -15.427, -5.569],
        [-9.488, -13.913, -5.295],
        [-8.652, -15.208, -4.741],
    )
    assert d == pytest.approx(-34.57, abs=1e-2)
    assert dihedral(*V1) == pytest.approx(164.43, abs=1e-2)
    assert dihedral(*V2) == pytest.approx(-115.83, abs=1e-2)


def test_dihedral_radians():
    d = dihedral(*V2)
    assert dihedral(*V2, degrees=False) == pytest.approx(np.deg2rad(d))


def test_dihedral_sequence_form():
    assert dihedral(V2) == pytest.approx(dihedral(*V2))
    assert dihedral(np.array(V2)) == pytest.approx(dihedral(*V2))
    assert dihedral(tuple(np.array(p) for p in V2)) == pytest.approx(dihedral(*V2))


def test_dihedral_returns_float():
    assert isinstance(dihedral(*V1), float)


def test_dihedrals_values(backend):
    ds = dihedrals([V1, V2])
    assert np.allclose(ds, [164.43481280739516, -115.82544005374316], atol=1e-6)


def test_dihedrals_repeated_quadruple():
    ds = dihedrals([V1 for _ in range(10)])
    assert ds.shape == (10,)
    assert np.allclose(ds, dihedral(V1))


def test_dihedrals_empty():
    assert dihedrals([]).shape == (0,)


def test_dihedrals_radians():
    ds = dihedrals([V1, V2], degrees=False)
    assert np.allclose(np.rad2deg(ds), dihedrals([V1, V2]))


def test_trans_cis_and_right_angle():
    p1, p2, p3 = [1.0, 0.0, 0.0], [0.0, 0.0, 0.0], [0.0, 0.0, 1.0]

    # the half-turn is reported as +180, never -180
    assert dihedral(p1, p2, p3, [-1.0, 0.0, 1.0]) == pytest.approx(180.0)
    assert dihedral(p1, p2, p3, [1.0, 0.0, 1.0]) == pytest.approx(0.0)
    assert dihedral(p1, p2, p3, [0.0, 1.0, 1.0]) == pytest.approx(90.0)
    assert dihedral(p1, p2, p3, [0.0, -1.0, 1.0]) == pytest.approx(-90.0)


def test_dihedral_range(rng, backend):
    quads = rng.normal(size=(500, 4, 3))
    ds = dihedrals(quads)
    assert np.all(ds > -180.0)
    assert np.all(ds <= 180.0)


def test_dihedral_invariant_under_rigid_motion(rng):
    from scipy.spatial.transform import Rotation

    quads = rng.normal(size=(20, 4, 3))
    rot = Rotation.random(random_state=5)
    moved = rot.apply(quads.reshape(-1, 3)).reshape(quads.shape) + 7.5

    assert np.allclose(dihedrals(moved), dihedrals(quads), atol=1e-8)


def test_mirror_image_flips_sign(rng):
    quads = rng.normal(size=(20, 4, 3))
    mirrored = quads * np.array([1.0, 1.0, -1.0])
    assert np.allclose(dihedrals(mirrored), -dihedrals(quads), atol=1e-8)


def test_colinear_points_raise():
    with pytest.raises(DegenerateStructureError):
        dihedral([0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0], [2.0, 1.0, 0.0])
    with pytest.raises(DegenerateStructureError, match=r"\[1\]"):
        dihedrals([V1, [[0.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 0.0], [2.0, 1.0, 0.0]]])


def test_wrong_number_of_points():
    with pytest.raises(DimensionMismatchError):
        dihedral(V1[:3])
    with pytest.raises(DimensionMismatchError):
        dihedral(*V1[:3])
    with pytest.raises(DimensionMismatchError):
        dihedrals([V1[:3]])


def test_points_must_be_3d():
    with pytest.raises(DimensionMismatchError):
        dihedral([0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [2.0, 1.0])
    with pytest.raises(DimensionMismatchError):
        dihedrals([[[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [2.0, 1.0]]])


def test_non_finite_coordinates():
    with pytest.raises(DomainError):
        dihedral([np.nan, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [2.0, 1.0, 1.0])


def test_default_units_follow_config(restore_config):
    from molsimkit import get_config

    get_config().set('dihedral.degrees', False)
    assert dihedral(*V2) == pytest.approx(np.deg2rad(-115.82544005374316))
