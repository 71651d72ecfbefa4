# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp

"""Core geometric calculations (distances, angles, dihedrals) over coordinate arrays."""

import jax
import jax.numpy as jnp

from .constants import kCoincidenceTolerance

@jax.jit
def _distance_impl(a: jnp.ndarray, b: jnp.ndarray) -> jnp.ndarray:
    """Distances between matching points of two coordinate arrays.

    a and b have shape (..., 3) and broadcast against each other along the
    leading axes. Two points give a scalar; two backbone rows of shape
    (N, 3), such as C(i) and N(i+1), give an (N,) array.
    """
    return jnp.linalg.norm(jnp.asarray(a) - jnp.asarray(b), axis=-1)

distance = _distance_impl

@jax.jit
def _distance_matrix_impl(a: jnp.ndarray, b: jnp.ndarray) -> jnp.ndarray:
    """(N, M) distances from every point of a (N, 3) to every point of b (M, 3)."""
    return _distance_impl(a[:, None, :], b[None, :, :])

distance_matrix = _distance_matrix_impl

@jax.jit
def _angle_impl(p1: jnp.ndarray, p2: jnp.ndarray, p3: jnp.ndarray) -> float:
    """Calculates the angle (in degrees) formed by p1-p2-p3.

    Returns NaN if either arm has zero length.
    """
    p1, p2, p3 = map(jnp.asarray, [p1, p2, p3])
    v21 = p1 - p2
    v23 = p3 - p2

    n21 = jnp.linalg.norm(v21)
    n23 = jnp.linalg.norm(v23)
    is_zero = (n21 < 1e-6) | (n23 < 1e-6)

    safe_n21 = jnp.where(is_zero, 1.0, n21)
    safe_n23 = jnp.where(is_zero, 1.0, n23)

    # Clip for numerical stability with arccos
    dot_product = jnp.clip(jnp.dot(v21 / safe_n21, v23 / safe_n23), -1.0, 1.0)
    return jnp.where(is_zero, jnp.nan, jnp.degrees(jnp.arccos(dot_product)))

angle = _angle_impl

@jax.jit
def _bond_vector_angle_impl(a1: jnp.ndarray, a2: jnp.ndarray, b1: jnp.ndarray, b2: jnp.ndarray) -> float:
    """Angle (in degrees) between the bond vectors a1->a2 and b1->b2.

    Used for the kappa pseudo-angle and the carbonyl-carbonyl angle. A
    zero-length vector counts as parallel (cos = 1) and the cosine is
    clamped to [-1, 1] before the arccosine, so the result is always finite.

    Args:
        a1: Start of the first vector.
        a2: End of the first vector.
        b1: Start of the second vector.
        b2: End of the second vector.

    Returns:
        Angle in degrees within [0, 180].
    """
    a1, a2, b1, b2 = map(jnp.asarray, [a1, a2, b1, b2])
    va = a2 - a1
    vb = b2 - b1
    na = jnp.linalg.norm(va)
    nb = jnp.linalg.norm(vb)
    is_zero = (na < kCoincidenceTolerance) | (nb < kCoincidenceTolerance)

    safe_norms = jnp.where(is_zero, 1.0, na * nb)
    cos_angle = jnp.where(is_zero, 1.0, jnp.dot(va, vb) / safe_norms)
    cos_angle = jnp.clip(cos_angle, -1.0, 1.0)
    return jnp.degrees(jnp.arccos(cos_angle))

bond_vector_angle = _bond_vector_angle_impl

@jax.jit
def _dihedral_angle_impl(p1: jnp.ndarray, p2: jnp.ndarray, p3: jnp.ndarray, p4: jnp.ndarray) -> float:
    """Calculates the dihedral angle (in degrees) defined by p1-p2-p3-p4.

    Follows the IUPAC convention: looking down p2->p3, a clockwise rotation
    of p1 onto p4 is positive. Returns NaN for collinear points.
    """
    # References:
    # https://en.wikipedia.org/wiki/Dihedral_angle#In_polymer_physics
    p1, p2, p3, p4 = map(jnp.asarray, [p1, p2, p3, p4])
    b1 = p2 - p1
    b2 = p3 - p2 # Central bond
    b3 = p4 - p3

    # Normals to the planes (p1, p2, p3) and (p2, p3, p4)
    n1 = jnp.cross(b1, b2)
    n2 = jnp.cross(b2, b3)

    n_b2 = jnp.linalg.norm(b2)
    is_zero_b2 = n_b2 < 1e-6
    b2_hat = b2 / jnp.where(is_zero_b2, 1.0, n_b2)

    is_zero_n1 = jnp.linalg.norm(n1) < 1e-6
    is_zero_n2 = jnp.linalg.norm(n2) < 1e-6

    x = jnp.dot(n1, n2)
    y = jnp.dot(jnp.cross(n1, n2), b2_hat)
    angle_rad = jnp.arctan2(y, x)

    result = jnp.where(is_zero_b2 | is_zero_n1 | is_zero_n2, jnp.nan, jnp.degrees(angle_rad))
    return result

dihedral_angle = _dihedral_angle_impl

# Batched forms over leading axes, used by the angle calculator
batched_dihedral_angle = jax.jit(jax.vmap(_dihedral_angle_impl))
batched_bond_vector_angle = jax.jit(jax.vmap(_bond_vector_angle_impl))
