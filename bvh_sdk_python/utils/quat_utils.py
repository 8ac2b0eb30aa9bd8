"""
Quaternion utility functions for BVH retargeting.

All quaternions are in (w, x, y, z) format unless otherwise specified.
"""

import numpy as np
from scipy.spatial.transform import Rotation as R


IDENTITY_QUAT = np.array([1.0, 0.0, 0.0, 0.0])

AXIS_VECTORS = {
    'x': np.array([1.0, 0.0, 0.0]),
    'y': np.array([0.0, 1.0, 0.0]),
    'z': np.array([0.0, 0.0, 1.0]),
}


def quat_mul(q1, q2):
    """
    Multiply two quaternions (w, x, y, z format).

    Args:
        q1: First quaternion (w, x, y, z)
        q2: Second quaternion (w, x, y, z)

    Returns:
        Product quaternion (w, x, y, z), i.e. q2 applied first, then q1
    """
    w1, x1, y1, z1 = q1[0], q1[1], q1[2], q1[3]
    w2, x2, y2, z2 = q2[0], q2[1], q2[2], q2[3]
    return np.array([
        w1*w2 - x1*x2 - y1*y2 - z1*z2,
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2
    ])


def quat_conj(q):
    """
    Quaternion conjugate (w, x, y, z format).

    Args:
        q: Quaternion (w, x, y, z)

    Returns:
        Conjugate quaternion (w, -x, -y, -z)
    """
    return np.array([q[0], -q[1], -q[2], -q[3]])


def quat_normalize(q):
    """
    Normalize quaternion (w, x, y, z format).

    Args:
        q: Quaternion (w, x, y, z)

    Returns:
        Normalized quaternion
    """
    q = np.asarray(q, dtype=np.float64)
    norm = np.sqrt(q[0]*q[0] + q[1]*q[1] + q[2]*q[2] + q[3]*q[3])
    if norm < 1e-8:
        return IDENTITY_QUAT.copy()
    return q / norm


def quat_inverse(q):
    """Inverse of a (possibly non-unit) quaternion."""
    q = np.asarray(q, dtype=np.float64)
    norm_sq = float(np.dot(q, q))
    if norm_sq < 1e-16:
        return IDENTITY_QUAT.copy()
    return quat_conj(q) / norm_sq


def rotate_vec_by_quat(v, q):
    """
    Rotate vector v by quaternion q (w, x, y, z format).
    Uses optimized Rodrigues' rotation formula.

    Args:
        v: 3D vector
        q: Quaternion (w, x, y, z)

    Returns:
        Rotated 3D vector
    """
    w, x, y, z = q[0], q[1], q[2], q[3]
    # t = 2 * cross(q_xyz, v)
    tx = 2.0 * (y * v[2] - z * v[1])
    ty = 2.0 * (z * v[0] - x * v[2])
    tz = 2.0 * (x * v[1] - y * v[0])
    # result = v + w * t + cross(q_xyz, t)
    return np.array([
        v[0] + w * tx + (y * tz - z * ty),
        v[1] + w * ty + (z * tx - x * tz),
        v[2] + w * tz + (x * ty - y * tx)
    ])


def angle_axis_to_quat(angle, axis):
    """
    Converts from angle-axis representation to quaternion representation.

    Args:
        angle: rotation angle in radians
        axis: unit rotation axis (3,)

    Returns:
        quaternion in (w, x, y, z) format
    """
    half = 0.5 * angle
    s = np.sin(half)
    return np.array([np.cos(half), s * axis[0], s * axis[1], s * axis[2]])


def euler_deg_to_quat(angles, order='xyz'):
    """
    Compose single-axis rotations into one quaternion.

    The per-axis quaternions are multiplied left to right in ``order``, so
    order 'xyz' yields Rx * Ry * Rz.

    Args:
        angles: mapping or sequence of degrees for x, y, z (in that order)
        order: permutation of 'xyz'

    Returns:
        quaternion in (w, x, y, z) format
    """
    if not isinstance(angles, dict):
        angles = dict(zip('xyz', angles))
    result = IDENTITY_QUAT.copy()
    for axis in order.lower():
        q = angle_axis_to_quat(np.radians(angles[axis]), AXIS_VECTORS[axis])
        result = quat_mul(result, q)
    return result


def quat_dot(q1, q2):
    """Dot product of two quaternions."""
    return float(np.dot(np.asarray(q1, dtype=np.float64), np.asarray(q2, dtype=np.float64)))


def quat_slerp(q0, q1, t):
    """
    Spherical interpolation from q0 toward q1 along the shortest arc.

    ``t`` is not clamped: values above 1 extrapolate past q1 and negative
    values move away from it.

    Args:
        q0: start quaternion (w, x, y, z)
        q1: end quaternion (w, x, y, z)
        t: interpolation weight

    Returns:
        Normalized quaternion (w, x, y, z)
    """
    q0 = quat_normalize(q0)
    q1 = quat_normalize(q1)
    dot = quat_dot(q0, q1)
    if dot < 0.0:
        q1 = -q1
        dot = -dot

    # Nearly parallel: fall back to normalized lerp
    if dot > 0.9995:
        return quat_normalize(q0 + t * (q1 - q0))

    theta = np.arccos(np.clip(dot, -1.0, 1.0))
    sin_theta = np.sin(theta)
    w0 = np.sin((1.0 - t) * theta) / sin_theta
    w1 = np.sin(t * theta) / sin_theta
    return quat_normalize(w0 * q0 + w1 * q1)


def vec_lerp(a, b, t):
    """Unclamped linear interpolation between two vectors."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    return a + (b - a) * t


def quat_angle(q1, q2):
    """
    Angle in radians between two orientations.

    q and -q describe the same orientation and give an angle of 0.
    """
    dot = abs(quat_dot(quat_normalize(q1), quat_normalize(q2)))
    return 2.0 * np.arccos(np.clip(dot, -1.0, 1.0))


def quat_to_euler_deg(q, order='xyz'):
    """
    Convert a (w, x, y, z) quaternion to Euler angles in degrees.

    Args:
        q: quaternion (w, x, y, z)
        order: scipy axis sequence ('xyz' extrinsic, 'XYZ' intrinsic)

    Returns:
        (3,) array of angles in degrees
    """
    return R.from_quat(quat_normalize(q), scalar_first=True).as_euler(order, degrees=True)
