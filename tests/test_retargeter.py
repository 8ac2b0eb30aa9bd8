import os
import sys
import unittest

import numpy as np
from scipy.spatial.transform import Rotation as R

# Add the project root and this directory to sys.path
script_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(script_dir)
sys.path.insert(0, project_root)
sys.path.insert(0, script_dir)

from bvh_sdk_python.parser import BVHParser, MotionBuffer, MotionFrame
from bvh_sdk_python.retargeter import (
    BindPoseSnapshot,
    PoseRetargeter,
    RetargetConfig,
    RotationMappingConfig,
    SkeletonNode,
    bind_skeleton,
    build_skeleton_from_buffer,
)
from bvh_sdk_python.utils.quat_utils import IDENTITY_QUAT, euler_deg_to_quat, quat_angle
from samples import BODY_BVH, TWO_JOINT_BVH


def exact_config(**kwargs):
    """Config whose smoothing weight is exactly 1 for delta_time=1."""
    options = dict(scale_factor=1.0, mirror_left_right=False, smoothing_rate=1.0)
    options.update(kwargs)
    return RetargetConfig(**options)


def make_rig(buffer, config, prefix=""):
    root = build_skeleton_from_buffer(buffer, prefix=prefix)
    bind_pose = BindPoseSnapshot(root)
    bindings = bind_skeleton(root, buffer.joint_names)
    return root, PoseRetargeter(buffer, bindings, bind_pose, config)


class RotationAssertions(unittest.TestCase):
    def assertSameRotation(self, q1, q2, tol=1e-6):
        self.assertLess(quat_angle(q1, q2), tol, msg=f"{q1} != {q2}")


class TestEndToEnd(RotationAssertions):
    def test_two_joint_frame(self):
        buffer = BVHParser().parse(TWO_JOINT_BVH)
        root = SkeletonNode("Hips")
        spine = SkeletonNode("Spine", local_position=[0, 10, 0], parent=root)
        bind_pose = BindPoseSnapshot(root)
        bindings = bind_skeleton(root, buffer.joint_names)
        retargeter = PoseRetargeter(buffer, bindings, bind_pose, exact_config())

        self.assertTrue(retargeter.apply_frame(delta_time=1.0))

        self.assertSameRotation(root.local_rotation, euler_deg_to_quat((0, 90, 0)))
        self.assertSameRotation(spine.local_rotation, IDENTITY_QUAT)
        np.testing.assert_allclose(root.local_position, [0, 0, 0], atol=1e-12)
        np.testing.assert_allclose(spine.local_position, [0, 10, 0])
        self.assertEqual(buffer.current_frame, 1)

    def test_past_last_frame_is_a_no_op(self):
        buffer = BVHParser().parse(TWO_JOINT_BVH)
        root, retargeter = make_rig(buffer, exact_config())
        self.assertTrue(retargeter.apply_frame(delta_time=1.0))
        rotation = root.local_rotation.copy()
        for _ in range(3):
            self.assertFalse(retargeter.apply_frame(delta_time=1.0))
        self.assertEqual(buffer.current_frame, buffer.num_frames)
        np.testing.assert_allclose(root.local_rotation, rotation)

    def test_empty_buffer(self):
        retargeter = PoseRetargeter(MotionBuffer(), {}, BindPoseSnapshot())
        self.assertFalse(retargeter.apply_frame())

    def test_cursor_stops_at_declared_frame_count(self):
        text = BODY_BVH.replace("Frames: 3", "Frames: 2")
        buffer = BVHParser().parse(text)
        _, retargeter = make_rig(buffer, exact_config())
        applied = 0
        while retargeter.apply_frame(delta_time=1.0):
            applied += 1
        self.assertEqual(applied, 2)
        self.assertEqual(buffer.current_frame, 2)


class TestRotationMapping(RotationAssertions):
    def setUp(self):
        self.buffer = BVHParser().parse(TWO_JOINT_BVH)

    def test_axis_order(self):
        xyz = PoseRetargeter(self.buffer, config=exact_config()).map_euler_to_quat(90, 90, 0)
        yxz = PoseRetargeter(self.buffer, config=exact_config(
            rotation_mapping=RotationMappingConfig(order="YXZ"))).map_euler_to_quat(90, 90, 0)
        self.assertSameRotation(xyz, R.from_euler("XYZ", [90, 90, 0], degrees=True).as_quat(scalar_first=True))
        self.assertGreater(quat_angle(xyz, yxz), 0.1)

    def test_signs(self):
        mapping = RotationMappingConfig(order="ZYX", sign_x=-1, sign_y=1, sign_z=-1)
        retargeter = PoseRetargeter(self.buffer, config=exact_config(rotation_mapping=mapping))
        expected = euler_deg_to_quat({"x": -10, "y": 20, "z": -30}, "zyx")
        self.assertSameRotation(retargeter.map_euler_to_quat(10, 20, 30), expected)

    def test_conjugation_with_bind_pose(self):
        bind = euler_deg_to_quat((0, 0, 90))
        raw = euler_deg_to_quat((90, 0, 0))
        result = PoseRetargeter.conjugate_to_bind(raw, bind)
        rb = R.from_euler("z", 90, degrees=True)
        expected = (rb.inv() * R.from_euler("x", 90, degrees=True) * rb).as_quat(scalar_first=True)
        self.assertSameRotation(result, expected)
        self.assertSameRotation(result, euler_deg_to_quat((0, -90, 0)))

    def test_non_identity_bind_pose_is_applied(self):
        root = SkeletonNode("Hips", local_rotation=euler_deg_to_quat((0, 0, 90)))
        SkeletonNode("Spine", parent=root)
        bind_pose = BindPoseSnapshot(root)
        retargeter = PoseRetargeter(self.buffer, bind_skeleton(root, self.buffer.joint_names),
                                    bind_pose, exact_config())
        retargeter.apply_frame(delta_time=1.0)
        # Ry(90) seen through a Rz(90) bind frame
        expected = PoseRetargeter.conjugate_to_bind(euler_deg_to_quat((0, 90, 0)), euler_deg_to_quat((0, 0, 90)))
        self.assertSameRotation(root.local_rotation, expected)
        self.assertSameRotation(expected, euler_deg_to_quat((90, 0, 0)))


class TestMirroring(RotationAssertions):
    def setUp(self):
        self.buffer = BVHParser().parse(BODY_BVH)

    def test_mirror_swaps_left_and_right(self):
        root, retargeter = make_rig(self.buffer, exact_config(mirror_left_right=True))
        self.assertEqual(retargeter.resolve_source_name("LeftUpLeg"), "RightUpLeg")
        self.assertEqual(retargeter.resolve_source_name("RightUpLeg"), "LeftUpLeg")
        self.assertEqual(retargeter.resolve_source_name("Spine"), "Spine")
        retargeter.apply_frame(delta_time=1.0)
        self.assertSameRotation(root.find("LeftUpLeg").local_rotation, euler_deg_to_quat((0, 0, -60)))
        self.assertSameRotation(root.find("RightUpLeg").local_rotation, euler_deg_to_quat((0, 0, 30)))

    def test_without_mirror_each_joint_reads_its_own_data(self):
        root, retargeter = make_rig(self.buffer, exact_config(mirror_left_right=False))
        self.assertEqual(retargeter.resolve_source_name("LeftUpLeg"), "LeftUpLeg")
        retargeter.apply_frame(delta_time=1.0)
        self.assertSameRotation(root.find("LeftUpLeg").local_rotation, euler_deg_to_quat((0, 0, 30)))
        self.assertSameRotation(root.find("RightUpLeg").local_rotation, euler_deg_to_quat((0, 0, -60)))

    def test_mirrored_joint_without_counterpart_is_skipped(self):
        # LeftLeg would read RightLeg, which does not exist
        root, retargeter = make_rig(self.buffer, exact_config(mirror_left_right=True))
        self.buffer.set_current_frame(1)
        retargeter.apply_frame(delta_time=1.0)
        self.assertSameRotation(root.find("LeftLeg").local_rotation, IDENTITY_QUAT)

    def test_mirrored_position_negates_x(self):
        buffer = MotionBuffer().install(
            ["LeftFoot", "RightFoot"],
            {"LeftFoot": 6, "RightFoot": 6},
            {"LeftFoot": [5, 0, 5], "RightFoot": [1, 0, 1]},
            [MotionFrame(LeftFoot=np.zeros(6), RightFoot=np.array([2.0, 5.0, 3.0, 0, 0, 0]))],
            frame_time=0.1,
        )
        root = SkeletonNode("Root")
        left = SkeletonNode("LeftFoot", local_position=[0, 7, 0], parent=root)
        retargeter = PoseRetargeter(buffer, bind_skeleton(root, buffer.joint_names),
                                    BindPoseSnapshot(root), exact_config(mirror_left_right=True))
        retargeter.apply_frame(delta_time=1.0)
        # x = -2 * 1 + 1, y untouched, z = 3 * 1 + 1 (RightFoot offset)
        np.testing.assert_allclose(left.local_position, [-1, 7, 4])


class TestPositionAndSmoothing(RotationAssertions):
    def setUp(self):
        self.buffer = BVHParser().parse(BODY_BVH)

    def test_y_is_never_driven(self):
        root, retargeter = make_rig(self.buffer, exact_config(scale_factor=0.5))
        root.local_position = [0, 0.9, 0]
        retargeter.apply_frame(frame_index=2, delta_time=1.0)
        # frame 2 Hips position (2, 4, 6), offset (1, 2, 3)
        np.testing.assert_allclose(root.local_position, [2.0, 0.9, 6.0])

    def test_three_channel_joint_keeps_position(self):
        root, retargeter = make_rig(self.buffer, exact_config())
        spine = root.find("Spine")
        before = spine.local_position.copy()
        retargeter.apply_frame(frame_index=1, delta_time=1.0)
        np.testing.assert_allclose(spine.local_position, before)
        self.assertSameRotation(spine.local_rotation, euler_deg_to_quat((0, 0, 10)))

    def test_weight_is_elapsed_time_times_rate(self):
        retargeter = PoseRetargeter(self.buffer, config=exact_config(smoothing_rate=30.0))
        self.assertAlmostEqual(retargeter.smoothing_weight(0.01), 0.3)
        self.assertAlmostEqual(retargeter.smoothing_weight(0.1), 3.0)

    def test_partial_weight_interpolates(self):
        root, retargeter = make_rig(self.buffer, exact_config(smoothing_rate=0.5))
        retargeter.apply_frame(frame_index=2, delta_time=1.0)
        # Hips target x = 2 + 1, z = 6 + 3, starting from offset (1, 2, 3)
        np.testing.assert_allclose(root.local_position, [2.0, 2.0, 6.0])
        self.assertSameRotation(root.find("LeftUpLeg").local_rotation, euler_deg_to_quat((0, 0, 15)))

    def test_weight_above_one_overshoots(self):
        root, retargeter = make_rig(self.buffer, exact_config(smoothing_rate=2.0))
        retargeter.apply_frame(frame_index=2, delta_time=1.0)
        np.testing.assert_allclose(root.local_position, [5.0, 2.0, 15.0])
        self.assertSameRotation(root.find("LeftUpLeg").local_rotation, euler_deg_to_quat((0, 0, 60)))

    def test_clamped_weight_converges(self):
        root, retargeter = make_rig(self.buffer, exact_config(smoothing_rate=2.0, clamp_smoothing=True))
        retargeter.apply_frame(frame_index=2, delta_time=1.0)
        np.testing.assert_allclose(root.local_position, [3.0, 2.0, 9.0])
        self.assertSameRotation(root.find("LeftUpLeg").local_rotation, euler_deg_to_quat((0, 0, 30)))

    def test_default_config_converges_at_30_fps(self):
        buffer = BVHParser().parse(BODY_BVH.replace("Frame Time: 0.01", "Frame Time: 0.0333"))
        root, retargeter = make_rig(buffer, RetargetConfig())
        while retargeter.apply_frame(delta_time=buffer.frame_time):
            pass
        # frame 2 Hips position (2, 4, 6) * 0.01 plus offset (1, 2, 3)
        np.testing.assert_allclose(root.local_position[[0, 2]], [1.02, 3.06], atol=1e-4)
        # mirrored: LeftUpLeg follows RightUpLeg data
        self.assertSameRotation(root.find("LeftUpLeg").local_rotation,
                                euler_deg_to_quat((0, 0, -60)), tol=1e-4)

    def test_first_tick_uses_frame_time(self):
        root, retargeter = make_rig(self.buffer, exact_config(smoothing_rate=50.0))
        retargeter.apply_frame()
        # frame_time 0.01 * 50 = 0.5
        self.assertSameRotation(root.find("LeftUpLeg").local_rotation, euler_deg_to_quat((0, 0, 15)))


class TestSkipping(RotationAssertions):
    def test_unbound_joints_and_missing_data_are_skipped(self):
        buffer = BVHParser().parse(BODY_BVH)
        root = SkeletonNode("Hips")
        SkeletonNode("Tail", parent=root)
        retargeter = PoseRetargeter(buffer, bind_skeleton(root, buffer.joint_names),
                                    BindPoseSnapshot(root), exact_config())
        self.assertTrue(retargeter.apply_frame(delta_time=1.0))
        self.assertEqual(set(retargeter.bindings), {"Hips"})

    def test_missing_bind_rotation_skips_rotation_only(self):
        buffer = BVHParser().parse(TWO_JOINT_BVH)
        root = SkeletonNode("Hips")
        SkeletonNode("Spine", parent=root)
        other = SkeletonNode("Other")
        retargeter = PoseRetargeter(buffer, bind_skeleton(root, buffer.joint_names),
                                    BindPoseSnapshot(other), exact_config())
        with self.assertLogs("bvh_sdk_python.retargeter.retargeter", level="WARNING"):
            self.assertTrue(retargeter.apply_frame(delta_time=1.0))
        self.assertSameRotation(root.local_rotation, IDENTITY_QUAT)

    def test_prefixed_bind_pose_lookup(self):
        buffer = BVHParser().parse(TWO_JOINT_BVH)
        for prefix in ("mixamorig:", ""):
            root, retargeter = make_rig(buffer, exact_config(bones_prefix=prefix), prefix="mixamorig:")
            buffer.current_frame = 0
            retargeter.apply_frame(delta_time=1.0)
            self.assertSameRotation(root.local_rotation, euler_deg_to_quat((0, 90, 0)))

    def test_candidate_pose_is_reproducible(self):
        buffer = BVHParser().parse(BODY_BVH)
        root, retargeter = make_rig(buffer, exact_config(smoothing_rate=0.25))
        first = retargeter.candidate_pose(1)
        retargeter.apply_frame(frame_index=1, delta_time=1.0)
        retargeter.apply_frame(frame_index=1, delta_time=1.0)
        second = retargeter.candidate_pose(1)
        self.assertEqual(set(first), set(second))
        for name in first:
            self.assertSameRotation(first[name][1], second[name][1])
        np.testing.assert_allclose(first["Hips"][0][[0, 2]], second["Hips"][0][[0, 2]])
        self.assertEqual(retargeter.candidate_pose(99), {})


if __name__ == "__main__":
    unittest.main()
