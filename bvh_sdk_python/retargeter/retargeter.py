"""
PoseRetargeter - applies parsed BVH frames to a target skeleton.
"""

import logging
import time

import numpy as np

from ..utils.quat_utils import (
    euler_deg_to_quat,
    quat_inverse,
    quat_mul,
    quat_normalize,
    quat_slerp,
    vec_lerp,
)
from .config import RetargetConfig
from .skeleton_binder import clean_bone_name


logger = logging.getLogger(__name__)

LEFT_MARKER = "Left"
RIGHT_MARKER = "Right"


class PoseRetargeter:
    """
    Per-frame retargeting engine.

    For every joint of the current frame:
    1. Resolve the source joint (Left <-> Right when mirroring)
    2. Decode position (6-channel joints) and rotation channels
    3. Move the node toward the scaled X/Z position (Y is never driven)
    4. Conjugate the mapped rotation by the bind pose and slerp toward it

    Example usage:
        buffer = BVHParser().parse(text)
        bind_pose = BindPoseSnapshot(root)
        bindings = bind_skeleton(root, buffer.joint_names)
        retargeter = PoseRetargeter(buffer, bindings, bind_pose, RetargetConfig())

        while retargeter.apply_frame():
            time.sleep(buffer.frame_time)

    Missing bindings, missing source data and an exhausted frame cursor are
    never errors: affected joints are skipped and apply_frame() returns False
    once there is nothing left to play.
    """

    def __init__(self, buffer, bindings=None, bind_pose=None, config: RetargetConfig = None):
        """
        Args:
            buffer: MotionBuffer holding the parsed motion and frame cursor
            bindings: dict clean joint name -> target node (see bind_skeleton)
            bind_pose: BindPoseSnapshot of the target skeleton
            config: RetargetConfig (defaults if None)
        """
        self.buffer = buffer
        self.bindings = bindings if bindings is not None else {}
        self.bind_pose = bind_pose
        self.config = config if config is not None else RetargetConfig()
        self._last_apply_time = None
        self._missing_bind_warned = set()

    def reset_clock(self):
        """Forget the previous tick time; the next tick uses the frame time."""
        self._last_apply_time = None

    # Mapping helpers

    def resolve_source_name(self, clean_name):
        """Name of the joint whose data drives ``clean_name``."""
        if not self.config.mirror_left_right:
            return clean_name
        if LEFT_MARKER in clean_name:
            return clean_name.replace(LEFT_MARKER, RIGHT_MARKER)
        if RIGHT_MARKER in clean_name:
            return clean_name.replace(RIGHT_MARKER, LEFT_MARKER)
        return clean_name

    def is_mirrored(self, clean_name):
        return self.config.mirror_left_right and (
            LEFT_MARKER in clean_name or RIGHT_MARKER in clean_name)

    def map_euler_to_quat(self, x, y, z):
        """
        Turn BVH rotation channels (degrees) into a quaternion.

        Signs and composition order come from config.rotation_mapping.
        """
        mapping = self.config.rotation_mapping
        angles = {
            "x": mapping.sign_x * x,
            "y": mapping.sign_y * y,
            "z": mapping.sign_z * z,
        }
        return euler_deg_to_quat(angles, order=mapping.order.value)

    @staticmethod
    def conjugate_to_bind(raw_rotation, bind_rotation):
        """inverse(bind) * raw * bind"""
        return quat_normalize(
            quat_mul(quat_mul(quat_inverse(bind_rotation), raw_rotation), bind_rotation))

    def smoothing_weight(self, delta_time):
        """Interpolation weight for a tick of ``delta_time`` seconds."""
        weight = delta_time * self.config.smoothing_rate
        if self.config.clamp_smoothing:
            weight = min(max(weight, 0.0), 1.0)
        return weight

    def _bind_rotation(self, clean_name, node):
        if self.bind_pose is None:
            return None
        rotation = self.bind_pose.rotation_for(
            clean_name, prefix=self.config.bones_prefix, fallback_name=getattr(node, "name", None))
        if rotation is None and clean_name not in self._missing_bind_warned:
            self._missing_bind_warned.add(clean_name)
            logger.warning("No bind pose rotation for %s%s; rotation not applied",
                           self.config.bones_prefix, clean_name)
        return rotation

    def _decode(self, source_name, values):
        """Split channel values into (position or None, rotation degrees)."""
        if self.buffer.channel_counts.get(source_name) == 6:
            return values[0:3], values[3:6]
        return None, values[0:3]

    # Per-joint work

    def compute_bone_target(self, clean_name, frame):
        """
        Unsmoothed target for one joint.

        Returns:
            (node, position or None, rotation or None), or None if the joint
            is skipped for this frame.
        """
        source_name = self.resolve_source_name(clean_name)
        node = self.bindings.get(clean_name)
        values = frame.get(source_name)
        if node is None or values is None:
            return None
        if len(values) < 3:
            logger.debug("Joint %s has %d channels; skipped", source_name, len(values))
            return None

        raw_pos, raw_rot = self._decode(source_name, values)

        target_pos = None
        if raw_pos is not None:
            pos = np.array(raw_pos, dtype=np.float64)
            if self.is_mirrored(clean_name):
                pos[0] = -pos[0]
            offset = self.buffer.offsets.get(source_name, np.zeros(3))
            # Keep the node's own Y, only X and Z follow the motion
            target_pos = np.array(node.local_position, dtype=np.float64)
            target_pos[0] = pos[0] * self.config.scale_factor + offset[0]
            target_pos[2] = pos[2] * self.config.scale_factor + offset[2]

        target_rot = None
        bind_rotation = self._bind_rotation(clean_name, node)
        if bind_rotation is not None:
            raw_rotation = self.map_euler_to_quat(raw_rot[0], raw_rot[1], raw_rot[2])
            target_rot = self.conjugate_to_bind(raw_rotation, bind_rotation)

        return node, target_pos, target_rot

    def apply_bone(self, clean_name, frame, weight):
        """Move one bound node toward its target. Returns False if skipped."""
        target = self.compute_bone_target(clean_name, frame)
        if target is None:
            return False
        node, target_pos, target_rot = target
        if target_pos is not None:
            node.local_position = vec_lerp(node.local_position, target_pos, weight)
        if target_rot is not None:
            node.local_rotation = quat_slerp(node.local_rotation, target_rot, weight)
        return True

    def candidate_pose(self, frame_index):
        """
        Unsmoothed targets of a frame as plain data.

        Returns:
            Dict clean joint name -> (position or None, rotation or None)
        """
        frame = self.buffer.frame(frame_index)
        if frame is None:
            return {}
        pose = {}
        for clean_name in self._clean_joint_names():
            target = self.compute_bone_target(clean_name, frame)
            if target is not None:
                pose[clean_name] = (target[1], target[2])
        return pose

    def _clean_joint_names(self):
        separator = self.config.name_separator
        for name in self.buffer.joint_names:
            yield clean_bone_name(name, separator)

    def _elapsed(self, delta_time):
        now = time.perf_counter()
        if delta_time is None:
            if self._last_apply_time is None:
                delta_time = self.buffer.frame_time
            else:
                delta_time = now - self._last_apply_time
        self._last_apply_time = now
        return delta_time

    def apply_frame(self, frame_index=None, delta_time=None):
        """
        Apply one frame to every bound node and advance the cursor.

        Args:
            frame_index: frame to apply (default: the buffer's cursor). When
                given, the cursor is moved there first.
            delta_time: seconds since the previous tick; measured with
                time.perf_counter() if None (the first tick uses frame_time)

        Returns:
            True if a frame was applied, False if there was nothing to play
        """
        buffer = self.buffer
        if not buffer.frames:
            logger.warning("No motion data found to apply.")
            return False

        if frame_index is not None:
            if not 0 <= frame_index < buffer.playable_frames:
                logger.warning("Frame index %s out of range [0, %d)", frame_index, buffer.playable_frames)
                return False
            buffer.current_frame = frame_index

        frame = buffer.frame(buffer.current_frame)
        if frame is None:
            logger.info("Animation finished.")
            return False

        weight = self.smoothing_weight(self._elapsed(delta_time))
        for clean_name in self._clean_joint_names():
            self.apply_bone(clean_name, frame, weight)

        buffer.advance()
        return True
