"""
MotionBuffer - parsed BVH hierarchy and motion data.

The buffer is a plain data container: the parser fills it, the retargeter
reads from it, and the frame cursor is the only thing that moves during
playback.
"""

import logging

import numpy as np


logger = logging.getLogger(__name__)


class MotionFrame(dict):
    """
    One frame of motion: joint name -> channel values.

    Each value is a float array whose length equals the joint's channel
    count. 6-channel joints store position X, Y, Z followed by rotation
    X, Y, Z (degrees); 3-channel joints store rotation only.
    """


class MotionBuffer:
    """
    Container for a parsed BVH file.

    Attributes:
        joint_names: joint names in depth-first declaration order. This order
            is the layout key of every motion line.
        channel_counts: joint name -> number of channels
        channel_names: joint name -> channel labels from the CHANNELS line
        offsets: joint name -> static offset (3,) in source units
        parents: joint name -> parent joint name (None for the root)
        frames: list of MotionFrame
        num_frames: number of frames to play; starts as the declared count and
            can be lowered with set_total_frames()
        declared_frames: frame count declared by the file (``Frames:``)
        frame_time: seconds per frame (``Frame Time:``)
        current_frame: playback cursor
    """

    def __init__(self):
        self.joint_names = []
        self.channel_counts = {}
        self.channel_names = {}
        self.offsets = {}
        self.parents = {}
        self.frames = []
        self.num_frames = 0
        self.declared_frames = 0
        self.frame_time = 0.0
        self.current_frame = 0

    def clear(self):
        """Reset all state, ready for a new file."""
        logger.debug("Clearing motion data")
        self.joint_names = []
        self.channel_counts = {}
        self.channel_names = {}
        self.offsets = {}
        self.parents = {}
        self.frames = []
        self.num_frames = 0
        self.declared_frames = 0
        self.frame_time = 0.0
        self.current_frame = 0

    def install(self, joint_names, channel_counts, offsets, frames,
                num_frames=None, frame_time=0.0, channel_names=None, parents=None):
        """
        Replace the buffer contents with freshly parsed data.

        All previous state is cleared first; the cursor is reset to 0.
        """
        self.clear()
        self.joint_names = list(joint_names)
        self.channel_counts = dict(channel_counts)
        self.channel_names = dict(channel_names or {})
        self.offsets = {name: np.asarray(off, dtype=np.float64) for name, off in offsets.items()}
        self.parents = dict(parents or {})
        self.frames = list(frames)
        self.num_frames = len(self.frames) if num_frames is None else int(num_frames)
        self.declared_frames = self.num_frames
        self.frame_time = float(frame_time)
        return self

    def replace_with(self, other):
        """Install the contents of another buffer into this one."""
        return self.install(
            other.joint_names,
            other.channel_counts,
            other.offsets,
            other.frames,
            num_frames=other.declared_frames,
            frame_time=other.frame_time,
            channel_names=other.channel_names,
            parents=other.parents,
        )

    @property
    def total_frames(self):
        return self.num_frames

    @property
    def playable_frames(self):
        """Number of frames that can actually be applied."""
        return max(0, min(self.num_frames, len(self.frames)))

    @property
    def is_finished(self):
        return self.current_frame >= self.playable_frames

    @property
    def channel_total(self):
        """Number of values each motion line must carry."""
        return sum(self.channel_counts.get(name, 0) for name in self.joint_names)

    def frame(self, index):
        """
        Get the frame at ``index``.

        Returns:
            MotionFrame, or None if the index is outside the playable range.
        """
        if index < 0 or index >= self.playable_frames:
            return None
        return self.frames[index]

    def set_current_frame(self, frame):
        """Move the cursor. Out-of-range indices are logged and ignored."""
        if 0 <= frame < self.num_frames:
            self.current_frame = frame
            return True
        logger.error("Frame index out of range. Frame = %s", frame)
        return False

    def set_total_frames(self, frames):
        """Override the number of frames to play (e.g. for length-limited playback)."""
        self.num_frames = int(frames)
        if self.current_frame > self.num_frames:
            self.current_frame = max(0, self.num_frames)

    def reset_total_frames(self):
        """Drop any set_total_frames() limit and play every declared frame again."""
        self.num_frames = self.declared_frames

    def advance(self):
        """Advance the cursor by one frame, stopping at the last playable frame."""
        if self.current_frame < self.playable_frames:
            self.current_frame += 1
        return self.current_frame

    def validate(self):
        """
        Check the buffer for suspicious but tolerated conditions.

        Returns:
            List of warning strings (each is also logged).
        """
        warnings = []
        if self.declared_frames != len(self.frames):
            warnings.append(
                f"Declared {self.declared_frames} frames but parsed {len(self.frames)} motion lines"
            )
        for name in self.joint_names:
            count = self.channel_counts.get(name)
            if count is None:
                warnings.append(f"Joint {name} has no CHANNELS line")
            elif count not in (3, 6):
                warnings.append(f"Joint {name} has {count} channels (only 3 or 6 are retargeted)")
        for message in warnings:
            logger.warning(message)
        return warnings

    def __len__(self):
        return len(self.frames)

    def __repr__(self):
        return (f"MotionBuffer(joints={len(self.joint_names)}, frames={len(self.frames)}, "
                f"frame_time={self.frame_time}, current_frame={self.current_frame})")
