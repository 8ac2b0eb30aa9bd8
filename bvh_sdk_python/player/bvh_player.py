"""
BVHPlayer - drives a PoseRetargeter at the file's frame rate.

Each file frame is applied exactly once per tick; ticks are paced with a
loop_rate_limiters.RateLimiter running at 1 / frame_time.
"""

import logging

from loop_rate_limiters import RateLimiter

from ..parser.bvh_parser import BVHParser
from ..retargeter.bind_pose import BindPoseSnapshot
from ..retargeter.skeleton_binder import SkeletonBinder


logger = logging.getLogger(__name__)

DEFAULT_FRAME_TIME = 1.0 / 30.0


class BVHPlayer:
    """
    Loads BVH files and plays them onto a target skeleton.

    Example usage:
        retargeter = PoseRetargeter(MotionBuffer(), config=RetargetConfig())
        player = BVHPlayer(retargeter, root=root_node)
        player.play("walk.bvh")            # blocks until the last frame
        player.play("run.bvh", length=2.0) # first two seconds only

    Stopping is cooperative: stop() clears the playing flag and the loop exits
    before the next tick.
    """

    def __init__(
        self,
        retargeter,
        root=None,
        bvh_file_path: str = None,
        strict: bool = False,
        on_state_change=None,
    ):
        """
        Args:
            retargeter: PoseRetargeter whose buffer receives loaded files
            root: root node of the target skeleton; its bind pose is captured here
            bvh_file_path: default file played by play()
            strict: parse in strict mode
            on_state_change: callable(bool) invoked when playback starts/stops
        """
        self.retargeter = retargeter
        self.root = root
        self.bvh_file_path = bvh_file_path
        self.parser = BVHParser(strict=strict)
        self.on_state_change = on_state_change
        self.is_playing = False
        self.rate_limiter = None

        if root is not None:
            self.binder = SkeletonBinder(root, separator=retargeter.config.name_separator)
            if retargeter.bind_pose is None:
                retargeter.bind_pose = BindPoseSnapshot(root)
        else:
            self.binder = None

    @property
    def buffer(self):
        return self.retargeter.buffer

    def read_initial_pose(self):
        """Recapture the target skeleton's bind pose."""
        if self.root is None:
            logger.error("Root node is not assigned.")
            return None
        self.retargeter.bind_pose = BindPoseSnapshot(self.root)
        return self.retargeter.bind_pose

    def load(self, bvh_file_path=None):
        """
        Parse a BVH file into the retargeter's buffer and rebind the skeleton.

        On a parse error the previous motion stays installed and the error
        propagates.
        """
        path = bvh_file_path or self.bvh_file_path
        if not path:
            raise ValueError("No BVH file path given")
        self.bvh_file_path = path

        with open(path, "r") as f:
            lines = f.read().splitlines()
        self.parser.parse(lines, buffer=self.buffer)
        self.buffer.validate()
        self.rebind()
        logger.info("Loaded BVH file: %s", path)
        return self.buffer

    def rebind(self):
        """Rebuild joint -> node bindings for the current buffer."""
        if self.binder is None:
            return self.retargeter.bindings
        self.retargeter.bindings = self.binder.bind(self.buffer.joint_names)
        return self.retargeter.bindings

    def _set_playing(self, value):
        self.is_playing = value
        if self.on_state_change is not None:
            self.on_state_change(value)

    def play(self, bvh_file_path=None, length=None, block=True):
        """
        Start playback.

        Args:
            bvh_file_path: load this file first (otherwise keep the current motion)
            length: play at most this many seconds of motion
            block: run the tick loop until finished or stopped; with False the
                caller drives playback by calling step() itself

        Returns:
            Number of frames applied (0 when not blocking)
        """
        if bvh_file_path:
            logger.info("New BVH file path: %s", bvh_file_path)
            self.load(bvh_file_path)

        # Undo the limit of a previous length-limited play
        self.buffer.reset_total_frames()
        self.buffer.set_current_frame(0)
        frame_time = self.buffer.frame_time
        if frame_time <= 0:
            logger.warning("Invalid frame time %s; using %.4f", frame_time, DEFAULT_FRAME_TIME)
            frame_time = DEFAULT_FRAME_TIME

        if length is not None and length > 0:
            frames_to_play = min(self.buffer.total_frames, int(round(length / frame_time)))
            self.buffer.set_total_frames(frames_to_play)

        self.retargeter.reset_clock()
        self.rate_limiter = RateLimiter(frequency=1.0 / frame_time, warn=False)
        self._set_playing(True)

        if not block:
            return 0
        return self.run()

    def step(self):
        """
        Apply the next frame.

        Returns:
            True if a frame was applied
        """
        if not self.is_playing:
            return False
        # Weight uses the measured time between ticks
        applied = self.retargeter.apply_frame()
        if not applied or self.buffer.is_finished:
            self._set_playing(False)
            logger.info("Animation finished.")
        return applied

    def run(self):
        """Tick until the motion ends or stop() is called."""
        applied = 0
        while self.is_playing:
            if self.step():
                applied += 1
            if self.is_playing:
                self.rate_limiter.sleep()
        return applied

    def stop(self):
        """Stop playback before the next tick."""
        if self.is_playing:
            self._set_playing(False)
