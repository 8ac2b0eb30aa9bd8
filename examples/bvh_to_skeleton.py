#!/usr/bin/env python3
"""
Example: BVH file to skeleton retargeting.

This script parses a BVH file, builds a target skeleton that mirrors the
file's own hierarchy (optionally namespaced), and applies every frame to it
with PoseRetargeter.

Usage:
    python bvh_to_skeleton.py --bvh_file data/sample_walk.bvh
    python bvh_to_skeleton.py --bvh_file data/sample_walk.bvh --config data/retarget.json --realtime

Output:
    - Prints the root pose for sampled frames
    - Optionally saves per-frame local poses to a pickle file
"""

import argparse
import logging
import os
import pickle
import sys
import time

import numpy as np

# Allow running without installing the package (add project root to path)
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root not in sys.path:
    sys.path.insert(0, _root)

from bvh_sdk_python import (
    BindPoseSnapshot,
    BVHPlayer,
    PoseRetargeter,
    RetargetConfig,
    RotationMappingConfig,
    bind_skeleton,
    build_skeleton_from_buffer,
    load_bvh_file,
)
from bvh_sdk_python.retargeter import iter_depth_first
from bvh_sdk_python.utils.quat_utils import quat_to_euler_deg


def build_config(args):
    if args.config:
        return RetargetConfig.from_json(args.config)
    return RetargetConfig(
        scale_factor=args.scale,
        mirror_left_right=args.mirror,
        smoothing_rate=args.smoothing_rate,
        rotation_mapping=RotationMappingConfig(
            order=args.order, sign_x=args.sign_x, sign_y=args.sign_y, sign_z=args.sign_z),
        bones_prefix=args.prefix,
    )


def snapshot_pose(root):
    return {
        node.name: (node.local_position.copy(), node.local_rotation.copy())
        for node in iter_depth_first(root)
    }


def main():
    parser = argparse.ArgumentParser(description="BVH to skeleton retargeting")

    parser.add_argument("--bvh_file", type=str, required=True, help="Path to BVH motion file")
    parser.add_argument("--config", type=str, default=None,
                        help="JSON retarget config (overrides the options below)")
    parser.add_argument("--scale", type=float, default=0.01,
                        help="Scale applied to root X/Z motion (default: 0.01)")
    parser.add_argument("--mirror", action="store_true", default=False,
                        help="Swap Left/Right joint data")
    parser.add_argument("--smoothing_rate", type=float, default=30.0,
                        help="Smoothing rate; weight = frame_time * rate (default: 30)")
    parser.add_argument("--order", choices=["XYZ", "XZY", "YXZ", "YZX", "ZXY", "ZYX"],
                        default="XYZ", help="Rotation composition order (default: XYZ)")
    parser.add_argument("--sign_x", type=int, choices=[1, -1], default=1)
    parser.add_argument("--sign_y", type=int, choices=[1, -1], default=1)
    parser.add_argument("--sign_z", type=int, choices=[1, -1], default=1)
    parser.add_argument("--prefix", type=str, default="",
                        help="Namespace prefix of the target skeleton nodes, e.g. 'mixamorig:'")
    parser.add_argument("--realtime", action="store_true", default=False,
                        help="Play at the file's frame rate instead of as fast as possible")
    parser.add_argument("--length", type=float, default=None,
                        help="Seconds of motion to play (realtime mode)")
    parser.add_argument("--save_path", type=str, default=None,
                        help="Path to save per-frame local poses (pickle format)")
    parser.add_argument("--verbose", action="store_true", default=False,
                        help="Print verbose output")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(name)s] %(levelname)s: %(message)s",
    )

    config = build_config(args)

    # Load BVH file
    print(f"Loading BVH file: {args.bvh_file}")
    buffer = load_bvh_file(args.bvh_file)
    for warning in buffer.validate():
        print(f"  Warning: {warning}")
    print(f"Loaded {len(buffer.joint_names)} joints, {len(buffer.frames)} frames "
          f"@ {buffer.frame_time:.4f}s/frame")

    # Target skeleton mirroring the BVH hierarchy
    root = build_skeleton_from_buffer(buffer, scale=config.scale_factor, prefix=config.bones_prefix)
    if root is None:
        print("BVH file has no joints")
        return None

    bind_pose = BindPoseSnapshot(root)
    bindings = bind_skeleton(root, buffer.joint_names, separator=config.name_separator)
    retargeter = PoseRetargeter(buffer, bindings, bind_pose, config)

    poses = []
    start_time = time.time()

    if args.realtime:
        player = BVHPlayer(retargeter, root=root)
        player.play(length=args.length)
        poses.append(snapshot_pose(root))
    else:
        while retargeter.apply_frame(delta_time=buffer.frame_time):
            poses.append(snapshot_pose(root))
            frame = buffer.current_frame - 1
            if args.verbose and frame % 100 == 0:
                euler = quat_to_euler_deg(root.local_rotation)
                print(f"  Frame {frame}/{buffer.playable_frames}: "
                      f"root pos={np.round(root.local_position, 3)} rot(xyz deg)={np.round(euler, 1)}")

    elapsed = time.time() - start_time
    print(f"Retargeting completed: {buffer.current_frame} frames in {elapsed:.2f}s")

    # Print sample output
    print("\nSample output (last frame):")
    print(f"  Root position: {root.local_position}")
    print(f"  Root rotation (wxyz): {root.local_rotation}")
    print(f"  Bound joints: {len(bindings)}/{len(buffer.joint_names)}")

    # Save to file if requested
    if args.save_path:
        save_dir = os.path.dirname(args.save_path)
        if save_dir:
            os.makedirs(save_dir, exist_ok=True)

        motion_data = {
            "frame_time": buffer.frame_time,
            "joint_names": [node.name for node in iter_depth_first(root)],
            "poses": poses,
            "config": config.to_dict(),
        }

        with open(args.save_path, "wb") as f:
            pickle.dump(motion_data, f)
        print(f"\nSaved to {args.save_path}")

    return poses


if __name__ == "__main__":
    main()
