"""
Retargeting configuration.

RetargetConfig can be built from keyword arguments or loaded from a JSON
file, e.g.:

    {
        "scale_factor": 0.01,
        "mirror_left_right": false,
        "smoothing_rate": 30.0,
        "bones_prefix": "mixamorig:",
        "rotation_mapping": {"order": "ZXY", "sign_x": 1, "sign_y": -1, "sign_z": 1}
    }

Smoothing: each tick interpolates toward the target with weight
``elapsed_seconds * smoothing_rate``. The weight is NOT clamped by default,
so a rate/tick combination giving a weight above 1 overshoots the target
instead of converging. Set ``clamp_smoothing`` to limit the weight to [0, 1].
"""

import enum
import json
from dataclasses import asdict, dataclass, field, fields


class AxisOrder(str, enum.Enum):
    """Order in which single-axis rotations are multiplied (left to right)."""
    XYZ = "XYZ"
    XZY = "XZY"
    YXZ = "YXZ"
    YZX = "YZX"
    ZXY = "ZXY"
    ZYX = "ZYX"


@dataclass(frozen=True)
class RotationMappingConfig:
    """
    How BVH rotation channels become a quaternion.

    Each of the X, Y, Z degree values is multiplied by its sign, turned into a
    single-axis rotation, and the three are composed in ``order``
    (order XYZ gives Rx * Ry * Rz).
    """
    order: AxisOrder = AxisOrder.XYZ
    sign_x: int = 1
    sign_y: int = 1
    sign_z: int = 1

    def __post_init__(self):
        try:
            order = AxisOrder(str(getattr(self.order, "value", self.order)).upper())
        except ValueError:
            raise ValueError(f"Unknown axis order: {self.order}. "
                             f"Supported: {[o.value for o in AxisOrder]}") from None
        object.__setattr__(self, "order", order)
        for axis in ("sign_x", "sign_y", "sign_z"):
            if getattr(self, axis) not in (1, -1):
                raise ValueError(f"{axis} must be 1 or -1, got {getattr(self, axis)}")

    @property
    def signs(self):
        return {"x": self.sign_x, "y": self.sign_y, "z": self.sign_z}

    def to_dict(self):
        return {"order": self.order.value, "sign_x": self.sign_x,
                "sign_y": self.sign_y, "sign_z": self.sign_z}


@dataclass(frozen=True)
class RetargetConfig:
    """
    Options for PoseRetargeter.

    Attributes:
        scale_factor: uniform scale applied to retargeted X/Z root motion
        mirror_left_right: drive Left* joints from Right* data and vice versa
        smoothing_rate: multiplied by elapsed seconds to form the (unclamped)
            interpolation weight
        rotation_mapping: Euler sign/order remapping
        bones_prefix: prepended to clean joint names for bind-pose lookups
        name_separator: namespace separator stripped from node names
        clamp_smoothing: clamp the interpolation weight to [0, 1]
    """
    scale_factor: float = 0.01
    mirror_left_right: bool = True
    smoothing_rate: float = 30.0
    rotation_mapping: RotationMappingConfig = field(default_factory=RotationMappingConfig)
    bones_prefix: str = ""
    name_separator: str = ":"
    clamp_smoothing: bool = False

    def __post_init__(self):
        if isinstance(self.rotation_mapping, dict):
            object.__setattr__(self, "rotation_mapping", RotationMappingConfig(**self.rotation_mapping))
        if self.smoothing_rate < 0:
            raise ValueError(f"smoothing_rate must be >= 0, got {self.smoothing_rate}")

    @classmethod
    def from_dict(cls, data):
        """Build a config from a plain dict. Unknown keys raise ValueError."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown retarget config keys: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_json(cls, path):
        """Load a config from a JSON file."""
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def to_dict(self):
        data = asdict(self)
        data["rotation_mapping"] = self.rotation_mapping.to_dict()
        return data

    def save_json(self, path):
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
