"""
Transforms used by the scene builder.

- SO(3) rotations (so3 module)
- SE(3) rigid body transforms (se3 module)
- URDF to scene frame conversion (convention module)

All functions are pure and stateless.
"""

from . import so3
from . import se3
from . import convention

__all__ = [
    "so3",
    "se3",
    "convention",
]
