"""URDF parser producing the lookup tables the tree builder consumes.

Parsing is tolerant: apart from XML that cannot be parsed at all, every
missing or unreadable element or attribute falls back to a default and, when
the value was present but unusable, leaves a diagnostic in the result.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import jax.numpy as jnp
from lxml import etree

from jax_robot_scene.core.description import (
    Collision,
    Inertial,
    Joint,
    Link,
    Material,
    ParseResult,
    Visual,
)
from jax_robot_scene.core.diagnostics import (
    DiagnosticKind,
    Diagnostics,
    MalformedDocumentError,
)
from jax_robot_scene.core.joint_registry import JointIndexRegistry, default_registry
from jax_robot_scene.transforms.convention import convert_position

logger = logging.getLogger(__name__)

MESH_DIRECTORY = "meshes/"
SOURCE_MESH_SUFFIX = ".STL"
SCENE_MESH_SUFFIX = ".glb"
INERTIA_ATTRIBUTES = ("ixx", "ixy", "ixz", "iyy", "iyz", "izz")


def load_urdf(urdf_path: Union[str, Path], registry: Optional[JointIndexRegistry] = None) -> ParseResult:
    """Read a URDF file and parse it.

    Args:
        urdf_path: Path to the URDF file to load.
        registry: joint index table; defaults to the G1 table.

    Returns:
        ParseResult with links, joints, child joint lists and materials.
    """
    data = Path(urdf_path).read_bytes()
    logger.info("Loading robot description from %s", urdf_path)
    return parse_urdf(data, registry)


def parse_urdf(document: Union[str, bytes], registry: Optional[JointIndexRegistry] = None) -> ParseResult:
    """Parse URDF text into lookup tables.

    Args:
        document: the URDF document.
        registry: joint index table; defaults to the G1 table.

    Returns:
        ParseResult. Positions and angles are kept in URDF convention.

    Raises:
        MalformedDocumentError: if the text is not well-formed XML.
    """
    if registry is None:
        registry = default_registry()
    if isinstance(document, str):
        document = document.encode("utf-8")

    try:
        root = etree.fromstring(document)
    except (etree.XMLSyntaxError, ValueError) as err:
        raise MalformedDocumentError(f"unparsable robot description: {err}") from err

    diagnostics = Diagnostics(logger)
    result = ParseResult(name=root.get("name"), diagnostics=diagnostics)

    if root.tag != "robot":
        diagnostics.add(DiagnosticKind.UNEXPECTED_ROOT, f"root element is <{root.tag}>, expected <robot>", root.tag)

    # Materials first so visuals can refer to ones declared later
    for material_elem in root.iterchildren("material"):
        material = _parse_material(material_elem, result)
        if material.name:
            result.materials[material.name] = material

    for link_elem in root.iterchildren("link"):
        link = _parse_link(link_elem, result)
        if link is None:
            continue
        if link.name in result.links:
            diagnostics.add(DiagnosticKind.DUPLICATE_NAME, f"link '{link.name}' defined twice, keeping the last", link.name)
        result.links[link.name] = link

    for joint_elem in root.iterchildren("joint"):
        joint = _parse_joint(joint_elem, registry, result)
        if joint is not None:
            _add_joint(joint, result)

    logger.debug(
        "Parsed %d links, %d joints, %d materials (%d diagnostics)",
        len(result.links), len(result.joints), len(result.materials), len(diagnostics),
    )
    return result


def normalize_mesh_path(filename: Optional[str]) -> Optional[str]:
    """Rewrite a URDF mesh filename to the packaged-scene file name.

    Drops the ``meshes/`` directory and swaps a trailing ``.STL`` for
    ``.glb``. No existence check is made.
    """
    if filename is None:
        return None
    path = filename.replace(MESH_DIRECTORY, "")
    if path.endswith(SOURCE_MESH_SUFFIX):
        path = path[:-len(SOURCE_MESH_SUFFIX)] + SCENE_MESH_SUFFIX
    return path


def _add_joint(joint: Joint, result: ParseResult) -> None:
    previous = result.joints.get(joint.name)
    if previous is not None:
        result.diagnostics.add(DiagnosticKind.DUPLICATE_NAME, f"joint '{joint.name}' defined twice, keeping the last", joint.name)
        if previous.parent in result.child_joints:
            result.child_joints[previous.parent].remove(joint.name)
    result.joints[joint.name] = joint

    if joint.parent is None:
        result.diagnostics.add(DiagnosticKind.MISSING_REFERENCE, f"joint '{joint.name}' has no parent link", joint.name)
        return
    result.child_joints.setdefault(joint.parent, []).append(joint.name)


def _parse_link(link_elem, result: ParseResult) -> Optional[Link]:
    name = link_elem.get("name")
    if not name:
        result.diagnostics.add(DiagnosticKind.MALFORMED_VALUE, "skipping <link> without a name")
        return None

    inertial = Inertial()
    inertial_elem = link_elem.find("inertial")
    if inertial_elem is not None:
        inertial = _parse_inertial(inertial_elem, name, result.diagnostics)

    visuals = tuple(_parse_visual(elem, name, result) for elem in link_elem.iterchildren("visual"))
    collisions = tuple(_parse_collision(elem, name, result.diagnostics) for elem in link_elem.iterchildren("collision"))

    return Link(name=name, visuals=visuals, collisions=collisions, inertial=inertial)


def _parse_inertial(inertial_elem, subject: str, diagnostics: Diagnostics) -> Inertial:
    xyz, _ = _parse_origin(inertial_elem.find("origin"), subject, diagnostics)

    properties = {}
    mass_elem = inertial_elem.find("mass")
    if mass_elem is not None and mass_elem.get("value") is not None:
        properties["mass"] = _get_float(mass_elem, "value", 0.0, subject, diagnostics)

    inertia_elem = inertial_elem.find("inertia")
    if inertia_elem is not None:
        for attr in INERTIA_ATTRIBUTES:
            if inertia_elem.get(attr) is not None:
                properties[attr] = _get_float(inertia_elem, attr, 0.0, subject, diagnostics)

    return Inertial(xyz=xyz, properties=properties)


def _parse_visual(visual_elem, subject: str, result: ParseResult) -> Visual:
    xyz, rpy = _parse_origin(visual_elem.find("origin"), subject, result.diagnostics)

    mesh_path = None
    mesh_elem = visual_elem.find("geometry/mesh")
    if mesh_elem is not None:
        mesh_path = normalize_mesh_path(mesh_elem.get("filename"))

    material = None
    material_elem = visual_elem.find("material")
    if material_elem is not None:
        material = _parse_material(material_elem, result)
        if material.name and material.name not in result.materials:
            result.materials[material.name] = material

    return Visual(xyz=xyz, rpy=rpy, mesh_path=mesh_path, material=material)


def _parse_collision(collision_elem, subject: str, diagnostics: Diagnostics) -> Collision:
    xyz, rpy = _parse_origin(collision_elem.find("origin"), subject, diagnostics)

    geometry_elem = collision_elem.find("geometry")
    if geometry_elem is None:
        return Collision(xyz=xyz, rpy=rpy)

    mesh_elem = geometry_elem.find("mesh")
    if mesh_elem is not None:
        return Collision(xyz=xyz, rpy=rpy, geometry_type="mesh",
                         mesh_path=normalize_mesh_path(mesh_elem.get("filename")))

    sphere_elem = geometry_elem.find("sphere")
    if sphere_elem is not None:
        return Collision(xyz=xyz, rpy=rpy, geometry_type="sphere",
                         radius=_get_float(sphere_elem, "radius", 0.0, subject, diagnostics))

    cylinder_elem = geometry_elem.find("cylinder")
    if cylinder_elem is not None:
        return Collision(xyz=xyz, rpy=rpy, geometry_type="cylinder",
                         radius=_get_float(cylinder_elem, "radius", 0.0, subject, diagnostics),
                         length=_get_float(cylinder_elem, "length", 0.0, subject, diagnostics))

    return Collision(xyz=xyz, rpy=rpy)


def _parse_material(material_elem, result: ParseResult) -> Material:
    name = material_elem.get("name")
    color_elem = material_elem.find("color")

    if color_elem is None:
        # A bare reference picks up the color of a top-level material
        referenced = result.materials.get(name) if name else None
        return referenced if referenced is not None else Material(name=name)

    rgba = _get_vector(color_elem, "rgba", 4, None, name, result.diagnostics)
    if rgba is None:
        return Material(name=name)
    return Material(name=name, color=rgba)


def _parse_joint(joint_elem, registry: JointIndexRegistry, result: ParseResult) -> Optional[Joint]:
    name = joint_elem.get("name")
    if not name:
        result.diagnostics.add(DiagnosticKind.MALFORMED_VALUE, "skipping <joint> without a name")
        return None

    diagnostics = result.diagnostics
    index = registry.index_for(name, diagnostics)
    xyz, rpy = _parse_origin(joint_elem.find("origin"), name, diagnostics)

    axis = jnp.zeros(3)
    axis_elem = joint_elem.find("axis")
    if axis_elem is not None:
        axis = convert_position(_get_vector(axis_elem, "xyz", 3, (0.0, 0.0, 0.0), name, diagnostics))

    limits = {}
    limit_elem = joint_elem.find("limit")
    if limit_elem is not None:
        for attr, value in limit_elem.items():
            try:
                limits[attr] = float(value)
            except ValueError:
                continue

    return Joint(
        name=name,
        type=joint_elem.get("type"),
        parent=_get_link_ref(joint_elem, "parent"),
        child=_get_link_ref(joint_elem, "child"),
        xyz=xyz,
        rpy=rpy,
        axis=axis,
        limits=limits,
        index=index,
    )


def _get_link_ref(joint_elem, tag: str) -> Optional[str]:
    elem = joint_elem.find(tag)
    return elem.get("link") if elem is not None else None


def _parse_origin(origin_elem, subject: Optional[str], diagnostics: Diagnostics):
    """(xyz, rpy) of an ``<origin>`` element, zeros where absent."""
    if origin_elem is None:
        return jnp.zeros(3), jnp.zeros(3)
    xyz = _get_vector(origin_elem, "xyz", 3, (0.0, 0.0, 0.0), subject, diagnostics)
    rpy = _get_vector(origin_elem, "rpy", 3, (0.0, 0.0, 0.0), subject, diagnostics)
    return xyz, rpy


def _get_vector(elem, attr: str, size: int, default: Optional[Sequence[float]],
                subject: Optional[str], diagnostics: Diagnostics):
    """Read a whitespace separated vector attribute.

    Returns ``default`` (as an array, or None) when the attribute is absent,
    has fewer than ``size`` components or contains a non-number. Extra
    components are ignored.
    """
    fallback = None if default is None else jnp.asarray(default, dtype=float)
    text = elem.get(attr)
    if text is None or not text.strip():
        return fallback

    parts = text.split()
    try:
        values = [float(part) for part in parts[:size]]
    except ValueError:
        values = []
    if len(values) < size:
        diagnostics.add(DiagnosticKind.MALFORMED_VALUE, f"bad {attr}=\"{text}\" on <{elem.tag}>", subject)
        return fallback
    return jnp.asarray(values, dtype=float)


def _get_float(elem, attr: str, default: float, subject: Optional[str], diagnostics: Diagnostics) -> float:
    text = elem.get(attr)
    if text is None:
        return default
    try:
        return float(text)
    except ValueError:
        diagnostics.add(DiagnosticKind.MALFORMED_VALUE, f"bad {attr}=\"{text}\" on <{elem.tag}>", subject)
        return default
