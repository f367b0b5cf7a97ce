"""Material variants and scattering dispatch.

Materials form a closed set of three variants. On the Python side each is a
frozen dataclass (Lambertian, Metal, Dielectric); inside kernels a material
is a flat ``MaterialData`` struct tagged with its ``MaterialKind``, and
``scatter_material`` dispatches on the tag.

Example:
    >>> from pathtracer.materials import Metal, material_to_dict
    >>> material_to_dict(Metal(albedo=(0.8, 0.8, 0.8), fuzz=0.1))
    {'type': 'metal', 'albedo': [0.8, 0.8, 0.8], 'fuzz': 0.1}
"""

from enum import IntEnum
from numbers import Real
from typing import Any, Union

import taichi as ti
import taichi.math as tm

from pathtracer.materials.dielectric import Dielectric, scatter_dielectric
from pathtracer.materials.lambertian import Lambertian, scatter_lambertian
from pathtracer.materials.metal import Metal, scatter_metal

# Type alias for 3D vectors
vec3 = tm.vec3

# Any of the supported material values
MaterialValue = Union[Lambertian, Metal, Dielectric]


class MaterialKind(IntEnum):
    """Tag identifying a material variant inside kernels."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


@ti.dataclass
class MaterialData:
    """Kernel-side material record.

    Only the attributes of the tagged variant are meaningful.

    Attributes:
        kind: The MaterialKind of the material.
        albedo: Reflectance color (Lambertian, Metal).
        fuzz: Roughness (Metal).
        ior: Index of refraction (Dielectric).
    """

    kind: ti.i32
    albedo: vec3
    fuzz: ti.f32
    ior: ti.f32


def material_kind(material: MaterialValue) -> MaterialKind:
    """Get the kind tag of a material value.

    Raises:
        TypeError: If the value is not a supported material.
    """
    if isinstance(material, Lambertian):
        return MaterialKind.LAMBERTIAN
    if isinstance(material, Metal):
        return MaterialKind.METAL
    if isinstance(material, Dielectric):
        return MaterialKind.DIELECTRIC
    raise TypeError(f"Unsupported material: {material!r}")


def material_fields(
    material: MaterialValue,
) -> tuple[int, tuple[float, float, float], float, float]:
    """Flatten a material value into (kind, albedo, fuzz, ior) for field storage."""
    kind = material_kind(material)
    albedo = (0.0, 0.0, 0.0)
    fuzz = 0.0
    ior = 1.0
    if isinstance(material, Lambertian):
        albedo = material.albedo
    elif isinstance(material, Metal):
        albedo = material.albedo
        fuzz = material.fuzz
    else:
        ior = material.ior
    return int(kind), albedo, fuzz, ior


def material_to_dict(material: MaterialValue) -> dict[str, Any]:
    """Serialize a material value to a JSON-compatible dict."""
    if isinstance(material, Lambertian):
        return {"type": "lambertian", "albedo": list(material.albedo)}
    if isinstance(material, Metal):
        return {"type": "metal", "albedo": list(material.albedo), "fuzz": material.fuzz}
    if isinstance(material, Dielectric):
        return {"type": "dielectric", "ior": material.ior}
    raise TypeError(f"Unsupported material: {material!r}")


def float_from_json(value: Any, name: str) -> float:
    """Read a number from a scene document.

    Raises:
        ValueError: If the value is not a real number.
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValueError(f"{name} must be a number, got {value!r}")
    return float(value)


def vec3_from_json(value: Any, name: str) -> tuple[float, float, float]:
    """Read a 3-component vector from a scene document.

    Raises:
        ValueError: If the value is not a list of three numbers.
    """
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ValueError(f"{name} must be a list of 3 numbers, got {value!r}")
    x, y, z = (float_from_json(c, name) for c in value)
    return x, y, z


def material_from_dict(data: dict[str, Any]) -> MaterialValue:
    """Build a material value from its dict form.

    Raises:
        ValueError: If the type is unknown or a parameter is invalid.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Material must be an object, got {data!r}")
    mat_type = str(data.get("type", "")).lower()
    if mat_type == "lambertian":
        return Lambertian(albedo=vec3_from_json(data.get("albedo", [0.5, 0.5, 0.5]), "albedo"))
    if mat_type == "metal":
        return Metal(
            albedo=vec3_from_json(data.get("albedo", [0.8, 0.8, 0.8]), "albedo"),
            fuzz=float_from_json(data.get("fuzz", 0.0), "fuzz"),
        )
    if mat_type == "dielectric":
        return Dielectric(ior=float_from_json(data.get("ior", 1.5), "ior"))
    raise ValueError(f"Unknown material type: {data.get('type')!r}")


@ti.func
def scatter_material(
    material: MaterialData,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Dispatch to the scattering function of the material's kind.

    Args:
        material: The material at the hit point.
        incident_direction: The incoming ray direction.
        normal: The outward unit surface normal.
        state: The random state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state).
        The scattered ray starts at the hit point. did_scatter is 0 when the
        ray is absorbed, including for an unknown kind.
    """
    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    s = state

    if material.kind == int(MaterialKind.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter, s = scatter_lambertian(
            material.albedo, normal, s
        )

    elif material.kind == int(MaterialKind.METAL):
        scattered_direction, attenuation, did_scatter, s = scatter_metal(
            material.albedo, material.fuzz, incident_direction, normal, s
        )

    elif material.kind == int(MaterialKind.DIELECTRIC):
        scattered_direction, attenuation, did_scatter, s = scatter_dielectric(
            material.ior, incident_direction, normal, s
        )

    return scattered_direction, attenuation, did_scatter, s
