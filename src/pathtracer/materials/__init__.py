"""Materials module for light scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick reflectance
    material: Variant tags, kernel-side material records and dispatch

Each scatter function takes the random state and returns
(scattered_direction, attenuation, did_scatter, state). A did_scatter of 0
means the ray is absorbed and contributes no light.
"""

from .dielectric import Dielectric, scatter_dielectric
from .lambertian import Lambertian, scatter_lambertian
from .material import (
    MaterialData,
    MaterialKind,
    MaterialValue,
    material_fields,
    material_from_dict,
    material_kind,
    material_to_dict,
    scatter_material,
)
from .metal import Metal, scatter_metal

__all__ = [
    "Lambertian",
    "scatter_lambertian",
    "Metal",
    "scatter_metal",
    "Dielectric",
    "scatter_dielectric",
    "MaterialKind",
    "MaterialData",
    "MaterialValue",
    "material_kind",
    "material_fields",
    "material_to_dict",
    "material_from_dict",
    "scatter_material",
]
