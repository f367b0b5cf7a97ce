"""Monte Carlo path tracer for sphere scenes, built on Taichi kernels.

This package renders images of spheres with diffuse, metallic and glass
materials by tracing jittered camera rays through the scene and averaging
the light they gather:

Subpackages:
    core: Ray and vector utilities, random source, radiance integrator,
        pixel sampler and progressive accumulation
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Scene storage, closest-hit queries, scene manager and presets
    camera: Positionable thin-lens camera
    preview: PPM/PNG image export

Modules that declare Taichi fields must be imported after ``ti.init()``.
"""

__version__ = "0.1.0"
