"""Casting rays from a sprite's viewport into a processed voxel object."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from voxelsprite.geometry import Plane, Point, Vector3, deg_to_rad, unit_z, zero
from voxelsprite.manifest import Manifest, Sprite
from voxelsprite.sampler import Sample, Samples
from voxelsprite.voxelobject import ProcessedElement, ProcessedVoxelObject

_CHECK_ORDER = (4, 1, 7, 3, 5, 0, 2, 6, 8)
_RECOVERY_STEPS = 10
_NEAR_MARGIN = 3


@dataclass
class RenderSample:
    """What one sample ray found, ready for shading."""

    collision: bool = False
    index: int = 0
    normal: Vector3 = field(default_factory=Vector3)
    averaged_normal: Vector3 = field(default_factory=Vector3)
    depth: int = 0
    occlusion: int = 0
    light_amount: float = 0.0
    shadowing: float = 0.0
    influence: float = 0.0
    detail: float = 0.0
    count: int = 0
    is_recovered: bool = False


@dataclass(frozen=True)
class RayResult:
    """The voxel a ray hit, if any, and how far it travelled."""

    x: int = 0
    y: int = 0
    z: int = 0
    has_geometry: bool = False
    depth: int = 0
    is_recovered: bool = False
    approached_bounding_box: bool = False


RenderInfo = list[RenderSample]
RenderOutput = list[list[RenderInfo]]


def is_inside_bounding_volume(loc: Vector3, limits: Vector3) -> bool:
    return 0 <= loc.x < limits.x and 0 <= loc.y < limits.y and 0 <= loc.z < limits.z


def is_nearly_inside_bounding_volume(loc: Vector3, limits: Vector3) -> bool:
    """True within a few voxels of the bounding box."""
    m = _NEAR_MARGIN
    return (
        loc.x >= -m
        and loc.y >= -m
        and loc.z >= -m
        and loc.x < limits.x + m
        and loc.y < limits.y + m
        and loc.z < limits.z + m
    )


def can_terminate_ray(loc: Vector3, ray: Vector3, limits: Vector3) -> bool:
    """True when the ray is outside the volume and moving away from it."""
    return (
        (loc.x < 0 and ray.x <= 0)
        or (loc.y < 0 and ray.y <= 0)
        or (loc.z < 0 and ray.z <= 0)
        or (loc.x > limits.x and ray.x >= 0)
        or (loc.y > limits.y and ray.y >= 0)
        or (loc.z > limits.z and ray.z >= 0)
    )


def _intersection_vector(ray_dimension: float, loc_dimension: float, limit_dimension: float, ray: Vector3) -> Vector3:
    dist = -1.0
    if ray_dimension > 0.1:
        dist = -loc_dimension
    if ray_dimension < -0.1:
        dist = limit_dimension - loc_dimension
    if dist > 0:
        return ray.multiply_by_constant(dist / ray_dimension)
    return zero()


def get_intersection_with_bounds(loc: Vector3, ray: Vector3, limits: Vector3) -> Vector3:
    """Advance a ray start point to the bounding volume along the x and y axes."""
    if can_terminate_ray(loc, ray, limits):
        return loc
    loc = loc + _intersection_vector(ray.x, loc.x, limits.x, ray)
    loc = loc + _intersection_vector(ray.y, loc.y, limits.y, ray)
    return loc


def _cast_ray_to_candidate(
    obj: ProcessedVoxelObject, loc: Vector3, ray: Vector3, limits: Vector3, flip_y: bool
) -> tuple[bool, Vector3, bool]:
    b_size_y = obj.size.y - 1
    loc0 = loc
    approached = False
    step = 0

    while True:
        # The termination test is costly, so it only runs every few steps.
        if step % 4 == 0 and can_terminate_ray(loc, ray, limits):
            break

        if is_inside_bounding_volume(loc, limits):
            approached = True
            lx, ly, lz = int(loc.x), int(loc.y), int(loc.z)
            if flip_y:
                ly = b_size_y - ly
            if obj.elements[lx][ly][lz].index != 0:
                return True, loc, approached
        elif not approached and is_nearly_inside_bounding_volume(loc, limits):
            approached = True

        step += 1
        loc = loc0 + ray.multiply_by_constant(float(step))

    return False, Vector3(), approached


def _recover_non_surface_voxel(
    obj: ProcessedVoxelObject, loc: Vector3, ray: Vector3, limits: Vector3, flip_y: bool
) -> tuple[int, int, int, bool]:
    """Walk back up the ray looking at a halo of voxels for a surface voxel."""
    b_size_y = obj.size.y - 1

    lx, ly, lz = int(loc.x), int(loc.y), int(loc.z)
    if flip_y:
        ly = b_size_y - ly

    if is_inside_bounding_volume(loc, limits) and obj.elements[lx][ly][lz].is_surface:
        return lx, ly, lz, False

    check = [(0, 0, 0)] * 9
    loc0 = loc
    x, y, z = ray.x, ray.y, ray.z
    step_back = ray.normalise()

    for _ in range(_RECOVERY_STEPS):
        lx, ly, lz = int(loc.x), int(loc.y), int(loc.z)
        if flip_y:
            ly = b_size_y - ly

        for _ in range(3):
            ax, ay, az = abs(x), abs(y), abs(z)
            if ax > ay and ax > az:
                check = [(lx, ly - 1 + k % 3, lz - 1 + k // 3) for k in range(9)]
                x = 0.0
            elif ay > ax and ay > az:
                check = [(lx - 1 + k % 3, ly, lz - 1 + k // 3) for k in range(9)]
                y = 0.0
            elif az > ax and az > ay:
                check = [(lx - 1 + k % 3, ly - 1 + k // 3, lz) for k in range(9)]
                z = 0.0

            for k in _CHECK_ORDER:
                lx, ly, lz = check[k]
                if is_inside_bounding_volume(Vector3(float(lx), float(ly), float(lz)), limits):
                    if obj.elements[lx][ly][lz].is_surface:
                        return lx, ly, lz, True

            if x == 0 and y == 0 and z == 0:
                x, y, z = ray.x, ray.y, ray.z

        loc = loc - step_back

    lx, ly, lz = int(loc0.x), int(loc0.y), int(loc0.z)
    if flip_y:
        ly = b_size_y - ly
    return lx, ly, lz, True


def cast_fp_ray(
    obj: ProcessedVoxelObject, loc0: Vector3, loc: Vector3, ray: Vector3, limits: Vector3, flip_y: bool
) -> RayResult:
    """Step a ray from loc until it hits a voxel; depth is measured from loc0."""
    collision, hit_loc, approached = _cast_ray_to_candidate(obj, loc, ray, limits, flip_y)
    if collision:
        lx, ly, lz, recovered = _recover_non_surface_voxel(obj, hit_loc, ray, limits, flip_y)
        return RayResult(
            x=lx,
            y=ly,
            z=lz,
            has_geometry=True,
            depth=int((loc0 - hit_loc).length()),
            is_recovered=recovered,
            approached_bounding_box=approached,
        )
    if approached:
        return RayResult(approached_bounding_box=True)
    return RayResult()


def get_lighting_value(normal: Vector3, lighting: Vector3) -> float:
    return normal.dot(lighting)


def get_render_direction(angle: float, elevation_angle: float) -> Vector3:
    """Unit vector from the object towards the camera."""
    rad = deg_to_rad(angle)
    return Vector3(-math.cos(rad), math.sin(rad), math.sin(deg_to_rad(elevation_angle))).normalise()


def get_lighting_direction(angle: float, elevation: float, flip_y: bool) -> Vector3:
    """Unit vector of the light, optionally mirrored in y."""
    rad = deg_to_rad(angle)
    x, y, z = -math.cos(rad), math.sin(rad), math.sin(deg_to_rad(elevation))
    if flip_y:
        y = -y
    return (zero() - Vector3(x, y, z)).normalise()


def get_render_normal(angle: float) -> Vector3:
    """Unit vector across the viewport, perpendicular to the view direction."""
    rad = deg_to_rad(angle)
    x, y = -math.cos(rad), math.sin(rad)
    return Vector3(y, -x, 0.0).normalise()


def get_viewport_plane(
    angle: float, manifest: Manifest, z_error: float, size: Point, elevation_angle: float
) -> Plane:
    """The plane that sample rays start from for a given view angle."""
    cos, sin = math.cos(deg_to_rad(angle)), math.sin(deg_to_rad(angle))
    elevation_sin = math.sin(deg_to_rad(elevation_angle))
    m_size = manifest.size

    midpoint_x = float(size.x) / 2.0
    if manifest.pad_to_full_length:
        midpoint_x -= (m_size.x - float(size.x)) / 2.0

    midpoint = Vector3(midpoint_x, float(size.y) / 2.0, (m_size.z - z_error) / 2.0)
    direction = get_render_direction(angle, elevation_angle)
    viewpoint = midpoint + direction.multiply_by_constant(m_size.x)

    constant = (
        abs((m_size.x / 2.0) * cos * elevation_sin)
        + abs((m_size.y / 2.0) * sin * elevation_sin)
        + m_size.z / 2.0
    )
    constant = constant * (1.0 + z_error)
    plane_normal = unit_z().multiply_by_constant(constant)

    across = abs((m_size.x / 2.0) * sin) + abs((m_size.y / 2.0) * cos)
    render_normal = get_render_normal(angle).multiply_by_constant(across)

    return Plane(
        a=viewpoint - render_normal - plane_normal,
        b=viewpoint + render_normal - plane_normal,
        c=viewpoint + render_normal + plane_normal,
        d=viewpoint - render_normal + plane_normal,
    )


def _set_result(
    result: RenderSample,
    element: ProcessedElement,
    lighting: Vector3,
    depth: int,
    shadow_length: int,
    influence: float,
    is_recovered: bool,
    manifest: Manifest,
) -> None:
    if 0 < shadow_length < 10:
        result.shadowing = 1.0
    elif 0 < shadow_length < 80:
        result.shadowing = float(70 - (shadow_length - 10)) / 80.0

    result.collision = True
    result.index = element.index
    result.depth = depth
    result.light_amount = get_lighting_value(element.averaged_normal, lighting)
    if result.light_amount > manifest.shadow_threshold:
        if manifest.soft_shadow:
            result.shadowing = (
                result.shadowing
                * (result.light_amount - manifest.shadow_threshold)
                / (1.0 - manifest.shadow_threshold)
            )
    else:
        result.shadowing = 0.0
    result.normal = element.normal
    result.occlusion = element.occlusion
    result.averaged_normal = element.averaged_normal
    result.detail = element.detail
    result.influence = influence
    result.count = 1
    result.is_recovered = is_recovered


def _shadow_length(obj: ProcessedVoxelObject, hit: RayResult, lighting: Vector3, limits: Vector3) -> int:
    shadow_loc = Vector3(float(hit.x), float(hit.y), float(hit.z))
    shadow_vec = (zero() - lighting).normalise()

    while (int(shadow_loc.x), int(shadow_loc.y), int(shadow_loc.z)) == (hit.x, hit.y, hit.z):
        shadow_loc = shadow_loc + shadow_vec

    # The y axis has already been flipped for the hit, so it is not flipped again.
    return cast_fp_ray(obj, shadow_loc, shadow_loc, shadow_vec, limits, False).depth


def _raycast_samples(
    viewport: Plane,
    samples: list[Sample],
    ray: Vector3,
    limits: Vector3,
    obj: ProcessedVoxelObject,
    manifest: Manifest,
    sprite: Sprite,
    lighting: Vector3,
    min_x: int,
    max_x: int,
    joggle: float,
) -> RenderInfo:
    results = [RenderSample(count=1) for _ in samples]
    px = py = pz = pi = 0

    for i, sample in enumerate(samples):
        start = viewport.bilerp(sample.location.x, sample.location.y)
        loc0 = Vector3(start.x, start.y, start.z + joggle)
        loc = get_intersection_with_bounds(loc0, ray, limits)

        hit = cast_fp_ray(obj, loc0, loc, ray, limits, sprite.flip)

        if hit.has_geometry and min_x <= hit.x <= max_x:
            # Merge repeated hits on the same voxel into the earlier sample.
            if (hit.x, hit.y, hit.z) == (px, py, pz):
                results[pi].influence += sample.influence
                results[pi].count += 1
                results[i].count = 0
                continue
            px, py, pz, pi = hit.x, hit.y, hit.z, i

            element = obj.elements[hit.x][hit.y][hit.z]
            shadow_length = 0
            if get_lighting_value(element.averaged_normal, lighting) > manifest.shadow_threshold:
                shadow_length = _shadow_length(obj, hit, lighting, limits)

            _set_result(
                results[i], element, lighting, hit.depth, shadow_length,
                sample.influence, hit.is_recovered, manifest,
            )
        elif not hit.approached_bounding_box:
            # Rays that never came near the object mean the rest will miss too.
            break

    return results


def get_raycast_output(
    obj: ProcessedVoxelObject, manifest: Manifest, sprite: Sprite, samples: Samples
) -> RenderOutput:
    """Cast every sample ray of a sprite, giving output[x][y][sample]."""
    size = obj.size

    min_x, max_x = 0, size.x
    if manifest.slice_length > 0 and 0 < manifest.slice_threshold < size.x:
        midpoint = (size.x // 2) - (manifest.slice_length // 2)
        min_x = midpoint - (manifest.slice_length * sprite.slice)
        max_x = min_x + manifest.slice_length
        # Overlap neighbouring slices to avoid transparent seams.
        min_x = max(min_x - manifest.slice_overlap, 0)
        max_x = min(max_x + manifest.slice_overlap, size.x)

    limits = Vector3(float(size.x), float(size.y), float(size.z))
    elevation = float(sprite.render_elevation_angle)

    viewport = get_viewport_plane(sprite.angle, manifest, sprite.z_error, size, elevation)
    ray = zero() - get_render_direction(sprite.angle, elevation)
    lighting = get_lighting_direction(
        sprite.angle + float(manifest.lighting_angle), float(manifest.lighting_elevation), sprite.flip
    )
    joggle = sprite.joggle + manifest.joggle

    return [
        [
            _raycast_samples(
                viewport, column[y], ray, limits, obj, manifest, sprite,
                lighting, min_x, max_x, joggle,
            )
            for y in range(samples.height())
        ]
        for column in samples
    ]