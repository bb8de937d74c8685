# voxelsprite

`voxelsprite` turns voxel models into sprite sheets. Each model is raycast
from a set of view angles described in a manifest, shaded with directional
lighting, shadows, occlusion and depth cues, and then reduced to a fixed
palette with Floyd–Steinberg dithering. The result is a set of sheets:

- an 8-bit palette-indexed sheet (`8bpp`),
- a 32-bit true-colour sheet (`32bpp`),
- a mask sheet that keeps company-colour and animated-light pixels (`mask`),
- and, when `Definition.debug` is set, debug sheets named `lighting`,
  `depth`, `normals`, `occlusion`, `shadow`, `avg_normals`, `detail`,
  `transparency`, `region` and `sampler`.

## Installing

```
pip install .
pip install ".[test]"   # with pytest, to run the tests
```

## Modules

| Module | Purpose |
| --- | --- |
| `voxelsprite.geometry` | `Vector3`, `Vector2`, `Point`, `PointWithColour`, `Plane`; `zero`, `unit_x`, `unit_y`, `unit_z`, `deg_to_rad` |
| `voxelsprite.rgb` | the floating-point `RGB` colour used while shading; `clamp`, `clamp_rgb`, `permissive_clamp_rgb` |
| `voxelsprite.palette` | `Palette`, `PaletteEntry`, `PaletteRange`, `PaletteError`; `palette_from_json`, `load_palette` |
| `voxelsprite.manifest` | `Manifest`, `Sprite`, `Definition`, `ManifestError`; `manifest_from_json`, `load_manifest` |
| `voxelsprite.voxelobject` | `VoxelObject`, `ProcessedVoxelObject`, `ProcessedElement`; `get_processed_voxel_object`, `reflect`, `reflect101` |
| `voxelsprite.sampler` | per-pixel sample patterns: `square`, `disc`, chosen by name with `get_sampler` |
| `voxelsprite.raycaster` | `get_raycast_output` casts the sample rays of one sprite |
| `voxelsprite.shaders` | per-sample colour and debug channel values |
| `voxelsprite.shader` | `get_shader_output` shades, groups into regions and dithers the raycast result |
| `voxelsprite.sprite` | draws shaded sprites into Pillow images |
| `voxelsprite.spritesheet` | `get_spritesheets` builds every sheet; `Spritesheets.save_all` writes them as PNG |
| `voxelsprite.imageutils` | small helpers for making and comparing Pillow images |
| `voxelsprite.files` | `base_filename`, `instantiate_from_file`, `write_to_file` |
| `voxelsprite.grids` | `make_3d_bytes`, a zero-filled `[x][y][z]` byte grid |
| `voxelsprite.timing` | `timed` runs a callable and reports its duration in milliseconds |

## Rendering a model

```python
from voxelsprite.manifest import Definition, load_manifest
from voxelsprite.palette import load_palette
from voxelsprite.spritesheet import get_spritesheets
from voxelsprite.voxelobject import VoxelObject, get_processed_voxel_object

palette = load_palette("palette.json")
manifest = load_manifest("manifest.json")

# grid[x][y][z] holds raw voxel values; 0 is empty, and a value v
# is drawn with palette index v - 2.
voxels = VoxelObject.from_voxels(grid)
obj = get_processed_voxel_object(
    voxels, palette, manifest.tiled_normals, manifest.tiling_mode, manifest.solid_base
)

definition = Definition(object=obj, palette=palette, manifest=manifest, scale=1.0)
sheets = get_spritesheets(definition)
sheets.save_all("out/model")
```

`save_all` writes `out/model_8bpp.png`, `out/model_32bpp.png`,
`out/model_mask.png` and any debug sheets. With `only_8bpp=True` only the
`8bpp` sheet is made. Sprites are laid out left to right, each taking its
width plus 8 pixels, all multiplied by the scale. If the object has a zero
dimension, every sprite in the 32-bit sheets is filled with black.

The tiling mode decides what lies beyond the object's edges when normals are
calculated with tiled normals: `"repeat"` extends the edge voxels,
`"reflect"` and `"reflect101"` mirror the object, and anything else wraps
around.

## Palettes

A palette file is JSON with a list of `[r, g, b]` entries and a list of
ranges, plus the optional numbers `company_colour_lighting_contribution`,
`default_brightness` and `company_colour_lighting_scale`. A range has `start`
and `end` indexes and may set `is_primary_company_colour`,
`is_secondary_company_colour`, `is_animated_light`, `is_process_colour`,
`non_renderable`, `smoothness`, `max_gap_in_region` and
`expected_colour_range`. A range with no `max_gap_in_region` gets 6, and an
`expected_colour_range` of 3. Overlapping ranges, or a range reaching past
the last entry, raise `PaletteError`:

```python
from voxelsprite.palette import palette_from_json

palette = palette_from_json(
    '{"entries": [[0,0,0],[255,255,255],[255,127,0]],'
    ' "ranges": [{"start": 0, "end": 2}]}'
)

palette.lit_indexed(1, 1.0)   # 2: brightest entry in the ramp
palette.lit_indexed(1, -1.0)  # 0: darkest entry in the ramp
```

`palette_from_json` accepts text, bytes or a readable stream.

## Manifests

A manifest is JSON. Its keys are `lighting_angle`, `lighting_elevation`,
`size` (an object with `x`, `y`, `z`), `render_elevation`, `sprites`,
`depth_influence`, `tiled_normals`, `tiling_mode`, `solid_base`,
`soften_edges`, `accuracy`, `sampler`, `overlap`, `brightness`, `contrast`,
`detail_boost`, `fade_to_black`, `alpha_edge_threshold`,
`hard_edge_threshold`, `pad_to_full_length`, `slice_threshold`,
`slice_length`, `slice_overlap`, `falloff_adjustment`,
`recovered_voxel_suppression`, `joggle`, `dither_flat_areas`, `fosterise`,
`suppress_edge_fosterisation`, `soft_shadow` and `shadow_threshold`.

Each sprite may set `angle`, `width`, `height`, `offset_x`, `offset_y`,
`flip`, `slice`, `render_elevation` and `joggle`.

Defaults from `manifest_from_json` are an accuracy of 2, an alpha edge
threshold of 0.5 and the tiling mode `"normal"`. The brightness is scaled by
65535 and 1 is added to the contrast. A sprite height of `0` is calculated
from the model size and view angle, and a sprite `render_elevation` of `0`
takes the manifest's. Malformed JSON or values of the wrong type raise
`ManifestError`.

## Sampling

```python
from voxelsprite.sampler import get_sampler

samples = get_sampler("square")(2, 1, 2, 0.0, 0.5)
samples.width()     # 2
samples.height()    # 1
len(samples[0][0])  # 4 samples per pixel at accuracy 2
```

Unknown sampler names fall back to `square`. `disc` places samples in a
Poisson disc and keeps a few discs cached for reuse.

## File names

```python
from voxelsprite.files import base_filename

base_filename("files/test.png")  # "files/test"
base_filename("test.a.b.c")      # "test.a.b"
```

## What the package does not do

- It has no command-line tool; rendering is done by calling the library as
  shown above.
- It does not read voxel model files. A `VoxelObject` is built from nested
  lists of voxel values with `VoxelObject.from_voxels`, or from a `Point`
  size and such a list.
- It does not skip renders whose output files are already up to date, and
  has no progress indicator; `timed` and `Definition.time` only print how
  long each stage took.