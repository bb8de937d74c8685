import io

import pytest
from PIL import Image

from voxelsprite.imageutils import is_colour_equal
from voxelsprite.manifest import Definition, Manifest, Sprite
from voxelsprite.palette import palette_from_json
from voxelsprite.spritesheet import Spritesheet, Spritesheets, get_spritesheets, sprite_size_for_angle

WHITE = (65535, 65535, 65535)


def _definition(**extra):
    palette = palette_from_json(io.StringIO('{"entries": [[0,0,0],[255,255,255]], "ranges": []}'))
    manifest = Manifest(
        lighting_angle=45,
        lighting_elevation=60,
        render_elevation_angle=0,
        accuracy=2,
        sprites=[
            Sprite(angle=0, width=32, height=32, x=0),
            Sprite(angle=45, width=32, height=32, x=40),
        ],
    )
    return Definition(palette=palette, scale=1.0, manifest=manifest, **extra)


@pytest.fixture(scope="module")
def sheets():
    return get_spritesheets(_definition())


@pytest.mark.parametrize("bpp", ["32bpp", "8bpp", "mask"])
def test_get_spritesheets(sheets, bpp):
    assert bpp in sheets.data
    image = sheets.data[bpp].image
    assert image.size == (80, 32)
    assert is_colour_equal(image, 79, 0, *WHITE)


@pytest.mark.parametrize("bpp", ["32bpp", "8bpp", "mask"])
def test_sprite_areas_and_gaps(sheets, bpp):
    image = sheets.data[bpp].image
    assert is_colour_equal(image, 0, 0, 0, 0, 0)
    assert is_colour_equal(image, 45, 10, 0, 0, 0)
    assert is_colour_equal(image, 35, 0, *WHITE)


def test_sprite_positions_assigned():
    definition = _definition()
    get_spritesheets(definition)
    assert [s.x for s in definition.manifest.sprites] == [0, 40]


def test_only_8bpp():
    result = get_spritesheets(_definition(only_8bpp=True))
    assert set(result.data) == {"8bpp"}


def test_debug_sheets():
    result = get_spritesheets(_definition(debug=True))
    expected = {
        "8bpp", "32bpp", "mask", "lighting", "depth", "normals", "occlusion",
        "shadow", "avg_normals", "detail", "transparency", "region", "sampler",
    }
    assert set(result.data) == expected
    assert result.data["region"].image.size == (80, 32)


def test_sprite_size_for_angle():
    assert sprite_size_for_angle(Sprite(width=32, height=20), 1.5) == (0, 0, 48, 30)
    assert sprite_size_for_angle(Sprite(width=5, height=5), 0.5) == (0, 0, 2, 2)


def test_spritesheet_write_round_trip():
    sheet = Spritesheet(Image.new("RGBA", (3, 2), (10, 20, 30, 255)))
    buffer = io.BytesIO()
    sheet.write(buffer)
    buffer.seek(0)
    with Image.open(buffer) as loaded:
        assert loaded.size == (3, 2)
        assert loaded.convert("RGBA").getpixel((1, 1)) == (10, 20, 30, 255)


def test_save_all(tmp_path):
    collection = Spritesheets()
    collection.store("8bpp", Spritesheet(Image.new("RGBA", (4, 4), (0, 0, 0, 255))))
    collection.store("mask", Spritesheet(Image.new("RGBA", (2, 5), (255, 255, 255, 255))))
    base = str(tmp_path / "object")
    collection.save_all(base)

    with Image.open(base + "_8bpp.png") as first:
        assert first.size == (4, 4)
    with Image.open(base + "_mask.png") as second:
        assert second.size == (2, 5)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["object_8bpp.png", "object_mask.png"]


def test_store_replaces_existing():
    collection = Spritesheets()
    collection.store("a", Spritesheet(Image.new("RGBA", (1, 1))))
    collection.store("a", Spritesheet(Image.new("RGBA", (2, 2))))
    assert collection.data["a"].image.size == (2, 2)