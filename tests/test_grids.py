from voxelsprite.geometry import Point
from voxelsprite.grids import make_3d_bytes


def test_make_3d_bytes_dimensions():
    grid = make_3d_bytes(Point(1, 2, 3))
    assert len(grid) == 1
    assert len(grid[0]) == 2
    assert len(grid[0][0]) == 3


def test_make_3d_bytes_is_zeroed_and_independent():
    grid = make_3d_bytes(Point(2, 2, 2))
    assert all(value == 0 for plane in grid for row in plane for value in row)
    grid[0][0][0] = 7
    assert grid[1][0][0] == 0
    assert grid[0][1][0] == 0