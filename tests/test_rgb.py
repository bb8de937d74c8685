from voxelsprite.rgb import RGB, clamp, clamp_rgb, permissive_clamp_rgb


def test_add_then_subtract_round_trips():
    a = RGB(100.0, 200.0, 300.0)
    b = RGB(5.0, 10.0, 15.0)
    assert (a + b) - b == a


def test_multiply_scales_each_component():
    a = RGB(2.0, 4.0, 6.0)
    assert a * 0.5 == RGB(1.0, 2.0, 3.0)


def test_clamp_inside_range_is_unchanged():
    assert clamp(5.0, 0.0, 10.0) == 5.0


def test_clamp_limits_both_ends():
    assert clamp(20.0, 0.0, 10.0) == 10.0
    assert clamp(-3.0, 0.0, 10.0) == 0.0


def test_clamp_rgb_keeps_margin():
    result = clamp_rgb(RGB(-1.0, 100000.0, 1000.0))
    assert result == RGB(256.0, 65535.0 - 256.0, 1000.0)


def test_permissive_clamp_rgb_uses_full_range():
    result = permissive_clamp_rgb(RGB(-1.0, 100000.0, 1000.0))
    assert result == RGB(0.0, 65535.0, 1000.0)


def test_divide_and_clamp_stays_within_bounds():
    result = RGB(0.0, 1e9, 1000.0).divide_and_clamp(2.0)
    for component in (result.r, result.g, result.b):
        assert 256.0 <= component <= 65535.0 - 256.0
    assert result.b == 500.0


def test_divide_and_clamp_returns_new_value():
    original = RGB(1000.0, 2000.0, 3000.0)
    original.divide_and_clamp(2.0)
    assert original == RGB(1000.0, 2000.0, 3000.0)


def test_to_rgba64_full_alpha():
    assert RGB(0.0, 0.0, 0.0).to_rgba64(1.0)[3] == 65535


def test_to_rgba64_truncates_components():
    assert RGB(1000.7, 2.2, 3.9).to_rgba64(0.5) == (1000, 2, 3, 32767)