import pytest

from density import DENSITY_PROFILES, get_density_profile


def test_all_three_densities_defined():
    assert set(DENSITY_PROFILES) == {"compact", "normal", "comfortable"}


def test_row_height_grows_with_density():
    heights = [get_density_profile(d).row_height for d in ("compact", "normal", "comfortable")]
    assert heights == [28, 36, 44]


def test_bar_fits_inside_row():
    for profile in DENSITY_PROFILES.values():
        assert profile.task_bar_offset * 2 + profile.task_bar_height == profile.row_height


def test_unknown_density_fails_fast():
    with pytest.raises(KeyError):
        get_density_profile("spacious")


def test_profiles_are_read_only():
    with pytest.raises(TypeError):
        DENSITY_PROFILES["compact"] = DENSITY_PROFILES["normal"]  # type: ignore[index]
