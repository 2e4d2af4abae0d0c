"""Shared fixtures for Orrery tests."""

import pytest

SOLAR_SYSTEM = """\
au := 2
year := 365.25

astro Sun {
    radius: 0.3
    rotation_omega: 360 / 25
    astro Earth {
        texture: "earth.jpg"
        radius: 0.1
        semimajor_axis: au
        omega: 360 / year
        astro Moon {
            texture: "moon.jpg"
            radius: 0.03
            semimajor_axis: 0.25
            omega: 360 / 27.3
        }
    }
}
"""


@pytest.fixture
def solar_system_text():
    return SOLAR_SYSTEM


@pytest.fixture
def solar_system_file(tmp_path):
    path = tmp_path / "sol.orrery"
    path.write_text(SOLAR_SYSTEM, encoding="utf-8")
    return path
