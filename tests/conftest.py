import copy
import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from worldconfig import load_world_config, parse_world_config  # noqa: E402

SAMPLE_CONFIG = os.path.join(ROOT, "world.toml")

# A small world: one biome per role, everything easy to reason about by hand.
SMALL_CONFIG = {
    "master_scale": 1.0,
    "ocean_level": 0.0,
    "biome_smoothing": 1,
    "octaves": 2,
    "falloff": 0.5,
    "elevation_scale": 0.01,
    "elevation_lac": 2.0,
    "temperature_scale": 0.005,
    "temperature_lac": 2.0,
    "moisture_scale": 0.005,
    "moisture_lac": 2.0,
    "river_scale": 0.004,
    "river_lac": 2.0,
    "cave_scale": 0.05,
    "cave_lac": 1.5,
    "cave_grad_base": 0.3,
    "cave_grad_scale": 0.2,
    "biomes": {
        "ocean": {"id": 0, "temperature": 0.0, "elevation": -0.5, "scale": 1.0,
                  "layer": "Sea", "blocks": [9, 9, 13], "sea_level": True},
        "beach": {"id": 16, "temperature": 0.0, "elevation": 0.3, "scale": 0.4,
                  "layer": "Sea", "blocks": [12, 12, 24], "sea_level": True},
        "river": {"id": 7, "temperature": 0.0, "scale": 0, "layer": "River",
                  "blocks": [9, 9, 13], "sea_level": True},
        "plains": {"id": 1, "temperature": 0.0, "moisture": 0.0, "elevation": 0.2, "scale": 0.5,
                   "layer": "Land", "blocks": [2, 3, 3], "features": {"grass": 0.3}},
        "hills": {"id": 3, "temperature": 0.5, "moisture": -0.5, "elevation": 1.0, "scale": 2.0,
                  "layer": "Land", "blocks": [1, 1, 1]},
    },
    "ores": {
        "coal": {"id": 16, "center": 40, "spread": 20, "scale": 0.1, "threshold": 0.6},
        "iron": {"id": 15, "center": 20, "spread": 10, "scale": 0.15, "threshold": 0.65},
    },
}


def make_config_data(**overrides):
    data = copy.deepcopy(SMALL_CONFIG)
    for key, value in overrides.items():
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
    return data


def make_config(**overrides):
    return parse_world_config(make_config_data(**overrides))


def all_land_config(features=None, **overrides):
    '''Only dry plains: no column can be sea (ocean_level -1) or river (band 0).'''
    biomes = copy.deepcopy(SMALL_CONFIG["biomes"])
    del biomes["hills"]
    if features is not None:
        biomes["plains"]["features"] = features
    return make_config(ocean_level=-1.0, river_band=0.0, biomes=biomes, **overrides)


@pytest.fixture(scope="session")
def sample_config():
    return load_world_config(SAMPLE_CONFIG)


@pytest.fixture
def small_config():
    return make_config()
