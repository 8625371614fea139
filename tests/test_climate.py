import numpy as np

import config
from biomes import BiomeLayer, BiomeRegistry, parse_biome
from climate import LAYER_CODE, ClimateClassifier, ClimateSample, box_mean
from conftest import SMALL_CONFIG, make_config
from heightmap import HeightmapBuilder


def test_box_mean():
    a = np.arange(25, dtype=float).reshape(5, 5)
    m = box_mean(a, 1)
    assert m.shape == (3, 3)
    assert m[0, 0] == a[0:3, 0:3].mean()
    assert m[2, 1] == a[2:5, 1:4].mean()
    assert np.array_equal(box_mean(a, 0), a)


def test_classify_layers(small_config):
    c = ClimateClassifier(small_config)
    layer, biome = c.classify(ClimateSample(0.5, 0.0, 0.0, 0.0))
    assert layer is BiomeLayer.RIVER and biome.name == "river"
    # River wins even far below the ocean level.
    layer, biome = c.classify(ClimateSample(-0.9, 0.0, 0.0, 0.01))
    assert layer is BiomeLayer.RIVER
    layer, biome = c.classify(ClimateSample(-0.5, 0.0, 0.0, 0.5))
    assert layer is BiomeLayer.SEA and biome.name == "ocean"
    layer, biome = c.classify(ClimateSample(-0.01, 0.0, 0.0, 0.5))
    assert layer is BiomeLayer.SEA and biome.name == "beach"
    layer, biome = c.classify(ClimateSample(0.0, 0.0, 0.0, 0.5))
    assert layer is BiomeLayer.SEA
    layer, biome = c.classify(ClimateSample(0.1, 0.0, 0.0, 0.5))
    assert layer is BiomeLayer.LAND and biome.name == "plains"
    layer, biome = c.classify(ClimateSample(0.5, 0.5, -0.5, 0.5))
    assert layer is BiomeLayer.LAND and biome.name == "hills"


def _registry(*entries):
    base = {k: v for k, v in SMALL_CONFIG["biomes"].items() if k in ("ocean", "river")}
    biomes = [parse_biome(name, entry) for name, entry in base.items()]
    biomes += [parse_biome(name, entry) for name, entry in entries]
    return BiomeRegistry(biomes)


def _with_registry(registry):
    cfg = make_config()
    cfg.registry = registry
    return cfg


def test_ties_go_to_lowest_id():
    land = {"temperature": 0.2, "moisture": 0.2, "elevation": 0.5, "scale": 1.0,
            "layer": "Land", "blocks": [2, 3, 3]}
    reg = _registry(("b", dict(land, id=30)), ("a", dict(land, id=20)))
    c = ClimateClassifier(_with_registry(reg))
    _, biome = c.classify(ClimateSample(0.4, -0.3, 0.9, 0.5))
    assert biome.id == 20


def test_missing_moisture_target_is_ignored():
    dry = {"temperature": 0.0, "moisture": -0.8, "elevation": 0.2, "scale": 1.0,
           "layer": "Land", "blocks": [12, 12, 24]}
    anywhere = {"temperature": 0.0, "elevation": 0.2, "scale": 1.0,
                "layer": "Land", "blocks": [2, 3, 3]}
    reg = _registry(("dry", dict(dry, id=2)), ("anywhere", dict(anywhere, id=5)))
    c = ClimateClassifier(_with_registry(reg))
    # Very wet column: the biome without a moisture target is the only zero-distance match.
    _, biome = c.classify(ClimateSample(0.1, 0.0, 0.9, 0.5))
    assert biome.name == "anywhere"
    # Equal on every axis: the lower id wins.
    _, biome = c.classify(ClimateSample(0.1, 0.0, -0.8, 0.5))
    assert biome.name == "dry"


def test_scale_widens_catchment():
    narrow = {"temperature": -0.5, "moisture": 0.0, "elevation": 0.2, "scale": 0.25,
              "layer": "Land", "blocks": [2, 3, 3]}
    wide = {"temperature": 0.5, "moisture": 0.0, "elevation": 0.2, "scale": 4.0,
            "layer": "Land", "blocks": [1, 1, 1]}
    reg = _registry(("narrow", dict(narrow, id=1)), ("wide", dict(wide, id=2)))
    c = ClimateClassifier(_with_registry(reg))
    # Slightly closer to the narrow biome's temperature, but the wide one still wins.
    _, biome = c.classify(ClimateSample(0.1, -0.1, 0.0, 0.5))
    assert biome.name == "wide"
    _, biome = c.classify(ClimateSample(0.1, -0.45, 0.0, 0.5))
    assert biome.name == "narrow"


def test_region_classification_invariants(sample_config):
    c = ClimateClassifier(sample_config)
    reg = sample_config.registry
    for seed, (x0, z0) in ((42, (0, 0)), (7, (-4096, 1024)), (123456, (20000, -9000))):
        cmap = c.classify_region(seed, x0, z0, 64)
        is_river = np.abs(cmap.river) < sample_config.river_band
        is_sea = ~is_river & (cmap.elevation <= sample_config.ocean_level)
        assert np.all(cmap.layers[is_river] == LAYER_CODE[BiomeLayer.RIVER])
        assert np.all(cmap.layers[is_sea] == LAYER_CODE[BiomeLayer.SEA])
        assert np.all(cmap.layers[~is_river & ~is_sea] == LAYER_CODE[BiomeLayer.LAND])
        for code, layer in ((0, BiomeLayer.SEA), (1, BiomeLayer.RIVER), (2, BiomeLayer.LAND)):
            ids = {int(i) for i in np.unique(cmap.biome_ids[cmap.layers == code])}
            assert ids <= {b.id for b in reg.by_layer(layer)}
        assert cmap.elevation.min() >= -1.0 and cmap.elevation.max() <= 1.0


def test_scalar_column_matches_region(sample_config):
    c = ClimateClassifier(sample_config)
    cmap = c.classify_region(42, 100, 200, 8)
    sample, layer, biome = c.column(42, 103, 205)
    assert sample == cmap.sample(3, 5)
    assert layer is cmap.layer(3, 5)
    assert biome.id == cmap.biome_ids[3, 5]


def test_chunk_heights_match_wide_region(sample_config):
    """A chunk's heights are a function of world columns only, not of the chunk window."""
    c = ClimateClassifier(sample_config)
    hb = HeightmapBuilder(sample_config)
    r = sample_config.biome_smoothing
    size = config.CHUNK_SIZE
    for seed, cx, cz in ((42, 0, 0), (99, -3, 5)):
        wide = c.classify_region(seed, cx * size - r, cz * size - r, 2 * size + 2 * r)
        wide_heights = hb.build(wide)
        assert wide_heights.shape == (2 * size, 2 * size)
        for dx in (0, 1):
            for dz in (0, 1):
                cmap = c.classify_chunk(seed, cx + dx, cz + dz)
                heights = hb.build(cmap)
                block = (slice(dx * size, (dx + 1) * size), slice(dz * size, (dz + 1) * size))
                assert np.array_equal(heights, wide_heights[block])
                assert np.array_equal(cmap.biome_ids[r:r + size, r:r + size],
                                      wide.biome_ids[r:r + 2 * size, r:r + 2 * size][block])


def test_heights_in_range_and_rivers_below_sea(sample_config):
    c = ClimateClassifier(sample_config)
    hb = HeightmapBuilder(sample_config)
    r = sample_config.biome_smoothing
    for seed in (1, 42, 2024):
        cmap = c.classify_region(seed, -r, -r, 64 + 2 * r)
        h = hb.build(cmap)
        assert h.min() >= config.MIN_SURFACE_HEIGHT and h.max() <= config.MAX_SURFACE_HEIGHT
        river = cmap.layers[r:r + 64, r:r + 64] == LAYER_CODE[BiomeLayer.RIVER]
        assert np.all(h[river] < config.SEA_LEVEL)
