'''
climate.py -- per-column climate sampling and biome classification

The classifier samples the four climate channels over a padded grid, smooths
them with a box mean and resolves each column to a (layer, biome id) pair.
Everything here is vectorised over whole grids; classify() is a thin scalar
wrapper for single columns.
'''
from typing import NamedTuple

import numpy

import config
from biomes import BiomeLayer
from noise import NoiseField
from worldconfig import CLIMATE_CHANNELS

LAYER_CODE = {BiomeLayer.SEA: 0, BiomeLayer.RIVER: 1, BiomeLayer.LAND: 2}
LAYER_FROM_CODE = {v: k for k, v in LAYER_CODE.items()}


class ClimateSample(NamedTuple):
    elevation: float
    temperature: float
    moisture: float
    river: float


def box_mean(a, radius):
    '''
    Mean over the (2r+1)^2 window around each cell; the result shrinks by r on
    every side. Terms are always added in the same window order, so a column
    gets bit-identical values no matter which chunk computes it.
    '''
    if radius == 0:
        return a.copy()
    k = 2 * radius + 1
    w = a.shape[0] - 2 * radius
    d = a.shape[1] - 2 * radius
    total = numpy.zeros((w, d), dtype=numpy.float64)
    for dx in range(k):
        for dz in range(k):
            total += a[dx:dx + w, dz:dz + d]
    return total / (k * k)


class ClimateMap(object):
    '''
    Smoothed climate grids and their classification for a square of columns
    starting at world (x0, z0). All arrays are indexed [x, z].
    '''
    def __init__(self, x0, z0, elevation, temperature, moisture, river, layers, biome_ids):
        self.x0 = x0
        self.z0 = z0
        self.elevation = elevation
        self.temperature = temperature
        self.moisture = moisture
        self.river = river
        self.layers = layers
        self.biome_ids = biome_ids

    @property
    def size(self):
        return self.biome_ids.shape[0]

    def sample(self, lx, lz):
        return ClimateSample(float(self.elevation[lx, lz]), float(self.temperature[lx, lz]),
                             float(self.moisture[lx, lz]), float(self.river[lx, lz]))

    def layer(self, lx, lz):
        return LAYER_FROM_CODE[int(self.layers[lx, lz])]


def _column(values):
    return numpy.array(values, dtype=numpy.float64)


class ClimateClassifier(object):
    def __init__(self, world_config):
        self.world_config = world_config
        self.registry = world_config.registry
        self.radius = world_config.biome_smoothing
        self.ocean_level = world_config.ocean_level
        self.river_band = world_config.river_band
        self.shore_band = world_config.shore_band
        self.channels = {name: world_config.climate_channel(name) for name in CLIMATE_CHANNELS}

        # Flat lookup tables per layer, already in ascending id order.
        river = self.registry.by_layer(BiomeLayer.RIVER)
        sea = self.registry.by_layer(BiomeLayer.SEA)
        shore = [b for b in sea if (b.elevation or 0.0) > 0.0]
        deep = [b for b in sea if (b.elevation or 0.0) <= 0.0]
        if not shore:
            shore = deep
        if not deep:
            deep = shore
        self._river = self._temperature_table(river)
        self._shore = self._temperature_table(shore)
        self._deep = self._temperature_table(deep)

        land = self.registry.by_layer(BiomeLayer.LAND)
        self._land_ids = numpy.array([b.id for b in land], dtype=numpy.int16)
        width = numpy.sqrt(_column([b.scale for b in land]))
        nan = numpy.nan
        self._land_targets = (
            _column([b.temperature for b in land]),
            _column([nan if b.moisture is None else b.moisture for b in land]),
            _column([nan if b.elevation is None else b.elevation for b in land]),
        )
        self._land_width = width

    @staticmethod
    def _temperature_table(biomes):
        return (numpy.array([b.id for b in biomes], dtype=numpy.int16),
                _column([b.temperature for b in biomes]))

    def _nearest_temperature(self, temperature, table):
        ids, targets = table
        d = numpy.abs(temperature[..., numpy.newaxis] - targets)
        # argmin returns the first minimum, which is the lowest id.
        return ids[numpy.argmin(d, axis=-1)]

    def _nearest_land(self, temperature, moisture, elevation):
        land_elevation = (elevation - self.ocean_level) * config.CLIMATE_ELEVATION_GAIN
        d2 = numpy.zeros(temperature.shape + self._land_ids.shape, dtype=numpy.float64)
        for value, target in zip((temperature, moisture, land_elevation), self._land_targets):
            diff = (value[..., numpy.newaxis] - target) / self._land_width
            d2 += numpy.where(numpy.isnan(target), 0.0, diff) ** 2
        return self._land_ids[numpy.argmin(d2, axis=-1)]

    def classify_grid(self, elevation, temperature, moisture, river):
        '''Return (layer codes, biome ids) for arrays of smoothed climate values.'''
        is_river = numpy.abs(river) < self.river_band
        is_sea = ~is_river & (elevation <= self.ocean_level)
        is_shore = is_sea & (self.ocean_level - elevation <= self.shore_band)

        river_ids = self._nearest_temperature(temperature, self._river)
        sea_ids = numpy.where(is_shore,
                              self._nearest_temperature(temperature, self._shore),
                              self._nearest_temperature(temperature, self._deep))
        land_ids = self._nearest_land(temperature, moisture, elevation)

        biome_ids = numpy.where(is_river, river_ids, numpy.where(is_sea, sea_ids, land_ids))
        layers = numpy.where(is_river, LAYER_CODE[BiomeLayer.RIVER],
                             numpy.where(is_sea, LAYER_CODE[BiomeLayer.SEA],
                                         LAYER_CODE[BiomeLayer.LAND])).astype(numpy.int8)
        return layers, biome_ids.astype(numpy.int16)

    def classify(self, sample):
        '''Resolve one ClimateSample to (BiomeLayer, BiomeDefinition).'''
        grids = [numpy.array([[v]], dtype=numpy.float64) for v in sample]
        layers, ids = self.classify_grid(*grids)
        return LAYER_FROM_CODE[int(layers[0, 0])], self.registry[int(ids[0, 0])]

    def raw_grids(self, seed, x0, z0, size):
        '''Unsmoothed channel grids for size x size columns starting at (x0, z0).'''
        return {name: NoiseField(seed, channel).grid(x0, z0, size, size)
                for name, channel in self.channels.items()}

    def classify_region(self, seed, x0, z0, size):
        '''
        Smoothed and classified ClimateMap for size x size columns starting at
        world (x0, z0). Samples are taken radius columns further out on every side.
        '''
        r = self.radius
        raw = self.raw_grids(seed, x0 - r, z0 - r, size + 2 * r)
        smoothed = {name: box_mean(raw[name], r) for name in CLIMATE_CHANNELS}
        layers, ids = self.classify_grid(smoothed['elevation'], smoothed['temperature'],
                                         smoothed['moisture'], smoothed['river'])
        return ClimateMap(x0, z0, smoothed['elevation'], smoothed['temperature'],
                          smoothed['moisture'], smoothed['river'], layers, ids)

    def classify_chunk(self, seed, cx, cz):
        '''ClimateMap for a chunk plus a biome_smoothing border for height blending.'''
        r = self.radius
        return self.classify_region(seed, cx * config.CHUNK_SIZE - r, cz * config.CHUNK_SIZE - r,
                                    config.CHUNK_SIZE + 2 * r)

    def column(self, seed, x, z):
        '''Smoothed sample and classification for a single world column.'''
        cmap = self.classify_region(seed, x, z, 1)
        return cmap.sample(0, 0), cmap.layer(0, 0), self.registry[int(cmap.biome_ids[0, 0])]
