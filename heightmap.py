'''
heightmap.py -- surface height per column from climate and biome parameters
'''
from typing import NamedTuple

import numpy

import config
from biomes import BiomeDefinition, BiomeLayer
from climate import LAYER_CODE, LAYER_FROM_CODE, box_mean


class Column(NamedTuple):
    x: int
    z: int
    local_x: int
    local_z: int
    biome: BiomeDefinition
    layer: BiomeLayer
    height: int


class HeightmapBuilder(object):
    '''
    h = SEA_LEVEL + ELEVATION_LIFT * elev + TERRAIN_RELIEF * scale * (e - ocean_level)

    elev and scale are the biome parameters box-averaged over biome_smoothing,
    e is the smoothed elevation sample. River columns are cut below sea level.
    '''
    def __init__(self, world_config):
        self.registry = world_config.registry
        self.radius = world_config.biome_smoothing
        self.ocean_level = world_config.ocean_level
        self.river_band = world_config.river_band
        self.elevation_lut = numpy.zeros(256, dtype=numpy.float64)
        self.scale_lut = numpy.zeros(256, dtype=numpy.float64)
        for b in self.registry:
            # River biomes carry no elevation target and blend as flat ground.
            self.elevation_lut[b.id] = b.elevation or 0.0
            self.scale_lut[b.id] = b.scale

    def build(self, cmap):
        '''
        cmap must extend biome_smoothing columns past the target square on every
        side (see ClimateClassifier.classify_chunk). Returns int16 heights [x, z].
        '''
        r = self.radius
        size = cmap.size - 2 * r
        ids = cmap.biome_ids
        elev = box_mean(self.elevation_lut[ids], r)
        scale = box_mean(self.scale_lut[ids], r)
        inner = slice(r, r + size)
        e = cmap.elevation[inner, inner]

        h = config.SEA_LEVEL + config.ELEVATION_LIFT * elev \
            + config.TERRAIN_RELIEF * scale * (e - self.ocean_level)

        is_river = cmap.layers[inner, inner] == LAYER_CODE[BiomeLayer.RIVER]
        if is_river.any():
            closeness = 1.0 - numpy.abs(cmap.river[inner, inner]) / self.river_band
            bed = config.SEA_LEVEL - 1 - numpy.floor(config.RIVER_DEPTH * closeness + 0.5)
            h = numpy.where(is_river, numpy.minimum(h, bed), h)

        h = numpy.floor(h + 0.5)
        return numpy.clip(h, config.MIN_SURFACE_HEIGHT, config.MAX_SURFACE_HEIGHT).astype(numpy.int16)

    def columns(self, cmap, heights, x0, z0):
        '''Column records for the square of heights whose first column is world (x0, z0).'''
        offset = self.radius
        for lx in range(heights.shape[0]):
            for lz in range(heights.shape[1]):
                code = int(cmap.layers[lx + offset, lz + offset])
                biome = self.registry[int(cmap.biome_ids[lx + offset, lz + offset])]
                yield Column(x0 + lx, z0 + lz, lx, lz, biome, LAYER_FROM_CODE[code],
                             int(heights[lx, lz]))
