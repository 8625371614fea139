'''
surface.py -- fill columns with stone, the biome palette and sea water
'''
import numpy

import blocks as B
import config


class SurfacePainter(object):
    def __init__(self, world_config):
        self.registry = world_config.registry
        # Per biome id lookup tables: dry top/filler, submerged floor/filler/cap, water fill.
        self.dry_top = numpy.full(256, B.STONE, dtype=numpy.uint16)
        self.dry_filler = numpy.full(256, B.STONE, dtype=numpy.uint16)
        self.wet_floor = numpy.full(256, B.STONE, dtype=numpy.uint16)
        self.wet_filler = numpy.full(256, B.STONE, dtype=numpy.uint16)
        self.wet_cap = numpy.full(256, B.WATER, dtype=numpy.uint16)
        self.fills_water = numpy.zeros(256, dtype=bool)
        for b in self.registry:
            top, filler, under = b.blocks
            surface = b.surface_block
            # Water and ice in a palette only mean something on top of a body of water.
            self.dry_top[b.id] = under if surface in B.SEA_COVER else surface
            self.dry_filler[b.id] = under if filler in B.SEA_COVER else filler
            self.wet_floor[b.id] = under
            self.wet_filler[b.id] = under if filler in B.SEA_COVER else filler
            self.wet_cap[b.id] = top if top in B.SEA_COVER else B.WATER
            self.fills_water[b.id] = b.fills_water

    def submerged(self, heights, biome_ids):
        return self.fills_water[biome_ids] & (heights < config.SEA_LEVEL)

    def paint(self, heights, biome_ids):
        '''
        heights, biome_ids: (X, Z) arrays. Returns a fresh (X, Y, Z) uint16 block
        array with stone up to each surface, the palette on top and sea water
        over submerged columns.
        '''
        sx, sz = heights.shape
        wet = self.submerged(heights, biome_ids)
        top = numpy.where(wet, self.wet_floor[biome_ids], self.dry_top[biome_ids])
        filler = numpy.where(wet, self.wet_filler[biome_ids], self.dry_filler[biome_ids])

        y_grid = numpy.arange(config.CHUNK_HEIGHT)[None, :, None]  # (1,Y,1)
        h = heights.astype(int)[:, None, :]                          # (X,1,Z)
        blocks = numpy.zeros((sx, config.CHUNK_HEIGHT, sz), dtype=numpy.uint16)

        blocks[y_grid < h - config.FILLER_DEPTH] = B.STONE
        filler_mask = (y_grid >= h - config.FILLER_DEPTH) & (y_grid < h)
        blocks[filler_mask] = numpy.broadcast_to(filler[:, None, :], blocks.shape)[filler_mask]
        xs, zs = numpy.meshgrid(numpy.arange(sx), numpy.arange(sz), indexing='ij')
        blocks[xs, heights.astype(int), zs] = top

        if wet.any():
            water = (y_grid > h) & (y_grid <= config.SEA_LEVEL) & wet[:, None, :]
            blocks[water] = B.WATER
            cap = self.wet_cap[biome_ids]
            wx, wz = numpy.nonzero(wet)
            blocks[wx, config.SEA_LEVEL, wz] = cap[wx, wz]
        return blocks
