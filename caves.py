'''
caves.py -- carve tunnels out of solid terrain with 3D noise
'''
import numpy

import blocks as B
import config
from noise import NoiseChannel, NoiseField, wrap_coord
from worldconfig import CAVE_CHANNEL


class CaveCarver(object):
    '''
    Tunnels follow the lines where two independent 3D cave fields are both
    close to zero. A block is carved when

        n1**2 + n2**2 < (CAVE_TUNNEL_WIDTH * threshold)**2
        threshold = cave_grad_base + cave_grad_scale * depth

    with depth = 1 - y / h (0 just under the surface, 1 at the world floor).
    The threshold grows with depth: tunnels are thin and rare near the surface
    and wider, more connected further down. Only solid blocks with
    CAVE_FLOOR <= y < h - CAVE_SURFACE_MARGIN are considered, so the surface
    crust of every column survives.
    '''
    def __init__(self, world_config):
        main = world_config.channel(CAVE_CHANNEL)
        cross = NoiseChannel(f'{main.name}:cross', main.scale, main.lacunarity,
                             main.octaves, main.falloff)
        self.channels = (main, cross)
        self.base = world_config.cave_grad_base
        self.scale = world_config.cave_grad_scale

    def eligible(self, blocks, heights):
        y_grid = numpy.arange(blocks.shape[1])[None, :, None]
        h = heights.astype(int)[:, None, :]
        band = (y_grid >= config.CAVE_FLOOR) & (y_grid < h - config.CAVE_SURFACE_MARGIN)
        return band & B.BLOCK_SOLID[blocks]

    def threshold(self, y, h):
        depth = 1.0 - numpy.asarray(y, dtype=numpy.float64) / h
        return self.base + self.scale * depth

    def carve(self, seed, blocks, heights, x0, z0):
        '''Carve blocks (X, Y, Z) in place; (x0, z0) is the world origin of the chunk. Returns the count.'''
        mask = self.eligible(blocks, heights)
        if not mask.any():
            return 0
        lx, ly, lz = numpy.nonzero(mask)
        points = numpy.stack([wrap_coord(lx + int(x0)), ly, wrap_coord(lz + int(z0))], axis=-1)
        points = points.astype(numpy.float64)
        n1 = NoiseField(seed, self.channels[0]).sample(points)
        n2 = NoiseField(seed, self.channels[1]).sample(points)
        radius = config.CAVE_TUNNEL_WIDTH * self.threshold(ly, heights[lx, lz].astype(numpy.float64))
        hit = n1 * n1 + n2 * n2 < radius * radius
        blocks[lx[hit], ly[hit], lz[hit]] = B.AIR
        return int(hit.sum())
