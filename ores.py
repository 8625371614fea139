'''
ores.py -- replace stone with ore where a depth weight times 3D noise is high
'''
import math

import numpy

import blocks as B
from noise import NoiseField, wrap_coord


def depth_weight(y, center, spread):
    '''Gaussian falloff around the ore's center level, 1 at the center.'''
    d = (numpy.asarray(y, dtype=numpy.float64) - center) / spread
    return numpy.exp(-0.5 * d * d)


def weight_band(ore, height):
    '''Levels [lo, hi) where the depth weight alone can still beat the threshold.'''
    if ore.threshold <= 0.0:
        return 0, height
    reach = ore.spread * math.sqrt(-2.0 * math.log(ore.threshold)) if ore.threshold < 1.0 else 0.0
    lo = max(0, int(math.floor(ore.center - reach)))
    hi = min(height, int(math.ceil(ore.center + reach)) + 1)
    return lo, hi


class OrePlacer(object):
    '''
    Ores are evaluated in registry order and the first one whose score
    weight * (noise + 1) / 2 exceeds its threshold claims the block. Only
    stone is ever replaced.
    '''
    def __init__(self, world_config):
        self.ores = world_config.registry.ores
        self.channels = [world_config.ore_channel(ore) for ore in self.ores]

    def place(self, seed, blocks, x0, z0):
        '''Modify blocks (X, Y, Z) in place. Returns {ore name: blocks placed}.'''
        counts = {}
        stone = blocks == B.STONE
        for ore, channel in zip(self.ores, self.channels):
            lo, hi = weight_band(ore, blocks.shape[1])
            counts[ore.name] = 0
            if lo >= hi:
                continue
            # Earlier ores already replaced their stone, so candidates shrink as we go.
            lx, ly, lz = numpy.nonzero(stone[:, lo:hi, :])
            if lx.size == 0:
                continue
            ly = ly + lo
            weight = depth_weight(ly, ore.center, ore.spread)
            keep = weight > ore.threshold
            lx, ly, lz, weight = lx[keep], ly[keep], lz[keep], weight[keep]
            if lx.size == 0:
                continue
            points = numpy.stack([wrap_coord(lx + int(x0)), ly, wrap_coord(lz + int(z0))], axis=-1)
            values = NoiseField(seed, channel).sample(points.astype(numpy.float64))
            hit = weight * (values + 1.0) * 0.5 > ore.threshold
            blocks[lx[hit], ly[hit], lz[hit]] = ore.id
            stone[lx[hit], ly[hit], lz[hit]] = False
            counts[ore.name] = int(hit.sum())
        return counts
