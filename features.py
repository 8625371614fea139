'''
features.py -- surface decorations (plants, trees, boulders, puddles...)

Each feature is a small set of precomputed shapes. A shape is a list of
(dx, dy, dz, block) cells relative to the surface block of the column it is
anchored on: cells with dy >= 1 sit in the air above the ground, cells with
dy <= 0 replace ground blocks (puddles, boulder bases).
'''
import numpy

import blocks as B
import config
from noise import column_random


class Feature(object):
    def __init__(self, name, shapes):
        self.name = name
        self.shapes = [tuple(s) for s in shapes]
        self.block_ids = frozenset(c[3] for s in self.shapes for c in s)

    def shape(self, seed, wx, wz):
        '''The shape used at world column (wx, wz); a pure function of the seed and column.'''
        if len(self.shapes) == 1:
            return self.shapes[0]
        r = column_random(seed, wx, wz, self.name + ':shape')[0]
        return self.shapes[int(r * len(self.shapes))]

    def __repr__(self):
        return f'Feature({self.name!r}, {len(self.shapes)} shapes)'


def _plant(*block_ids):
    return [[(0, 1, 0, b)] for b in block_ids]


def _stack(block, heights):
    return [[(0, dy, 0, block) for dy in range(1, h + 1)] for h in heights]


def _bushes():
    leaves = [(0, 1, 0, B.LEAVES), (1, 1, 0, B.LEAVES), (-1, 1, 0, B.LEAVES),
              (0, 1, 1, B.LEAVES), (0, 1, -1, B.LEAVES)]
    return [[(0, 1, 0, B.LOG)] + leaves[1:] + [(0, 2, 0, B.LEAVES)],
            leaves]


def _puddles():
    plus = [(0, 0, 0), (1, 0, 0), (-1, 0, 0), (0, 0, 1), (0, 0, -1)]
    return [[(0, 0, 0, B.WATER)],
            [(dx, dy, dz, B.WATER) for dx, dy, dz in plus]]


def _lilypads():
    return [[(0, 0, 0, B.WATER), (0, 1, 0, B.LILY_PAD)]]


def _boulders():
    shapes = []
    for radius in (1, 2):
        cells = []
        for dx in range(-radius, radius + 1):
            for dz in range(-radius, radius + 1):
                if dx * dx + dz * dz > radius * radius + 1:
                    continue
                dy = 1 if abs(dx) + abs(dz) <= radius - 1 else 0
                block = B.MOSSY_COBBLE if (dx + dz) % 2 else B.COBBLE
                cells.append((dx, dy, dz, block))
                if dy == 1:
                    cells.append((dx, 0, dz, B.COBBLE))
        shapes.append(cells)
    return shapes


def _round_tree(height, radius, trunk=B.LOG, leaves=B.LEAVES):
    '''Trunk with a diamond-shaped canopy around its top.'''
    cells = {(0, dy, 0): trunk for dy in range(1, height + 1)}
    for dx in range(-radius, radius + 1):
        for dz in range(-radius, radius + 1):
            for dy in range(-1, 2):
                if abs(dx) + abs(dz) + abs(dy) > radius + 1:
                    continue
                cells.setdefault((dx, height + dy, dz), leaves)
    return [(dx, dy, dz, b) for (dx, dy, dz), b in sorted(cells.items())]


def _cone_tree(height):
    '''Spruce-like: leaf rings that narrow towards a single-leaf tip.'''
    cells = {(0, dy, 0): B.LOG for dy in range(1, height + 1)}
    cells[(0, height + 1, 0)] = B.LEAVES
    for i, dy in enumerate(range(height, 2, -1)):
        radius = min(2, (i + 1) // 2)
        if i % 2 == 0:
            radius = max(1, radius)
        for dx in range(-radius, radius + 1):
            for dz in range(-radius, radius + 1):
                if abs(dx) + abs(dz) > radius + 1 or (dx, dz) == (0, 0):
                    continue
                cells.setdefault((dx, dy, dz), B.LEAVES)
    return [(dx, dy, dz, b) for (dx, dy, dz), b in sorted(cells.items())]


def _build_features():
    features = [
        Feature('grass', _plant(B.TALL_GRASS)),
        Feature('fern', _plant(B.TALL_GRASS)),
        Feature('flowers', _plant(B.DANDELION, B.ROSE)),
        Feature('mushrooms', _plant(B.BROWN_MUSHROOM, B.RED_MUSHROOM)),
        Feature('dead_bushes', _plant(B.DEAD_BUSH)),
        Feature('bushes', _bushes()),
        Feature('cacti', _stack(B.CACTUS, (1, 2, 3))),
        Feature('puddles', _puddles()),
        Feature('lilypads', _lilypads()),
        Feature('boulders', _boulders()),
        Feature('icicles', _stack(B.PACKED_ICE, (2, 3, 4))),
        Feature('warm_tree', [_round_tree(h, 2) for h in (4, 5, 6)]),
        Feature('cold_tree', [_cone_tree(h) for h in (5, 6, 7)]),
        Feature('jungle_tree', [_round_tree(h, 3) for h in (8, 10, 11)]),
    ]
    return {f.name: f for f in features}


FEATURES = _build_features()


def feature_blocks():
    ids = set()
    for f in FEATURES.values():
        ids |= f.block_ids
    return ids


def fits(blocks, cells, lx, ground_y, lz):
    '''
    Whole shape inside the chunk and below the ceiling, over air above ground
    and solid ground below. Ground cells must also be uncovered: the block
    above one is air unless the shape itself puts something there.
    '''
    sx, sy, sz = blocks.shape
    occupied = {(dx, dy, dz) for dx, dy, dz, _ in cells}
    for dx, dy, dz, _ in cells:
        x, y, z = lx + dx, ground_y + dy, lz + dz
        if not (0 <= x < sx and 0 <= z < sz and 0 <= y < sy):
            return False
        current = blocks[x, y, z]
        if dy > 0:
            if current != B.AIR:
                return False
        elif not B.BLOCK_SOLID[current]:
            return False
        elif (dx, dy + 1, dz) not in occupied and (y + 1 >= sy or blocks[x, y + 1, z] != B.AIR):
            return False
    return True


def place(blocks, cells, lx, ground_y, lz):
    for dx, dy, dz, block in cells:
        blocks[lx + dx, ground_y + dy, lz + dz] = block


class FeatureScatterer(object):
    '''
    Each decoratable column tries its biome's features in ascending probability
    (then name) order. Every feature's draw is column_random(seed, x, z, name),
    so whether a feature fires never depends on the order columns are visited.
    The first feature that fires and fits claims the column.
    '''
    def __init__(self, world_config, painter):
        self.registry = world_config.registry
        self.painter = painter
        self.tables = {}
        for b in self.registry:
            entries = sorted(b.features, key=lambda item: (item[1], item[0]))
            self.tables[b.id] = [(FEATURES[name], p) for name, p in entries if p > 0.0]

    def decoratable(self, blocks, heights, biome_ids):
        '''(X, Z) mask of dry columns whose painted surface is intact with air above.'''
        sx, sz = heights.shape
        h = heights.astype(int)
        xs, zs = numpy.meshgrid(numpy.arange(sx), numpy.arange(sz), indexing='ij')
        top = blocks[xs, h, zs]
        above = numpy.where(h + 1 < config.CHUNK_HEIGHT,
                            blocks[xs, numpy.minimum(h + 1, config.CHUNK_HEIGHT - 1), zs], B.STONE)
        dry = ~self.painter.submerged(heights, biome_ids)
        return dry & (top == self.painter.dry_top[biome_ids]) & (above == B.AIR)

    def scatter(self, seed, blocks, heights, biome_ids, x0, z0):
        '''Decorate blocks (X, Y, Z) in place. Returns {feature name: placements}.'''
        sx, sz = heights.shape
        mask = self.decoratable(blocks, heights, biome_ids)
        dry_top = self.painter.dry_top[biome_ids]
        wx, wz = numpy.meshgrid(numpy.arange(sx) + int(x0), numpy.arange(sz) + int(z0), indexing='ij')
        draws = {}
        counts = {}
        for lx in range(sx):
            for lz in range(sz):
                if not mask[lx, lz]:
                    continue
                table = self.tables.get(int(biome_ids[lx, lz]))
                if not table:
                    continue
                ground = int(heights[lx, lz])
                # A neighbour's puddle or boulder may have replaced this ground since the mask was taken.
                if blocks[lx, ground, lz] != dry_top[lx, lz] or blocks[lx, ground + 1, lz] != B.AIR:
                    continue
                for feature, probability in table:
                    if feature.name not in draws:
                        draws[feature.name] = column_random(seed, wx, wz, feature.name)
                    if draws[feature.name][lx, lz] >= probability:
                        continue
                    cells = feature.shape(seed, int(wx[lx, lz]), int(wz[lx, lz]))
                    if not fits(blocks, cells, lx, ground, lz):
                        continue
                    place(blocks, cells, lx, ground, lz)
                    counts[feature.name] = counts.get(feature.name, 0) + 1
                    break
        return counts
