'''
blocks.py -- numeric block ids written into generated chunks

Ids follow the classic numbering used by the world config palettes
(e.g. 9 = water, 13 = gravel, 79 = ice).
'''
import numpy

MAX_BLOCK_ID = 255

BLOCK_ID = {
    'Air': 0,
    'Stone': 1,
    'Grass': 2,
    'Dirt': 3,
    'Cobblestone': 4,
    'Water': 9,
    'Sand': 12,
    'Gravel': 13,
    'Gold Ore': 14,
    'Iron Ore': 15,
    'Coal Ore': 16,
    'Log': 17,
    'Leaves': 18,
    'Lapis Ore': 21,
    'Sandstone': 24,
    'Tall Grass': 31,
    'Dead Bush': 32,
    'Dandelion': 37,
    'Rose': 38,
    'Brown Mushroom': 39,
    'Red Mushroom': 40,
    'Mossy Cobblestone': 48,
    'Diamond Ore': 56,
    'Redstone Ore': 73,
    'Snow Layer': 78,
    'Ice': 79,
    'Cactus': 81,
    'Lily Pad': 111,
    'Emerald Ore': 129,
    'Packed Ice': 174,
}

AIR = BLOCK_ID['Air']
STONE = BLOCK_ID['Stone']
GRASS = BLOCK_ID['Grass']
DIRT = BLOCK_ID['Dirt']
COBBLE = BLOCK_ID['Cobblestone']
WATER = BLOCK_ID['Water']
SAND = BLOCK_ID['Sand']
LOG = BLOCK_ID['Log']
LEAVES = BLOCK_ID['Leaves']
TALL_GRASS = BLOCK_ID['Tall Grass']
DEAD_BUSH = BLOCK_ID['Dead Bush']
DANDELION = BLOCK_ID['Dandelion']
ROSE = BLOCK_ID['Rose']
BROWN_MUSHROOM = BLOCK_ID['Brown Mushroom']
RED_MUSHROOM = BLOCK_ID['Red Mushroom']
MOSSY_COBBLE = BLOCK_ID['Mossy Cobblestone']
ICE = BLOCK_ID['Ice']
CACTUS = BLOCK_ID['Cactus']
LILY_PAD = BLOCK_ID['Lily Pad']
PACKED_ICE = BLOCK_ID['Packed Ice']

# Palette entries that only make sense on top of a body of water.
SEA_COVER = frozenset((WATER, ICE))

# Blocks that count as ground. Unknown ids (palettes may use any id) are treated as solid.
BLOCK_SOLID = numpy.ones(MAX_BLOCK_ID + 1, dtype=bool)
for _id in (AIR, WATER, TALL_GRASS, DEAD_BUSH, DANDELION, ROSE,
            BROWN_MUSHROOM, RED_MUSHROOM, LILY_PAD):
    BLOCK_SOLID[_id] = False
del _id
