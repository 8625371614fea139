'''
chunk.py -- generated chunk data and chunk coordinates
'''
from typing import NamedTuple

import numpy

import config
from noise import wrap_coord

SECTION_VOLUME = config.CHUNK_SIZE * config.CHUNK_SIZE * config.SECTION_HEIGHT
CHUNK_SHIFT = config.CHUNK_SIZE.bit_length() - 1


def block_state(block_id, data=0):
    '''Pack a block id and its 4-bit data value the way section storage does.'''
    return (block_id << 4) | (data & 0x0f)


class ChunkPos(NamedTuple):
    x: int
    z: int

    @classmethod
    def from_block_pos(cls, x, z):
        return cls(int(x) >> CHUNK_SHIFT, int(z) >> CHUNK_SHIFT)

    def wrapped(self):
        '''Same chunk with its block origin folded into the signed 32-bit range.'''
        return ChunkPos.from_block_pos(wrap_coord(self.x * config.CHUNK_SIZE),
                                       wrap_coord(self.z * config.CHUNK_SIZE))

    @property
    def origin(self):
        return self.x * config.CHUNK_SIZE, self.z * config.CHUNK_SIZE

    def region(self, radius):
        '''Chunk positions in the (2r+1)^2 square around this one, row by row.'''
        return [ChunkPos(self.x + dx, self.z + dz)
                for dx in range(-radius, radius + 1)
                for dz in range(-radius, radius + 1)]


class Chunk(object):
    '''
    blocks: uint16 (x, y, z), biomes: uint8 (x, z), heightmap: int16 (x, z).
    A chunk handed out by the generator is frozen; its arrays are read-only.
    '''
    def __init__(self, pos, blocks, biomes, heightmap):
        self.pos = ChunkPos(*pos)
        self.blocks = blocks
        self.biomes = biomes
        self.heightmap = heightmap

    def freeze(self):
        for a in (self.blocks, self.biomes, self.heightmap):
            a.setflags(write=False)
        return self

    @property
    def frozen(self):
        return not self.blocks.flags.writeable

    def get_block(self, x, y, z):
        '''Block at local (x, y, z); anything outside the chunk reads as air.'''
        sx, sy, sz = self.blocks.shape
        if x < 0 or y < 0 or z < 0 or x >= sx or y >= sy or z >= sz:
            return 0
        return int(self.blocks[x, y, z])

    def biome_at(self, x, z):
        return int(self.biomes[x, z])

    def height_at(self, x, z):
        return int(self.heightmap[x, z])

    def section(self, index):
        '''16 x 16 x 16 (x, y, z) view of one vertical section, or None if it is all air.'''
        lo = index * config.SECTION_HEIGHT
        view = self.blocks[:, lo:lo + config.SECTION_HEIGHT, :]
        if not view.any():
            return None
        return view

    def sections(self):
        return [self.section(i) for i in range(config.SECTIONS_PER_CHUNK)]

    def section_mask(self):
        '''Bit i is set when section i holds any non-air block.'''
        mask = 0
        for i, s in enumerate(self.sections()):
            if s is not None:
                mask |= 1 << i
        return mask

    def section_states(self, index):
        '''
        Flat block states of a section in y, z, x order (index x + 16 * (z + 16 * y)),
        or None for an empty section.
        '''
        view = self.section(index)
        if view is None:
            return None
        states = block_state(view.transpose(1, 2, 0).astype(numpy.uint16))
        return states.reshape(SECTION_VOLUME)

    def __repr__(self):
        return f'Chunk({self.pos.x}, {self.pos.z})'
