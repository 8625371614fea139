#std/external libs
import enum
import time

import numpy

#local libs
import config
import logutil
from caves import CaveCarver
from chunk import Chunk, ChunkPos
from climate import ClimateClassifier
from features import FeatureScatterer
from heightmap import HeightmapBuilder
from ores import OrePlacer
from surface import SurfacePainter


class GenerationError(RuntimeError):
    '''Generation of a single chunk failed; other chunks are unaffected.'''
    def __init__(self, pos, message):
        super().__init__(f'chunk {tuple(pos)}: {message}')
        self.pos = pos


class GenerationState(enum.Enum):
    UNINITIALIZED = 'uninitialized'
    GENERATING = 'generating'
    COMPLETE = 'complete'


class ChunkGenerator(object):
    '''
    Runs the whole pipeline for one chunk: climate -> heights -> surface ->
    caves -> ores -> features. Holds only read-only configuration, so a single
    instance can be shared by any number of threads.
    '''
    def __init__(self, world_config):
        self.world_config = world_config
        self.registry = world_config.registry
        self.classifier = ClimateClassifier(world_config)
        self.heightmap = HeightmapBuilder(world_config)
        self.painter = SurfacePainter(world_config)
        self.caves = CaveCarver(world_config)
        self.ores = OrePlacer(world_config)
        self.scatterer = FeatureScatterer(world_config, self.painter)

    def _seed(self, seed):
        if seed is None:
            seed = self.world_config.seed
        if seed is None:
            raise ValueError('no seed given and the world config does not set one')
        return seed

    def terrain(self, seed, cx, cz):
        '''Climate map, heights and chunk biome ids (before any blocks are laid).'''
        r = self.world_config.biome_smoothing
        cmap = self.classifier.classify_chunk(seed, cx, cz)
        heights = self.heightmap.build(cmap)
        biome_ids = cmap.biome_ids[r:r + config.CHUNK_SIZE, r:r + config.CHUNK_SIZE]
        return cmap, heights, biome_ids

    def columns(self, seed, cx, cz):
        seed = self._seed(seed)
        pos = ChunkPos(cx, cz).wrapped()
        cmap, heights, _ = self.terrain(seed, pos.x, pos.z)
        x0, z0 = pos.origin
        return list(self.heightmap.columns(cmap, heights, x0, z0))

    def build(self, seed, pos):
        '''Run every stage for pos and return a frozen Chunk. Not state tracked; see ChunkJob.'''
        t0 = time.perf_counter()
        cx, cz = pos
        x0, z0 = pos.origin
        cmap, heights, biome_ids = self.terrain(seed, cx, cz)
        unknown = set(numpy.unique(biome_ids).tolist()) - set(self.registry.ids)
        if unknown:
            raise GenerationError(pos, f'classifier produced unknown biome ids {sorted(unknown)}')
        t1 = time.perf_counter()
        blocks = self.painter.paint(heights, biome_ids)
        carved = self.caves.carve(seed, blocks, heights, x0, z0)
        t2 = time.perf_counter()
        ores = self.ores.place(seed, blocks, x0, z0)
        t3 = time.perf_counter()
        placed = self.scatterer.scatter(seed, blocks, heights, biome_ids, x0, z0)
        t4 = time.perf_counter()
        logutil.log(
            "TIMING",
            f"chunk {tuple(pos)} climate+height {(t1 - t0) * 1000:.1f}ms "
            f"surface+caves {(t2 - t1) * 1000:.1f}ms ores {(t3 - t2) * 1000:.1f}ms "
            f"features {(t4 - t3) * 1000:.1f}ms carved={carved} ores={sum(ores.values())} "
            f"features={sum(placed.values())}",
        )
        chunk = Chunk(pos, blocks, biome_ids.astype(numpy.uint8), heights.astype(numpy.int16))
        return chunk.freeze()

    def generate(self, seed, cx, cz):
        return ChunkJob(self, seed, cx, cz).run()


class ChunkJob(object):
    '''
    One chunk request moving through UNINITIALIZED -> GENERATING -> COMPLETE.
    The chunk is only exposed once the whole pipeline has finished; a failure
    puts the job back to UNINITIALIZED with nothing published.
    '''
    def __init__(self, generator, seed, cx, cz):
        self.generator = generator
        self.seed = generator._seed(seed)
        self.pos = ChunkPos(cx, cz).wrapped()
        self.state = GenerationState.UNINITIALIZED
        self._chunk = None

    @property
    def chunk(self):
        return self._chunk if self.state is GenerationState.COMPLETE else None

    def run(self):
        if self.state is GenerationState.COMPLETE:
            return self._chunk
        if self.state is GenerationState.GENERATING:
            raise GenerationError(self.pos, 'generation already in progress')
        self.state = GenerationState.GENERATING
        try:
            chunk = self.generator.build(self.seed, self.pos)
        except GenerationError:
            self.state = GenerationState.UNINITIALIZED
            raise
        except Exception as e:
            self.state = GenerationState.UNINITIALIZED
            logutil.log("MAPGEN", f"chunk {tuple(self.pos)} failed: {e!r}", level="ERROR")
            raise GenerationError(self.pos, f'{type(e).__name__}: {e}') from e
        self._chunk = chunk
        self.state = GenerationState.COMPLETE
        return chunk


def generate_chunk(seed, chunk_x, chunk_z, world_config):
    '''Generate one chunk. Pure: the same arguments always give the same Chunk contents.'''
    return ChunkGenerator(world_config).generate(seed, chunk_x, chunk_z)
