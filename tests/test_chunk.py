import numpy as np
import pytest

import blocks as B
import config
from chunk import Chunk, ChunkPos, block_state
from mapgen import ChunkGenerator, ChunkJob, GenerationError, GenerationState, generate_chunk


def _chunk():
    blocks = np.zeros((16, 256, 16), dtype=np.uint16)
    blocks[:, :40, :] = B.STONE
    blocks[3, 5, 7] = B.SAND
    biomes = np.full((16, 16), 4, dtype=np.uint8)
    heights = np.full((16, 16), 39, dtype=np.int16)
    return Chunk((2, -3), blocks, biomes, heights)


def test_chunk_pos_from_block_pos():
    assert ChunkPos.from_block_pos(0, 0) == ChunkPos(0, 0)
    assert ChunkPos.from_block_pos(15, 16) == ChunkPos(0, 1)
    assert ChunkPos.from_block_pos(-1, -16) == ChunkPos(-1, -1)
    assert ChunkPos.from_block_pos(-17, 33) == ChunkPos(-2, 2)
    assert ChunkPos(3, -2).origin == (48, -32)


def test_chunk_pos_wraps_to_32_bit_blocks():
    limit = 1 << 27  # chunks in half of the signed 32-bit block range
    assert ChunkPos(limit, 0).wrapped() == ChunkPos(-limit, 0)
    assert ChunkPos(-limit - 1, 5).wrapped() == ChunkPos(limit - 1, 5)
    assert ChunkPos(12, -7).wrapped() == ChunkPos(12, -7)


def test_region():
    region = ChunkPos(1, 1).region(1)
    assert len(region) == 9
    assert ChunkPos(0, 0) in region and ChunkPos(2, 2) in region
    assert ChunkPos(0, 0).region(0) == [ChunkPos(0, 0)]


def test_get_block_and_sections():
    c = _chunk()
    assert c.get_block(3, 5, 7) == B.SAND
    assert c.get_block(0, 100, 0) == B.AIR
    assert c.get_block(-1, 5, 0) == 0
    assert c.get_block(0, 256, 0) == 0
    assert c.get_block(16, 0, 0) == 0
    sections = c.sections()
    assert len(sections) == config.SECTIONS_PER_CHUNK
    assert sections[0] is not None and sections[2] is not None
    assert all(s is None for s in sections[3:])
    assert sections[0].shape == (16, 16, 16)
    assert c.section_mask() == 0b111


def test_section_states_layout():
    c = _chunk()
    states = c.section_states(0)
    assert states.shape == (4096,)
    assert states[3 + 16 * (7 + 16 * 5)] == block_state(B.SAND)
    assert states[0] == block_state(B.STONE)
    assert c.section_states(10) is None
    assert block_state(17, 2) == (17 << 4) | 2


def test_freeze():
    c = _chunk().freeze()
    assert c.frozen
    with pytest.raises(ValueError):
        c.blocks[0, 0, 0] = 1
    with pytest.raises(ValueError):
        c.biomes[0, 0] = 1


def test_generated_chunk_shape(small_config):
    chunk = generate_chunk(42, 0, 0, small_config)
    assert chunk.pos == ChunkPos(0, 0)
    assert chunk.blocks.shape == (16, 256, 16) and chunk.blocks.dtype == np.uint16
    assert chunk.biomes.shape == (16, 16) and chunk.biomes.dtype == np.uint8
    assert chunk.heightmap.shape == (16, 16) and chunk.heightmap.dtype == np.int16
    assert chunk.frozen
    # Bedrock layer is never carved.
    assert np.all(chunk.blocks[:, 0, :] != B.AIR)


def test_job_state_machine(small_config):
    gen = ChunkGenerator(small_config)
    job = ChunkJob(gen, 42, 1, 2)
    assert job.state is GenerationState.UNINITIALIZED and job.chunk is None
    chunk = job.run()
    assert job.state is GenerationState.COMPLETE
    assert job.chunk is chunk
    assert job.run() is chunk


def test_job_failure_leaves_nothing_behind(small_config, monkeypatch):
    gen = ChunkGenerator(small_config)
    job = ChunkJob(gen, 42, 0, 0)

    def broken(heights, biome_ids):
        raise KeyError(999)

    monkeypatch.setattr(gen.painter, "paint", broken)
    with pytest.raises(GenerationError) as info:
        job.run()
    assert isinstance(info.value.__cause__, KeyError)
    assert info.value.pos == ChunkPos(0, 0)
    assert job.state is GenerationState.UNINITIALIZED
    assert job.chunk is None

    monkeypatch.undo()
    assert job.run().pos == ChunkPos(0, 0)
    assert job.state is GenerationState.COMPLETE


def test_seed_from_config(small_config):
    with pytest.raises(ValueError):
        generate_chunk(None, 0, 0, small_config)
    small_config.seed = 42
    a = generate_chunk(None, 0, 0, small_config)
    b = generate_chunk(42, 0, 0, small_config)
    assert np.array_equal(a.blocks, b.blocks)


def test_columns_report_biomes_and_heights(small_config):
    gen = ChunkGenerator(small_config)
    columns = gen.columns(42, -1, 0)
    chunk = gen.generate(42, -1, 0)
    assert len(columns) == 256
    for col in columns:
        assert col.x == -16 + col.local_x and col.z == col.local_z
        assert chunk.biome_at(col.local_x, col.local_z) == col.biome.id
        assert chunk.height_at(col.local_x, col.local_z) == col.height
        assert col.biome.layer is col.layer
