import os

# Size of chunks generated as one unit.
CHUNK_SIZE = 16 #width and depth (x and z)
CHUNK_HEIGHT = 256 #height of world (y)
SECTION_HEIGHT = 16 #chunks are split into CHUNK_HEIGHT//SECTION_HEIGHT cubes
SECTIONS_PER_CHUNK = CHUNK_HEIGHT // SECTION_HEIGHT

# World coordinates are conceptually unbounded; wrap them to signed 32-bit block coordinates.
COORD_WRAP_BITS = 32

DEFAULT_WORLD_CONFIG = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'world.toml')

# Terrain shaping
SEA_LEVEL = 64
FILLER_DEPTH = 3  # blocks of filler below the surface block
ELEVATION_LIFT = 24.0  # blocks per unit of (blended) biome elevation
TERRAIN_RELIEF = 48.0  # blocks per unit of elevation noise, multiplied by biome scale
RIVER_DEPTH = 4  # extra depth at the centre line of a river
MIN_SURFACE_HEIGHT = 1
MAX_SURFACE_HEIGHT = CHUNK_HEIGHT - 24  # leave headroom for trees
# Land elevation is rescaled before the nearest-biome search so it spans the biome targets.
CLIMATE_ELEVATION_GAIN = 2.0

# Defaults for optional world config keys.
DEFAULT_RIVER_BAND = 0.02
DEFAULT_SHORE_BAND = 0.04
DEFAULT_ORE_LACUNARITY = 2.0

# Caves
CAVE_SURFACE_MARGIN = 4  # blocks under the surface that are never carved
CAVE_FLOOR = 1  # lowest layer(s) of the world stay solid
CAVE_TUNNEL_WIDTH = 0.42  # tunnel radius in noise units per unit of cave threshold

# Worker pool
GENERATOR_THREADS = max(1, min(8, (os.cpu_count() or 2) - 1))
GENERATOR_QUEUE_SIZE = 1024

# Enable ANSI colors in logs.
LOG_COLOR = True

# Log per-chunk generation timings.
LOG_GENERATION_TIMES = False

# Mirror log output to a file (None disables).
LOG_FILE_PATH = None
LOG_FILE_APPEND = False

LOG_LEVEL = 'INFO'
