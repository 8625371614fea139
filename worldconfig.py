'''
worldconfig.py -- load and validate the world generator config (TOML)

Errors are reported as ConfigError with the dotted path of the offending key;
nothing is generated from a config that failed validation.
'''
import tomllib
from collections.abc import Mapping

import config
from biomes import BiomeRegistry, ConfigError, as_integer, as_number
from noise import NoiseChannel

CLIMATE_CHANNELS = ('elevation', 'temperature', 'moisture', 'river')
CAVE_CHANNEL = 'cave'

GLOBAL_KEYS = frozenset(
    ['master_scale', 'ocean_level', 'biome_smoothing', 'octaves', 'falloff',
     'cave_grad_base', 'cave_grad_scale', 'river_band', 'shore_band', 'ore_lac',
     'seed', 'biomes', 'ores']
    + [f'{ch}_scale' for ch in CLIMATE_CHANNELS + (CAVE_CHANNEL,)]
    + [f'{ch}_lac' for ch in CLIMATE_CHANNELS + (CAVE_CHANNEL,)]
)

__all__ = ['ConfigError', 'WorldConfig', 'load_world_config', 'parse_world_config']


class WorldConfig(object):
    '''Validated, read-only world generator settings plus the biome/ore registry.'''

    def __init__(self, master_scale, ocean_level, biome_smoothing, channels, cave_grad_base,
                 cave_grad_scale, registry, river_band=config.DEFAULT_RIVER_BAND,
                 shore_band=config.DEFAULT_SHORE_BAND, ore_lacunarity=config.DEFAULT_ORE_LACUNARITY,
                 seed=None):
        self.master_scale = master_scale
        self.ocean_level = ocean_level
        self.biome_smoothing = biome_smoothing
        self.channels = dict(channels)
        self.cave_grad_base = cave_grad_base
        self.cave_grad_scale = cave_grad_scale
        self.registry = registry
        self.river_band = river_band
        self.shore_band = shore_band
        self.ore_lacunarity = ore_lacunarity
        self.seed = seed

    def channel(self, name):
        return self.channels[name]

    def climate_channel(self, name):
        '''Climate channels are sampled at their own scale times master_scale.'''
        return self.channels[name].scaled(self.master_scale)

    def ore_channel(self, ore):
        base = self.channels[CAVE_CHANNEL]
        return NoiseChannel(f'ore:{ore.name}', ore.scale, self.ore_lacunarity, base.octaves, base.falloff)


def _get(data, key):
    if key not in data:
        raise ConfigError(f'missing required setting "{key}"')
    return data[key]


def parse_world_config(data):
    if not isinstance(data, Mapping):
        raise ConfigError('world config must be a table')
    unknown = sorted(set(data) - GLOBAL_KEYS)
    if unknown:
        raise ConfigError(f'unknown setting(s) {", ".join(unknown)}')

    master_scale = as_number(_get(data, 'master_scale'), 'master_scale', 1e-6, 1000.0)
    ocean_level = as_number(_get(data, 'ocean_level'), 'ocean_level', -1.0, 1.0)
    biome_smoothing = as_integer(_get(data, 'biome_smoothing'), 'biome_smoothing', 0, config.CHUNK_SIZE)
    octaves = as_integer(_get(data, 'octaves'), 'octaves', 1, 16)
    falloff = as_number(_get(data, 'falloff'), 'falloff', 1e-6, 1.0)

    channels = {}
    for name in CLIMATE_CHANNELS + (CAVE_CHANNEL,):
        scale = as_number(_get(data, f'{name}_scale'), f'{name}_scale', 1e-9, 16.0)
        lac = as_number(_get(data, f'{name}_lac'), f'{name}_lac', 1e-6, 16.0)
        channels[name] = NoiseChannel(name, scale, lac, octaves, falloff)

    cave_grad_base = as_number(_get(data, 'cave_grad_base'), 'cave_grad_base', -1.0, 2.0)
    cave_grad_scale = as_number(_get(data, 'cave_grad_scale'), 'cave_grad_scale', -2.0, 2.0)
    river_band = as_number(data.get('river_band', config.DEFAULT_RIVER_BAND), 'river_band', 0.0, 1.0)
    shore_band = as_number(data.get('shore_band', config.DEFAULT_SHORE_BAND), 'shore_band', 0.0, 2.0)
    ore_lac = as_number(data.get('ore_lac', config.DEFAULT_ORE_LACUNARITY), 'ore_lac', 1e-6, 16.0)
    seed = data.get('seed')
    if seed is not None:
        seed = as_integer(seed, 'seed', -(1 << 63), (1 << 64) - 1)

    registry = BiomeRegistry.from_tables(_get(data, 'biomes'), data.get('ores', {}))
    return WorldConfig(master_scale, ocean_level, biome_smoothing, channels, cave_grad_base,
                       cave_grad_scale, registry, river_band=river_band, shore_band=shore_band,
                       ore_lacunarity=ore_lac, seed=seed)


def load_world_config(path=None):
    if path is None:
        path = config.DEFAULT_WORLD_CONFIG
    try:
        with open(path, 'rb') as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        raise ConfigError(f'world generator config not found: {path}') from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f'failed to parse world generator config {path}: {e}') from e
    return parse_world_config(data)
