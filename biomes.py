'''
biomes.py -- the biome and ore catalogue loaded from the world config

The registry is built once at startup and never changes afterwards, so it can
be shared between generator threads without locking.
'''
import enum
import math
from collections.abc import Mapping
from types import MappingProxyType
from typing import NamedTuple, Optional, Tuple

import blocks
import config


class ConfigError(ValueError):
    '''The world configuration is malformed or inconsistent.'''


class BiomeLayer(enum.Enum):
    SEA = 'Sea'
    RIVER = 'River'
    LAND = 'Land'


class BiomeDefinition(NamedTuple):
    name: str
    id: int
    temperature: float
    moisture: Optional[float]
    elevation: Optional[float]
    scale: float
    layer: BiomeLayer
    blocks: Tuple[int, int, int]
    surface_layer: Optional[int] = None
    sea_level: bool = False
    features: Tuple[Tuple[str, float], ...] = ()

    @property
    def surface_block(self):
        return self.surface_layer if self.surface_layer is not None else self.blocks[0]

    @property
    def filler_block(self):
        return self.blocks[1]

    @property
    def underwater_block(self):
        return self.blocks[2]

    @property
    def fills_water(self):
        '''Columns of this biome that sit below sea level are flooded.'''
        return self.sea_level or self.layer is not BiomeLayer.LAND

    def palette(self):
        ids = set(self.blocks)
        if self.surface_layer is not None:
            ids.add(self.surface_layer)
        return ids


class OreDefinition(NamedTuple):
    name: str
    id: int
    center: float
    spread: float
    scale: float
    threshold: float


BIOME_KEYS = frozenset(('id', 'temperature', 'moisture', 'elevation', 'scale', 'layer',
                        'blocks', 'surface_layer', 'sea_level', 'features'))
ORE_KEYS = frozenset(('id', 'center', 'spread', 'scale', 'threshold'))


def _require(entry, key, path):
    if key not in entry:
        raise ConfigError(f'{path}: missing required field "{key}"')
    return entry[key]


def as_number(value, path, low=-math.inf, high=math.inf):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f'{path}: expected a number, got {value!r}')
    value = float(value)
    if not math.isfinite(value) or value < low or value > high:
        raise ConfigError(f'{path}: {value} is outside [{low}, {high}]')
    return value


def as_integer(value, path, low, high):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f'{path}: expected an integer, got {value!r}')
    if value < low or value > high:
        raise ConfigError(f'{path}: {value} is outside [{low}, {high}]')
    return value


def _block_id(value, path):
    return as_integer(value, path, 0, blocks.MAX_BLOCK_ID)


def _check_keys(entry, allowed, path):
    unknown = sorted(set(entry) - allowed)
    if unknown:
        raise ConfigError(f'{path}: unknown field(s) {", ".join(unknown)}')


def parse_biome(name, entry, known_features=None):
    path = f'biomes.{name}'
    if not isinstance(entry, Mapping):
        raise ConfigError(f'{path} must be a table')
    _check_keys(entry, BIOME_KEYS, path)

    layer_name = _require(entry, 'layer', path)
    try:
        layer = BiomeLayer(layer_name)
    except ValueError:
        choices = '/'.join(l.value for l in BiomeLayer)
        raise ConfigError(f'{path}.layer: {layer_name!r} is not one of {choices}') from None

    biome_id = as_integer(_require(entry, 'id', path), f'{path}.id', 0, 255)
    temperature = as_number(_require(entry, 'temperature', path), f'{path}.temperature', -1.0, 1.0)
    if 'elevation' in entry:
        elevation = as_number(entry['elevation'], f'{path}.elevation', -2.0, 2.0)
    elif layer is BiomeLayer.RIVER:
        elevation = None
    else:
        raise ConfigError(f'{path}: missing required field "elevation"')
    moisture = None
    if 'moisture' in entry:
        moisture = as_number(entry['moisture'], f'{path}.moisture', -1.0, 1.0)
    scale = as_number(_require(entry, 'scale', path), f'{path}.scale', 0.0, 16.0)
    if layer is BiomeLayer.LAND and scale <= 0.0:
        raise ConfigError(f'{path}.scale: land biomes need a positive scale')

    palette = _require(entry, 'blocks', path)
    if not isinstance(palette, (list, tuple)) or len(palette) != 3:
        raise ConfigError(f'{path}.blocks: expected [surface, filler, underwater], got {palette!r}')
    palette = tuple(_block_id(b, f'{path}.blocks[{i}]') for i, b in enumerate(palette))

    surface_layer = None
    if 'surface_layer' in entry:
        surface_layer = _block_id(entry['surface_layer'], f'{path}.surface_layer')
    sea_level = entry.get('sea_level', False)
    if not isinstance(sea_level, bool):
        raise ConfigError(f'{path}.sea_level: expected true/false, got {sea_level!r}')

    features = entry.get('features', {})
    if not isinstance(features, Mapping):
        raise ConfigError(f'{path}.features must be a table of name = probability')
    feature_items = []
    for feature, probability in features.items():
        fpath = f'{path}.features.{feature}'
        if known_features is not None and feature not in known_features:
            raise ConfigError(f'{fpath}: unknown feature')
        feature_items.append((feature, as_number(probability, fpath, 0.0, 1.0)))

    return BiomeDefinition(name, biome_id, temperature, moisture, elevation, scale, layer,
                           palette, surface_layer, sea_level, tuple(feature_items))


def parse_ore(name, entry):
    path = f'ores.{name}'
    if not isinstance(entry, Mapping):
        raise ConfigError(f'{path} must be a table')
    _check_keys(entry, ORE_KEYS, path)
    return OreDefinition(
        name,
        as_integer(_require(entry, 'id', path), f'{path}.id', 1, blocks.MAX_BLOCK_ID),
        as_number(_require(entry, 'center', path), f'{path}.center', 0.0, config.CHUNK_HEIGHT - 1),
        as_number(_require(entry, 'spread', path), f'{path}.spread', 1e-6, config.CHUNK_HEIGHT),
        as_number(_require(entry, 'scale', path), f'{path}.scale', 1e-6, 16.0),
        as_number(_require(entry, 'threshold', path), f'{path}.threshold', 0.0, 1.0),
    )


class BiomeRegistry(object):
    '''
    Read-only lookup of biomes (ordered by id) and ores (in config order).
    '''
    def __init__(self, biomes, ores=()):
        ordered = sorted(biomes, key=lambda b: b.id)
        by_id = {}
        by_name = {}
        for b in ordered:
            if b.id in by_id:
                raise ConfigError(f'biomes.{b.name}: id {b.id} already used by biomes.{by_id[b.id].name}')
            by_id[b.id] = b
            by_name[b.name] = b
        self._biomes = tuple(ordered)
        self._by_id = MappingProxyType(by_id)
        self._by_name = MappingProxyType(by_name)
        layers = {}
        for layer in BiomeLayer:
            layers[layer] = tuple(b for b in self._biomes if b.layer is layer)
            if not layers[layer]:
                raise ConfigError(f'biomes: no biome with layer = "{layer.value}"')
        self._layers = MappingProxyType(layers)

        ore_ids = {}
        for ore in ores:
            if ore.id in ore_ids:
                raise ConfigError(f'ores.{ore.name}: id {ore.id} already used by ores.{ore_ids[ore.id]}')
            ore_ids[ore.id] = ore.name
        self._ores = tuple(ores)

    @classmethod
    def from_tables(cls, biome_table, ore_table=None, known_features=None):
        if known_features is None:
            import features
            known_features = features.FEATURES
        if not isinstance(biome_table, Mapping) or not biome_table:
            raise ConfigError('biomes: expected a non-empty table of biomes')
        if ore_table is None:
            ore_table = {}
        if not isinstance(ore_table, Mapping):
            raise ConfigError('ores: expected a table of ores')
        biomes = [parse_biome(name, entry, known_features) for name, entry in biome_table.items()]
        ores = [parse_ore(name, entry) for name, entry in ore_table.items()]
        return cls(biomes, ores)

    def __getitem__(self, biome_id):
        return self._by_id[biome_id]

    def __contains__(self, biome_id):
        return biome_id in self._by_id

    def __iter__(self):
        return iter(self._biomes)

    def __len__(self):
        return len(self._biomes)

    def get(self, biome_id, default=None):
        return self._by_id.get(biome_id, default)

    def by_name(self, name):
        return self._by_name[name]

    def by_layer(self, layer):
        return self._layers[layer]

    @property
    def biomes(self):
        return self._biomes

    @property
    def ores(self):
        return self._ores

    @property
    def ids(self):
        return tuple(self._by_id)

    def ore_ids(self):
        return {ore.id for ore in self._ores}
