'''
preview.py -- render generated terrain for quick inspection

    python preview.py world.toml --seed 42 --center 0 0 --radius 2 --out preview.png

Prints the hex height map of the centre chunk and writes a PNG where hue is
the biome and brightness the surface height.
'''
import argparse
import colorsys
import sys
import time

import numpy
from PIL import Image

import config
import logutil
from biomes import BiomeLayer, ConfigError
from mapgen import ChunkGenerator
from worldconfig import load_world_config


def format_height_map(h_map, title=None):
    lines = []
    if title:
        lines.append(title)
    for z in range(h_map.shape[1]):
        row = []
        for x in range(h_map.shape[0]):
            val = int(h_map[x, z])
            row.append("--" if val < 0 else f"{min(255, val):02X}")
        lines.append(" ".join(row))
    return "\n".join(lines)


def format_biome_map(b_map, title=None):
    lines = [title] if title else []
    for z in range(b_map.shape[1]):
        lines.append(" ".join(f"{int(b_map[x, z]):3d}" for x in range(b_map.shape[0])))
    return "\n".join(lines)


def biome_colors(registry):
    '''Evenly spread hues per biome, water layers kept in the blue range.'''
    lut = numpy.zeros((256, 3), dtype=numpy.float64)
    biomes = list(registry)
    for i, b in enumerate(biomes):
        if b.layer is not BiomeLayer.LAND:
            hue = 0.55 + 0.1 * (i / max(1, len(biomes)))
        else:
            hue = (i * 0.61803398875) % 1.0
        lut[b.id] = colorsys.hsv_to_rgb(hue, 0.55, 1.0)
    return lut


def render(generator, seed, center_x, center_z, radius):
    '''Generate the chunks around the centre and return (image, centre chunk).'''
    n = 2 * radius + 1
    size = n * config.CHUNK_SIZE
    heights = numpy.zeros((size, size), dtype=numpy.float64)
    ids = numpy.zeros((size, size), dtype=numpy.uint8)
    centre = None
    for i, cx in enumerate(range(center_x - radius, center_x + radius + 1)):
        for j, cz in enumerate(range(center_z - radius, center_z + radius + 1)):
            chunk = generator.generate(seed, cx, cz)
            xs = slice(i * config.CHUNK_SIZE, (i + 1) * config.CHUNK_SIZE)
            zs = slice(j * config.CHUNK_SIZE, (j + 1) * config.CHUNK_SIZE)
            heights[xs, zs] = chunk.heightmap
            ids[xs, zs] = chunk.biomes
            if (cx, cz) == (center_x, center_z):
                centre = chunk
    colors = biome_colors(generator.registry)[ids]
    shade = 0.35 + 0.65 * numpy.clip(heights / config.MAX_SURFACE_HEIGHT, 0.0, 1.0)
    rgb = numpy.array(colors * shade[..., None] * 255.0, dtype='u1')
    # Arrays are [x, z]; images are rows of z.
    return Image.fromarray(rgb.swapaxes(0, 1), 'RGB'), centre


def main(argv=None):
    parser = argparse.ArgumentParser(description="Preview generated world terrain.")
    parser.add_argument("config", nargs="?", default=config.DEFAULT_WORLD_CONFIG, help="world config TOML")
    parser.add_argument("--seed", type=int, default=None, help="world seed (default: from config, else 42)")
    parser.add_argument("--center", type=int, nargs=2, default=(0, 0), metavar=("X", "Z"), help="centre chunk")
    parser.add_argument("--radius", type=int, default=1, help="chunks around the centre to render")
    parser.add_argument("--out", default=None, help="write a PNG preview here")
    parser.add_argument("--biomes", action="store_true", help="also print the centre chunk biome ids")
    args = parser.parse_args(argv)

    logutil.init_logging()
    try:
        world_config = load_world_config(args.config)
    except ConfigError as e:
        logutil.log("PREVIEW", str(e), level="ERROR")
        return 2
    seed = args.seed if args.seed is not None else (world_config.seed if world_config.seed is not None else 42)
    generator = ChunkGenerator(world_config)
    cx, cz = args.center
    t = time.perf_counter()
    image, centre = render(generator, seed, cx, cz, max(0, args.radius))
    logutil.log("PREVIEW", f"generated {(2 * max(0, args.radius) + 1) ** 2} chunks in {time.perf_counter() - t:.2f}s")
    print(format_height_map(centre.heightmap, title=f"seed {seed} chunk ({cx}, {cz}) heights"))
    if args.biomes:
        print(format_biome_map(centre.biomes, title="biomes"))
    if args.out:
        image.save(args.out)
        logutil.log("PREVIEW", f"wrote {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
