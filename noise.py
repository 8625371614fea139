#
# Vectorized simplex noise for 2D and 3D sample sets, plus the seeded
# fractal channels every world generation stage draws from.
#
# The simplex evaluation follows Stefan Gustavson's rank-ordering method
# (public domain, 2012-03-09), operating on whole numpy arrays of points.
#
import itertools
import zlib

import numpy

import config

MASK64 = 0xFFFFFFFFFFFFFFFF
GOLDEN64 = 0x9E3779B97F4A7C15
OCTAVE_OFFSET_SALT = 0x5DEECE66D
UNIT53 = 1.0 / 9007199254740992.0  # 2**-53

# Gradient directions: the 8 compass directions in 2D, the 12 cube edges in 3D.
GRAD2 = numpy.array([(1,0),(-1,0),(0,1),(0,-1),
                     (1,1),(-1,1),(1,-1),(-1,-1)], dtype=numpy.float64)
GRAD3 = numpy.array([(1,1,0),(-1,1,0),(1,-1,0),(-1,-1,0),
                     (1,0,1),(-1,0,1),(1,0,-1),(-1,0,-1),
                     (0,1,1),(0,-1,1),(0,1,-1),(0,-1,-1)], dtype=numpy.float64)
GRADIENTS = {2: GRAD2, 3: GRAD3}
# (squared kernel radius, output scale) so results land in [-1,1]
KERNEL = {2: (0.5, 70.0), 3: (0.6, 32.0)}


def fold_seed(seed):
    '''Fold any python int (negative or huge) into an unsigned 64 bit seed.'''
    return int(seed) & MASK64


def channel_seed(seed, name):
    '''Seed for one named noise channel; depends only on the world seed and the name.'''
    salt = zlib.crc32(name.encode('utf-8'))
    return (fold_seed(seed) * GOLDEN64 + salt) & MASK64


def splitmix_stream(seed):
    '''Endless SplitMix64 sequence; identical on every platform and numpy version.'''
    state = fold_seed(seed)
    while True:
        state = (state + GOLDEN64) & MASK64
        z = state
        z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & MASK64
        z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & MASK64
        yield z ^ (z >> 31)


def wrap_coord(v):
    '''Wrap block coordinates to signed 32-bit range (works on ints and integer arrays).'''
    half = 1 << (config.COORD_WRAP_BITS - 1)
    return (v + half) % (2 * half) - half


class SimplexNoise(object):
    '''
    Simplex noise over arrays of 2D or 3D points. The permutation table is a
    Fisher-Yates shuffle driven by splitmix_stream, so the table is the same
    on every numpy version and global random state is never touched.
    '''
    def __init__(self, seed=0):
        stream = splitmix_stream(seed)
        p = list(range(256))
        for i in range(255, 0, -1):
            j = next(stream) % (i + 1)
            p[i], p[j] = p[j], p[i]
        p = numpy.array(p, dtype=numpy.int64)
        # To remove the need for index wrapping, double the permutation table length
        self.perm = numpy.concatenate([p, p])

    def noise(self, Z):
        Z = numpy.asarray(Z, dtype=numpy.float64)
        N = Z.shape[-1] #number of dimensions
        if N not in GRADIENTS:
            raise ValueError(f'simplex noise supports 2 or 3 dimensions, got {N}')
        N1 = N + 1 #corners per simplex
        Fn = (N1**0.5 - 1.0) / N
        Gn = (N1 - N1**0.5) / N / N1

        # Skew the input space to determine which simplex cell we're in
        s = Z.sum(-1) * Fn
        cell = numpy.floor(Z + s[:, numpy.newaxis])
        t = cell.sum(-1) * Gn
        z0 = Z - (cell - t[:, numpy.newaxis]) # distances from the cell origin

        # Use magnitude ordering to determine the simplex that z0 is located in
        rank = numpy.zeros(Z.shape, dtype=numpy.int64)
        for l, k in itertools.combinations(range(N), 2):
            rank[:, k] += z0[:, k] >= z0[:, l]
            rank[:, l] += z0[:, k] < z0[:, l]

        b = numpy.arange(N1)[:, numpy.newaxis, numpy.newaxis]
        step = rank[numpy.newaxis] >= N - b # (N1, M, N) lattice steps to each corner
        zk = z0[numpy.newaxis] - step + b * Gn

        # Hash the (wrapped) lattice corners into gradient indices
        corner = (cell.astype(numpy.int64) & 255)[numpy.newaxis] + step
        gik = 0
        for axis in range(N - 1, -1, -1):
            gik = self.perm[corner[:, :, axis] + gik]
        grad = GRADIENTS[N]
        gik = gik % grad.shape[0]

        # Calculate the contribution from each corner
        r2, out_scale = KERNEL[N]
        tk = r2 - (zk * zk).sum(-1)
        tk = numpy.where(tk > 0, tk, 0.0)
        tk = tk * tk
        nk = tk * tk * (grad[gik] * zk).sum(-1)
        total = nk[0]
        for k in range(1, N1):
            total = total + nk[k]
        return numpy.clip(total * out_scale, -1.0, 1.0)


class NoiseChannel(object):
    '''Fractal parameters for one named channel. Read-only after config load.'''
    __slots__ = ('name', 'scale', 'lacunarity', 'octaves', 'falloff')

    def __init__(self, name, scale, lacunarity, octaves, falloff):
        object.__setattr__(self, 'name', name)
        object.__setattr__(self, 'scale', float(scale))
        object.__setattr__(self, 'lacunarity', float(lacunarity))
        object.__setattr__(self, 'octaves', int(octaves))
        object.__setattr__(self, 'falloff', float(falloff))

    def __setattr__(self, key, value):
        raise AttributeError('NoiseChannel is read-only')

    def scaled(self, factor):
        return NoiseChannel(self.name, self.scale * factor, self.lacunarity, self.octaves, self.falloff)

    def __eq__(self, other):
        if not isinstance(other, NoiseChannel):
            return NotImplemented
        return all(getattr(self, a) == getattr(other, a) for a in self.__slots__)

    def __hash__(self):
        return hash(tuple(getattr(self, a) for a in self.__slots__))

    def __repr__(self):
        return (f'NoiseChannel({self.name!r}, scale={self.scale}, lacunarity={self.lacunarity}, '
                f'octaves={self.octaves}, falloff={self.falloff})')


class NoiseField(object):
    '''
    Seeded fractal noise for one channel. Octave i contributes falloff**i times
    simplex noise at frequency scale * lacunarity**i; the sum is divided by the
    total amplitude so samples stay in [-1,1].
    '''
    def __init__(self, seed, channel):
        self.channel = channel
        self.seed = channel_seed(seed, channel.name)
        self.simplex = SimplexNoise(self.seed)
        # Per-octave shifts keep octaves from lining up at the origin.
        stream = splitmix_stream(self.seed ^ OCTAVE_OFFSET_SALT)
        self.offsets = numpy.array(
            [[-4096.0 + 8192.0 * ((next(stream) >> 11) * UNIT53) for _ in range(3)]
             for _ in range(max(channel.octaves, 1))], dtype=numpy.float64)

    def sample(self, points):
        '''points: (M, 2) as (x, z) or (M, 3) as (x, y, z) world coordinates.'''
        points = numpy.asarray(points, dtype=numpy.float64)
        single = points.ndim == 1
        if single:
            points = points[numpy.newaxis, :]
        dims = points.shape[-1]
        ch = self.channel
        total = numpy.zeros(points.shape[0], dtype=numpy.float64)
        norm = 0.0
        amplitude = 1.0
        frequency = ch.scale
        for octave in range(ch.octaves):
            total += amplitude * self.simplex.noise(points * frequency + self.offsets[octave, :dims])
            norm += amplitude
            amplitude *= ch.falloff
            frequency *= ch.lacunarity
        if norm > 0:
            total /= norm
        return total[0] if single else total

    def grid(self, x0, z0, width, depth):
        '''Sample integer world columns x0..x0+width-1, z0..z0+depth-1; result indexed [x, z].'''
        xs = wrap_coord(numpy.arange(width, dtype=numpy.int64) + int(x0))
        zs = wrap_coord(numpy.arange(depth, dtype=numpy.int64) + int(z0))
        X, Z = numpy.meshgrid(xs, zs, indexing='ij')
        pts = numpy.stack([X.ravel(), Z.ravel()], axis=-1)
        return self.sample(pts).reshape((width, depth))


def sample(channel, seed, x, z, y=None):
    '''Single fractal noise value for a channel at a world position.'''
    field = NoiseField(seed, channel)
    if y is None:
        point = (wrap_coord(int(x)), wrap_coord(int(z)))
    else:
        point = (wrap_coord(int(x)), float(y), wrap_coord(int(z)))
    return float(field.sample(point))


def _splitmix64(v):
    v = v + numpy.uint64(GOLDEN64)
    v = (v ^ (v >> numpy.uint64(30))) * numpy.uint64(0xBF58476D1CE4E5B9)
    v = (v ^ (v >> numpy.uint64(27))) * numpy.uint64(0x94D049BB133111EB)
    return v ^ (v >> numpy.uint64(31))


def column_random(seed, xs, zs, salt):
    '''
    Uniform values in [0,1) that depend only on (seed, world x, world z, salt),
    so draws are identical regardless of which chunk or thread asks.
    '''
    xs, zs = numpy.broadcast_arrays(numpy.atleast_1d(numpy.asarray(xs, dtype=numpy.int64)),
                                    numpy.atleast_1d(numpy.asarray(zs, dtype=numpy.int64)))
    h = numpy.full(xs.shape, channel_seed(seed, salt), dtype=numpy.uint64)
    h = _splitmix64(h ^ xs.astype(numpy.uint64))
    h = _splitmix64(h ^ zs.astype(numpy.uint64))
    return (h >> numpy.uint64(11)).astype(numpy.float64) * UNIT53


if __name__ == '__main__':
    import sys
    import time
    from PIL import Image

    seed = int(sys.argv[1]) if len(sys.argv) > 1 else 3332
    field = NoiseField(seed, NoiseChannel('preview', 0.02, 2.0, 4, 0.5))
    t = time.time()
    n = field.grid(0, 0, 256, 256)
    print('grid noise', time.time() - t)
    print(n.min(), n.max(), numpy.average(n))
    img = numpy.array((n + 1.0) * 127.5, dtype='u1')
    Image.fromarray(img.T, 'L').save('noise2.png')
