import logging

from bitstring import BitArray


logger = logging.getLogger(__name__)


def row_stride(width, bit_count):
    '''Each row is padded to a multiple of 4 bytes'''
    return ((width * bit_count + 31) // 32) * 4


def iter_rows(pixels, width, height, bit_count):
    '''Yield the rows from the top one: the rows are stored bottom-up
    unless the height is negative.'''
    stride = row_stride(width, bit_count)
    n_rows = abs(height)

    if len(pixels) < stride * n_rows:
        raise ValueError(f'pixel data is {len(pixels)} bytes, expected {stride * n_rows}')

    indexes = range(n_rows) if height < 0 else range(n_rows - 1, -1, -1)

    logger.debug(f'iterating over rows for width {width} and depth {bit_count}')
    for idx in indexes:
        yield pixels[idx * stride:(idx + 1) * stride]


def pixels_from_row(row, width, bit_count):
    '''For the indexed depths (1, 4, 8 bits) it returns the palette indexes,
    otherwise the (red, green, blue) triples.'''
    if bit_count in (1, 4, 8):
        bits = BitArray(row)
        return [bits[_:_ + bit_count].uint for _ in range(0, width * bit_count, bit_count)]

    if bit_count == 16:
        # X1R5G5B5, little endian
        values = [int.from_bytes(row[_:_ + 2], 'little') for _ in range(0, width * 2, 2)]
        return [
            (((v >> 10) & 0x1f) << 3, ((v >> 5) & 0x1f) << 3, (v & 0x1f) << 3)
            for v in values
        ]

    if bit_count in (24, 32):
        step = bit_count // 8
        return [(row[_ + 2], row[_ + 1], row[_]) for _ in range(0, width * step, step)]

    raise ValueError(f'depth of {bit_count} bits not supported')


def to_rgb_rows(bitmap):
    '''Rows of (red, green, blue) triples, from the top of the image.'''
    from dataformat.images.bitmap import Compression

    if bitmap.compression != Compression.BI_RGB:
        raise ValueError(f'Compression {bitmap.compression!r} not implemented')

    palette = bitmap.palette if bitmap.bit_count <= 8 else None
    rows = []
    for row in iter_rows(bitmap.pixels, bitmap.width, bitmap.height, bitmap.bit_count):
        pixels = pixels_from_row(row, bitmap.width, bitmap.bit_count)
        if palette:
            pixels = [palette[_] for _ in pixels]
        rows.append(pixels)

    return rows
