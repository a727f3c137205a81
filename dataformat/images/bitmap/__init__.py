'''
# Windows Bitmap

Device independent bitmap as stored on disk: a file header, an info header
(we support the BITMAPINFOHEADER, 40 bytes), an optional colour table and
the pixel data at the offset indicated by the file header.

All the multi-byte fields are little-endian.

The layout is described at <https://en.wikipedia.org/wiki/BMP_file_format>.
'''
from enum import Enum

from dataformat.core import Builder
from dataformat.enum import ByteOrder
from dataformat.expressions import Computed, ref
from dataformat.meta import Serializable
from dataformat.images.bitmap.utils import row_stride


class Compression(Enum):
    BI_RGB       = 0x00
    BI_RLE8      = 0x01
    BI_RLE4      = 0x02
    BI_BITFIELDS = 0x03


def palette_entry(entry):
    '''RGBQUAD: note the order of the components'''
    entry.declare('ubyte', 'blue')
    entry.declare('ubyte', 'green')
    entry.declare('ubyte', 'red')
    entry.declare('ubyte', 'reserved')


def pixel_data_length(context):
    '''Uncompressed images can leave size_image to zero, so the length is
    calculated from the dimensions.'''
    if context.get('compression') == Compression.BI_RGB:
        width = context.get('width')
        height = abs(context.get('height'))
        return row_stride(width, context.get('bit_count')) * height

    return context.get('size_image')


def _describe():
    f = Builder('bitmap')

    # file header
    f.declare('magic', value=b'BM')
    f.declare('uint', 'size')
    f.declare('uint', 'reserved')
    f.declare('uint', 'off_bits')

    # info header
    f.declare('uint', 'header_size', range=(40, 40))
    f.declare('int', 'width')
    f.declare('int', 'height')  # negative for top-down bitmaps
    f.declare('ushort', 'planes', range=(1, 1))
    f.declare('ushort', 'bit_count', range=(1, 32))
    f.declare('uint', 'compression', range=(0, 3), enum=Compression)
    f.declare('uint', 'size_image')
    f.declare('int', 'x_pels_per_meter')
    f.declare('int', 'y_pels_per_meter')
    f.declare('uint', 'clr_used')
    f.declare('uint', 'clr_important')

    with f.block('conditional', when=ref('compression') == Compression.BI_BITFIELDS) as masks:
        masks.declare('uint', 'red_mask')
        masks.declare('uint', 'green_mask')
        masks.declare('uint', 'blue_mask')

    # without an explicit number of colors only the indexed images have a table
    def _explicit_table(table):
        table.declare('array', 'color_table', length='clr_used', block=palette_entry)

    with f.block('conditional', when=ref('clr_used') == 0, otherwise=_explicit_table) as implicit:
        with implicit.block('conditional', when=ref('bit_count').is_in((1, 4, 8))) as indexed:
            indexed.declare('array', 'color_table', length=2 ** ref('bit_count'), block=palette_entry)

    with f.block('at', offset='off_bits') as data:
        data.declare('string', 'pixels', length=Computed(pixel_data_length))

    return f.build()


BITMAP = _describe()


class Bitmap(Serializable):
    default_format = 'bmp'

    bmp = BITMAP

    def __str__(self):
        return '%dx%dx%d' % (
            self.width,
            abs(self.height),
            self.bit_count,
        )

    @property
    def is_top_down(self):
        return self.height < 0

    @property
    def palette(self):
        return [(_.red, _.green, _.blue) for _ in getattr(self, 'color_table', [])]

    @classmethod
    def load(cls, stream):
        return cls.load_from(stream, byte_order=ByteOrder.LITTLE_ENDIAN)
