#!/usr/bin/env python3
import sys
import os
import logging

from dataformat.exceptions import DataFormatException
from dataformat.images.bitmap import Bitmap

if 'DEBUG' in os.environ:
    logging.basicConfig()
    logger = logging.getLogger('dataformat')
    logger.setLevel(logging.DEBUG)


def usage(progname):
    print('usage: %s <bmp file>' % progname)
    sys.exit(1)


def dump_header(bmp):
    print(f'''Bitmap Header:
  File size:                         {bmp.size} (bytes)
  Start of pixel data:               0x{bmp.off_bits:x}
  Size of info header:               {bmp.header_size} (bytes)
  Width:                             {bmp.width}
  Height:                            {abs(bmp.height)} ({"top-down" if bmp.is_top_down else "bottom-up"})
  Planes:                            {bmp.planes}
  Bits per pixel:                    {bmp.bit_count}
  Compression:                       {bmp.compression.name}
  Size of image data:                {bmp.size_image} (bytes)
  Resolution:                        {bmp.x_pels_per_meter}x{bmp.y_pels_per_meter} (pixels per meter)
  Colors used:                       {bmp.clr_used}
  Important colors:                  {bmp.clr_important}''')


def dump_palette(palette):
    print(f'Color table contains {len(palette)} entries:')
    for idx, (red, green, blue) in enumerate(palette):
        print(f'  [{idx: >3d}] #{red:02x}{green:02x}{blue:02x}')


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    path = sys.argv[1]

    try:
        bmp = Bitmap.load(path)
    except DataFormatException as e:
        print(f'{path}: {e.__class__.__name__}: {e}')
        sys.exit(2)

    dump_header(bmp)

    if bmp.palette:
        dump_palette(bmp.palette)
