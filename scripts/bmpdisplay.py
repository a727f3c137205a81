#!/usr/bin/env python3
'''
 $ convert -size 5x5 xc:red -size 5x5 xc:green -append -type palette BMP3:image.bmp
'''
import logging
import sys
import os
from PIL import Image

from dataformat.images.bitmap import Bitmap
from dataformat.images.bitmap.utils import to_rgb_rows


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
logger.setLevel(level=logging.INFO if 'DEBUG' not in os.environ else logging.DEBUG)


def usage(progname):
    print(f'usage: {progname} <bmp file path> [<output path>]')
    sys.exit(1)


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    filepath = sys.argv[1]

    bmp = Bitmap.load(filepath)

    logger.info(f'loaded {filepath}: {bmp}')

    rows = to_rgb_rows(bmp)

    image = Image.new('RGB', (bmp.width, len(rows)))
    image.putdata([pixel for row in rows for pixel in row])

    if len(sys.argv) > 2:
        image.save(sys.argv[2])
    else:
        image.show()
