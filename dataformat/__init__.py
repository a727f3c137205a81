"""
# Dataformat: declarative description of binary formats.

A data format is described once, as an ordered sequence of directives, each
one telling how to obtain a single logical field from the stream: a number,
a string, a signature to check, an array of sub-records, a block to evaluate
only under some condition and so on.

    builder = Builder('bitmap')
    builder.declare('magic', value=b'BM')
    builder.declare('uint', 'size')
    builder.declare('uint', 'reserved')
    builder.declare('uint', 'off_bits')
    bitmap = builder.build()

    record = bitmap.decode(stream, byte_order=ByteOrder.LITTLE_ENDIAN)

Two main operations are defined for a format:

 1. decode(): reading the binary data and build a record out of it;
    the directives are evaluated in order and each of them can refer to
    what the previous ones decoded (for example an array whose length is
    a field read before it)

 2. encode(): the reverse, writing a record as binary data.

A decode either returns a fully populated record or fails with one of the
exceptions in dataformat.exceptions: no partial record is ever returned.

"""
from .size import SizeUnit, Unit
from .enum import ByteOrder, Mode
from .record import Record, as_dict
from .streams import ByteCursor
from .expressions import Expression, Literal, FieldRef, Computed, ref
from .context import EvaluationContext
from .directives import Directive, register_kind, registered_kinds
from . import serializers
from .core import Format, Builder, description
from .meta import Serializable, register, decode_as
from .exceptions import (
    DataFormatException,
    TruncatedStreamError,
    DelimiterNotFoundError,
    MagicMismatchError,
    ValidationError,
    UnknownDirectiveError,
    InvalidDirectiveError,
    DuplicateAttributeError,
    UnresolvedFieldReferenceError,
    UnmatchedDiscriminatorError,
)


__version__ = '0.1.0'
