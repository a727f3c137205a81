"""
The serializers implement the directive kinds: each one knows how to read
a logical field from the cursor of a context and assign it to the target,
and how to do the reverse.

A serializer instance is created for each directive and validates its
options when the directive is built, so that a malformed format fails
before touching any data.
"""
import logging
import struct
from enum import Enum

from .directives import Directive, register, lookup, evaluate_block, as_block
from .enum import ByteOrder
from .exceptions import (
    InvalidDirectiveError,
    MagicMismatchError,
    TruncatedStreamError,
    UnmatchedDiscriminatorError,
    UnresolvedFieldReferenceError,
    ValidationError,
)
from .record import new_target
from .size import as_byte_count


DEFAULT_LENGTH_KIND = 'uint'


class Serializer(object):
    """Base class to subclass from"""

    # options holding an expression or a literal, checked only for presence
    required = ()

    def __init__(self, kind):
        self.kind = kind
        self.logger = logging.getLogger(f'{self.__module__}.{self.__class__.__name__}')

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.kind})>'

    def prepare(self, name, options, block):
        """Validate (and normalize) the options of a directive being built."""
        for option in self.required:
            if option not in options:
                raise InvalidDirectiveError(f'directive \'{self.kind}\' needs the option \'{option}\'')

        if 'byte_order' in options:
            try:
                options['byte_order'] = ByteOrder.from_option(options['byte_order'])
            except ValueError:
                raise InvalidDirectiveError(f'invalid byte order {options["byte_order"]!r}') from None

        return options

    def byte_order(self, context, directive):
        return directive.options.get('byte_order') or context.byte_order

    def assign(self, context, directive, value):
        if directive.name:
            context.set(directive.name, value)

    def fetch(self, context, directive):
        """The value to encode for this directive, taken from the target."""
        if not context.has(directive.name):
            raise UnresolvedFieldReferenceError(f'field \'{directive.name}\' has no value to encode')

        return context.get(directive.name)

    def read(self, context, directive):
        raise NotImplementedError(f'method {self.__class__.__name__}.read() not implemented')

    def write(self, context, directive):
        raise NotImplementedError(f'method {self.__class__.__name__}.write() not implemented')


class PrimitiveSerializer(Serializer):
    """Serializer for the directives holding a single value."""

    def prepare(self, name, options, block):
        options = super().prepare(name, options, block)
        if block:
            raise InvalidDirectiveError(f'directive \'{self.kind}\' doesn\'t accept a nested block')

        if 'range' in options:
            bounds = options['range']
            if isinstance(bounds, (tuple, list)):
                if len(bounds) != 2:
                    raise InvalidDirectiveError(f'range {bounds!r} must be a couple (min, max)')
                options['range'] = tuple(bounds)
            elif not hasattr(bounds, '__contains__'):
                raise InvalidDirectiveError(f'range {bounds!r} is neither a couple nor a container')

        if 'validator' in options and not callable(options['validator']):
            raise InvalidDirectiveError(f'validator {options["validator"]!r} is not callable')

        return options

    def check(self, context, directive, value):
        """Apply range and validator to the value, following the policy of the context."""
        bounds = directive.options.get('range')
        if bounds is not None:
            if isinstance(bounds, tuple):
                low, high = bounds
                inside = low <= value <= high
            else:
                inside = value in bounds

            if not inside:
                context.invalid(f'value {value!r} of \'{directive.label}\' is out of range {bounds!r}')

        validator = directive.options.get('validator')
        if validator is not None and not validator(value):
            context.invalid(f'value {value!r} of \'{directive.label}\' refused by the validator')

    def read_value(self, context, directive):
        raise NotImplementedError(f'method {self.__class__.__name__}.read_value() not implemented')

    def write_value(self, context, directive, value):
        raise NotImplementedError(f'method {self.__class__.__name__}.write_value() not implemented')

    def decode_value(self, context, directive):
        value = self.read_value(context, directive)
        self.check(context, directive, value)

        return value

    def encode_value(self, context, directive, value):
        self.check(context, directive, value)
        self.write_value(context, directive, value)

    def read(self, context, directive):
        value = self.decode_value(context, directive)
        self.assign(context, directive, value)

        return value

    def write(self, context, directive):
        if directive.name:
            value = self.fetch(context, directive)
        else:
            value = directive.options.get('default', 0)

        self.encode_value(context, directive, value)

        return value


class StructSerializer(PrimitiveSerializer):
    """Mimic the behaviour of the struct module packing/unpacking
    numbers to/from bytes."""

    # width in bytes -> format character
    FORMATS = {}

    def get_format(self, context, directive):
        return '%s%s' % (self.byte_order(context, directive).struct_prefix, self.format)

    def read_value(self, context, directive):
        raw = context.cursor.read_exact(self.size)
        value = struct.unpack(self.get_format(context, directive), raw)[0]
        self.logger.debug('unpacked %r from %s' % (value, raw.hex()))

        return value

    def write_value(self, context, directive, value):
        try:
            raw = struct.pack(self.get_format(context, directive), value)
        except struct.error as e:
            raise ValidationError(f'cannot encode {value!r} as \'{directive.label}\': {e}') from e

        context.cursor.write(raw)


@register('byte', 'ubyte', 'short', 'ushort', 'int', 'uint', 'long', 'ulong')
class IntegerSerializer(StructSerializer):
    """Integers of 1, 2, 4 or 8 bytes; the 'u' prefix means unsigned.

    The option 'size' overrides the width of the kind, while 'enum'
    indicates an enum.Enum subclass to convert the value to."""

    SIZES = {'byte': 1, 'short': 2, 'int': 4, 'long': 8}
    FORMATS = {1: 'b', 2: 'h', 4: 'i', 8: 'q'}

    def __init__(self, kind):
        super().__init__(kind)
        self.signed = not kind.startswith('u')
        self.size = self.SIZES[kind[1:] if not self.signed else kind]

    @property
    def format(self):
        fmt = self.FORMATS[self.size]
        return fmt if self.signed else fmt.upper()

    def prepare(self, name, options, block):
        options = super().prepare(name, options, block)

        if 'size' in options:
            try:
                size = as_byte_count(options['size'])
            except ValueError as e:
                raise InvalidDirectiveError(str(e)) from None
            if size not in self.FORMATS:
                raise InvalidDirectiveError(f'invalid size for an integer: {options["size"]}')
            self.size = size

        enum = options.get('enum')
        if enum is not None and not (isinstance(enum, type) and issubclass(enum, Enum)):
            raise InvalidDirectiveError(f'{enum!r} is not an Enum')

        return options

    def decode_value(self, context, directive):
        value = super().decode_value(context, directive)

        enum = directive.options.get('enum')
        if enum is None:
            return value

        try:
            return enum(value)
        except ValueError:
            context.invalid(f'enum {enum.__name__} doesn\'t have element with value 0x{value:x} in it')
            return value

    def encode_value(self, context, directive, value):
        if isinstance(value, Enum):
            value = value.value

        super().encode_value(context, directive, value)


@register('float', 'double')
class FloatSerializer(StructSerializer):
    """IEEE-754 single (4 bytes) and double (8 bytes) precision numbers"""

    SIZES = {'float': 4, 'double': 8}
    FORMATS = {4: 'f', 8: 'd'}

    def __init__(self, kind):
        super().__init__(kind)
        self.size = self.SIZES[kind]

    @property
    def format(self):
        return self.FORMATS[self.size]

    def prepare(self, name, options, block):
        options = super().prepare(name, options, block)

        if 'size' in options:
            try:
                size = as_byte_count(options['size'])
            except ValueError as e:
                raise InvalidDirectiveError(str(e)) from None
            if size not in self.FORMATS:
                raise InvalidDirectiveError(f'invalid size for a float: {options["size"]}')
            self.size = size

        return options


@register('string')
class StringSerializer(PrimitiveSerializer):
    """Contiguous chunk of bytes.

    With the option 'length' (bytes, SizeUnit or an expression evaluating
    to one of them) exactly that many bytes are read, otherwise the string
    is null-terminated and the terminator is consumed but not returned.
    With 'encoding' the value is a str instead of bytes."""

    DELIMITER = b'\x00'

    def _length(self, context, directive):
        value = context.resolve(directive.options['length'])
        try:
            return as_byte_count(value)
        except ValueError as e:
            raise ValidationError(f'invalid length for \'{directive.label}\': {e}') from None

    def read_value(self, context, directive):
        if 'length' in directive.options:
            value = context.cursor.read_exact(self._length(context, directive))
        else:
            value = context.cursor.read_until(self.DELIMITER)

        encoding = directive.options.get('encoding')

        return value.decode(encoding) if encoding else value

    def write_value(self, context, directive, value):
        if isinstance(value, str):
            value = value.encode(directive.options.get('encoding') or 'ascii')

        if 'length' in directive.options:
            length = self._length(context, directive)
            if len(value) != length:
                raise ValidationError(
                    f'\'{directive.label}\' can only accept strings of length {length}, not {len(value)}')
            context.cursor.write(value)
        else:
            if self.DELIMITER in value:
                raise ValidationError(f'\'{directive.label}\' cannot contain the terminator')
            context.cursor.write(value + self.DELIMITER)

    def write(self, context, directive):
        if not directive.name:
            raise InvalidDirectiveError('an anonymous string has nothing to encode')

        return super().write(context, directive)


@register('magic')
class MagicSerializer(PrimitiveSerializer):
    """Fixed signature identifying the format: bytes (or an ASCII str) are
    compared as they are, integers are read unsigned with the width given
    by 'size' (default 4 bytes).

    A mismatch is always fatal."""

    required = ('value',)

    def prepare(self, name, options, block):
        options = super().prepare(name, options, block)

        value = options['value']
        if isinstance(value, str):
            options['value'] = value.encode('ascii')
        elif isinstance(value, int) and not isinstance(value, bool):
            self.number = IntegerSerializer('uint')
            self.number.prepare(None, {'size': options.get('size', 4)}, ())
        elif not isinstance(value, bytes):
            raise InvalidDirectiveError(f'magic value must be bytes, str or int, not {value!r}')

        return options

    def read_value(self, context, directive):
        expected = directive.options['value']

        try:
            if isinstance(expected, bytes):
                value = context.cursor.read_exact(len(expected))
            else:
                value = self.number.read_value(context, directive)
        except TruncatedStreamError as e:
            raise MagicMismatchError(f'stream too short for the magic {expected!r}') from e

        if value != expected:
            raise MagicMismatchError(f'magic number mismatch: should be {expected!r} but was {value!r}')

        return value

    def write(self, context, directive):
        self.write_value(context, directive, directive.options['value'])

    def write_value(self, context, directive, value):
        if isinstance(value, bytes):
            context.cursor.write(value)
        else:
            self.number.write_value(context, directive, value)


class BlockSerializer(Serializer):
    """Base for the directives with nested blocks."""

    # options holding further nested blocks
    block_options = ()

    def prepare(self, name, options, block):
        options = super().prepare(name, options, block)

        for option in self.block_options:
            if option in options:
                options[option] = as_block(options[option])

        return options


@register('array')
class ArraySerializer(BlockSerializer):
    """Un/Pack a list of elements.

    The number of elements comes from, in order of preference

     - the option 'length', an expression (literal, field name or computed)
     - the option 'until', a callable returning True for the last element
     - an unsigned integer read from the stream just before the elements,
       whose kind is given by 'length_kind' (default 'uint')

    Each element is a record built by the nested block (instance of
    'element_type' if given) or, with 'element_kind', a bare value of that
    kind. A failure on any element aborts the whole array."""

    def prepare(self, name, options, block):
        options = super().prepare(name, options, block)

        if not name:
            raise InvalidDirectiveError('an array needs an attribute name')

        if 'length' in options and 'until' in options:
            raise InvalidDirectiveError('an array accepts only one of \'length\' and \'until\'')
        if 'until' in options and not callable(options['until']):
            raise InvalidDirectiveError(f'until {options["until"]!r} is not callable')

        self.element = None
        if 'element_kind' in options:
            if block:
                raise InvalidDirectiveError('an array accepts only one of \'element_kind\' and a nested block')
            self.element = Directive(options['element_kind'], options=options.get('element_options'))
            if not isinstance(self.element.serializer, PrimitiveSerializer):
                raise InvalidDirectiveError(f'\'{options["element_kind"]}\' cannot be an element kind')
        elif not block:
            raise InvalidDirectiveError('an array needs either \'element_kind\' or a nested block')

        self.length_field = None
        if 'length' not in options and 'until' not in options:
            length_kind = options.get('length_kind', DEFAULT_LENGTH_KIND)
            if lookup(length_kind) is not IntegerSerializer:
                raise InvalidDirectiveError(f'\'{length_kind}\' is not an integer kind')
            self.length_field = Directive(length_kind)

        return options

    def _length(self, context, directive):
        if self.length_field is not None:
            return self.length_field.serializer.decode_value(
                context.derive(self.byte_order(context, directive)), self.length_field)

        length = context.resolve(directive.options['length'])
        if isinstance(length, bool) or not isinstance(length, int) or length < 0:
            raise ValidationError(f'invalid length {length!r} for array \'{directive.name}\'')

        return length

    def _read_element(self, context, directive, byte_order):
        if self.element is not None:
            return self.element.serializer.decode_value(context.derive(byte_order), self.element)

        element = new_target(directive.options.get('element_type'))
        evaluate_block(context.nested(element, byte_order=byte_order), directive.block)

        return element

    def _write_element(self, context, directive, byte_order, element):
        if self.element is not None:
            self.element.serializer.encode_value(context.derive(byte_order), self.element, element)
            return

        evaluate_block(context.nested(element, byte_order=byte_order), directive.block)

    def read(self, context, directive):
        byte_order = self.byte_order(context, directive)
        until = directive.options.get('until')
        items = []

        if until is not None:
            while True:
                with context.enter(f'[{len(items)}]'):
                    element = self._read_element(context, directive, byte_order)
                items.append(element)
                if until(element):
                    break
        else:
            length = self._length(context, directive)
            self.logger.debug('reading %d elements for \'%s\'' % (length, directive.name))
            for idx in range(length):
                with context.enter(f'[{idx}]'):
                    items.append(self._read_element(context, directive, byte_order))

        self.assign(context, directive, items)

        return items

    def write(self, context, directive):
        byte_order = self.byte_order(context, directive)
        items = list(self.fetch(context, directive))

        if self.length_field is not None:
            self.length_field.serializer.encode_value(
                context.derive(byte_order), self.length_field, len(items))
        elif 'length' in directive.options:
            length = self._length(context, directive)
            if length != len(items):
                raise ValidationError(
                    f'array \'{directive.name}\' has {len(items)} elements but its length says {length}')

        for idx, element in enumerate(items):
            with context.enter(f'[{idx}]'):
                self._write_element(context, directive, byte_order, element)

        return items


@register('group')
class GroupSerializer(BlockSerializer):
    """Sub-structure decoded into its own record (an 'element_type'
    instance or a generic record) and assigned to the attribute."""

    def prepare(self, name, options, block):
        options = super().prepare(name, options, block)
        if not name:
            raise InvalidDirectiveError('a group needs an attribute name')

        return options

    def read(self, context, directive):
        record = new_target(directive.options.get('element_type'))
        evaluate_block(context.nested(record, byte_order=self.byte_order(context, directive)), directive.block)
        self.assign(context, directive, record)

        return record

    def write(self, context, directive):
        record = self.fetch(context, directive)
        evaluate_block(context.nested(record, byte_order=self.byte_order(context, directive)), directive.block)

        return record


class InPlaceSerializer(BlockSerializer):
    """Blocks evaluated on the same record of the enclosing directives:
    the two directions share the same logic."""

    def choose(self, context, directive):
        raise NotImplementedError(f'method {self.__class__.__name__}.choose() not implemented')

    def evaluate(self, context, directive):
        block = self.choose(context, directive)
        evaluate_block(context.derive(directive.options.get('byte_order')), block)

    def read(self, context, directive):
        self.evaluate(context, directive)

    def write(self, context, directive):
        self.evaluate(context, directive)


@register('conditional')
class ConditionalSerializer(InPlaceSerializer):
    """The nested block is evaluated only if the predicate 'when' is true,
    otherwise the block 'otherwise' (if any) is used; when nothing is
    evaluated no byte is consumed and the attributes stay unset."""

    required = ('when',)
    block_options = ('otherwise',)

    def choose(self, context, directive):
        predicate = context.resolve(directive.options['when'])
        self.logger.debug('predicate %r is %s' % (directive.options['when'], bool(predicate)))

        if predicate:
            return directive.block

        return directive.options.get('otherwise', ())


@register('case')
class CaseSerializer(InPlaceSerializer):
    """Dispatch on the value of 'discriminator'.

    The option 'cases' is a mapping (or a sequence of couples) from value to
    nested block; the first matching case is evaluated. When nothing
    matches the block 'default' is used, if there is no 'default' (an empty
    one is fine to explicitly skip) the decode fails."""

    required = ('discriminator', 'cases')
    block_options = ('default',)

    def prepare(self, name, options, block):
        options = super().prepare(name, options, block)
        if block:
            raise InvalidDirectiveError('the blocks of a case go in the option \'cases\'')

        cases = options['cases']
        if hasattr(cases, 'items'):
            cases = cases.items()
        options['cases'] = tuple((value, as_block(case_block)) for value, case_block in cases)

        return options

    def choose(self, context, directive):
        discriminator = context.resolve(directive.options['discriminator'])

        for value, block in directive.options['cases']:
            if value == discriminator:
                self.logger.debug('discriminator %r matched' % (discriminator,))
                return block

        if 'default' in directive.options:
            return directive.options['default']

        raise UnmatchedDiscriminatorError(f'no case for discriminator {discriminator!r}')


@register('at')
class AtSerializer(InPlaceSerializer):
    """Jump to the absolute offset 'offset' and evaluate the nested block.

    NOTE: the position is not restored afterwards, the directives following
    this one continue from where the nested block ended."""

    required = ('offset',)

    def choose(self, context, directive):
        offset = context.resolve(directive.options['offset'])
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            raise ValidationError(f'invalid offset {offset!r}')

        self.logger.debug('seeking to offset 0x%x' % offset)
        context.cursor.seek(offset)

        return directive.block
