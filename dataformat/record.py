'''
Targets of a decode.

A directive never touches the target object directly: it goes through a
binding, a small table that knows how to get and set an attribute by name
for a given type of target. There are two of them

 - the generic Record, an ordered mapping from name to value, used when the
   caller doesn't supply a type
 - any other Python type, whose attributes are set with setattr()

Bindings are built once per type and cached.
'''
from functools import lru_cache
from types import MemberDescriptorType


class Record(object):
    '''Ordered attribute map, the default target of a decode.

        >>> r = Record(a=1)
        >>> r.b = 2
        >>> list(r)
        ['a', 'b']
    '''

    def __init__(self, **kwargs):
        object.__setattr__(self, '_data', dict(kwargs))

    def __getattr__(self, name):
        if name.startswith('__') or name == '_data':
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f'record has no attribute \'{name}\'') from None

    def __setattr__(self, name, value):
        self._data[name] = value

    def __delattr__(self, name):
        try:
            del self._data[name]
        except KeyError:
            raise AttributeError(name) from None

    def __getitem__(self, name):
        return self._data[name]

    def __setitem__(self, name, value):
        self._data[name] = value

    def __contains__(self, name):
        return name in self._data

    def __iter__(self):
        return iter(self._data)

    def __len__(self):
        return len(self._data)

    def __eq__(self, other):
        if not isinstance(other, Record):
            return NotImplemented
        return self._data == other._data

    def __repr__(self):
        return '<%s(%s)>' % (
            self.__class__.__name__,
            ','.join('%s=%r' % (k, v) for k, v in self._data.items()),
        )


def as_dict(record):
    '''Plain nested dictionaries out of a record, records inside lists included.

    Not a method of Record, any name must be free to be a field.'''
    if isinstance(record, Record):
        return {k: as_dict(v) for k, v in record._data.items()}
    if isinstance(record, list):
        return [as_dict(_) for _ in record]

    return record


class RecordBinding(object):
    '''Binding for the generic record'''

    def has(self, obj, name):
        return name in obj

    def get(self, obj, name):
        return obj[name]

    def set(self, obj, name, value):
        obj[name] = value


class TypedBinding(object):
    '''Binding for a caller supplied type: the fields are plain attributes.

    Only the attributes set on the instance count as fields, what the class
    defines (methods, properties, constants) doesn't.'''

    def __init__(self, cls):
        self.cls = cls

    def has(self, obj, name):
        if name in getattr(obj, '__dict__', {}):
            return True

        # attributes stored in __slots__
        slot = getattr(self.cls, name, None)

        return isinstance(slot, MemberDescriptorType) and hasattr(obj, name)

    def get(self, obj, name):
        return getattr(obj, name)

    def set(self, obj, name, value):
        setattr(obj, name, value)


@lru_cache(maxsize=None)
def binding_for(cls):
    if issubclass(cls, Record):
        return RecordBinding()

    return TypedBinding(cls)


def new_target(target=None):
    '''Build the object a decode is going to fill.

    It accepts an instance (used as it is), a class (instantiated without
    arguments) or nothing at all (a fresh Record).'''
    if target is None:
        return Record()
    if isinstance(target, type):
        return target()

    return target
