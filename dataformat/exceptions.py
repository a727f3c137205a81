class DataFormatException(Exception):
    '''Base class to extend in order to throw exception in dataformat.

    Together with the message it takes the chain of the directives that
    caused the exception, innermost first: every enclosing block appends
    its own name while the exception propagates.
    '''

    def __init__(self, message='', chain=None):
        self.message = message
        self.chain = chain if chain is not None else []
        super().__init__(message)

    @property
    def path(self):
        return '.'.join(reversed(self.chain))

    def __str__(self):
        if not self.chain:
            return self.message

        return f'[{self.path}] {self.message}'


class TruncatedStreamError(DataFormatException):
    '''Fewer bytes are available than the directive needs.'''
    pass


class DelimiterNotFoundError(DataFormatException):
    pass


class MagicMismatchError(DataFormatException):
    pass


class ValidationError(DataFormatException):
    '''A range or a custom validator refused the value.'''
    pass


class UnknownDirectiveError(DataFormatException):
    pass


class InvalidDirectiveError(DataFormatException):
    '''The options of a directive don't make sense for its kind.'''
    pass


class DuplicateAttributeError(DataFormatException):
    pass


class UnresolvedFieldReferenceError(DataFormatException):
    pass


class UnmatchedDiscriminatorError(DataFormatException):
    pass
