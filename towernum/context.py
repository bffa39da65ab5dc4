#
# Signals and the execution context for layered tower arithmetic
#
# (c) The towernum developers 2026.  All rights reserved.
#

import copy
import threading
from enum import IntEnum, IntFlag


__all__ = ('Context', 'DefaultContext', 'get_context', 'set_context', 'local_context',
           'Flags', 'HandlerKind',
           'TowerError', 'Invalid', 'InvalidLogarithm', 'InvalidRoot', 'InvalidPower',
           'InvalidHeight', 'InvalidSuperLogarithm', 'InvalidLambertW',
           'DivisionByZero', 'DivideByZero',
           'OP_DIVIDE', 'OP_POW', 'OP_MOD', 'OP_ROOT',
           'OP_RECIPROCAL', 'OP_LOG', 'OP_LOG10', 'OP_TETRATE', 'OP_PENTATE', 'OP_HEXATE',
           'OP_SLOG', 'OP_LAMBERTW')


# Operation names
OP_DIVIDE = 'div'
OP_POW = 'pow'
OP_MOD = 'mod'
OP_ROOT = 'root'
OP_RECIPROCAL = 'reciprocal'
OP_LOG = 'log'
OP_LOG10 = 'log10'
OP_TETRATE = 'tet'
OP_PENTATE = 'pent'
OP_HEXATE = 'hext'
OP_SLOG = 'slog'
OP_LAMBERTW = 'lambertw'


# Operation status flags.
class Flags(IntFlag):
    INVALID     = 0x01
    DIV_BY_ZERO = 0x02


class TowerError(ArithmeticError):
    '''All arithmetic exceptions signalled by this package subclass from this.

    TowerError expects two arguments:

         def __init__(self, op_tuple, result):

    op_tuple is a tuple of the operation name and operands causing the signal.  result is
    the value that default handling delivers; for every signal in this package that is
    None, the absent-result sentinel.
    '''

    flag_to_raise = 0

    @property
    def op_tuple(self):
        return self.args[0]

    @property
    def default_result(self):
        return self.args[1]

    def signal(self, context=None):
        '''Call to signal an exception.  This routine handles the exception according to the
        handler the context has for it.'''
        context = context or get_context()
        kind, handler = context.handler(self.__class__)
        result = self.default_result

        if kind != HandlerKind.NO_FLAG:
            context.flags |= self.flag_to_raise
            if kind == HandlerKind.RECORD_EXCEPTION:
                context.exceptions.append(self)

        if kind == HandlerKind.RAISE:
            raise self
        if kind == HandlerKind.SUBSTITUTE_VALUE:
            result = handler(self, context)
        return result


#
# Invalid - many sub-exceptions
#

class Invalid(TowerError):
    '''Invalid operation base class.  Signalled when an operation has no usefully defineable
    result.'''

    flag_to_raise = Flags.INVALID

    def __init__(self, op_tuple, result=None):
        super().__init__(op_tuple, result)


class InvalidLogarithm(Invalid):
    '''Signalled when taking the logarithm of a non-positive operand, or with a base that is
    non-positive or one.'''


class InvalidRoot(Invalid):
    '''Signalled on an even (or non-integral) root of a negative operand.'''


class InvalidPower(Invalid):
    '''Signalled when raising a negative operand to a non-integral power.'''


class InvalidHeight(Invalid):
    '''Signalled when a hyperoperation is given a height below -1 or a non-positive base.'''


class InvalidSuperLogarithm(Invalid):
    '''Signalled when the super-logarithm has no real value, e.g. a non-positive operand or an
    operand a convergent tower never reaches.'''


class InvalidLambertW(Invalid):
    '''Signalled when the operand of the Lambert W function is below -1/e.'''


#
# DivisionByZero
#

class DivisionByZero(TowerError, ZeroDivisionError):
    '''Base class of division by zero errors.'''

    flag_to_raise = Flags.DIV_BY_ZERO

    def __init__(self, op_tuple, result=None):
        super().__init__(op_tuple, result)


class DivideByZero(DivisionByZero):
    '''A divide, modulo, reciprocal or root operation with zero divisor.'''


class HandlerKind(IntEnum):
    '''Indicates how a signalled exception should be handled.'''
    # Return the absent result and raise the associated flag
    DEFAULT = 0

    # Return the absent result without raising the associated flag
    NO_FLAG = 1

    # Default handling but also record the exception in the context
    RECORD_EXCEPTION = 2

    # Substitute a value for the absent result.  A handler must be provided with signature
    #
    #    def handler(exception, context):
    #
    # The value returned by the handler becomes the operation's result.
    SUBSTITUTE_VALUE = 3

    # Raise the exception immediately
    RAISE = 4

    def requires_handler(self):
        return self == HandlerKind.SUBSTITUTE_VALUE


class Context:
    '''The execution context for operations.  Carries the status flags, per-signal handlers
    and recorded exceptions.'''

    __slots__ = ('flags', 'handlers', 'exceptions')

    def __init__(self, *, flags=0):
        self.flags = flags
        self.handlers = {}
        self.exceptions = []

    def copy(self):
        '''Return a (deep) copy of the context.'''
        return copy.deepcopy(self)

    def set_handler(self, exc_classes, kind, handler=None):
        classes = (exc_classes, ) if not isinstance(exc_classes, (tuple, list)) else exc_classes
        if not all(isinstance(exc_class, type) and issubclass(exc_class, TowerError)
                   for exc_class in classes):
            raise TypeError('all exception classes must be subclasses of TowerError')
        if not isinstance(kind, HandlerKind):
            raise TypeError('kind must be a HandlerKind instance')
        if (handler is not None) ^ kind.requires_handler():
            if handler is None:
                raise ValueError(f'handler not given for kind {kind!r}')
            else:
                raise ValueError(f'handler given for kind {kind!r}')
        pair = (kind, handler)
        for exc_class in classes:
            self.handlers[exc_class] = pair

    def handler(self, exc_class):
        '''Return a (handler_kind, callback) pair for a signal class.'''
        if not issubclass(exc_class, TowerError):
            raise TypeError('exc_class must be a subclass of TowerError')

        for cls in exc_class.mro():
            handler = self.handlers.get(cls)
            if handler:
                return handler

        return HandlerKind.DEFAULT, None

    def __repr__(self):
        return f'<Context flags={self.flags!r} handlers={len(self.handlers)}>'


DefaultContext = Context()
tls = threading.local()


def get_context():
    try:
        return tls.context
    except AttributeError:
        tls.context = DefaultContext.copy()
        return tls.context


def set_context(context):
    '''Sets the current thread's context to context (not a copy of it).'''
    tls.context = context


class LocalContext:
    '''A context manager that will set the current context for the active thread to a copy of
    context on entry to the with-statement and restore the previous context on exit.  If
    no context is specified a copy of the current context is taken instead.
    '''

    def __init__(self, context=None):
        self.saved_context = None
        self.context_to_set = context

    def __enter__(self):
        self.saved_context = get_context()
        context = (self.context_to_set or self.saved_context).copy()
        set_context(context)
        return context

    def __exit__(self, etype, value, traceback):
        set_context(self.saved_context)


local_context = LocalContext
