"""
Decode contexts

A DecodeContext holds one raw JSON value for a time decoder to read. Decoders
inspect the value with whatIsNext(), consume it with one of the read methods
(or skip()), and report failures with reportError() instead of raising.
Contexts are reusable and are handed out by a DecodeContextPool.
"""

from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, List, Optional
import json
import threading


class ValueType(Enum):
    INVALID = "invalid"
    NIL = "nil"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


class DecodeError(ValueError):

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation}: {message}")


_missing = object()


class DecodeContext:

    def __init__(self, raw: str = '', pool: Optional['DecodeContextPool'] = None):
        self.pool = pool if pool is not None else DEFAULT_POOL
        self.reset(raw)

    @classmethod
    def fromValue(cls, value: Any, pool: Optional['DecodeContextPool'] = None) -> 'DecodeContext':
        return cls(json.dumps(value), pool=pool)

    def reset(self, raw: str) -> None:
        self.raw = raw
        self.error: Optional[DecodeError] = None
        self.consumed = False
        self._value = _missing
        self._valid = True

    def _parsed(self) -> Any:
        if self._value is _missing:
            try:
                self._value = json.loads(self.raw)
            except ValueError:
                self._value = None
                self._valid = False
        return self._value

    def whatIsNext(self) -> ValueType:
        value = self._parsed()
        if not self._valid:
            return ValueType.INVALID
        if value is None:
            return ValueType.NIL
        if isinstance(value, bool):
            return ValueType.BOOL
        if isinstance(value, (int, float)):
            return ValueType.NUMBER
        if isinstance(value, str):
            return ValueType.STRING
        if isinstance(value, list):
            return ValueType.ARRAY
        return ValueType.OBJECT

    def readFloat(self) -> float:
        valueType = self.whatIsNext()
        value = self._consume()
        if valueType is not ValueType.NUMBER:
            self.reportError('ReadFloat', f"expected a number, got {valueType.value}")
            return 0.0
        try:
            return float(value)
        except OverflowError:
            self.reportError('ReadFloat', 'number out of range')
            return 0.0

    def readInt(self) -> int:
        valueType = self.whatIsNext()
        value = self._consume()
        if valueType is not ValueType.NUMBER or not isinstance(value, int):
            self.reportError('ReadInt', f"expected an integer, got {self.raw.strip()!r}")
            return 0
        return value

    def readString(self) -> str:
        valueType = self.whatIsNext()
        value = self._consume()
        if valueType is not ValueType.STRING:
            self.reportError('ReadString', f"expected a string, got {valueType.value}")
            return ''
        return value

    def readNil(self) -> bool:
        valueType = self.whatIsNext()
        self._consume()
        return valueType is ValueType.NIL

    def skip(self) -> None:
        if self.whatIsNext() is ValueType.INVALID:
            self.reportError('Skip', 'invalid JSON')
        self._consume()

    def skipAndReturnRaw(self) -> str:
        self.skip()
        return self.raw

    def reportError(self, operation: str, message: str) -> None:
        # The first error wins, later ones are follow-on noise.
        if self.error is None:
            self.error = DecodeError(operation, message)

    def _consume(self) -> Any:
        self.consumed = True
        return self._parsed()


class DecodeContextPool:
    """Thread-safe pool of reusable DecodeContext instances."""

    def __init__(self, maxSize: int = 64):
        self.maxSize = maxSize
        self._free: List[DecodeContext] = []
        self._lock = threading.Lock()

    @property
    def available(self) -> int:
        with self._lock:
            return len(self._free)

    def acquire(self, raw: str) -> DecodeContext:
        with self._lock:
            ctx = self._free.pop() if self._free else None
        if ctx is None:
            ctx = DecodeContext(pool=self)
        ctx.reset(raw)
        return ctx

    def release(self, ctx: DecodeContext) -> None:
        ctx.reset('')
        with self._lock:
            if len(self._free) < self.maxSize:
                self._free.append(ctx)

    @contextmanager
    def borrow(self, raw: str) -> Iterator[DecodeContext]:
        ctx = self.acquire(raw)
        try:
            yield ctx
        finally:
            self.release(ctx)


DEFAULT_POOL = DecodeContextPool()
