from collections.abc import Callable
from functools import wraps
import inspect
import os
import sys
from typing import Any, ParamSpec, TypeVar

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

_R = TypeVar("_R")
_S = ParamSpec("_S")


def display_text(text: str) -> str:
    """Return `text` in a printable form, replacing undecodable filesystem bytes with U+FFFD.

    Paths that were decoded with ``surrogateescape`` (as :py:func:`os.fsdecode` does) carry lone surrogates for any
    byte that is not valid UTF-8. These cannot be printed, so each one is rendered as the replacement character.

    >>> display_text(os.fsdecode(b"f.\\xff"))
    'f.�'

    :param text: The text to render
    :returns: The printable text
    """
    try:
        return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")
    except UnicodeEncodeError:
        return text.encode("utf-8", "replace").decode("utf-8")


def display_path(path: str | bytes | os.PathLike[str] | os.PathLike[bytes]) -> str:
    """Return the printable form of an arbitrary path-like value.

    Objects exposing a ``display()`` method (such as :py:class:`contextpath.Path`) are asked for their own rendering,
    which keeps the text exactly as the caller supplied it.

    :param path: The path to render
    :returns: The printable form of the path
    """
    display = getattr(path, "display", None)
    if callable(display):
        return str(display())

    return display_text(os.fsdecode(path))


class PathError(Exception):
    """Base class for every error raised by contextpath.

    An error is a short description of what went wrong followed by an ordered list of labelled values, most commonly
    the path that was operated on. The rendered form is stable:

    >>> str(PathError("no parent path").with_context("path", "/"))
    'no parent path\\n-with path: /'
    """

    def __init__(self, description: str, annotations: tuple[tuple[str, str], ...] = ()) -> None:
        super().__init__(description)
        self.description = description
        self._annotations = list(annotations)

    @property
    def annotations(self) -> tuple[tuple[str, str], ...]:
        """Return the `(label, value)` pairs attached to this error, in the order they were attached."""
        return tuple(self._annotations)

    def with_context(self, label: str, value: object) -> Self:
        """Attach a labelled value to this error and return the error.

        Annotation is additive: a value attached later is rendered after the ones already present.

        >>> err = PathError("prefix mismatch").with_context("prefix", "/temp/").with_context("path", "/tmp/foo.txt")
        >>> print(err)
        prefix mismatch
        -with prefix: /temp/
        -with path: /tmp/foo.txt

        :param label: The label of the value, e.g. "path"
        :param value: The value; path-like values are rendered with :py:func:`display_path`, anything else with `str`

        :returns: This error
        """
        if isinstance(value, (str, bytes, os.PathLike)):
            rendered = display_path(value)
        else:
            rendered = str(value)

        self._annotations.append((label, rendered))
        return self

    def get(self, label: str) -> str | None:
        """Return the first value attached under `label`, or None if there is none."""
        for key, value in self._annotations:
            if key == label:
                return value
        return None

    def __str__(self) -> str:
        lines = [self.description]
        lines.extend(f"-with {label}: {value}" for label, value in self._annotations)
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.description!r}, {self.annotations!r})"

    def __reduce__(self) -> tuple[Any, ...]:
        """Support pickling and copying regardless of the subclass constructor signature.

        The instance is rebuilt from its description, then its attributes (annotations, cause, ...) are restored.
        """
        state = dict(self.__dict__)
        state["_annotations"] = list(self._annotations)
        return _restore_path_error, (self.__class__, self.description), state

    def to_os_error(self) -> OSError:
        """Return a plain OSError carrying the rendered text of this error as its message.

        The structure (description and annotations) is discarded.

        :returns: An OSError whose ``str()`` is identical to ``str(self)``
        """
        return OSError(str(self))


def _restore_path_error(cls: type[PathError], description: str) -> PathError:
    inst = cls.__new__(cls)
    Exception.__init__(inst, description)
    return inst


class AbsenceError(PathError):
    """A structural component of a path (parent, file name, extension) does not exist."""


class EncodingError(PathError, UnicodeError):
    """A path, a path component or the contents of a file are not valid UTF-8."""

    def __init__(self, description: str = "invalid utf8", annotations: tuple[tuple[str, str], ...] = ()) -> None:
        super().__init__(description, annotations)


class MismatchError(PathError, ValueError):
    """An expected prefix or file type did not match the actual path."""


class FileTypeMismatchError(MismatchError):
    """The file type found on the filesystem differs from the expected one."""

    def __init__(self, found: Any, expected: Any, annotations: tuple[tuple[str, str], ...] = ()) -> None:
        super().__init__(f"found {found.name}, expected {expected.name}", annotations)
        self.found = found
        self.expected = expected


class FilesystemError(PathError):
    """The operating system refused or failed an operation.

    The description is the native error message, unmodified. The native exception is kept as `cause`.
    """

    def __init__(self, cause: OSError, annotations: tuple[tuple[str, str], ...] = ()) -> None:
        super().__init__(cause.strerror or str(cause), annotations)
        self.cause = cause

    @property
    def errno(self) -> int | None:
        return self.cause.errno

    def to_os_error(self) -> OSError:
        # OSError(errno, strerror) renders as "[Errno N] ...", so only errno is carried over
        err = OSError(str(self))
        err.errno = self.cause.errno
        return err


class InvariantError(AssertionError):
    """The filesystem reported something that cannot happen, e.g. a file type matching no known discriminant.

    This signals a broken environment or a bug, not a recoverable condition. It is not a PathError.
    """


def annotate_os_errors(
    *labels: tuple[str, str],
) -> Callable[[Callable[_S, _R]], Callable[_S, _R]]:
    """Wrap methods that access the filesystem so that OSErrors are raised as annotated FilesystemErrors.

    Each entry of `labels` is a pair ``(label, parameter)``: on failure, the argument bound to `parameter` is attached
    under `label`, in the given order. With no labels, the receiver is attached as "path".

    >>> class Example:
    ...     @annotate_os_errors(("from", "self"), ("to", "to"))
    ...     def rename(self, to): ...

    :param labels: The `(label, parameter name)` pairs to attach
    :returns: A decorator
    """
    pairs = labels or (("path", "self"),)

    def decorator(func: Callable[_S, _R]) -> Callable[_S, _R]:
        signature = inspect.signature(func)

        @wraps(func)
        def wrapper(*args: _S.args, **kwargs: _S.kwargs) -> _R:
            try:
                return func(*args, **kwargs)
            except OSError as e:
                bound = signature.bind(*args, **kwargs)
                err = FilesystemError(e)
                for label, parameter in pairs:
                    err.with_context(label, bound.arguments[parameter])
                raise err from e

        return wrapper

    return decorator
