"""Error types raised by the constraint framework."""

from __future__ import annotations

from collections.abc import Iterator, Mapping


class ConstraintFrameworkError(Exception):
    """Base class for errors raised by the constraint framework."""

    message = "constraint framework error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        text = f"{self.message}: {detail}" if detail else self.message
        super().__init__(text)


class CreatingBackendError(ConstraintFrameworkError):
    message = "unable to create backend"


class CreatingClientError(ConstraintFrameworkError):
    message = "unable to create client"


class MissingConstraintError(ConstraintFrameworkError):
    message = "missing Constraint"


class MissingConstraintTemplateError(ConstraintFrameworkError):
    message = "missing ConstraintTemplate"


class InvalidModuleError(ConstraintFrameworkError):
    message = "invalid module"


class ModuleNameError(ConstraintFrameworkError):
    message = "invalid module name"


class ParseError(ConstraintFrameworkError):
    message = "unable to parse module"


class CompileError(ConstraintFrameworkError):
    message = "unable to compile modules"


class ModulePrefixError(ConstraintFrameworkError):
    message = "invalid module prefix"


class PathInvalidError(ConstraintFrameworkError):
    message = "invalid data path"


class PathConflictError(ConstraintFrameworkError):
    message = "conflicting path"


class WriteError(ConstraintFrameworkError):
    message = "error writing data"


class ReadError(ConstraintFrameworkError):
    message = "error reading data"


class TransactionError(ConstraintFrameworkError):
    message = "error committing data"


class InvalidConstraintTemplateError(ConstraintFrameworkError):
    message = "invalid ConstraintTemplate"


class InvalidConstraintError(ConstraintFrameworkError):
    message = "invalid Constraint"


def is_unrecognized_constraint_error(err: BaseException | None) -> bool:
    """Return True if err is a MissingConstraintError."""
    return _error_matches(err, MissingConstraintError)


def _error_chain(err: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def _error_matches(err: BaseException | None, target: object) -> bool:
    """Report whether err, or an error it was raised from, matches target.

    A target may be an exception class, an exception instance, or None.
    """
    if target is None:
        return err is None
    if err is None:
        return False
    for candidate in _error_chain(err):
        if isinstance(target, type):
            if isinstance(candidate, target):
                return True
            continue
        if candidate is target:
            return True
        if isinstance(candidate, ErrorMap):
            if candidate.matches(target):
                return True
            continue
        if (
            isinstance(target, ConstraintFrameworkError)
            and not isinstance(target, ErrorMap)
            and target.detail is None
            and isinstance(candidate, type(target))
        ):
            return True
    return False


class ErrorMap(ConstraintFrameworkError):
    """Errors keyed by the name of the target that raised them."""

    message = "errors by target"

    def __init__(self, errors: Mapping[str, BaseException] | None = None) -> None:
        self.errors: dict[str, BaseException] = dict(errors or {})
        self.detail = None
        Exception.__init__(self)

    def __str__(self) -> str:
        return "".join(f"{key}: {self.errors[key]}\n" for key in sorted(self.errors))

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[str]:
        return iter(self.errors)

    def __contains__(self, key: object) -> bool:
        return key in self.errors

    def __getitem__(self, key: str) -> BaseException:
        return self.errors[key]

    def matches(self, other: object) -> bool:
        """Report whether other holds matching errors under the same targets."""
        if not isinstance(other, ErrorMap):
            return False
        if len(self.errors) != len(other.errors):
            return False
        return all(
            _error_matches(err, other.errors.get(key))
            for key, err in self.errors.items()
        )