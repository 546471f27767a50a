"""Custom exception hierarchy for confcap.

All library exceptions inherit from ConfcapError, which carries an error
code so callers can branch on the failure class without string matching.
"""

from __future__ import annotations


class ConfcapError(Exception):
    """Base exception for all confcap errors."""

    def __init__(self, message: str, *, code: str = "INTERNAL_ERROR") -> None:
        super().__init__(message)
        self.code = code


class DeclarationError(ConfcapError):
    """Malformed contract: not a contract, missing metadata, bad accessor shape."""

    def __init__(self, message: str, *, code: str = "DECLARATION_ERROR") -> None:
        super().__init__(message, code=code)


class ConversionError(ConfcapError):
    """Configuration text does not parse as the declared scalar kind.

    key and contract are None when raised from the bare codec; the resolver
    re-raises with both filled in.
    """

    def __init__(
        self,
        value: str,
        kind: str,
        *,
        key: str | None = None,
        contract: str | None = None,
        reason: str = "",
    ) -> None:
        self.value = value
        self.kind = kind
        self.key = key
        self.contract = contract
        self.reason = reason
        parts = []
        if contract is not None:
            parts.append(f"contract {contract}")
        if key is not None:
            parts.append(f"{key}={value!r}")
        else:
            parts.append(f"value {value!r}")
        message = f"convert() failed: {', '.join(parts)} returnType: {kind}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, code="CONVERSION_ERROR")

    def with_context(self, *, key: str, contract: str) -> ConversionError:
        """Return a copy naming the offending key and contract."""
        return ConversionError(
            self.value, self.kind, key=key, contract=contract, reason=self.reason,
        )


class ModuleBuildError(ConfcapError):
    """The binary module cannot be laid out (pool overflow, oversized text)."""

    def __init__(self, message: str, *, code: str = "BUILD_ERROR") -> None:
        super().__init__(message, code=code)


class ActivationError(ConfcapError):
    """An emitted binary module could not be loaded into a live instance."""

    def __init__(self, message: str, *, code: str = "ACTIVATION_ERROR") -> None:
        super().__init__(message, code=code)


class ManagerClosedError(ConfcapError):
    """Raised when a manager is used after shutdown()."""

    def __init__(self, message: str = "ConfigManager has been shut down") -> None:
        super().__init__(message, code="MANAGER_CLOSED")
