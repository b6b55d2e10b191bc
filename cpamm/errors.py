"""Exception types for the pool engine.

Every failed operation raises exactly one of these. ``code`` is a stable,
machine-readable identifier (used by the CLI and in log lines).
"""

from __future__ import annotations


class AmmError(Exception):
    """Base class for all pool engine rejections."""

    code = "amm_error"


class InvalidPair(AmmError):
    """The two asset ids do not form a valid pair."""

    code = "invalid_pair"


class IdenticalAssets(InvalidPair):
    code = "identical_assets"


class InvalidAmount(AmmError):
    code = "invalid_amount"


class UnsupportedAsset(AmmError):
    code = "unsupported_asset"


class PoolExists(AmmError):
    code = "pool_exists"


class PoolNotFound(AmmError):
    """Raised for operations that need a seeded pool."""

    code = "pool_not_found"


class InsufficientLiquidity(AmmError):
    code = "insufficient_liquidity"


class SlippageExceeded(AmmError):
    code = "slippage_exceeded"


class ZeroShares(AmmError):
    """Initial deposit too small to mint a single share."""

    code = "zero_shares"


class ZeroSharesMinted(ZeroShares):
    """Deposit into a seeded pool too small to mint a single share."""

    code = "zero_shares_minted"


class InsufficientShares(AmmError):
    code = "insufficient_shares"


class ArithmeticOverflow(AmmError):
    """An intermediate value exceeded MAX_UINT."""

    code = "arithmetic_overflow"


class TransferFailed(AmmError):
    """Wraps the custody collaborator's error without interpreting it."""

    code = "transfer_failed"

    def __init__(self, inner: BaseException) -> None:
        self.inner = inner
        super().__init__(f"transfer failed: {inner!r}")


class PoolLocked(AmmError):
    """A mutating call re-entered a pool that already has an operation in flight."""

    code = "pool_locked"


class PoolInvariantError(AmmError):
    """Raised when a post-state violates one or more pool invariants."""

    code = "invariant_violation"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


class Unauthorized(AmmError):
    """Admin command rejected by the registry guard."""

    code = "unauthorized"
