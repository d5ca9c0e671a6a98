"""Data records shared by the lister, the deleter and the UI."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from refsweep.errors import ConfigError


class RefKind(str, Enum):
    """Namespace a ref belongs to. Kinds are never compared with each other."""

    LOCAL_BRANCH = "local-branch"
    REMOTE_BRANCH = "remote-branch"
    LOCAL_TAG = "local-tag"
    REMOTE_TAG = "remote-tag"

    @property
    def scope(self) -> str:
        """Return 'local' or 'remote'."""
        if self in (RefKind.REMOTE_BRANCH, RefKind.REMOTE_TAG):
            return "remote"
        return "local"

    @property
    def is_tag(self) -> bool:
        return self in (RefKind.LOCAL_TAG, RefKind.REMOTE_TAG)

    @property
    def label(self) -> str:
        """Plural display name, e.g. 'Local branches'."""
        scope, family = self.value.split("-")
        plural = "branches" if family == "branch" else "tags"
        return f"{scope.capitalize()} {plural}"


@dataclass(frozen=True)
class RefItem:
    """A branch or tag as reported by the ref lister."""

    name: str
    timestamp_unix: int
    timestamp_display: str
    author: str = ""
    subject: str = ""


@dataclass(frozen=True)
class DeletionOutcome:
    """Result of one deletion attempt for one ref."""

    name: str
    success: bool
    raw_error: str | None = None

    @classmethod
    def ok(cls, name: str) -> "DeletionOutcome":
        return cls(name=name, success=True)

    @classmethod
    def failed(cls, name: str, raw_error: str) -> "DeletionOutcome":
        return cls(name=name, success=False, raw_error=raw_error)


@dataclass(frozen=True)
class FailedItem:
    """A ref that could not be deleted."""

    name: str
    error: str
    kind: str  # "local" or "remote"


@dataclass
class AggregateResult:
    """
    Totals for one deletion run.

    success_count + failed_count always equals the number of items submitted
    to the run, and failed_items holds one entry per failure in the order the
    failures were collected.
    """

    success_count: int = 0
    failed_count: int = 0
    failed_items: list[FailedItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success_count + self.failed_count

    def record(self, outcome: DeletionOutcome, kind: RefKind) -> None:
        """Add a single outcome."""
        if outcome.success:
            self.success_count += 1
        else:
            self.failed_count += 1
            self.failed_items.append(
                FailedItem(
                    name=outcome.name,
                    error=outcome.raw_error or "",
                    kind=kind.scope,
                )
            )

    def record_all(self, outcomes: list[DeletionOutcome], kind: RefKind) -> None:
        for outcome in outcomes:
            self.record(outcome, kind)

    def merge(self, other: "AggregateResult") -> "AggregateResult":
        """Return a new result combining this one with another."""
        return AggregateResult(
            success_count=self.success_count + other.success_count,
            failed_count=self.failed_count + other.failed_count,
            failed_items=[*self.failed_items, *other.failed_items],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success_count": self.success_count,
            "failed_count": self.failed_count,
            "failed_items": [
                {"name": item.name, "error": item.error, "kind": item.kind}
                for item in self.failed_items
            ],
        }


@dataclass(frozen=True)
class ProtectionConfig:
    """Protect and force-delete pattern lists for one ref family."""

    protected_patterns: tuple[str, ...] = ()
    force_delete_patterns: tuple[str, ...] = ()


STRATEGIES = ("batch", "individual")


@dataclass(frozen=True)
class DeletionPolicy:
    """
    Batching and throttling settings for one scope (local or remote).

    Attributes:
        batch_size: Number of refs grouped into one chunk.
        max_concurrency: Deletions allowed in flight at the same time.
        inter_batch_delay: Seconds to wait between chunks.
        timeout: Seconds before a single git invocation is abandoned.
        strategy: "batch" tries one atomic call per chunk before falling back
            to per-ref deletion; "individual" always deletes per ref.
    """

    batch_size: int = 100
    max_concurrency: int = 8
    inter_batch_delay: float = 0.0
    timeout: float = 30.0
    strategy: str = "batch"

    def __post_init__(self):
        for name in ("batch_size", "max_concurrency"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
        for name in ("inter_batch_delay", "timeout"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{name} must be a number, got {value!r}")

        if self.batch_size < 1:
            raise ConfigError(f"batch_size must be at least 1, got {self.batch_size}")
        if self.max_concurrency < 1:
            raise ConfigError(
                f"max_concurrency must be at least 1, got {self.max_concurrency}"
            )
        if self.inter_batch_delay < 0:
            raise ConfigError(
                f"inter_batch_delay cannot be negative, got {self.inter_batch_delay}"
            )
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")
        if self.strategy not in STRATEGIES:
            raise ConfigError(
                f"Unknown strategy '{self.strategy}', expected one of {', '.join(STRATEGIES)}"
            )
