"""gws.engine.result — Command results and batch aggregation."""

from __future__ import annotations

from dataclasses import dataclass, field

from gws.engine.command import RepoCommand


@dataclass
class Result:
    """Outcome of a single RepoCommand.

    Exactly one of: success, failure (not success, not skipped), skipped.
    """
    command: RepoCommand
    success: bool = False
    skipped: bool = False
    skip_reason: str = ""
    stdout: str = ""
    stderr: str = ""
    error: Exception | None = None
    duration: float = 0.0  # seconds
    order: int = -1

    @property
    def is_success(self) -> bool:
        return self.success and not self.skipped

    @property
    def is_failure(self) -> bool:
        return not self.success and not self.skipped

    @property
    def is_skipped(self) -> bool:
        return self.skipped

    @property
    def has_output(self) -> bool:
        return bool(self.stdout or self.stderr)

    @property
    def message(self) -> str:
        """Best single-line explanation of a failure."""
        text = self.stderr.strip()
        if not text and self.error is not None:
            text = str(self.error).strip()
        return text or "unknown error"


def skip(command: RepoCommand, reason: str) -> Result:
    """Build a skipped result for a command that is never executed."""
    return Result(
        command=command,
        skipped=True,
        skip_reason=reason,
        order=command.order,
    )


@dataclass
class ExecuteResult:
    """All results of one engine run, in submission order."""
    results: list[Result] = field(default_factory=list)
    total_duration: float = 0.0
    stopped: bool = False
    stop_reason: str = ""

    def add_result(self, result: Result) -> None:
        self.results.append(result)

    def sort_by_order(self) -> None:
        self.results.sort(key=lambda r: r.order)

    @property
    def succeeded(self) -> list[Result]:
        return [r for r in self.results if r.is_success]

    @property
    def failed(self) -> list[Result]:
        return [r for r in self.results if r.is_failure]

    @property
    def skipped(self) -> list[Result]:
        return [r for r in self.results if r.is_skipped]

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def total_count(self) -> int:
        return len(self.results)

    @property
    def has_errors(self) -> bool:
        return self.failed_count > 0

    @property
    def all_succeeded(self) -> bool:
        return self.failed_count == 0 and self.success_count > 0

    def success_names(self) -> list[str]:
        return [r.command.repo_name for r in self.succeeded]

    def failed_names(self) -> list[str]:
        return [r.command.repo_name for r in self.failed]

    def skipped_names(self) -> list[str]:
        return [r.command.repo_name for r in self.skipped]
