"""
Auto-fix capability for pattern violations.

This module provides the AutoFixer, which applies a confidence-filtered
subset of violation fixes to a parsed source, either as a dry run that
returns the fixed text or by atomically rewriting the file.
"""

import os
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from ..kit_logging import get_logger
from .base import CodeFix, FixConfidence, PatternViolation
from .config import PatternDetectionConfig
from .errors import FixApplicationError, ParseError
from .syntax.source import SourceUnit, parse

logger = get_logger()

ConfirmCallback = Callable[[PatternViolation], bool]


@dataclass
class FixOptions:
    """Options controlling which fixes are applied."""

    apply: bool = False  # Write the result to disk
    min_confidence: FixConfidence = FixConfidence.HIGH
    interactive: bool = False  # Ask before applying non-high fixes

    @classmethod
    def from_config(cls, config: PatternDetectionConfig, apply: bool = False) -> "FixOptions":
        """Options using the project's configured minimum fix confidence."""
        return cls(apply=apply, min_confidence=config.get_min_fix_confidence())


@dataclass
class AppliedFix:
    code: str
    fix: CodeFix

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "fix": self.fix.to_dict()}


@dataclass
class SkippedFix:
    code: str
    fix: CodeFix
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "fix": self.fix.to_dict(), "reason": self.reason}


@dataclass
class FixResult:
    """Outcome of one fix run.

    ``applied`` is only True when the file on disk was rewritten.
    ``fixed_code`` holds the new text whenever at least one fix was
    selected, including dry runs.
    """

    applied: bool = False
    fix_count: int = 0
    fixed_code: str | None = None
    applied_fixes: list[AppliedFix] = field(default_factory=list)
    skipped_fixes: list[SkippedFix] = field(default_factory=list)
    error: str | None = None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "applied": self.applied,
            "fix_count": self.fix_count,
            "fixed_code": self.fixed_code,
            "applied_fixes": [f.to_dict() for f in self.applied_fixes],
            "skipped_fixes": [f.to_dict() for f in self.skipped_fixes],
            "error": self.error,
        }


class AutoFixer:
    """Applies violation fixes to SST config sources.

    Fixes are spliced by descending start offset so earlier offsets stay
    valid. Overlapping fixes are never applied together.
    """

    def __init__(
        self,
        confirm: ConfirmCallback | None = None,
        config: PatternDetectionConfig | None = None,
    ):
        """Initialize the fixer.

        Args:
            confirm: Called for each non-high confidence fix in interactive
                mode; returns True to apply it
            config: Project configuration supplying the default minimum
                fix confidence when no options are passed
        """
        self.confirm = confirm
        self.config = config

    def default_options(self) -> FixOptions:
        if self.config is None:
            return FixOptions()
        return FixOptions.from_config(self.config)

    def fix(
        self,
        source: SourceUnit,
        violations: list[PatternViolation],
        options: FixOptions | None = None,
    ) -> FixResult:
        """Apply fixes carried by violations to source.

        Args:
            source: The SourceUnit the violations were detected in
            violations: Violations, in detection order
            options: Fix options, defaults to a dry run at the configured
                minimum confidence (high without a config)

        Returns:
            FixResult with applied and skipped fixes. Errors are reported
            in ``error`` and leave the file untouched.
        """
        options = options or self.default_options()
        skipped: list[SkippedFix] = []
        selected: list[tuple[int, PatternViolation]] = []

        for index, violation in enumerate(violations):
            fix = violation.fix
            if fix is None:
                continue
            reason = self._rejection_reason(violation, options)
            if reason is not None:
                skipped.append(SkippedFix(violation.code, fix, reason))
                continue
            selected.append((index, violation))

        try:
            for _, violation in selected:
                self._validate(source, violation.fix)
        except FixApplicationError as e:
            logger.warning(f"Aborting fixes for {source.path}: {e.message}")
            return FixResult(skipped_fixes=skipped, error=e.message)

        accepted = self._resolve_overlaps(selected, skipped)
        for item in skipped:
            logger.debug(f"Skipped fix for {item.code}: {item.reason}")

        if not accepted:
            return FixResult(skipped_fixes=skipped)

        fixed_code = apply_fixes(source.text, [v.fix for v in accepted])
        applied_fixes = [AppliedFix(v.code, v.fix) for v in accepted]
        result = FixResult(
            applied=False,
            fix_count=len(applied_fixes),
            fixed_code=fixed_code,
            applied_fixes=applied_fixes,
            skipped_fixes=skipped,
        )

        if not options.apply:
            return result

        try:
            self._write(source, fixed_code)
        except (OSError, FixApplicationError) as e:
            message = e.message if isinstance(e, FixApplicationError) else str(e)
            logger.warning(f"Failed to write fixes to {source.path}: {message}")
            return FixResult(skipped_fixes=skipped, error=message)

        logger.info(f"Applied {len(applied_fixes)} fix(es) to {source.path}")
        result.applied = True
        return result

    def fix_file(
        self,
        path: Path | str,
        violations: list[PatternViolation],
        options: FixOptions | None = None,
    ) -> FixResult:
        """Re-read and parse path, then apply fixes to it.

        Violations must come from detection on the file's current content;
        fixes whose ``old_code`` no longer matches abort the run.
        """
        try:
            source = parse(path)
        except ParseError as e:
            logger.warning(f"Cannot load {path} for fixing: {e}")
            return FixResult(error=str(e))
        return self.fix(source, violations, options)

    def preview(
        self,
        source: SourceUnit,
        violations: list[PatternViolation],
        options: FixOptions | None = None,
    ) -> FixResult:
        """Run fix as a dry run; never touches disk."""
        options = replace(options or self.default_options(), apply=False)
        return self.fix(source, violations, options)

    def _rejection_reason(
        self, violation: PatternViolation, options: FixOptions
    ) -> str | None:
        fix = violation.fix
        if not fix.confidence.at_least(options.min_confidence):
            return (
                f"Confidence level {fix.confidence.value} below minimum "
                f"{options.min_confidence.value}"
            )
        if options.interactive and fix.confidence != FixConfidence.HIGH:
            if self.confirm is None:
                return (
                    f"{fix.confidence.value.capitalize()} confidence - "
                    "requires user confirmation"
                )
            if not self.confirm(violation):
                return "Declined by user"
        return None

    def _validate(self, source: SourceUnit, fix: CodeFix) -> None:
        """Check a fix against the source it will be spliced into.

        Raises:
            FixApplicationError: If the offsets or old_code are stale.
        """
        if not 0 <= fix.start <= fix.end <= len(source.text):
            raise FixApplicationError(
                f"Fix range [{fix.start}, {fix.end}) outside source of length "
                f"{len(source.text)}",
                source.path,
            )
        if source.text[fix.start : fix.end] != fix.old_code:
            raise FixApplicationError(
                f"Source changed at [{fix.start}, {fix.end}): expected {fix.old_code!r}",
                source.path,
            )

    def _resolve_overlaps(
        self,
        selected: list[tuple[int, PatternViolation]],
        skipped: list[SkippedFix],
    ) -> list[PatternViolation]:
        """Pick a non-overlapping subset, preferring confidence then order."""
        ranked = sorted(selected, key=lambda item: (-item[1].fix.confidence.rank, item[0]))
        accepted: list[tuple[int, PatternViolation]] = []

        for index, violation in ranked:
            fix = violation.fix
            reason = None
            for _, other in accepted:
                if (fix.start, fix.end, fix.new_code) == (
                    other.fix.start,
                    other.fix.end,
                    other.fix.new_code,
                ):
                    reason = f"Duplicate of fix for {other.code}"
                    break
                if fix.overlaps(other.fix):
                    reason = f"Overlaps with fix for {other.code}"
                    break
            if reason is not None:
                skipped.append(SkippedFix(violation.code, fix, reason))
                continue
            accepted.append((index, violation))

        # Back to detection order for reporting
        accepted.sort(key=lambda item: item[0])
        return [violation for _, violation in accepted]

    def _write(self, source: SourceUnit, fixed_code: str) -> None:
        """Atomically replace the file, refusing if it changed since parsing."""
        path = source.path
        with open(path, encoding="utf-8", newline="") as f:
            if f.read() != source.text:
                raise FixApplicationError("file changed on disk since it was parsed", path)

        directory = path.parent if str(path.parent) else Path(".")
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(fixed_code)
            os.chmod(tmp_name, os.stat(path).st_mode & 0o777)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise


def apply_fixes(content: str, fixes: list[CodeFix]) -> str:
    """Apply non-overlapping fixes to content.

    Fixes are applied by descending start offset; at equal starts the
    wider range goes first so an insertion lands before a replacement.
    """
    result = content
    for fix in sorted(fixes, key=lambda f: (f.start, f.end), reverse=True):
        result = fix.apply(result)
    return result


def generate_diff(old: str, new: str, fromfile: str = "old", tofile: str = "new") -> str:
    """Generate a line-level preview diff.

    Common leading and trailing lines are trimmed; the remaining region
    is shown with ``- ``/``+ `` lines. Regions of equal length are
    compared line by line.

    Returns:
        Diff text, or an empty string when old and new are identical
    """
    if old == new:
        return ""

    old_lines = old.split("\n")
    new_lines = new.split("\n")

    prefix = 0
    limit = min(len(old_lines), len(new_lines))
    while prefix < limit and old_lines[prefix] == new_lines[prefix]:
        prefix += 1

    suffix = 0
    while (
        suffix < limit - prefix
        and old_lines[len(old_lines) - 1 - suffix] == new_lines[len(new_lines) - 1 - suffix]
    ):
        suffix += 1

    old_changed = old_lines[prefix : len(old_lines) - suffix]
    new_changed = new_lines[prefix : len(new_lines) - suffix]

    lines = [
        f"--- {fromfile}",
        f"+++ {tofile}",
        f"@@ -{prefix + 1},{len(old_changed)} +{prefix + 1},{len(new_changed)} @@",
    ]
    if len(old_changed) == len(new_changed):
        for old_line, new_line in zip(old_changed, new_changed):
            if old_line != new_line:
                lines.append(f"- {old_line}")
                lines.append(f"+ {new_line}")
    else:
        lines.extend(f"- {line}" for line in old_changed)
        lines.extend(f"+ {line}" for line in new_changed)

    return "\n".join(lines) + "\n"


__all__ = [
    "AppliedFix",
    "AutoFixer",
    "ConfirmCallback",
    "FixOptions",
    "FixResult",
    "SkippedFix",
    "apply_fixes",
    "generate_diff",
]
