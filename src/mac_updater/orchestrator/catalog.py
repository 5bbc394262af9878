"""Built-in maintenance steps and the routines behind them.

BUILTIN_STEPS is the canonical run order. It is not configurable; users can
only drop steps from it (``skip_steps``) or append their own.

Step descriptions double as the keys matched by ``skip_steps`` in stored
configurations, so renaming one is a breaking change.
"""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..utils.formatting import human_size
from .models import CommandRecord, ExecutionContext, StepResult, StepStatus
from .steps import BuiltIn, Step, describe_failure, execute_commands, register_routine

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def _builtin(step_id: str, description: str) -> Step:
    return Step(id=step_id, description=description, action=BuiltIn(tag=step_id))


BUILTIN_STEPS: Tuple[Step, ...] = (
    _builtin("homebrew", "Update Homebrew"),
    _builtin("homebrew-casks", "Update Homebrew Casks"),
    _builtin("app-store", "Upgrade App Store Apps"),
    _builtin("system-updates", "Install System Updates"),
    _builtin("downloads", "Cleanup Downloads Folder"),
    _builtin("screenshots", "Cleanup Desktop Screenshots"),
    _builtin("disk-images", "Remove Old Disk Images"),
    _builtin("browser-caches", "Clear Browser Caches"),
    _builtin("system-logs", "Clear System Logs"),
    _builtin("npm", "Update npm Packages"),
    _builtin("ruby-gems", "Update Ruby Gems"),
    _builtin("rust", "Update Rust Tools"),
    _builtin("composer", "Update Composer Packages"),
    _builtin("oh-my-zsh", "Update oh-my-zsh"),
    _builtin("dns-cache", "Flush DNS Cache"),
    _builtin("disk-space", "Optimize Disk Space"),
    _builtin("xcode", "Clean Xcode Data"),
    _builtin("launch-services", "Rebuild Launch Services"),
    _builtin("spotlight", "Rebuild Spotlight Index"),
)

LSREGISTER = (
    "/System/Library/Frameworks/CoreServices.framework/Frameworks/"
    "LaunchServices.framework/Support/lsregister"
)

BROWSER_CACHE_GLOBS = (
    "Library/Caches/com.apple.Safari/WebKitCache",
    "Library/Caches/Google/Chrome/*/Cache",
    "Library/Caches/Firefox/Profiles/*/cache2",
)


# ------------------------
# Shared helpers
# ------------------------

def run_tool_commands(
    context: ExecutionContext,
    commands: Sequence[str],
    requires: Optional[str] = None,
) -> StepResult:
    """Run every command with live output.

    A failing command does not stop the ones after it, but fails the step.
    When ``requires`` is not on PATH nothing runs and the step is skipped.
    """
    if requires and not context.executor.which(requires):
        logger.info("%s not found, skipping", requires)
        return StepResult.skipped(f"{requires} not found")

    records, failed = execute_commands(context, commands, capture=False, fail_fast=False)
    if failed:
        reason = "; ".join(describe_failure(record) for record in failed)
        return StepResult.failed(reason, tuple(records))
    return StepResult.succeeded(f"{len(records)} command(s) completed", tuple(records))


def remove_old_files(
    root: Path,
    pattern: str,
    days: int,
    now: Optional[float] = None,
) -> Tuple[int, int, List[str]]:
    """Delete regular files under ``root`` matching ``pattern`` older than ``days``.

    Returns (files removed, bytes removed, error messages).
    """
    cutoff = (now if now is not None else time.time()) - days * SECONDS_PER_DAY
    removed = 0
    removed_bytes = 0
    errors: List[str] = []
    if not root.is_dir():
        return removed, removed_bytes, errors

    for path in root.rglob(pattern):
        try:
            if path.is_symlink() or not path.is_file():
                continue
            stat = path.stat()
            if stat.st_mtime >= cutoff:
                continue
            path.unlink()
        except OSError as exc:
            errors.append(f"{path}: {exc.strerror or exc}")
            continue
        removed += 1
        removed_bytes += stat.st_size
        logger.debug("deleted: %s", path)
    return removed, removed_bytes, errors


def _directory_size(path: Path) -> int:
    total = 0
    for entry in path.rglob("*"):
        try:
            if entry.is_file() and not entry.is_symlink():
                total += entry.stat().st_size
        except OSError:
            continue
    return total


def _cleanup_result(label: str, removed: int, removed_bytes: int, errors: List[str]) -> StepResult:
    if errors:
        return StepResult.failed(
            f"could not remove {len(errors)} item(s) from {label}, first: {errors[0]}"
        )
    if not removed:
        return StepResult.succeeded(f"nothing to clean in {label}")
    return StepResult.succeeded(f"removed {removed} item(s) from {label} ({human_size(removed_bytes)})")


# ------------------------
# Package managers & updates
# ------------------------

@register_routine("homebrew")
def update_homebrew(context: ExecutionContext) -> StepResult:
    return run_tool_commands(
        context, ["brew update", "brew upgrade", "brew cleanup --prune=7"], requires="brew"
    )


@register_routine("homebrew-casks")
def update_homebrew_casks(context: ExecutionContext) -> StepResult:
    return run_tool_commands(context, ["brew upgrade --cask"], requires="brew")


@register_routine("app-store")
def upgrade_app_store_apps(context: ExecutionContext) -> StepResult:
    return run_tool_commands(context, ["mas upgrade"], requires="mas")


@register_routine("system-updates")
def install_system_updates(context: ExecutionContext) -> StepResult:
    return run_tool_commands(context, ["softwareupdate -ia"], requires="softwareupdate")


@register_routine("npm")
def update_npm_packages(context: ExecutionContext) -> StepResult:
    return run_tool_commands(context, ["npm update -g"], requires="npm")


@register_routine("ruby-gems")
def update_ruby_gems(context: ExecutionContext) -> StepResult:
    return run_tool_commands(context, ["gem update", "gem cleanup"], requires="gem")


@register_routine("rust")
def update_rust_tools(context: ExecutionContext) -> StepResult:
    # install-update comes from the cargo-update crate
    return run_tool_commands(context, ["cargo install-update -a"], requires="cargo")


@register_routine("composer")
def update_composer_packages(context: ExecutionContext) -> StepResult:
    return run_tool_commands(context, ["composer global update"], requires="composer")


@register_routine("oh-my-zsh")
def update_oh_my_zsh(context: ExecutionContext) -> StepResult:
    script = context.home / ".oh-my-zsh" / "tools" / "upgrade.sh"
    if not script.is_file():
        return StepResult.skipped("oh-my-zsh not found")
    return run_tool_commands(context, [f'ZSH="{script.parent.parent}" zsh "{script}"'], requires="zsh")


# ------------------------
# Cleanup
# ------------------------

@register_routine("downloads")
def cleanup_downloads(context: ExecutionContext) -> StepResult:
    days = context.config.cleanup_settings.downloads_days_old
    removed, size, errors = remove_old_files(context.home / "Downloads", "*", days)
    return _cleanup_result("~/Downloads", removed, size, errors)


@register_routine("screenshots")
def cleanup_screenshots(context: ExecutionContext) -> StepResult:
    days = context.config.cleanup_settings.screenshots_days_old
    removed, size, errors = remove_old_files(context.home / "Desktop", "Screenshot*", days)
    return _cleanup_result("~/Desktop", removed, size, errors)


@register_routine("disk-images")
def remove_old_disk_images(context: ExecutionContext) -> StepResult:
    days = context.config.cleanup_settings.dmg_files_days_old
    removed = removed_bytes = 0
    errors: List[str] = []
    for folder in ("Desktop", "Downloads"):
        count, size, errs = remove_old_files(context.home / folder, "*.dmg", days)
        removed += count
        removed_bytes += size
        errors.extend(errs)
    return _cleanup_result("~/Desktop and ~/Downloads", removed, removed_bytes, errors)


@register_routine("browser-caches")
def clear_browser_caches(context: ExecutionContext) -> StepResult:
    if not context.config.cleanup_settings.clear_browser_caches:
        return StepResult.skipped("disabled in cleanup_settings")

    removed = removed_bytes = 0
    errors: List[str] = []
    for pattern in BROWSER_CACHE_GLOBS:
        for cache_dir in context.home.glob(pattern):
            if not cache_dir.is_dir() or cache_dir.is_symlink():
                continue
            size = _directory_size(cache_dir)
            try:
                shutil.rmtree(cache_dir)
            except OSError as exc:
                errors.append(f"{cache_dir}: {exc.strerror or exc}")
                continue
            logger.info("cleaned: %s (%s)", cache_dir, human_size(size))
            removed += 1
            removed_bytes += size
    return _cleanup_result("browser caches", removed, removed_bytes, errors)


@register_routine("system-logs")
def clear_system_logs(context: ExecutionContext) -> StepResult:
    if not context.config.cleanup_settings.clear_system_logs:
        return StepResult.skipped("disabled in cleanup_settings")
    return run_tool_commands(
        context,
        [
            "sudo rm -rf /private/var/log/asl/*.asl",
            "sudo rm -rf /Library/Logs/DiagnosticReports/*",
            "rm -rf ~/Library/Logs/DiagnosticReports/*",
            "rm -rf ~/Library/Application\\ Support/CrashReporter/*",
        ],
    )


# ------------------------
# System optimisation
# ------------------------

@register_routine("dns-cache")
def flush_dns_cache(context: ExecutionContext) -> StepResult:
    return run_tool_commands(
        context, ["sudo dscacheutil -flushcache", "sudo killall -HUP mDNSResponder"]
    )


@register_routine("disk-space")
def optimize_disk_space(context: ExecutionContext) -> StepResult:
    return run_tool_commands(
        context,
        [
            "sudo tmutil thinlocalsnapshots / 10000000000 4",
            "sudo purge",
            "sudo periodic daily weekly monthly",
        ],
    )


@register_routine("xcode")
def clean_xcode_data(context: ExecutionContext) -> StepResult:
    developer_dir = context.home / "Library" / "Developer" / "Xcode"
    records: List[CommandRecord] = []
    has_simctl = False
    if context.executor.which("xcrun"):
        probe, _ = execute_commands(context, ["xcrun --find simctl"], capture=True, fail_fast=True)
        records.extend(probe)
        has_simctl = probe[0].success
    if not developer_dir.is_dir() and not has_simctl:
        return StepResult.skipped("Xcode not found", tuple(records))

    removed = removed_bytes = 0
    errors: List[str] = []
    for name in ("DerivedData", "Archives"):
        target = developer_dir / name
        if not target.is_dir():
            continue
        size = _directory_size(target)
        try:
            shutil.rmtree(target)
        except OSError as exc:
            errors.append(f"{target}: {exc.strerror or exc}")
            continue
        removed += 1
        removed_bytes += size

    if has_simctl:
        result = run_tool_commands(context, ["xcrun simctl delete unavailable"])
        records.extend(result.commands)
        if result.status is StepStatus.FAILED:
            errors.append(result.reason or "simctl failed")

    if errors:
        return StepResult.failed("; ".join(errors), tuple(records))
    detail = f"removed {removed} Xcode folder(s) ({human_size(removed_bytes)})"
    if has_simctl:
        detail += ", deleted unavailable simulators"
    return StepResult.succeeded(detail, tuple(records))


@register_routine("launch-services")
def rebuild_launch_services(context: ExecutionContext) -> StepResult:
    return run_tool_commands(
        context,
        [
            f"{LSREGISTER} -kill -r -domain local -domain system -domain user",
            "killall Finder",
        ],
    )


@register_routine("spotlight")
def rebuild_spotlight_index(context: ExecutionContext) -> StepResult:
    return run_tool_commands(
        context,
        ["sudo mdutil -i off /", "sudo mdutil -E /", "sudo mdutil -i on /"],
    )
