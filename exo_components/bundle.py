"""Bundle builder: run a build and zip its output into one deployable archive.

Pipeline order:
    1. Remove any archive left at the output path by a previous run
    2. Run pre-build commands, then the build command, in the source directory
    3. Zip every file under the distribution directory

The archive is written to a temporary sibling and moved into place only once
it is complete, so a failed run never leaves a truncated zip at the output path.
"""

import logging
import os
import subprocess
import zipfile
from collections.abc import Iterable, Iterator, Mapping, Sequence
from importlib import resources
from pathlib import Path

from exo_components.errors import BuildCommandError, NotFoundError, PackagingError

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_NAME = "bundle.zip"
SOURCE_ARCHIVE_NAME = "source.zip"
LAMBDA_API_ARCHIVE_NAME = "aws-lambda-api.zip"

# Never uploaded as part of a source tree
SOURCE_EXCLUDES = (".git", DEFAULT_ARCHIVE_NAME, LAMBDA_API_ARCHIVE_NAME)

# Lines of command output kept on BuildCommandError
_OUTPUT_TAIL_LINES = 40
_PARTIAL_SUFFIX = ".partial"


def build(
    source_dir: Path | str,
    build_command: str,
    dist_relative_path: str,
    *,
    pre_build_commands: Sequence[str] = (),
    archive_name: str = DEFAULT_ARCHIVE_NAME,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    """Build *source_dir* and archive its distribution directory.

    Args:
        source_dir: Working directory for the build commands.
        build_command: Shell command producing the distribution directory.
            An empty command skips the build step.
        dist_relative_path: Distribution directory relative to *source_dir*.
        pre_build_commands: Commands run, in order, before *build_command*.
        archive_name: File name of the archive written into *source_dir*.
        timeout: Wall-clock limit in seconds for each command.
        env: Extra environment variables for the commands.

    Returns:
        Absolute path to the written archive.

    Raises:
        NotFoundError: If *source_dir* does not exist.
        BuildCommandError: If a command fails or times out.
        PackagingError: If the archive cannot be written.

    """
    source = Path(source_dir).resolve()
    if not source.is_dir():
        raise NotFoundError(source, f"Source directory not found: {source}")

    archive_path = source / archive_name
    _remove_stale(archive_path)

    run_build_commands(
        source,
        [*pre_build_commands, build_command],
        timeout=timeout,
        env=env,
    )

    dist_dir = source / dist_relative_path.lstrip("/\\")
    return write_archive(dist_dir, archive_path)


def build_source_archive(
    source_dir: Path | str,
    *,
    archive_name: str = SOURCE_ARCHIVE_NAME,
    exclude: Iterable[str] = SOURCE_EXCLUDES,
    extra_files: Mapping[str, str] | None = None,
) -> Path:
    """Zip a whole source tree, e.g. for upload to a remote build service.

    Files and directories named in *exclude* are skipped at any depth; by
    default that covers ``.git`` and the archives this package writes.
    *extra_files* maps archive entry names to text content written alongside
    the tree (an entry with the same name as a source file replaces it).

    """
    source = Path(source_dir).resolve()
    if not source.is_dir():
        raise NotFoundError(source, f"Source directory not found: {source}")

    archive_path = source / archive_name
    _remove_stale(archive_path)
    return write_archive(
        source,
        archive_path,
        exclude=frozenset(exclude),
        extra_files=extra_files,
    )


def run_build_commands(
    cwd: Path,
    commands: Iterable[str],
    *,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
) -> None:
    """Run shell commands in *cwd*, stopping at the first failure."""
    process_env = {**os.environ, **env} if env else None

    for command in commands:
        if not command or not command.strip():
            continue
        logger.info("Running %r in %s", command, cwd)
        try:
            completed = subprocess.run(
                command,
                shell=True,
                cwd=cwd,
                env=process_env,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            output = _tail(exc.stdout) + _tail(exc.stderr)
            raise BuildCommandError(command, None, timed_out=True, output=output) from exc

        if completed.returncode != 0:
            output = _tail(completed.stdout) + _tail(completed.stderr)
            raise BuildCommandError(command, completed.returncode, output=output)


def write_archive(
    content_dir: Path,
    archive_path: Path,
    *,
    exclude: frozenset[str] = frozenset(),
    extra_files: Mapping[str, str] | None = None,
) -> Path:
    """Zip every file under *content_dir* with paths relative to it.

    Hidden files are included; empty directories are not stored.  Files
    dated before 1980 are stored with the earliest timestamp zip allows.

    Raises:
        PackagingError: If *content_dir* is missing, a directory under it
            cannot be listed, or any write fails.

    """
    if not content_dir.is_dir():
        msg = f"Distribution directory not found: {content_dir}"
        raise PackagingError(msg)

    partial = archive_path.with_name(archive_path.name + _PARTIAL_SUFFIX)
    skip = {archive_path.resolve(), partial.resolve()}
    extra_files = extra_files or {}
    count = 0

    try:
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(
            partial, "w", zipfile.ZIP_DEFLATED, strict_timestamps=False,
        ) as zf:
            for file_path, arcname in iter_files(content_dir, exclude):
                if file_path.resolve() in skip or arcname in extra_files:
                    continue
                zf.write(file_path, arcname)
                count += 1
            for arcname, content in extra_files.items():
                zf.writestr(arcname, content)
                count += 1
        os.replace(partial, archive_path)
    except (OSError, ValueError, zipfile.LargeZipFile) as exc:
        partial.unlink(missing_ok=True)
        msg = f"Failed to write archive {archive_path} from {content_dir}: {exc}"
        raise PackagingError(msg) from exc
    except BaseException:
        partial.unlink(missing_ok=True)
        raise

    logger.info("Wrote %d files to %s", count, archive_path)
    return archive_path


def render_buildspec(template: str, command: str) -> str:
    """Substitute the ``{{command}}`` placeholder of a buildspec template."""
    return template.replace("{{command}}", command)


def default_buildspec_template() -> str:
    """Return the buildspec template shipped with this package."""
    return resources.files("exo_components").joinpath("buildspec.yml").read_text()


def iter_files(root: Path, exclude: frozenset[str] = frozenset()) -> Iterator[tuple[Path, str]]:
    """Yield ``(path, archive name)`` for each file below *root*, sorted.

    A directory that cannot be listed raises its ``OSError``.
    """
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        dirnames[:] = sorted(d for d in dirnames if d not in exclude)
        for fname in sorted(filenames):
            if fname in exclude:
                continue
            full_path = Path(dirpath) / fname
            rel_path = os.path.relpath(full_path, root).replace(os.sep, "/")
            yield full_path, rel_path


def _raise_walk_error(exc: OSError) -> None:
    raise exc


def _remove_stale(archive_path: Path) -> None:
    try:
        archive_path.unlink(missing_ok=True)
    except OSError as exc:
        msg = f"Cannot remove previous archive {archive_path}: {exc}"
        raise PackagingError(msg) from exc


def _tail(output: str | bytes | None) -> str:
    if not output:
        return ""
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")
    lines = output.rstrip().splitlines()[-_OUTPUT_TAIL_LINES:]
    return "\n".join(lines) + "\n"
