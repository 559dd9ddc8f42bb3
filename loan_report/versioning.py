import re
from pathlib import Path
from typing import Optional, Tuple


VERSION_RE = re.compile(r"_v(\d+)$")


def extract_version(path: Path) -> Optional[int]:
    """
    Returns the integer version from a filename suffix '_vX', or None.
    """
    m = VERSION_RE.search(path.stem)
    return int(m.group(1)) if m else None


def find_newest_version(base_output: Path) -> Tuple[Optional[Path], int]:
    """
    Finds the newest versioned file for a given base output path.

    'reports/threshold_results.csv' matches 'reports/threshold_results_v3.csv'
    but not files with a different suffix.

    Returns:
        (path_to_newest_version or None, newest_version_number)
        When no versioned file exists the result is (None, 0).
    """
    parent = base_output.parent
    base_stem = base_output.stem

    newest_path = None
    newest_version = 0

    if not parent.exists():
        return newest_path, newest_version

    for p in parent.glob(f"{base_stem}_v*{base_output.suffix}"):
        # skip look-alikes such as 'threshold_results_vip_v1.csv'
        if VERSION_RE.sub("", p.stem) != base_stem:
            continue

        v = extract_version(p)
        if v is not None and v > newest_version:
            newest_version = v
            newest_path = p

    return newest_path, newest_version


def next_version_path(base_output: Path) -> Path:
    _, newest_version = find_newest_version(base_output)
    next_v = newest_version + 1
    return base_output.with_name(f"{base_output.stem}_v{next_v}{base_output.suffix}")


class VersionedFileManager:
    """
    Resolves the newest existing version of a file and the path the next
    version should be written to.
    """

    def __init__(self, file_path: Path):
        self.file_path = Path(file_path)

    @property
    def current_newest(self) -> Optional[Path]:
        newest_path, _ = find_newest_version(self.file_path)

        # an unversioned file is treated as version zero
        if newest_path is None and self.file_path.exists():
            return self.file_path

        return newest_path

    @property
    def current_version(self) -> int:
        _, newest_version = find_newest_version(self.file_path)
        return newest_version

    @property
    def next_base_output(self) -> Path:
        return next_version_path(self.file_path)
