###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from pathlib import Path

# Exact copyright header template
PYTHON_HEADER = """###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

"""

SOURCE_DIRS = ("TraceStitch", "tests")


def test_python_files_have_exact_copyright():
    """Test that all Python files of the package and its tests have exact copyright headers."""
    root_path = Path(__file__).parent.parent
    skip_dirs = {
        "__pycache__",
        ".pytest_cache",
        "TraceStitch.egg-info",
    }
    skip_files = {"__init__.py"}

    missing_copyright = []
    wrong_format = []

    filepaths = [p for source_dir in SOURCE_DIRS for p in (root_path / source_dir).rglob("*.py")]
    filepaths.append(root_path / "setup.py")
    for filepath in filepaths:
        # Skip excluded directories and files
        if any(skip_dir in filepath.parts for skip_dir in skip_dirs):
            continue
        if filepath.name in skip_files:
            continue

        with open(filepath, "r", encoding="utf-8") as f:
            content = f.read()

        # Handle shebang line
        if content.startswith("#!"):
            content = content.split("\n", 1)[1] if "\n" in content else ""

        # Check for exact match
        if content.startswith(PYTHON_HEADER):
            continue
        elif "Copyright (c)" in content[:500]:
            wrong_format.append(str(filepath.relative_to(root_path)))
        else:
            missing_copyright.append(str(filepath.relative_to(root_path)))

    error_msgs = []
    if missing_copyright:
        error_msgs.append("\nThe following Python files are missing copyright headers:")
        error_msgs.extend(f"  - {f}" for f in sorted(missing_copyright))

    if wrong_format:
        error_msgs.append("\nThe following Python files have incorrect copyright format:")
        error_msgs.extend(f"  - {f}" for f in sorted(wrong_format))

    assert not error_msgs, "\n".join(error_msgs)
