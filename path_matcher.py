"""
Match changed paths against the tracked files and directories.
"""

from models import MatchResult


def match_changed_paths(changed_paths, tracked):
    """
    Find which tracked files and directories were touched.

    A tracked file matches a changed path only if both strings are equal.
    A tracked directory matches if the changed path starts with it as a
    literal string, so "lib" also matches "library.txt". Add a trailing
    slash to the directory entry to restrict it to the directory itself.

    Args:
        changed_paths (Iterable[str]): Paths from get_changed_paths().
        tracked (TrackedConfig): Configured files and directories.

    Returns:
        MatchResult: Matches in first-seen order, duplicates included.
    """
    result = MatchResult()

    for changed_path in changed_paths:
        for file_path in tracked.tracked_files:
            if file_path == changed_path:
                result.matched_files.append(file_path)
        for directory_path in tracked.tracked_directories:
            if changed_path.startswith(directory_path):
                result.matched_directories.append(directory_path)

    return result
