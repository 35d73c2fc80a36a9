"""
Build the trigger variables sent to the GitLab pipeline trigger API.
"""

from constants import VARIABLE_DIRECTORIES_CHANGED, VARIABLE_FILES_CHANGED


def remove_duplicates(items):
    """Return items without duplicates, keeping the first occurrence order."""
    return list(dict.fromkeys(items))


def build_trigger_variables(match, separator):
    """
    Turn a MatchResult into form data for the trigger request.

    Both variables are always present; with no matches their value is an
    empty string so the pipeline can rely on them being defined.

    Args:
        match (MatchResult): Output of match_changed_paths().
        separator (str): Joins the paths in each variable value.

    Returns:
        dict: {variable name: [joined paths]}, exactly two entries.
    """
    return {
        VARIABLE_FILES_CHANGED: [separator.join(remove_duplicates(match.matched_files))],
        VARIABLE_DIRECTORIES_CHANGED: [separator.join(remove_duplicates(match.matched_directories))],
    }
