"""
Path helpers for test scaffolding.

This module maps Java source locations to package names, derives test file
locations from main source locations and reads source files.
"""

import os
import posixpath
import re

MAIN_SOURCE_ROOT = '/src/main/java'
TEST_SOURCE_ROOT = '/src/test/java'

DEFAULT_TEST_SUFFIX = 'Test'

# latin-1 decodes any byte sequence, so reading never fails on encoding
SOURCE_ENCODING = 'utf-8'
FALLBACK_ENCODING = 'latin-1'


def _as_posix(path) -> str:
    return os.fspath(path).replace('\\', '/')


def find_source_root(path: str, source_root: str) -> int:
    """Index of the source root in path, only where it is a whole path segment."""
    match = re.search(re.escape(source_root) + r'(?=/|$)', path)
    return match.start() if match else -1


def create_package_name(path, is_test: bool = False) -> str:
    """
    Compute the Java package name for a file or directory inside a source tree.

    Args:
        path: Location of a file (with extension) or a directory
        is_test: Whether the location is in the test tree (src/test/java)
            rather than the main tree (src/main/java)

    Returns:
        The dot-separated package name, or an empty string if the location is not
        inside the expected source root or sits directly at its top level
    """
    path = _as_posix(path)
    if not path.startswith('/'):
        path = '/' + path
    source_root = TEST_SOURCE_ROOT if is_test else MAIN_SOURCE_ROOT

    marker = find_source_root(path, source_root)
    if marker < 0:
        return ''
    start_index = marker + len(source_root) + 1

    if posixpath.splitext(path)[1]:
        end_index = len(posixpath.dirname(path))
    else:
        end_index = len(path.rstrip('/'))

    if start_index >= end_index:
        return ''

    return path[start_index:end_index].replace('/', '.')


def get_test_file_path(source_path, test_class_name: str) -> str:
    """
    Derive the test file location for a main source file.

    Args:
        source_path: Path to a file under src/main/java
        test_class_name: Name of the test class (the file base name)

    Returns:
        The matching path under src/test/java, named after the test class
    """
    test_path = _as_posix(source_path)
    marker = find_source_root(test_path, MAIN_SOURCE_ROOT)
    if marker >= 0:
        test_path = test_path[:marker] + TEST_SOURCE_ROOT + test_path[marker + len(MAIN_SOURCE_ROOT):]
    return posixpath.join(posixpath.dirname(test_path), f"{test_class_name}.java")


def get_class_name(path) -> str:
    """Return the class name implied by a source file name (its base name without extension)."""
    return posixpath.splitext(posixpath.basename(_as_posix(path)))[0]


def get_test_class_name(class_name: str, suffix: str = DEFAULT_TEST_SUFFIX) -> str:
    return f"{class_name}{suffix}"


def read_source_file(file_path) -> str:
    """
    Read a source file as UTF-8, falling back to latin-1 for undecodable content.

    Args:
        file_path: Path to the file

    Returns:
        The file content

    Raises:
        OSError: If the file cannot be read
    """
    try:
        with open(file_path, 'r', encoding=SOURCE_ENCODING) as f:
            return f.read()
    except UnicodeDecodeError:
        pass

    with open(file_path, 'r', encoding=FALLBACK_ENCODING) as f:
        content = f.read()
    print(f"Successfully read {file_path} using {FALLBACK_ENCODING} encoding")
    return content
