"""
Utilities module for test scaffolding.

This module writes generated test files and new classes to disk, for a single
source file or for every main source file of a repository.
"""

import os
import time
from typing import Dict, Optional

import pathspec

from testscaffold.generator import generate_empty_class_content, generate_test_class_file_content
from testscaffold.parsers import UnifiedParser, get_default_parser
from testscaffold.paths import (
    DEFAULT_TEST_SUFFIX, MAIN_SOURCE_ROOT, TEST_SOURCE_ROOT,
    create_package_name, find_source_root, get_class_name, get_test_class_name, get_test_file_path
)


def write_file(file_path: str, content: bytes):
    """Write content to a file, creating parent directories as needed."""
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file_path, 'wb') as f:
        f.write(content)


def scaffold_test_file(source_path: str, suffix: str = DEFAULT_TEST_SUFFIX, overwrite: bool = False,
                       dry_run: bool = False, parser: Optional[UnifiedParser] = None) -> Optional[str]:
    """
    Generate and write the test file for a Java source file.

    Args:
        source_path: Path to the Java file under src/main/java
        suffix: Suffix appended to the class name to form the test class name
        overwrite: Whether to replace an existing test file
        dry_run: Generate the content without writing it
        parser: Parser to use, defaults to the shared UnifiedParser

    Returns:
        The path of the test file, or None if it already exists and overwrite is False

    Raises:
        OSError: If the source cannot be read or the test file cannot be written
    """
    source_path = os.path.abspath(source_path)
    class_name = get_class_name(source_path)
    test_class_name = get_test_class_name(class_name, suffix)
    test_path = get_test_file_path(source_path, test_class_name)

    if os.path.exists(test_path) and not overwrite:
        print(f"Test file already exists, skipping: {test_path}")
        return None

    content = generate_test_class_file_content(source_path, class_name, test_path, test_class_name, parser)

    if dry_run:
        print(f"[dry run] Would write {len(content)} bytes to {test_path}")
    else:
        write_file(test_path, content)
        print(f"Wrote test file {test_path}")

    return test_path


def _load_gitignore(repo_path: str) -> pathspec.PathSpec:
    """
    Load .gitignore patterns from the repository.

    Args:
        repo_path: Path to the repository root

    Returns:
        PathSpec object with gitignore patterns
    """
    gitignore_path = os.path.join(repo_path, '.gitignore')
    # Always ignore .git directory
    patterns = ['.git/']

    if os.path.exists(gitignore_path):
        with open(gitignore_path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                # Skip empty lines and comments
                if line and not line.startswith('#'):
                    patterns.append(line)

    return pathspec.PathSpec.from_lines('gitwildmatch', patterns)


def scaffold_repository(repo_path: str, suffix: str = DEFAULT_TEST_SUFFIX, overwrite: bool = False,
                        dry_run: bool = False, parser: Optional[UnifiedParser] = None) -> Dict:
    """
    Generate test files for every Java source file under src/main/java in a repository.

    Args:
        repo_path: Path to the repository root
        suffix: Suffix appended to class names to form test class names
        overwrite: Whether to replace existing test files
        dry_run: Generate the content without writing it
        parser: Parser to use, defaults to the shared UnifiedParser

    Returns:
        Dictionary of run statistics
    """
    repo_path = os.path.abspath(repo_path)
    parser = parser or get_default_parser()
    gitignore_spec = _load_gitignore(repo_path)

    stats = {
        'total_sources': 0,
        'generated': 0,
        'skipped_existing': 0,
        'skipped_gitignore': 0,
        'errors': 0,
        'errors_details': {},
        'elapsed': 0
    }
    start_time = time.time()

    for root, dirs, files in os.walk(repo_path):
        # Skip .git directory (modify dirs in-place to prevent os.walk from descending into it)
        if '.git' in dirs:
            dirs.remove('.git')

        rel_root = os.path.relpath(root, repo_path)
        if rel_root == '.':
            rel_root = ''

        for d in list(dirs):
            rel_path = os.path.join(rel_root, d)
            if gitignore_spec.match_file(rel_path) or gitignore_spec.match_file(rel_path + '/'):
                dirs.remove(d)
                stats['skipped_gitignore'] += 1

        # keep the walk deterministic
        dirs.sort()

        for file in sorted(files):
            if not file.endswith('.java'):
                continue

            file_path = os.path.join(root, file)
            if find_source_root(file_path.replace('\\', '/'), MAIN_SOURCE_ROOT) < 0:
                continue

            if gitignore_spec.match_file(os.path.join(rel_root, file)):
                stats['skipped_gitignore'] += 1
                continue

            stats['total_sources'] += 1
            try:
                test_path = scaffold_test_file(file_path, suffix, overwrite, dry_run, parser)
            except OSError as e:
                print(f"Error scaffolding test for {file_path}: {str(e)}")
                stats['errors'] += 1
                error_type = type(e).__name__
                stats['errors_details'][error_type] = stats['errors_details'].get(error_type, 0) + 1
                continue

            if test_path is None:
                stats['skipped_existing'] += 1
            else:
                stats['generated'] += 1

    stats['elapsed'] = time.time() - start_time

    print(f"Scaffolded {stats['generated']} of {stats['total_sources']} source files "
          f"({stats['skipped_existing']} existing, {stats['errors']} errors) in {stats['elapsed']:.2f}s")

    return stats


def create_class_file(directory: str, class_name: str, overwrite: bool = False) -> str:
    """
    Create a new, empty Java class file.

    The package is derived from the directory, which may be in either the main
    or the test source tree.

    Args:
        directory: Directory to create the class in
        class_name: Name of the class
        overwrite: Whether to replace an existing file

    Returns:
        The path of the created file

    Raises:
        FileExistsError: If the file exists and overwrite is False
    """
    directory = os.path.abspath(directory)
    is_test = find_source_root(directory.replace('\\', '/'), TEST_SOURCE_ROOT) >= 0
    package_name = create_package_name(directory, is_test=is_test)

    file_path = os.path.join(directory, f"{class_name}.java")
    if os.path.exists(file_path) and not overwrite:
        raise FileExistsError(f"Class file already exists: {file_path}")

    write_file(file_path, generate_empty_class_content(package_name, class_name))
    print(f"Created class {class_name} at {file_path}")
    return file_path
