"""
Main module for the test scaffolding command-line interface.

This module provides the command-line interface for generating JUnit test skeletons.
"""

import os
import sys
import argparse
from dotenv import load_dotenv

from testscaffold.generator import generate_test_class_file_content
from testscaffold.paths import DEFAULT_TEST_SUFFIX, get_class_name, get_test_class_name, get_test_file_path
from testscaffold.utils import create_class_file, scaffold_repository, scaffold_test_file


def _env_flag(name: str) -> bool:
    return os.environ.get(name, '').strip().lower() in ('1', 'true', 'yes')


def main(argv=None):
    """
    Main entry point for the test scaffolding command-line interface.

    Returns:
        Process exit status
    """
    # Load settings from .env file
    load_dotenv()

    parser = argparse.ArgumentParser(description="Generate JUnit test skeletons for Java classes")
    parser.add_argument("--file", type=str, help="Java source file to generate a test for")
    parser.add_argument("--repo", type=str, help="Repository to generate tests for (all files under src/main/java)")
    parser.add_argument("--new-class", type=str, help="Name of an empty class to create")
    parser.add_argument("--dir", type=str, help="Directory for --new-class")
    parser.add_argument("--stdout", action="store_true", help="Print the generated test instead of writing it (with --file)")
    parser.add_argument("--overwrite", action="store_true", help="Overwrite existing test files")
    parser.add_argument("--dry-run", action="store_true", help="Generate tests without writing files")
    parser.add_argument("--suffix", type=str, help="Test class name suffix")

    args = parser.parse_args(argv)

    suffix = args.suffix or os.environ.get("TESTSCAFFOLD_TEST_SUFFIX") or DEFAULT_TEST_SUFFIX
    overwrite = args.overwrite or _env_flag("TESTSCAFFOLD_OVERWRITE")

    if args.new_class:
        if not args.dir:
            print("Error: Directory required for creating a class (--dir).")
            return 2
        try:
            create_class_file(args.dir, args.new_class, overwrite=overwrite)
        except OSError as e:
            print(f"Error: {e}")
            return 1
    elif args.file:
        if not os.path.isfile(args.file):
            print(f"Error: Source file not found: {args.file}")
            return 1
        try:
            if args.stdout:
                source_path = os.path.abspath(args.file)
                class_name = get_class_name(source_path)
                test_class_name = get_test_class_name(class_name, suffix)
                test_path = get_test_file_path(source_path, test_class_name)
                content = generate_test_class_file_content(source_path, class_name, test_path, test_class_name)
                print(content.decode('utf-8'))
            else:
                scaffold_test_file(args.file, suffix, overwrite=overwrite, dry_run=args.dry_run)
        except OSError as e:
            print(f"Error: {e}")
            return 1
    elif args.repo:
        if not os.path.isdir(args.repo):
            print(f"Error: Repository not found: {args.repo}")
            return 1
        stats = scaffold_repository(args.repo, suffix, overwrite=overwrite, dry_run=args.dry_run)
        if stats['errors']:
            return 1
    else:
        parser.print_help()
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
