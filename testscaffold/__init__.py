# This file re-exports the public API

from testscaffold.models import ClassDescriptor, MethodSignature, Parameter
from testscaffold.parsers import RegexClassParser, TreeSitterClassParser, UnifiedParser
from testscaffold.generator import (
    generate_empty_class_content,
    generate_test_class_file_content,
    render_test_file,
    select_public_class
)
from testscaffold.paths import create_package_name, get_test_file_path
from testscaffold.utils import create_class_file, scaffold_repository, scaffold_test_file
from testscaffold.main import main

# Version information
__version__ = '0.1.0'
