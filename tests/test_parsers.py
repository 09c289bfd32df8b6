"""
Tests for the parsers module.
"""

import os
import tempfile
import unittest
from unittest.mock import patch

from testscaffold.models import ClassDescriptor, MethodSignature, Parameter
from testscaffold.parsers import (
    RegexClassParser,
    TreeSitterClassParser,
    UnifiedParser,
    mask_source,
    normalize_type,
    split_top_level
)


CALCULATOR_SOURCE = (
    "public class Calculator { public Calculator(Logger logger) {} "
    "public int add(int a, int b) { return 0; } }"
)

REPOSITORY_SOURCE = '''package com.example;

import java.util.List;
import java.util.Map;

/**
 * A repository { with braces } in a comment.
 */
@Service
public final class Repository<K, V extends Comparable<V>> implements Store<K> {
    private static final String PREFIX = "class Fake {";
    private final Map<K, List<V>> items = new HashMap<>();
    private Runnable hook = () -> { System.out.println("}"); };

    static {
        System.out.println("init");
    }

    @Inject
    public Repository(final Map<String, List<V>> items, @Named("size") int size) {
        this.items = items;
    }

    Repository() {
        this(null, 0);
    }

    @Override
    public V find(K key) throws NotFoundException {
        return items.get(key).get(0);
    }

    public <T> List<T> convert(Function<V, T> mapper, String... tags) {
        return null;
    }

    public void clear() {
        items.clear();
    }

    public static Repository<String, String> create() {
        return null;
    }

    private void evict(K key) {
    }

    protected int size() { return 0; }

    public int[] counts(int values[]) { return values; }
}

class Helper {
}
'''

ENUM_SOURCE = '''public enum Color {
    RED(1), GREEN(2);

    private final int code;

    Color(int code) {
        this.code = code;
    }

    public int getCode() {
        return code;
    }
}
'''

INTERFACE_SOURCE = '''public interface Shape {
    double area();

    public String name();
}
'''


class TestHelpers(unittest.TestCase):
    """Tests for the module level helper functions."""

    def test_split_top_level_simple(self):
        """Test splitting a flat parameter list."""
        self.assertEqual(split_top_level("int a, int b"), ["int a", "int b"])

    def test_split_top_level_nested_generics(self):
        """Test that commas inside angle brackets do not split."""
        self.assertEqual(
            split_top_level("Map<String, List<Integer>> map, Function<A, B> f, int n"),
            ["Map<String, List<Integer>> map", "Function<A, B> f", "int n"]
        )

    def test_split_top_level_empty(self):
        """Test splitting empty text."""
        self.assertEqual(split_top_level(""), [])
        self.assertEqual(split_top_level("   "), [])

    def test_normalize_type(self):
        """Test whitespace normalization of types."""
        self.assertEqual(normalize_type("Map < String,\n   List< T > >"), "Map<String, List<T>>")
        self.assertEqual(normalize_type("int [ ]"), "int[]")
        self.assertEqual(normalize_type("  String "), "String")

    def test_mask_source_keeps_offsets(self):
        """Test that masking comments and literals preserves positions."""
        source = 'class A { // }\n String s = "}"; /* { */ }'
        masked = mask_source(source)
        self.assertEqual(len(masked), len(source))
        self.assertEqual(masked.count('{'), 1)
        self.assertEqual(masked.count('}'), 1)
        self.assertEqual(masked.index('\n'), source.index('\n'))


class ParserContractTests:
    """Behaviour shared by every class model extractor backend."""

    parser = None

    def test_calculator(self):
        """Test parsing a single class with a constructor and a method."""
        classes = self.parser.parse(CALCULATOR_SOURCE)

        self.assertEqual(classes, [ClassDescriptor(
            class_name="Calculator",
            access_modifier="public ",
            class_parameters="",
            constructor_parameters=(Parameter("Logger", "logger"),),
            public_methods=(MethodSignature(
                name="add",
                return_type="int",
                parameters=(Parameter("int", "a"), Parameter("int", "b"))
            ),)
        )])

    def test_repository_class_header(self):
        """Test access modifier and generic parameters of a decorated class."""
        repository = self.parser.parse(REPOSITORY_SOURCE)[0]
        self.assertEqual(repository.class_name, "Repository")
        self.assertEqual(repository.access_modifier, "public ")
        self.assertEqual(repository.class_parameters, "<K, V extends Comparable<V>>")

    def test_repository_first_constructor(self):
        """Test that the first constructor is used and generic parameters are not split."""
        repository = self.parser.parse(REPOSITORY_SOURCE)[0]
        self.assertEqual(repository.constructor_parameters, (
            Parameter("Map<String, List<V>>", "items"),
            Parameter("int", "size")
        ))

    def test_repository_public_methods(self):
        """Test that only public instance methods are kept, in declaration order."""
        repository = self.parser.parse(REPOSITORY_SOURCE)[0]
        self.assertEqual([m.name for m in repository.public_methods], ["find", "convert", "clear", "counts"])

        find, convert, clear, counts = repository.public_methods
        self.assertEqual(find.return_type, "V")
        self.assertEqual(find.parameters, (Parameter("K", "key"),))
        self.assertEqual(convert.return_type, "List<T>")
        self.assertEqual(convert.parameters, (
            Parameter("Function<V, T>", "mapper"),
            Parameter("String[]", "tags")
        ))
        self.assertEqual(clear.return_type, "void")
        self.assertEqual(clear.parameters, ())
        self.assertEqual(counts.return_type, "int[]")
        self.assertEqual(counts.parameters, (Parameter("int[]", "values"),))

    def test_package_private_class(self):
        """Test a class without modifier, constructor or methods."""
        helper = self.parser.parse(REPOSITORY_SOURCE)[1]
        self.assertEqual(helper, ClassDescriptor(class_name="Helper"))

    def test_enum(self):
        """Test constructor and methods declared after enum constants."""
        classes = self.parser.parse(ENUM_SOURCE)
        self.assertEqual(len(classes), 1)
        self.assertEqual(classes[0].class_name, "Color")
        self.assertEqual(classes[0].constructor_parameters, (Parameter("int", "code"),))
        self.assertEqual(classes[0].public_methods, (MethodSignature("getCode", "int"),))

    def test_interface_keeps_explicitly_public_methods(self):
        """Test that interface methods need an explicit public modifier."""
        classes = self.parser.parse(INTERFACE_SOURCE)
        self.assertEqual(classes[0].class_name, "Shape")
        self.assertEqual(classes[0].public_methods, (MethodSignature("name", "String"),))

    def test_nested_types_are_skipped(self):
        """Test that nested records, enums and interfaces are not taken for methods."""
        source = (
            "public class Outer { public Outer(Dep dep) {} public void run() {} "
            "public record Pair(int a, int b) {} public enum Mode { A, B } "
            "public interface Callback { void on(); } "
            "public static class Inner { public Inner(int x) {} public int size() { return 0; } } }"
        )
        classes = self.parser.parse(source)
        self.assertEqual([c.class_name for c in classes], ["Outer"])
        self.assertEqual(classes[0].constructor_parameters, (Parameter("Dep", "dep"),))
        self.assertEqual(classes[0].public_methods, (MethodSignature("run", "void"),))

    def test_no_classes(self):
        """Test a source without any class declaration."""
        self.assertEqual(self.parser.parse("import java.util.List;\n// class Fake {}\n"), [])
        self.assertEqual(self.parser.parse(""), [])

    def test_commented_out_class_is_ignored(self):
        """Test that declarations inside comments and strings are ignored."""
        source = '/* public class Fake { } */\nclass Real {\n    String s = "class Other {";\n}\n'
        classes = self.parser.parse(source)
        self.assertEqual([c.class_name for c in classes], ["Real"])
        self.assertEqual(classes[0].access_modifier, "")

    def test_malformed_source_does_not_raise(self):
        """Test that unbalanced source still yields what can be recovered."""
        classes = self.parser.parse("public class Broken {\n    public void run(")
        self.assertLessEqual(len(classes), 1)


class TestRegexClassParser(ParserContractTests, unittest.TestCase):
    """Tests for the RegexClassParser class."""

    def setUp(self):
        """Set up test fixtures."""
        self.parser = RegexClassParser()

    def test_record(self):
        """Test that record components act as the constructor when none is declared."""
        classes = self.parser.parse("public record Point<T>(T x, T y) {\n    public double length() { return 0; }\n}")
        self.assertEqual(classes, [ClassDescriptor(
            class_name="Point",
            access_modifier="public ",
            class_parameters="<T>",
            constructor_parameters=(Parameter("T", "x"), Parameter("T", "y")),
            public_methods=(MethodSignature("length", "double"),)
        )])

    def test_protected_and_private_modifiers(self):
        """Test that non-public access modifiers are kept with a trailing space."""
        classes = self.parser.parse("protected class A {}\nprivate class B {}\nabstract class C {}")
        self.assertEqual([c.access_modifier for c in classes], ["protected ", "private ", ""])

    def test_unterminated_class_body(self):
        """Test a class whose body never closes."""
        classes = self.parser.parse("class Open {\n    public String name() { return null; }\n")
        self.assertEqual(classes[0].class_name, "Open")
        self.assertEqual(classes[0].public_methods, (MethodSignature("name", "String"),))


_tree_sitter_parser = TreeSitterClassParser()


@unittest.skipUnless(_tree_sitter_parser.available, "tree-sitter Java grammar is not available")
class TestTreeSitterClassParser(ParserContractTests, unittest.TestCase):
    """Tests for the TreeSitterClassParser class."""

    def setUp(self):
        """Set up test fixtures."""
        self.parser = _tree_sitter_parser

    def test_non_ascii_identifiers(self):
        """Test that byte offsets are mapped back to text correctly."""
        classes = self.parser.parse("// Grüße\npublic class Größe { public Größe(String wert) {} }")
        self.assertEqual(classes[0].class_name, "Größe")
        self.assertEqual(classes[0].constructor_parameters, (Parameter("String", "wert"),))


class TestUnifiedParser(unittest.TestCase):
    """Tests for the UnifiedParser class."""

    def setUp(self):
        """Set up test fixtures."""
        self.parser = UnifiedParser(use_tree_sitter=False)

    def test_backend_without_tree_sitter(self):
        """Test that the textual scanner is used when tree-sitter is disabled."""
        self.assertIsInstance(self.parser.backend, RegexClassParser)

    @patch.object(TreeSitterClassParser, "_load_language", lambda self: None)
    def test_backend_falls_back_when_grammar_missing(self):
        """Test that a missing grammar selects the textual scanner."""
        parser = UnifiedParser()
        self.assertFalse(parser.tree_sitter_parser.available)
        self.assertIsInstance(parser.backend, RegexClassParser)

    def test_parse_tracks_statistics(self):
        """Test that parsed sources and classes are counted."""
        self.parser.parse(CALCULATOR_SOURCE)
        self.parser.parse(REPOSITORY_SOURCE)
        self.assertEqual(self.parser.stats['parsed_sources'], 2)
        self.assertEqual(self.parser.stats['classes_found'], 3)
        self.assertEqual(self.parser.stats['parsing_errors'], 0)

    @patch.object(RegexClassParser, "parse")
    def test_parse_with_error(self, mock_parse):
        """Test that a failing backend yields no classes and records the error."""
        mock_parse.side_effect = ValueError("Test error")

        classes = self.parser.parse(CALCULATOR_SOURCE)

        self.assertEqual(classes, [])
        self.assertEqual(self.parser.stats['parsing_errors'], 1)
        self.assertEqual(self.parser.stats['parsing_errors_details']['ValueError'], 1)

    def test_parse_file(self):
        """Test reading and parsing a file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            file_path = os.path.join(temp_dir, "Calculator.java")
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(CALCULATOR_SOURCE)

            classes = self.parser.parse_file(file_path)

        self.assertEqual([c.class_name for c in classes], ["Calculator"])

    def test_parse_file_missing(self):
        """Test that read failures propagate."""
        with self.assertRaises(OSError):
            self.parser.parse_file("/nonexistent/path/Missing.java")


if __name__ == "__main__":
    unittest.main()
