import unittest

from s3_index.resolver import (
    InvalidEncodingError,
    PathError,
    TraversalError,
    display,
    is_directory_path,
    parent_prefix,
    resolve,
    resolve_key,
)


class ResolveTests(unittest.TestCase):
    def test_root_resolves_to_empty_prefix(self):
        self.assertEqual("", resolve(""))
        self.assertEqual("", resolve("/"))
        self.assertEqual("", resolve("///"))

    def test_normalizes_leading_and_repeated_delimiters(self):
        self.assertEqual("a/", resolve("/a"))
        self.assertEqual("a/b/", resolve("/a//b/"))
        self.assertEqual("a/b/", resolve("a/b"))

    def test_decodes_percent_escapes(self):
        self.assertEqual("my dir/café/", resolve("/my%20dir/caf%C3%A9/"))
        self.assertEqual("a/b/", resolve("/a%2Fb"))

    def test_is_idempotent(self):
        for path in ["", "/", "/a", "/a//b/", "/my%20dir/x/", "/%25literal/", "/x/y/z"]:
            prefix = resolve(path)
            self.assertEqual(prefix, resolve(display(prefix)), path)

    def test_rejects_parent_segments(self):
        for path in ["/..", "/a/../../etc", "/a/..", "../a/", "/a/%2e%2e/b", "/a%2F..%2Fb", "/%2E%2E/"]:
            with self.assertRaises(TraversalError, msg=path):
                resolve(path)

    def test_rejects_current_directory_segments(self):
        with self.assertRaises(TraversalError):
            resolve("/a/./b/")
        with self.assertRaises(TraversalError):
            resolve("/%2e/")

    def test_dots_inside_names_are_allowed(self):
        self.assertEqual("a..b/...", resolve_key("/a..b/..."))
        self.assertEqual(".hidden/", resolve("/.hidden/"))

    def test_rejects_bad_encoding(self):
        for path in ["/a%zz/", "/a%", "/a%2/", "/%ff/", "/%C3%28/"]:
            with self.assertRaises(InvalidEncodingError, msg=path):
                resolve(path)

    def test_errors_share_a_base_class(self):
        self.assertTrue(issubclass(TraversalError, PathError))
        self.assertTrue(issubclass(InvalidEncodingError, PathError))
        self.assertTrue(issubclass(PathError, ValueError))

    def test_custom_delimiter(self):
        self.assertEqual("a:b:", resolve("a::b", delimiter=":"))
        self.assertEqual("a:b", resolve_key(":a:b", delimiter=":"))


class ResolveKeyTests(unittest.TestCase):
    def test_returns_key_without_trailing_delimiter(self):
        self.assertEqual("a/file1.txt", resolve_key("/a/file1.txt"))
        self.assertEqual("b.txt", resolve_key("/b.txt"))

    def test_rejects_empty_and_traversal(self):
        with self.assertRaises(PathError):
            resolve_key("/")
        with self.assertRaises(TraversalError):
            resolve_key("/a/../secret")

    def test_directory_paths(self):
        self.assertTrue(is_directory_path(""))
        self.assertTrue(is_directory_path("/"))
        self.assertTrue(is_directory_path("/a/"))
        self.assertTrue(is_directory_path("/a%2F"))
        self.assertFalse(is_directory_path("/a"))
        self.assertFalse(is_directory_path("/a/b.txt"))


class ParentPrefixTests(unittest.TestCase):
    def test_parent_prefix(self):
        self.assertIsNone(parent_prefix(""))
        self.assertEqual("", parent_prefix("a/"))
        self.assertEqual("a/", parent_prefix("a/b/"))
        self.assertEqual("a/b/", parent_prefix("a/b/c/"))

    def test_parent_prefix_requires_delimiter(self):
        with self.assertRaises(ValueError):
            parent_prefix("a")


if __name__ == "__main__":
    unittest.main()
