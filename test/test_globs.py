import unittest

from buildmanifest.globs import check_portable_glob, check_relative_dir


class TestPortableGlob(unittest.TestCase):
    def test_accepts_common_patterns(self):
        for pattern in [
            "LICENSE*",
            "third-party-licenses/*",
            "build-*.h",
            "/src/built_by_uv/not-packaged.txt",
            "src/**/*.py",
            "**",
            "docs/",
            "file?.txt",
            "[abc].txt",
            "[!a-z]*",
        ]:
            with self.subTest(pattern=pattern):
                self.assertEqual(check_portable_glob(pattern), pattern)

    def test_rejects_invalid_patterns(self):
        for pattern, fragment in [
            ("", "empty"),
            ("   ", "empty"),
            ("../secret", ".."),
            ("a/../b", ".."),
            ("a\\b", "backslash"),
            ("a//b", "empty path segment"),
            ("a**/b", "whole path component"),
            ("src/**.py", "whole path component"),
            ("[abc", "unclosed"),
            ("[]", "empty character class"),
            ("[!]x", "empty character class"),
            ("a]", "unmatched"),
            ("/", "does not match"),
        ]:
            with self.subTest(pattern=pattern):
                with self.assertRaises(ValueError) as ctx:
                    check_portable_glob(pattern)
                self.assertIn(fragment, str(ctx.exception))

    def test_anchor_can_be_disallowed(self):
        with self.assertRaises(ValueError):
            check_portable_glob("/LICENSE", allow_anchor=False)
        self.assertEqual(check_portable_glob("LICENSE", allow_anchor=False), "LICENSE")


class TestRelativeDir(unittest.TestCase):
    def test_accepts_relative(self):
        self.assertEqual(check_relative_dir("assets"), "assets")
        self.assertEqual(check_relative_dir("share/data"), "share/data")

    def test_rejects(self):
        for path in ["", "/abs", "C:/win", "../up", "a/../b", "a\\b"]:
            with self.subTest(path=path):
                with self.assertRaises(ValueError):
                    check_relative_dir(path)


if __name__ == "__main__":
    unittest.main()
