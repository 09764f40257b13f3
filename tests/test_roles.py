import unittest

from chunkfinder.graph.model import Link, Node
from chunkfinder.graph.roles import detect_roles, group_neighbors, is_file_like


def _nodes(*pairs):
    return [Node(i, g) for i, g in pairs]


def _links(*pairs):
    return [Link(s, t) for s, t in pairs]


class TestHints(unittest.TestCase):
    def test_both_hints_win_regardless_of_graph(self):
        nodes = _nodes(("file_name_a", 0), ("chunk_id_1", 1))
        r = detect_roles(nodes, [], 7, 9)
        self.assertEqual((r.file_group, r.chunk_group, r.source), (7, 9, "hint"))

        r = detect_roles([], [], 3, 3)
        self.assertEqual((r.file_group, r.chunk_group), (3, 3))

    def test_single_hint_pins_role(self):
        nodes = _nodes(("x", 0), ("y", 1), ("z", 2))
        links = _links(("x", "y"), ("y", "z"))
        r = detect_roles(nodes, links, hint_file_group=1)
        self.assertEqual(r.file_group, 1)
        self.assertNotEqual(r.chunk_group, 1)


class TestNaming(unittest.TestCase):
    def test_prefixes(self):
        nodes = _nodes(("feat", 4), ("chunk_id_1", 2), ("file_name_a", 9))
        r = detect_roles(nodes, [])
        self.assertEqual((r.file_group, r.chunk_group, r.source), (9, 2, "naming"))

    def test_media_extension_is_file_like(self):
        self.assertTrue(is_file_like("talks/intro.MP4"))
        self.assertTrue(is_file_like("photo.jpeg"))
        self.assertFalse(is_file_like("notes.txt"))
        nodes = _nodes(("feat", 0), ("intro.mov", 1), ("chunk_id_1", 2))
        r = detect_roles(nodes, [])
        self.assertEqual((r.file_group, r.chunk_group), (1, 2))

    def test_first_seen_group_wins(self):
        nodes = _nodes(("chunk_id_1", 3), ("file_name_a", 1), ("chunk_id_2", 2), ("file_name_b", 0))
        r = detect_roles(nodes, [])
        self.assertEqual((r.file_group, r.chunk_group), (1, 3))

    def test_group_matching_both_patterns_is_file(self):
        nodes = _nodes(("file_name_a", 0), ("chunk_id_1", 0), ("chunk_id_2", 1))
        r = detect_roles(nodes, [])
        self.assertEqual((r.file_group, r.chunk_group), (0, 1))

    def test_custom_prefixes(self):
        nodes = _nodes(("doc:1", 0), ("seg:1", 1), ("kw", 2))
        r = detect_roles(nodes, [], file_prefix="doc:", chunk_prefix="seg:")
        self.assertEqual((r.file_group, r.chunk_group), (0, 1))


class TestStructure(unittest.TestCase):
    def test_most_connected_is_chunk_least_connected_is_file(self):
        # group 2 touches 0, 1 and 3; group 3 touches only 2.
        nodes = _nodes(("a", 0), ("b", 1), ("c", 2), ("d", 3), ("e", 0))
        links = _links(("a", "c"), ("b", "c"), ("d", "c"), ("a", "b"), ("a", "e"))
        self.assertEqual(group_neighbors(nodes, links), {0: {1, 2}, 1: {0, 2}, 2: {0, 1, 3}, 3: {2}})
        r = detect_roles(nodes, links)
        self.assertEqual((r.file_group, r.chunk_group, r.source), (3, 2, "structure"))

    def test_no_links_defaults_to_first_groups(self):
        nodes = _nodes(("a", 5), ("b", 6), ("c", 7))
        r = detect_roles(nodes, [])
        self.assertEqual((r.chunk_group, r.file_group), (5, 6))

    def test_dangling_and_intra_group_links_ignored(self):
        nodes = _nodes(("a", 0), ("b", 0), ("c", 1))
        links = _links(("a", "b"), ("a", "ghost"), ("c", "a"))
        self.assertEqual(group_neighbors(nodes, links), {0: {1}, 1: {0}})

    def test_partial_naming_fills_other_role_structurally(self):
        nodes = _nodes(("A", 0), ("B", 0), ("chunk_id_1", 1), ("chunk_id_2", 1))
        links = _links(("A", "chunk_id_1"), ("B", "chunk_id_2"))
        r = detect_roles(nodes, links)
        self.assertEqual((r.file_group, r.chunk_group), (0, 1))

    def test_distinct_groups_whenever_two_or_more(self):
        cases = [
            (_nodes(("a", 0), ("b", 1)), []),
            (_nodes(("a", 0), ("b", 1)), _links(("a", "b"))),
            (_nodes(("chunk_id_1", 0), ("b", 1)), []),
            (_nodes(("file_name_x", 0), ("b", 1), ("c", 2)), _links(("b", "c"))),
        ]
        for nodes, links in cases:
            with self.subTest(nodes=nodes):
                r = detect_roles(nodes, links)
                self.assertNotEqual(r.file_group, r.chunk_group)


class TestDegenerate(unittest.TestCase):
    def test_single_group(self):
        r = detect_roles(_nodes(("a", 4), ("b", 4)), _links(("a", "b")))
        self.assertEqual((r.file_group, r.chunk_group, r.source), (4, 4, "degenerate"))

    def test_single_group_reports_ignored_hint(self):
        with self.assertLogs("chunkfinder.graph.roles", level="WARNING") as cm:
            r = detect_roles(_nodes(("a", 4)), [], hint_chunk_group=7)
        self.assertEqual((r.file_group, r.chunk_group), (4, 4))
        self.assertTrue(any("Ignoring group hint" in line for line in cm.output))

    def test_empty_graph(self):
        r = detect_roles([], [])
        self.assertEqual((r.file_group, r.chunk_group, r.source), (0, 0, "degenerate"))


if __name__ == "__main__":
    unittest.main()
