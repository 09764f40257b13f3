import json
import unittest

from chunkfinder.engine import Engine, load, query
from chunkfinder.errors import MalformedInput, NotLoaded


SCENARIO = json.dumps(
    {
        "nodes": [
            {"id": "A", "group": 0},
            {"id": "B", "group": 0},
            {"id": "chunk_id_1", "group": 1},
            {"id": "chunk_id_2", "group": 1},
        ],
        "links": [
            {"source": "A", "target": "chunk_id_1"},
            {"source": "B", "target": "chunk_id_2"},
        ],
    }
)

TRIPARTITE = json.dumps(
    {
        "nodes": [
            {"id": "topic:cats", "group": 5},
            {"id": "topic:dogs", "group": 5},
            {"id": "file_name_pets.mp4", "group": 0},
            {"id": "chunk_id_1", "group": 3},
            {"id": "chunk_id_2", "group": 3},
            {"id": "chunk_id_3", "group": 3},
        ],
        "links": [
            {"source": "topic:cats", "target": "chunk_id_1", "value": 1},
            {"source": "topic:dogs", "target": "file_name_pets.mp4"},
            {"source": "file_name_pets.mp4", "target": "chunk_id_2"},
            {"source": "chunk_id_1", "target": "file_name_pets.mp4"},
            {"source": "topic:cats", "target": "missing"},
        ],
    }
)


class TestLoadAndQuery(unittest.TestCase):
    def test_scenario_two_group_graph(self):
        state = load(SCENARIO)
        self.assertEqual(state.roles.chunk_group, 1)
        self.assertEqual(state.roles.file_group, 0)
        self.assertEqual(state.feature_ids, ["A", "B"])
        self.assertEqual(query(state, ["A", "B"], "ALL"), [])
        self.assertEqual(query(state, ["A", "B"], "ANY"), ["chunk_id_1", "chunk_id_2"])

    def test_tripartite_graph(self):
        state = load(TRIPARTITE)
        self.assertEqual((state.roles.file_group, state.roles.chunk_group), (0, 3))
        self.assertEqual(state.feature_ids, ["topic:cats", "topic:dogs"])
        self.assertEqual(state.chunk_count, 3)
        self.assertEqual(state.index.dangling_links, 1)
        self.assertEqual(query(state, ["topic:dogs"], "ANY"), ["chunk_id_1", "chunk_id_2"])
        self.assertEqual(query(state, ["topic:cats", "topic:dogs"], "ALL"), ["chunk_id_1"])
        self.assertEqual(query(state, ["topic:cats", "topic:dogs"], "ANY"), ["chunk_id_1", "chunk_id_2"])

    def test_hints_override_detection(self):
        state = load(TRIPARTITE, file_group_hint=5, chunk_group_hint=3)
        self.assertEqual(state.roles.source, "hint")
        self.assertEqual(state.feature_ids, ["file_name_pets.mp4"])

    def test_idempotent(self):
        a = load(TRIPARTITE)
        b = load(TRIPARTITE)
        self.assertEqual(a.roles, b.roles)
        self.assertEqual(a.feature_ids, b.feature_ids)
        self.assertEqual(a.chunk_count, b.chunk_count)
        self.assertEqual(a.index.feature_to_chunks, b.index.feature_to_chunks)

    def test_progress_ends_at_100(self):
        seen = []
        load(TRIPARTITE, progress=lambda pct, msg: seen.append(pct))
        self.assertEqual(seen[0], 0)
        self.assertEqual(seen[-1], 100)


class TestEngine(unittest.TestCase):
    def test_query_before_load(self):
        with self.assertRaises(NotLoaded):
            Engine().query(["x"], "ANY")

    def test_failed_load_clears_previous_state(self):
        engine = Engine()
        engine.load(SCENARIO)
        with self.assertRaises(MalformedInput):
            engine.load("{broken")
        self.assertFalse(engine.loaded)
        with self.assertRaises(NotLoaded):
            engine.query(["A"], "ANY")

        engine.load(SCENARIO)
        self.assertEqual(engine.query(["A"], "ANY"), ["chunk_id_1"])

    def test_new_load_replaces_state(self):
        engine = Engine()
        engine.load(SCENARIO)
        engine.load(TRIPARTITE)
        self.assertEqual(engine.query(["A", "B"], "ANY"), [])
        self.assertEqual(engine.query(["topic:cats"], "ANY"), ["chunk_id_1"])

    def test_instances_are_independent(self):
        a, b = Engine(), Engine()
        a.load(SCENARIO)
        self.assertTrue(a.loaded)
        self.assertFalse(b.loaded)


if __name__ == "__main__":
    unittest.main()
