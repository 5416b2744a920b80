"""
Unit tests for the data model.
"""

from doc_mirror.models import DocumentNode, RunResult, UpsertFailure


class TestDocumentNode:

    def test_from_api(self):
        node = DocumentNode.from_api({
            "id": "p1",
            "name": "Intro",
            "content": "# Hello",
            "parent_page_id": "p0",
            "date_created": "1704672000000",
            "date_updated": 1704758400,
            "pages": [{"id": "p2"}],
        }, doc_id="doc1")

        assert node.id == "p1"
        assert node.title == "Intro"
        assert node.body == "# Hello"
        assert node.parent_id == "p0"
        assert node.doc_id == "doc1"
        assert node.created_at == 1704672000000
        assert node.updated_at == 1704758400000
        assert node.has_children is True
        # nested pages are only a hint, the walker fetches them
        assert node.children == []

    def test_has_children_unknown(self):
        assert DocumentNode.from_api({"id": "p1"}).has_children is None
        assert DocumentNode.from_api({"id": "p1", "pages": []}).has_children is False

    def test_walk(self):
        tree = DocumentNode("a", children=[DocumentNode("b", children=[DocumentNode("c")]), DocumentNode("d")])
        assert [n.id for n in tree.walk()] == ["a", "b", "c", "d"]


class TestRunResult:

    def test_counts(self):
        result = RunResult()
        result.candidates = 3
        result.record_success()
        result.record_failure("p2-x", "boom")
        result.record_root_failure("doc9", "timeout")

        assert result.failed == 1
        assert [f.document_id for f in result.skipped_roots] == ["root:doc9"]
        assert not result.ok

    def test_merge(self):
        a, b = RunResult(), RunResult()
        a.candidates, a.succeeded, a.roots_processed = 2, 2, 1
        b.candidates, b.succeeded, b.roots_processed = 3, 2, 1
        b.record_failure("p1", "boom")

        a.merge(b)
        assert (a.candidates, a.succeeded, a.roots_processed, a.failed) == (5, 4, 2, 1)

    def test_failure_kind(self):
        assert UpsertFailure.for_root("doc1", "x").is_root
        assert not UpsertFailure("p1-a", "x").is_root
