"""
Tests for the batched upsert pipeline.
"""

import pytest

from conftest import FakeDestination
from doc_mirror.core.throttle import Throttle
from doc_mirror.models import DocumentNode
from doc_mirror.sync.upsert import UpsertPipeline, build_envelope, render_text


def _node(id, title=None, body="content"):
    return DocumentNode(id, title=title or f"Page {id}", body=body, doc_id="doc",
                        created_at=1704672000000, updated_at=1704758400123)


def _url(node):
    return f"https://app.example.test/v/dc/{node.doc_id}/{node.id}"


class TestEnvelope:

    def test_render_text(self):
        node = _node("p1", title="Getting Started", body="Hello\n\n")
        assert render_text(node) == (
            "Title: Getting Started\n"
            "Created At: 2024-01-08T00:00:00.000Z\n"
            "Updated At: 2024-01-09T00:00:00.123Z\n"
            "Content:\n"
            "Hello"
        )

    def test_render_early_timestamps(self):
        node = DocumentNode("p1", title="Epoch", body="x", created_at=1500, updated_at=86400000)
        text = render_text(node)
        assert "Created At: 1970-01-01T00:00:01.500Z" in text
        assert "Updated At: 1970-01-02T00:00:00.000Z" in text

    def test_build_envelope(self):
        node = _node("p1", title="Getting Started")
        envelope = build_envelope(node, _url(node))

        assert envelope.document_id == "p1-getting-started"
        assert envelope.to_payload() == {
            "text": render_text(node),
            "source_url": "https://app.example.test/v/dc/doc/p1",
        }


class TestUpsertPipeline:

    def test_all_written(self, fast_throttle, reporter, sleeper):
        destination = FakeDestination()
        nodes = [_node(f"p{i}") for i in range(7)]
        pipeline = UpsertPipeline(destination, fast_throttle, _url, batch_size=3,
                                  batch_pause=1.0, reporter=reporter, sleep=sleeper)

        result = pipeline.deliver(nodes)

        assert result.candidates == 7
        assert result.succeeded == 7
        assert result.ok
        assert sorted(destination.documents) == sorted(f"p{i}-page-p{i}" for i in range(7))

    def test_batches_and_pauses(self, fast_throttle, reporter, sleeper):
        pipeline = UpsertPipeline(FakeDestination(), fast_throttle, _url, batch_size=3,
                                  batch_pause=1.0, reporter=reporter, sleep=sleeper)
        pipeline.deliver([_node(f"p{i}") for i in range(7)])

        batches = [e[1:] for e in reporter.events if e[0] == "batch_started"]
        assert batches == [(1, 3, 3), (2, 3, 3), (3, 3, 1)]
        # pause between batches, not after the last one
        assert sleeper.delays == [1.0, 1.0]

    def test_failure_isolated(self, fast_throttle, reporter, sleeper):
        destination = FakeDestination(fail_ids={"p3-page-p3"})
        nodes = [_node(f"p{i}") for i in range(1, 6)]
        pipeline = UpsertPipeline(destination, fast_throttle, _url, reporter=reporter, sleep=sleeper)

        result = pipeline.deliver(nodes)

        assert result.succeeded == 4
        assert [f.document_id for f in result.failures] == ["p3-page-p3"]
        assert not result.ok
        # one request per candidate, the failed one is not retried
        assert len(destination.calls) == 5

    def test_bad_url_isolated(self, fast_throttle, reporter, sleeper):
        def url_for(node):
            if node.id == "p2":
                raise KeyError("doc_id")
            return _url(node)

        destination = FakeDestination()
        pipeline = UpsertPipeline(destination, fast_throttle, url_for, reporter=reporter, sleep=sleeper)
        result = pipeline.deliver([_node("p1"), _node("p2"), _node("p3")])

        assert result.succeeded == 2
        assert result.failures[0].document_id == "p2-page-p2"
        assert "p2-page-p2" not in destination.calls

    def test_dry_run(self, fast_throttle, reporter, sleeper):
        destination = FakeDestination()
        pipeline = UpsertPipeline(destination, fast_throttle, _url, dry_run=True,
                                  reporter=reporter, sleep=sleeper)
        result = pipeline.deliver([_node("p1"), _node("p2")])

        assert destination.calls == []
        assert result.succeeded == 2
        assert [e[2] for e in reporter.events if e[0] == "upserted"] == [True, True]

    def test_throttle_bounds_parallel_writes(self, reporter, sleeper):
        throttle = Throttle("dust", max_concurrent=2)
        destination = FakeDestination(delay=0.02)
        pipeline = UpsertPipeline(destination, throttle, _url, batch_size=6, max_workers=6,
                                  reporter=reporter, sleep=sleeper)

        result = pipeline.deliver([_node(f"p{i}") for i in range(6)])

        assert result.succeeded == 6
        assert destination.max_active <= 2

    def test_empty(self, fast_throttle, sleeper):
        destination = FakeDestination()
        result = UpsertPipeline(destination, fast_throttle, _url, sleep=sleeper).deliver([])
        assert result.candidates == 0
        assert result.ok
        assert sleeper.delays == []

    def test_invalid_batch_size(self, fast_throttle):
        with pytest.raises(ValueError):
            UpsertPipeline(FakeDestination(), fast_throttle, _url, batch_size=0)
