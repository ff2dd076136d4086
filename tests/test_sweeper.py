"""Tests for sweeping a folder of clippings."""

import asyncio

from atomic_notes.core.interfaces import IdeaProvider
from atomic_notes.core.models import ExtractedIdea
from atomic_notes.core.sweeper import BatchSweeper


class PerClippingProvider(IdeaProvider):
    """Distinct titles per clipping so sweeps do not collide on filenames."""

    name = "per-clipping"

    async def extract(self, clipping, policy):
        stem = clipping.path.rsplit("/", 1)[-1][: -len(".md")]
        return [
            ExtractedIdea(label=f"{stem} idea {i}", idea=f"Point number {i} about {stem} stands alone.")
            for i in range(policy.min_ideas)
        ]


def sweep(pipeline, folder=None):
    return asyncio.run(BatchSweeper(pipeline).sweep_all(folder))


class TestCollect:
    def test_recurses_and_skips_processed_and_non_markdown(self, make_pipeline, write_clipping):
        write_clipping("a.md", "A")
        write_clipping("nested/c.md", "C")
        write_clipping("done.md", "---\natomicNotesProcessed: true\n---\nD")
        write_clipping("image.png", "binary")
        sweeper = BatchSweeper(make_pipeline())

        assert asyncio.run(sweeper.collect("Clippings")) == ["Clippings/a.md", "Clippings/nested/c.md"]
        assert asyncio.run(sweeper.collect("Clippings", unprocessed_only=False)) == [
            "Clippings/a.md",
            "Clippings/done.md",
            "Clippings/nested/c.md",
        ]


class TestSweepAll:
    def test_processes_every_unprocessed_clipping(self, make_pipeline, write_clipping, notifier):
        write_clipping("a.md", "A")
        write_clipping("b.md", "B")
        write_clipping("nested/c.md", "C")
        pipeline = make_pipeline(PerClippingProvider())

        summary = sweep(pipeline)

        assert (summary.processed_count, summary.error_count, summary.skipped_count) == (3, 0, 0)
        assert notifier.of_kind("info")[0] == "Processing 3 unprocessed clippings..."
        assert notifier.of_kind("info")[-1] == "Processed 3 clippings."
        assert all(pipeline.tracker.is_processed(f"Clippings/{name}") for name in ("a.md", "b.md", "nested/c.md"))

    def test_failures_are_counted_not_raised(self, make_pipeline, write_clipping, notifier):
        # The offline provider titles every batch the same, so the second clipping collides
        write_clipping("a.md", "A")
        write_clipping("b.md", "B")
        write_clipping("empty.md", "")

        summary = sweep(make_pipeline())

        assert summary.processed_count == 1
        assert summary.error_count == 2
        assert summary.total == 3
        assert notifier.of_kind("failure") == []
        assert notifier.of_kind("info")[-1] == "Processed 1 clippings (2 failed)."

    def test_unreadable_clipping_counts_as_error(self, make_pipeline, write_clipping, vault_dir):
        (vault_dir / "Clippings" / "a_bad.md").write_bytes(b"\xff\xfe")
        write_clipping("b.md", "B")

        summary = sweep(make_pipeline())

        assert (summary.processed_count, summary.error_count) == (1, 1)

    def test_nothing_to_do(self, make_pipeline, write_clipping, notifier):
        write_clipping("done.md", "---\natomicNotesProcessed: true\n---\nD")
        summary = sweep(make_pipeline())
        assert summary.total == 0
        assert notifier.of_kind("info") == ["No unprocessed clippings found."]

    def test_missing_folder_is_reported(self, make_pipeline, notifier):
        summary = sweep(make_pipeline(), "Nowhere")
        assert summary.total == 0
        assert notifier.of_kind("failure")[0].startswith('Clippings folder "Nowhere" not found.')

    def test_second_sweep_finds_nothing(self, make_pipeline, write_clipping, notifier):
        write_clipping("a.md", "A")
        pipeline = make_pipeline(PerClippingProvider())
        sweep(pipeline)
        assert sweep(pipeline).total == 0
        assert notifier.of_kind("info")[-1] == "No unprocessed clippings found."
