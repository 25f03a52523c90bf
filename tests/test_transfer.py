"""Tests for the copy/move executor."""

from __future__ import annotations

import pytest

from ferry.core.scanner import scan_totals
from ferry.core.transfer import transfer
from ferry.models.progress import Progress
from ferry.models.transfer_result import TransferResult
from fakes import directory, file


def _run(sources, destination, is_move=False, chunk_size=8 * 1024):
    progress = Progress.from_totals(scan_totals(sources))
    ticks: list[tuple[int, int, str]] = []

    def on_tick():
        ticks.append((progress.copied_items, progress.copied_bytes, progress.current_name))

    result = transfer(sources, destination, is_move, progress, on_tick, chunk_size)
    return result, progress, ticks


class TestCopy:
    def test_copies_tree_into_destination(self, sample_tree):
        dest = directory("dest")
        result, progress, _ = _run([sample_tree], dest)

        assert result == TransferResult(failed_items=0, delete_failures_after_cut=0)
        copied = dest.child("root")
        assert copied.child("a.txt").data == b"a" * 100
        assert copied.find("sub/b.txt").data == b"b" * 50
        assert progress.copied_items == 2
        assert progress.copied_bytes == 150

    def test_copy_leaves_sources_untouched(self, sample_tree):
        dest = directory("dest")
        _run([sample_tree], dest)

        assert sample_tree.exists()
        assert sample_tree.child("a.txt").data == b"a" * 100
        assert sample_tree.journal == []

    def test_file_source_is_copied_directly(self):
        dest = directory("dest")
        result, _, _ = _run([file("note.md", b"# hi")], dest)

        assert result.failed_items == 0
        assert dest.child("note.md").data == b"# hi"

    def test_default_mime_type(self):
        dest = directory("dest")
        _run([file("blob", b"x"), file("page.html", b"<p>", mime_type="text/html")], dest)

        assert dest.child("blob").created_mime_type == "application/octet-stream"
        assert dest.child("page.html").created_mime_type == "text/html"

    def test_unnamed_directory_falls_back_to_folder(self):
        dest = directory("dest")
        result, _, _ = _run([directory(None, file("x", b"1"))], dest)

        assert result.failed_items == 0
        assert dest.child("Folder").child("x").data == b"1"

    def test_unnamed_file_fails(self):
        dest = directory("dest")
        result, progress, _ = _run([file(None, b"123")], dest)

        assert result.failed_items == 1
        assert progress.copied_items == 0

    def test_ticks_after_every_chunk_and_file(self):
        dest = directory("dest")
        _, _, ticks = _run([file("big", b"z" * 25)], dest, chunk_size=10)

        # three chunks (10, 10, 5) then one completion tick
        assert ticks == [(0, 10, "big"), (0, 20, "big"), (0, 25, "big"), (1, 25, "big")]

    def test_progress_is_monotonic_and_bounded(self, sample_tree):
        dest = directory("dest")
        _, progress, ticks = _run([sample_tree], dest, chunk_size=16)

        items = [t[0] for t in ticks]
        sizes = [t[1] for t in ticks]
        assert items == sorted(items)
        assert sizes == sorted(sizes)
        assert max(items) <= progress.total_items
        assert max(sizes) <= progress.total_bytes

    def test_depth_first_order(self):
        tree = directory(
            "root",
            file("1", b"."),
            directory("d", file("2", b"."), directory("e", file("3", b"."))),
            file("4", b"."),
        )
        dest = directory("dest")
        _, _, ticks = _run([tree], dest)

        previous = [(0, 0, "")] + ticks[:-1]
        finished = [name for (items, _, name), before in zip(ticks, previous) if items != before[0]]
        assert finished == ["1", "2", "3", "4"]

    def test_vanished_source_is_skipped(self, sample_tree):
        gone = file("gone", b"x")
        gone.vanish()
        dest = directory("dest")
        result, _, _ = _run([gone, sample_tree], dest)

        assert result.failed_items == 0
        assert [c.name for c in dest.children] == ["root"]

    def test_empty_sources(self):
        dest = directory("dest")
        result, progress, ticks = _run([], dest)

        assert result == TransferResult()
        assert ticks == []
        assert progress.total_items == 0


class TestCopyFailures:
    def test_directory_creation_failure_counts_whole_subtree(self):
        subtree = directory(
            "photos",
            file("1.jpg", b"1"),
            file("2.jpg", b"2"),
            directory("raw", file("3.raw", b"3"), file("4.raw", b"4"), directory("x", file("5.raw", b"5"))),
        )
        dest = directory("dest")
        dest.refuse_create = {"photos"}
        result, progress, ticks = _run([subtree], dest)

        assert result.failed_items == 5
        assert dest.children == []
        assert ticks == []
        assert progress.copied_bytes == 0

    def test_nested_directory_failure_keeps_siblings(self):
        tree = directory("root", directory("locked", file("a", b"a"), file("b", b"b")), file("c", b"c"))
        dest = directory("dest")
        create_directory = dest.create_directory

        def create_root(name):
            created = create_directory(name)
            created.refuse_create = {"locked"}
            return created

        dest.create_directory = create_root
        result, _, _ = _run([tree], dest)

        assert result.failed_items == 2
        assert dest.find("root/c").data == b"c"
        assert [n.name for n in dest.child("root").children] == ["c"]

    def test_file_creation_failure(self, sample_tree):
        dest = directory("dest")
        dest.refuse_create = {"loose.txt"}
        result, _, _ = _run([file("loose.txt", b"x"), sample_tree], dest)

        assert result.failed_items == 1
        assert dest.find("root/a.txt").data == b"a" * 100

    def test_read_error_counts_one_failure_and_keeps_credited_bytes(self):
        # Bytes already credited for a failed file are not rolled back;
        # copied_bytes may overshoot what actually landed. Known approximation.
        broken = file("broken.bin", b"q" * 30)
        broken.fail_read_after = 2
        dest = directory("dest")
        result, progress, _ = _run([broken, file("ok", b"ok")], dest, chunk_size=10)

        assert result.failed_items == 1
        assert progress.copied_bytes == 20 + 2
        assert progress.copied_items == 1

    def test_open_read_error(self):
        source = file("x", b"data")

        def refuse():
            raise PermissionError("no")

        source.open_read = refuse
        dest = directory("dest")
        result, _, _ = _run([source], dest)

        assert result.failed_items == 1

    def test_tick_callback_error_is_counted_not_raised(self):
        dest = directory("dest")
        progress = Progress(total_items=1, total_bytes=1)

        def explode():
            raise RuntimeError("sink crashed")

        result = transfer([file("x", b"1")], dest, False, progress, explode)
        assert result.failed_items == 1

    def test_source_of_unknown_kind_fails_alone(self):
        flaky = file("flaky", b"f")
        flaky.fail_stat = True
        dest = directory("dest")
        result, progress, _ = _run([flaky, file("good", b"g")], dest)

        assert result.failed_items == 1
        assert dest.find("good").data == b"g"
        assert progress.copied_items <= progress.total_items

    def test_child_of_unknown_kind_keeps_siblings(self):
        flaky = file("flaky", b"f")
        flaky.fail_stat = True
        tree = directory("root", flaky, file("good", b"g"))
        dest = directory("dest")
        result, _, _ = _run([tree], dest)

        assert result.failed_items == 1
        assert [n.name for n in dest.child("root").children] == ["good"]


class TestMove:
    def test_move_removes_sources_after_success(self, sample_tree):
        holder = directory("holder", sample_tree)
        dest = directory("dest")
        result, _, _ = _run([sample_tree], dest, is_move=True)

        assert result == TransferResult(failed_items=0, delete_failures_after_cut=0)
        assert not sample_tree.exists()
        assert holder.children == []
        assert dest.find("root/sub/b.txt").data == b"b" * 50

    def test_any_copy_failure_keeps_every_source(self, sample_tree):
        bad = file("bad", b"x")
        bad.fail_read_after = 0
        dest = directory("dest")
        result, _, _ = _run([sample_tree, bad], dest, is_move=True)

        assert result.failed_items == 1
        assert result.delete_failures_after_cut == 0
        assert sample_tree.exists()
        assert bad.exists()
        assert sample_tree.journal == []

    def test_each_source_deleted_exactly_once(self):
        holder = directory("holder", file("a", b"1"), file("b", b"2"), directory("c", file("d", b"3")))
        sources = list(holder.children)
        dest = directory("dest")
        _run(sources, dest, is_move=True)

        assert holder.journal == ["holder/a", "holder/b", "holder/c"]

    def test_delete_failures_after_cut_are_counted_separately(self):
        holder = directory("holder", file("a", b"1"), file("b", b"2"), file("c", b"3"))
        a, b, c = holder.children
        b.fail_delete = True
        c.raise_on_delete = True
        dest = directory("dest")
        result, _, _ = _run([a, b, c], dest, is_move=True)

        assert result == TransferResult(failed_items=0, delete_failures_after_cut=2)
        assert not a.exists()
        assert b.exists() and c.exists()
        assert [n.name for n in dest.children] == ["a", "b", "c"]


@pytest.mark.parametrize("chunk_size", [1, 7, 8 * 1024])
def test_chunk_size_does_not_change_result(sample_tree, chunk_size):
    dest = directory("dest")
    result, progress, _ = _run([sample_tree], dest, chunk_size=chunk_size)

    assert result.failed_items == 0
    assert progress.copied_bytes == 150
    assert dest.find("root/a.txt").data == b"a" * 100
