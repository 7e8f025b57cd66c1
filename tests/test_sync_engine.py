"""
Sync scenarios against an in-memory bucket: first upload, idempotent
re-runs, metadata repair, drift, partial failure and worker-count
independence.
"""
import contextlib
import hashlib
import io
import tempfile
import unittest
from unittest import mock
from pathlib import Path

from fake_store import CorruptingStore, MemoryStore

HELLO_MD5 = "5d41402abc4b2a76b9719d911017c592"


def _quiet():
    """Swallow the log stream (stderr) while a sync runs."""
    return contextlib.redirect_stderr(io.StringIO())


class SyncTestCase(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name) / "a"
        self.root.mkdir()
        self.store = MemoryStore(bucket="a")

    def tearDown(self):
        self.tmpdir.cleanup()

    def write(self, rel: str, data: bytes) -> Path:
        p = self.root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)
        return p

    def sync(self, store=None, **kwargs):
        from s3update.core.sync_engine import run_sync
        kwargs.setdefault("workers", 4)
        with _quiet():
            return run_sync(self.root, "a", store=store or self.store, **kwargs)


class TestFirstUploadAndRerun(SyncTestCase):

    def test_new_file_is_uploaded_with_digest_metadata(self):
        """a/b.txt containing 'hello' lands at key b.txt with MD5('hello') metadata."""
        self.write("b.txt", b"hello")
        summary = self.sync()
        self.assertEqual((summary.uploaded, summary.skipped, summary.failed), (1, 0, 0))
        self.assertIn("b.txt", self.store.objects)
        self.assertEqual(self.store.objects["b.txt"]["data"], b"hello")
        self.assertEqual(self.store.digest_of("b.txt"), HELLO_MD5)
        self.assertEqual(self.store.objects["b.txt"]["content_type"], "text/plain")

    def test_rerun_writes_nothing(self):
        self.write("b.txt", b"hello")
        self.write("css/site.css", b"body{}")
        self.write("img/logo.png", b"\x89PNG")
        first = self.sync()
        self.assertEqual(first.uploaded, 3)
        writes_after_first = self.store.write_count

        second = self.sync()
        self.assertEqual((second.uploaded, second.skipped, second.failed), (0, 3, 0))
        self.assertEqual(self.store.write_count, writes_after_first)
        self.assertTrue(second.ok)

    def test_matching_remote_digest_is_skipped_without_writes(self):
        self.write("b.txt", b"hello")
        self.store.put("b.txt", b"hello", digest=HELLO_MD5)
        summary = self.sync()
        self.assertEqual((summary.uploaded, summary.skipped), (0, 1))
        self.assertEqual(self.store.write_count, 0)

    def test_excluded_files_never_reach_the_store(self):
        self.write("page.html", b"<p>")
        self.write("page.html~", b"<p")
        self.write(".git/HEAD", b"ref")
        summary = self.sync()
        self.assertEqual(summary.total, 1)
        self.assertEqual(set(self.store.objects), {"page.html"})


class TestDriftAndRepair(SyncTestCase):

    def test_changed_content_overwrites_remote(self):
        self.write("b.txt", b"hello")
        self.store.put("b.txt", b"old content", digest=hashlib.md5(b"old content").hexdigest())
        summary = self.sync()
        self.assertEqual(summary.uploaded, 1)
        self.assertEqual(self.store.objects["b.txt"]["data"], b"hello")
        self.assertEqual(self.store.digest_of("b.txt"), HELLO_MD5)

    def test_object_without_digest_metadata_is_repaired(self):
        """Same bytes, but no digest metadata: upload once, then skip."""
        self.write("b.txt", b"hello")
        self.store.put("b.txt", b"hello", digest=None)
        summary = self.sync()
        self.assertEqual(summary.uploaded, 1)
        self.assertEqual(self.store.digest_of("b.txt"), HELLO_MD5)

        again = self.sync()
        self.assertEqual((again.uploaded, again.skipped), (0, 1))

    def test_remote_only_objects_are_left_alone(self):
        self.write("b.txt", b"hello")
        self.store.put("orphan.txt", b"keep me", digest=None)
        self.sync()
        self.assertEqual(self.store.objects["orphan.txt"]["data"], b"keep me")


class TestFailures(SyncTestCase):

    def test_write_failure_fails_only_that_item(self):
        for i in range(10):
            self.write(f"f{i}.txt", f"file {i}".encode())
        self.store.fail_writes.add("f3.txt")
        summary = self.sync()
        self.assertEqual((summary.uploaded, summary.failed), (9, 1))
        self.assertEqual(summary.total, 10)
        self.assertFalse(summary.ok)
        self.assertEqual(summary.failures[0].item.remote_key, "f3.txt")
        self.assertNotIn("f3.txt", self.store.objects)

    def test_head_failure_fails_only_that_item(self):
        self.write("good.txt", b"1")
        self.write("bad.txt", b"2")
        self.store.fail_heads.add("bad.txt")
        summary = self.sync()
        self.assertEqual((summary.uploaded, summary.failed), (1, 1))
        self.assertNotIn("bad.txt", self.store.writes)

    def test_unreadable_local_file_is_failed_not_uploaded(self):
        from s3update.core.decision import Outcome
        from s3update.core.object_store import WorkItem
        from s3update.operations.transfer import sync_item
        item = WorkItem(self.root / "vanished.txt", "vanished.txt")
        with _quiet():
            result = sync_item(self.store, item)
        self.assertIs(result.outcome, Outcome.FAILED)
        self.assertIn("vanished.txt", result.reason)
        self.assertEqual(self.store.write_count, 0)

    def test_missing_bucket_aborts_before_any_work(self):
        from s3update.errors import ConfigurationError
        self.write("b.txt", b"hello")
        self.store.exists = False
        with self.assertRaises(ConfigurationError):
            self.sync()
        self.assertEqual(self.store.write_count, 0)

    def test_bucket_connectivity_failure_propagates(self):
        from s3update.errors import RemoteTransientError
        self.write("b.txt", b"hello")
        self.store.bucket_error = RemoteTransientError("head_bucket", "a", ConnectionError("down"))
        with self.assertRaises(RemoteTransientError):
            self.sync()

    def test_source_without_bucket_component_is_rejected(self):
        from s3update.core.sync_engine import run_sync
        from s3update.errors import ConfigurationError
        with _quiet(), self.assertRaises(ConfigurationError):
            run_sync(self.root, "other-bucket", store=self.store)

    def test_missing_source_directory_is_rejected(self):
        from s3update.core.sync_engine import run_sync
        from s3update.errors import ConfigurationError
        with _quiet(), self.assertRaises(ConfigurationError):
            run_sync(self.root / "nope", "a", store=self.store)

    def test_zero_workers_is_rejected(self):
        from s3update.errors import ConfigurationError
        with self.assertRaises(ConfigurationError):
            self.sync(workers=0)


class TestModes(SyncTestCase):

    def test_dry_run_writes_nothing(self):
        self.write("b.txt", b"hello")
        self.write("c.txt", b"world")
        summary = self.sync(dry_run=True)
        self.assertEqual(summary.uploaded, 2)
        self.assertEqual(self.store.write_count, 0)
        self.assertEqual(self.store.objects, {})

    def test_verify_passes_on_faithful_store(self):
        self.write("b.txt", b"hello")
        summary = self.sync(verify=True)
        self.assertEqual((summary.uploaded, summary.failed), (1, 0))

    def test_verify_catches_corrupted_write(self):
        store = CorruptingStore(bucket="a")
        self.write("b.txt", b"hello")
        summary = self.sync(store=store, verify=True)
        self.assertEqual((summary.uploaded, summary.failed), (0, 1))
        self.assertIn("read-back digest", summary.failures[0].reason)

    def test_empty_tree(self):
        summary = self.sync()
        self.assertEqual(summary.total, 0)
        self.assertTrue(summary.ok)


class TestReporting(SyncTestCase):

    def _sync_logged(self, **kwargs):
        from s3update.core.sync_engine import run_sync
        stream = io.StringIO()
        with contextlib.redirect_stderr(stream):
            summary = run_sync(self.root, "a", store=self.store, workers=2, **kwargs)
        return summary, stream.getvalue()

    def test_summary_line_format(self):
        self.write("b.txt", b"hello")
        self.write("c.txt", b"world")
        self.store.put("c.txt", b"world", digest=hashlib.md5(b"world").hexdigest())
        _, output = self._sync_logged()
        self.assertIn("[summary] uploaded=1 skipped=1 failed=0 (total=2)\n", output)
        self.assertIn("[summary] elapsed ", output)

    def test_dry_run_summary_is_marked(self):
        self.write("b.txt", b"hello")
        _, output = self._sync_logged(dry_run=True)
        self.assertIn("[summary] uploaded=1 skipped=0 failed=0 (total=1) (dry-run)\n", output)

    def test_empty_tree_still_reports(self):
        _, output = self._sync_logged()
        self.assertIn("[summary] uploaded=0 skipped=0 failed=0 (total=0)\n", output)

    def test_verbose_logs_directories_entered(self):
        self.write("css/site.css", b"body{}")
        try:
            _, output = self._sync_logged(verbose=True)
        finally:
            from s3update.utils.logging import set_verbose
            set_verbose(False)
        self.assertIn("[scan] .\n", output)
        self.assertIn("[scan] css/\n", output)

    def test_default_store_gets_the_run_worker_count(self):
        from s3update.core.sync_engine import run_sync
        with mock.patch("s3update.core.sync_engine.S3ObjectStore") as store_cls:
            store_cls.return_value.bucket_exists.return_value = True
            with _quiet():
                run_sync(self.root, "a", workers=100)
        store_cls.assert_called_once_with("a", workers=100)


class TestWorkerCountIndependence(SyncTestCase):
    """Upload + Skip + Failed == M for any number of workers; no key written twice."""

    def test_every_item_decided_exactly_once(self):
        m = 120
        for i in range(m):
            self.write(f"d{i % 7}/f{i}.txt", f"content {i}".encode())

        for n_workers in (1, 3, 16, 200):
            with self.subTest(workers=n_workers):
                store = MemoryStore(bucket="a")
                store.fail_writes.add("d1/f1.txt")
                # half the files already present and current
                for i in range(0, m, 2):
                    data = f"content {i}".encode()
                    store.put(f"d{i % 7}/f{i}.txt", data, digest=hashlib.md5(data).hexdigest())

                summary = self.sync(store=store, workers=n_workers)
                self.assertEqual(summary.total, m)
                self.assertEqual(summary.skipped, m // 2)
                self.assertEqual(summary.failed, 1)
                self.assertEqual(summary.uploaded, m // 2 - 1)
                self.assertTrue(all(count == 1 for count in store.writes.values()))
                self.assertEqual(len(store.writes), m // 2 - 1)


if __name__ == "__main__":
    unittest.main()
