"""Tests for upload housekeeping tasks."""

from __future__ import annotations

import os
import time

from media.tasks import cleanup_old_uploads


def _age(path, days):
    stamp = time.time() - days * 24 * 3600
    os.utime(path, (stamp, stamp))


class TestCleanupOldUploads:
    def test_removes_files_past_retention(self, upload_dir):
        stale = upload_dir / "1000_aa.pdf"
        fresh = upload_dir / "2000_bb.pdf"
        stale.write_bytes(b"stale")
        fresh.write_bytes(b"fresh")
        _age(stale, 40)
        _age(fresh, 2)

        result = cleanup_old_uploads()

        assert result == {"removed_count": 1, "errors": []}
        assert not stale.exists()
        assert fresh.exists()

    def test_max_age_override(self, upload_dir):
        recent = upload_dir / "1000_aa.pdf"
        recent.write_bytes(b"recent")
        _age(recent, 2)

        result = cleanup_old_uploads(max_age_days=1)

        assert result["removed_count"] == 1
        assert not recent.exists()

    def test_retention_follows_settings(self, settings, upload_dir):
        settings.UPLOAD_RETENTION_DAYS = 1
        path = upload_dir / "1000_aa.txt"
        path.write_bytes(b"x")
        _age(path, 3)

        assert cleanup_old_uploads()["removed_count"] == 1

    def test_empty_directory(self):
        assert cleanup_old_uploads() == {"removed_count": 0, "errors": []}
