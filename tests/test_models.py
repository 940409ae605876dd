"""
Tests for domain models — records, resources, changes, receipts.
"""

import pytest
from pydantic import ValidationError

from pkgsync.core.models import (
    AbsentRecord,
    Change,
    Latest,
    Manifest,
    PackageRecord,
    PackageResource,
    Pinned,
    Present,
    Receipt,
)


class TestPackageRecord:
    def test_installed_record(self):
        r = PackageRecord(name="curl", origin="ftp/curl", version="8.7.1", latest="8.9.1", ensure="8.7.1")
        assert r.installed
        assert r.is_valid
        assert r.has_update
        assert r.provider == "pkgng"

    def test_absent_record(self):
        r = AbsentRecord(name="tmux")
        assert not r.installed
        assert not r.has_update
        assert r.status == "missing"
        assert r.origin == ""

    def test_empty_name_is_invalid(self):
        assert not PackageRecord(name="").is_valid

    def test_round_trip_json(self):
        data = AbsentRecord(name="tmux").model_dump(mode="json")
        assert data["ensure"] == "absent"


class TestPackageResource:
    def test_defaults_to_present(self):
        assert PackageResource(name="curl").ensure == Present()

    def test_coerces_ensure(self):
        assert PackageResource(name="curl", ensure="latest").ensure == Latest()
        assert PackageResource(name="curl", ensure="1.0").ensure == Pinned(version="1.0")

    def test_accepts_variant_instance(self):
        assert PackageResource(name="curl", ensure=Pinned(version="2")).ensure == Pinned(version="2")

    def test_rejects_malformed_urn(self):
        with pytest.raises(ValidationError):
            PackageResource(name="curl", source="urn:notfreebsd:x")

    def test_blank_source_normalised(self):
        assert PackageResource(name="curl", source="").source is None

    def test_rejects_empty_name(self):
        with pytest.raises(ValidationError):
            PackageResource(name="")

    def test_dump_keeps_tag(self):
        data = PackageResource(name="curl", ensure="1.0").model_dump()
        assert data["ensure"] == {"kind": "version", "version": "1.0"}


class TestManifest:
    def test_empty(self):
        assert Manifest().packages == []
        assert Manifest().settings.timeout > 0

    def test_duplicate_rejected(self):
        with pytest.raises(ValidationError):
            Manifest(packages=[{"name": "curl"}, {"name": "curl"}])


class TestChangeAndReceipt:
    def test_summary(self):
        c = Change(resource="curl", operation="update", current="8.7.1", target="8.9.1")
        assert c.summary == "update curl (8.7.1 → 8.9.1)"

    def test_receipt_factories(self):
        c = Change(resource="curl", operation="install", argv=["install", "-qy", "curl"])
        assert Receipt.success(c, output="done").ok
        failed = Receipt.failure(c, error="boom")
        assert failed.failed
        assert failed.argv == ["install", "-qy", "curl"]
        skipped = Receipt.skip(c, reason="dry-run")
        assert skipped.status == "skipped"
        assert skipped.output == "dry-run"

    def test_rejects_unknown_operation(self):
        with pytest.raises(ValidationError):
            Change(resource="curl", operation="purge")
