#!/usr/bin/env python3
"""
TOPOFORGE ENGINE SUITE
--------------------
File-system behaviour of the engine:
1. Backup-then-atomic-replace on success
2. Untouched manifest on every failure path
3. No leftover temporary files
4. Capacity settings written through the same atomic path
"""

import pytest
from ruamel.yaml import YAML

from topoforge.core.engine import BACKUP_SUFFIX, TEMP_SUFFIX, TopologyEngine
from topoforge.core.errors import AnchorNotFoundError, IOFailureError, ValidationFailedError


def _leftovers(root):
    return list(root.glob(f"*{TEMP_SUFFIX}"))


@pytest.mark.parametrize("devices", [0, 1])
def test_single_gpu_leaves_file_alone(compose_file, compose_text, devices):
    report = TopologyEngine().generate_file(compose_file, devices)

    assert report["status"] == "UNCHANGED"
    assert report["written"] is False
    assert report["backup_created"] is None
    assert compose_file.read_text() == compose_text
    assert not (compose_file.parent / f"compose.yml{BACKUP_SUFFIX}").exists()


def test_multi_gpu_writes_backup_and_manifest(compose_file, compose_text):
    report = TopologyEngine().generate_file(compose_file, 3)

    backup = compose_file.parent / f"compose.yml{BACKUP_SUFFIX}"
    assert report["status"] == "MODIFIED"
    assert report["written"] is True
    assert report["backup_created"] == str(backup)
    assert backup.read_text() == compose_text

    data = YAML(typ="safe").load(compose_file.read_text())
    assert "gpu_prove_agent2" in data["services"]
    assert data["services"]["broker"]["depends_on"][:4] == [
        "rest_api", "gpu_prove_agent0", "gpu_prove_agent1", "gpu_prove_agent2"]
    assert _leftovers(compose_file.parent) == []


def test_dry_run_writes_nothing(compose_file, compose_text):
    report = TopologyEngine().generate_file(compose_file, 2, dry_run=True)

    assert report["status"] == "PREVIEW"
    assert report["generated_content"] != compose_text
    assert compose_file.read_text() == compose_text
    assert list(compose_file.parent.iterdir()) == [compose_file]


def test_missing_anchor_leaves_file_untouched(tmp_path):
    manifest = tmp_path / "compose.yml"
    content = "services:\n  broker:\n    depends_on:\n      - rest_api\n"
    manifest.write_text(content)

    with pytest.raises(AnchorNotFoundError):
        TopologyEngine().generate_file(manifest, 2)

    assert manifest.read_text() == content
    assert list(tmp_path.iterdir()) == [manifest], "No backup or temp file on failure"


def test_second_run_keeps_first_backup(compose_file, compose_text):
    engine = TopologyEngine(validate=False)
    engine.generate_file(compose_file, 2)
    after_first = compose_file.read_text()
    report = engine.generate_file(compose_file, 2)

    assert report["backup_created"].endswith(f"compose.yml{BACKUP_SUFFIX}.1")
    assert (compose_file.parent / f"compose.yml{BACKUP_SUFFIX}").read_text() == compose_text
    assert (compose_file.parent / f"compose.yml{BACKUP_SUFFIX}.1").read_text() == after_first
    assert compose_file.read_text().count("  gpu_prove_agent1:") == 2


def test_validation_failure_blocks_write(compose_file, compose_text, monkeypatch):
    engine = TopologyEngine()
    monkeypatch.setattr(engine.validator, "validate", lambda *a, **kw: (False, "dependency mismatch"))

    with pytest.raises(ValidationFailedError, match="dependency mismatch"):
        engine.generate_file(compose_file, 2)
    assert compose_file.read_text() == compose_text


def test_failed_rename_cleans_up(compose_file, compose_text, monkeypatch):
    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("topoforge.core.engine.os.replace", broken_replace)

    with pytest.raises(IOFailureError, match="Atomic write failed"):
        TopologyEngine().generate_file(compose_file, 2)
    assert compose_file.read_text() == compose_text
    assert _leftovers(compose_file.parent) == []


def test_missing_manifest_is_io_failure(tmp_path):
    with pytest.raises(IOFailureError):
        TopologyEngine().generate_file(tmp_path / "nope.yml", 2)


def test_crlf_manifest_keeps_line_endings(tmp_path, compose_text):
    manifest = tmp_path / "compose.yml"
    manifest.write_bytes(compose_text.replace("\n", "\r\n").encode())

    TopologyEngine().generate_file(manifest, 2)
    raw = manifest.read_bytes()
    assert b"\r\n" in raw
    assert raw.count(b"\n") == raw.count(b"\r\n")


def test_apply_capacity_from_template(tmp_path):
    template = tmp_path / "broker-template.toml"
    template.write_text("[market]\nmax_concurrent_proofs = 1\npeak_prove_khz = 50\n")
    settings = tmp_path / "broker.toml"

    report = TopologyEngine().apply_capacity(settings, 5, template_path=template)

    assert report["written"] is True
    assert settings.read_text() == "[market]\nmax_concurrent_proofs = 10\npeak_prove_khz = 500\n"
    assert template.read_text().endswith("peak_prove_khz = 50\n")


def test_apply_capacity_updates_existing_file(tmp_path):
    settings = tmp_path / "broker.toml"
    settings.write_text("[market]\nmax_concurrent_proofs = 2\n\n[prover]\nbonsai = false\n")

    TopologyEngine().apply_capacity(settings, 2)
    assert settings.read_text() == (
        "[market]\nmax_concurrent_proofs = 4\npeak_prove_khz = 200\n\n[prover]\nbonsai = false\n"
    )

    report = TopologyEngine().apply_capacity(settings, 2)
    assert report["written"] is False


def test_template_replaces_stale_settings_even_without_upsert_changes(tmp_path):
    """
    A template that already holds the planned values must still replace
    whatever is in the settings file.
    """
    template = tmp_path / "broker-template.toml"
    template.write_text("[market]\nmax_concurrent_proofs = 4\npeak_prove_khz = 200\n")
    settings = tmp_path / "broker.toml"
    settings.write_text("stale = true\n")

    report = TopologyEngine().apply_capacity(settings, 2, template_path=template)

    assert report["written"] is True
    assert settings.read_text() == template.read_text()


def test_apply_capacity_dry_run(tmp_path):
    settings = tmp_path / "broker.toml"
    report = TopologyEngine().apply_capacity(settings, 1, dry_run=True)

    assert report["content"] == "[market]\nmax_concurrent_proofs = 2\npeak_prove_khz = 100\n"
    assert not settings.exists()
