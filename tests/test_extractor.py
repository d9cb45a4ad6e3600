"""Tests for the extraction pipeline."""

import hashlib
import os
import pytest
from pathlib import Path
from unittest.mock import patch
from PIL import Image

from figma_asset_extractor.config import TargetEncoding, TransformOptions
from figma_asset_extractor.errors import ArchiveError, InputError
from figma_asset_extractor.extractor import (
    FigmaAssetExtractor,
    list_extensionless_files,
    resolve_output_dir,
    validate_source,
)
from figma_asset_extractor.results import AssetAction


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class TestValidateSource:
    """Test input validation."""

    def test_valid_fig(self, make_fig):
        """Test a non-empty .fig file is accepted."""
        fig = make_fig({"images/abc": b"x"})
        assert validate_source(fig) == fig

    def test_missing_file(self, tmp_path):
        """Test a missing file raises InputError."""
        with pytest.raises(InputError, match="File not found"):
            validate_source(tmp_path / "missing.fig")

    def test_directory(self, tmp_path):
        """Test a directory is rejected."""
        with pytest.raises(InputError, match="Not a file"):
            validate_source(tmp_path)

    def test_empty_file(self, tmp_path):
        """Test a zero-byte file raises InputError."""
        fig = tmp_path / "empty.fig"
        fig.touch()
        with pytest.raises(InputError, match="File is empty") as exc_info:
            validate_source(fig)
        assert exc_info.value.context["path"] == str(fig)

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0,
                        reason="Permission bits not enforced")
    def test_unreadable_file(self, make_fig):
        """Test a file without read permission is rejected."""
        fig = make_fig({"images/abc": b"x"})
        fig.chmod(0o000)
        try:
            with pytest.raises(InputError, match="not readable"):
                validate_source(fig)
        finally:
            fig.chmod(0o644)

    def test_other_suffix_warns(self, make_fig, caplog):
        """Test a non-.fig name only produces a warning."""
        fig = make_fig({"images/abc": b"x"}, name="design.bin")
        with caplog.at_level("WARNING"):
            validate_source(fig)
        assert "does not have .fig extension" in caplog.text

    @pytest.mark.parametrize("name", ["design.fig", "design.FIG", "design.zip"])
    def test_expected_suffix_no_warning(self, make_fig, caplog, name):
        """Test .fig and .zip names do not warn."""
        fig = make_fig({"images/abc": b"x"}, name=name)
        with caplog.at_level("WARNING"):
            validate_source(fig)
        assert "does not have .fig extension" not in caplog.text


class TestResolveOutputDir:
    """Test output directory resolution."""

    def test_default_is_stem_in_cwd(self, tmp_path):
        """Test the default is the source name without extension, in cwd."""
        result = resolve_output_dir(Path("/somewhere/else/design.fig"), cwd=tmp_path)
        assert result == (tmp_path / "design").resolve()

    def test_explicit_relative(self, tmp_path):
        """Test a relative --out resolves against cwd."""
        result = resolve_output_dir(Path("design.fig"), "assets/out", cwd=tmp_path)
        assert result == (tmp_path / "assets" / "out").resolve()

    def test_explicit_absolute(self, tmp_path):
        """Test an absolute --out is used as-is."""
        target = tmp_path / "abs"
        assert resolve_output_dir(Path("design.fig"), target, cwd=Path("/")) == target.resolve()

    def test_uses_process_cwd(self, tmp_path, monkeypatch):
        """Test the process working directory is the default base."""
        monkeypatch.chdir(tmp_path)
        assert resolve_output_dir(Path("x/My File.fig")) == (tmp_path / "My File").resolve()


class TestListExtensionlessFiles:
    """Test candidate asset listing."""

    def test_only_immediate_extensionless_files(self, tmp_path):
        """Test files with extensions and subdirectories are excluded."""
        (tmp_path / "abc").write_bytes(b"1")
        (tmp_path / "def.png").write_bytes(b"2")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "nested").write_bytes(b"3")

        assert list_extensionless_files(tmp_path) == [tmp_path / "abc"]


class TestFigmaAssetExtractor:
    """End-to-end scenarios for FigmaAssetExtractor.run."""

    def test_plain_run_renames_without_changing_bytes(self, make_fig, make_image, svg_bytes, out_dir):
        """Test with no transform options every asset is byte-identical."""
        members = {
            "images/aaa": make_image(format="PNG"),
            "images/bbb": make_image(format="JPEG"),
            "images/ccc": svg_bytes,
        }
        fig = make_fig({"canvas.fig": b"kiwi", **members})

        report = FigmaAssetExtractor(fig, out_dir).run()

        assert sorted(p.name for p in out_dir.iterdir()) == ["aaa.png", "bbb.jpg", "ccc.svg"]
        for name, ext in (("aaa", "png"), ("bbb", "jpg"), ("ccc", "svg")):
            data = (out_dir / f"{name}.{ext}").read_bytes()
            assert sha256(data) == sha256(members[f"images/{name}"])
        assert report.counts()["renamed"] == 3
        assert report.extraction.total_entries == 4

    def test_max_width_resizes(self, make_fig, png_2000x1000, out_dir):
        """Test --max-width 1000 turns a 2000x1000 PNG into 1000x500 abc.png."""
        fig = make_fig({"images/abc": png_2000x1000})

        report = FigmaAssetExtractor(fig, out_dir, TransformOptions(max_width=1000)).run()

        assert [p.name for p in out_dir.iterdir()] == ["abc.png"]
        with Image.open(out_dir / "abc.png") as img:
            assert img.size == (1000, 500)
        assert report.assets[0].action is AssetAction.TRANSFORMED

    def test_webp_conversion(self, make_fig, png_2000x1000, out_dir):
        """Test --webp --quality 90 leaves only abc.webp."""
        fig = make_fig({"images/abc": png_2000x1000})
        options = TransformOptions(target_encoding=TargetEncoding.WEBP, quality=90)

        FigmaAssetExtractor(fig, out_dir, options).run()

        assert [p.name for p in out_dir.iterdir()] == ["abc.webp"]
        with Image.open(out_dir / "abc.webp") as img:
            assert img.format == "WEBP"

    def test_vectors_never_transformed(self, make_fig, svg_bytes, out_dir):
        """Test SVG and EPS assets are renamed untouched even with transforms set."""
        eps = b"%!PS-Adobe-3.0 EPSF-3.0\n%%BoundingBox: 0 0 10 10\n"
        fig = make_fig({"images/vec": svg_bytes, "images/print": eps})
        options = TransformOptions(target_encoding=TargetEncoding.WEBP, max_width=1)

        report = FigmaAssetExtractor(fig, out_dir, options).run()

        assert (out_dir / "vec.svg").read_bytes() == svg_bytes
        assert (out_dir / "print.eps").read_bytes() == eps
        assert {r.action for r in report.assets} == {AssetAction.RENAMED}

    def test_undetermined_left_as_is(self, make_fig, out_dir, caplog):
        """Test unknown content keeps its extensionless name and is reported."""
        fig = make_fig({"images/mystery": b"\x00\x01\x02 not an image"})

        with caplog.at_level("INFO"):
            report = FigmaAssetExtractor(fig, out_dir).run()

        assert [p.name for p in out_dir.iterdir()] == ["mystery"]
        assert report.assets[0].action is AssetAction.UNDETERMINED
        assert report.assets[0].error_category == "undetermined"
        assert report.warnings == report.assets
        assert "Unknown type (leaving as-is): mystery" in caplog.text

    def test_zero_images(self, make_fig, out_dir, caplog):
        """Test a container without images succeeds with an empty directory."""
        fig = make_fig({"canvas.fig": b"kiwi", "meta.json": b"{}"})

        with caplog.at_level("INFO"):
            report = FigmaAssetExtractor(fig, out_dir).run()

        assert out_dir.is_dir()
        assert list(out_dir.iterdir()) == []
        assert report.assets == []
        assert report.extraction.image_count == 0
        assert "No images found" in caplog.text

    def test_backslash_entries(self, make_fig, make_image, out_dir):
        """Test entries using backslash separators are extracted and renamed."""
        fig = make_fig({"images\\abc": make_image()})

        FigmaAssetExtractor(fig, out_dir).run()

        assert [p.name for p in out_dir.iterdir()] == ["abc.png"]

    def test_colliding_entries_last_write_wins(self, make_fig, make_image, out_dir):
        """Test two entries mapping to one name leave one file with the last bytes."""
        first = make_image(color=(1, 2, 3))
        second = make_image(color=(4, 5, 6))
        fig = make_fig({"images/abc": first, "images\\abc": second})

        FigmaAssetExtractor(fig, out_dir).run()

        assert (out_dir / "abc.png").read_bytes() == second

    def test_existing_files_overwritten(self, make_fig, make_image, out_dir):
        """Test rerunning into the same directory overwrites earlier output."""
        fig = make_fig({"images/abc": make_image()})
        out_dir.mkdir()
        (out_dir / "abc.png").write_bytes(b"stale")

        FigmaAssetExtractor(fig, out_dir).run()

        assert (out_dir / "abc.png").read_bytes() == make_image()

    def test_preexisting_files_with_extension_untouched(self, make_fig, make_image, out_dir):
        """Test files that already have an extension are not processed."""
        out_dir.mkdir()
        (out_dir / "notes.txt").write_text("keep me")
        fig = make_fig({"images/abc": make_image()})

        report = FigmaAssetExtractor(fig, out_dir).run()

        assert (out_dir / "notes.txt").read_text() == "keep me"
        assert [r.source.name for r in report.assets] == ["abc"]

    def test_corrupt_container(self, tmp_path, out_dir):
        """Test a non-ZIP container is fatal."""
        fig = tmp_path / "broken.fig"
        fig.write_bytes(b"this is not a zip archive at all")

        with pytest.raises(ArchiveError):
            FigmaAssetExtractor(fig, out_dir).run()

    def test_missing_container(self, tmp_path, out_dir):
        """Test a missing container is fatal and creates nothing."""
        with pytest.raises(InputError):
            FigmaAssetExtractor(tmp_path / "missing.fig", out_dir).run()
        assert not out_dir.exists()

    def test_parallel_workers_match_sequential(self, make_fig, make_image, tmp_path):
        """Test worker threads produce the same files as a sequential run."""
        members = {f"images/img{i:02d}": make_image(size=(300, 200 + i)) for i in range(12)}
        fig = make_fig(members)
        options = TransformOptions(target_encoding=TargetEncoding.WEBP, max_width=150)

        sequential = FigmaAssetExtractor(fig, tmp_path / "seq", options, workers=1).run()
        parallel = FigmaAssetExtractor(fig, tmp_path / "par", options, workers=4).run()

        seq_names = sorted(p.name for p in (tmp_path / "seq").iterdir())
        par_names = sorted(p.name for p in (tmp_path / "par").iterdir())
        assert seq_names == par_names == [f"img{i:02d}.webp" for i in range(12)]
        assert sequential.counts() == parallel.counts()
        # Results come back in input order
        assert [r.source.name for r in parallel.assets] == [f"img{i:02d}" for i in range(12)]

    def test_invalid_workers(self, tmp_path):
        """Test workers below 1 are rejected."""
        with pytest.raises(ValueError):
            FigmaAssetExtractor(tmp_path / "design.fig", tmp_path / "out", workers=0)

    def test_transform_failure_falls_back(self, make_fig, png_2000x1000, out_dir):
        """Test a failing transform leaves the original bytes under <name>.png."""
        fig = make_fig({"images/abc": png_2000x1000})
        options = TransformOptions(target_encoding=TargetEncoding.WEBP)

        with patch("figma_asset_extractor.transformer.Image.open", side_effect=OSError("boom")):
            report = FigmaAssetExtractor(fig, out_dir, options).run()

        assert [p.name for p in out_dir.iterdir()] == ["abc.png"]
        assert (out_dir / "abc.png").read_bytes() == png_2000x1000
        assert report.assets[0].action is AssetAction.FALLBACK


class TestProcessAsset:
    """Test single-asset processing."""

    def test_unexpected_error_is_contained(self, tmp_path, caplog):
        """Test an unexpected error becomes a FAILED result instead of raising."""
        asset = tmp_path / "abc"
        asset.write_bytes(b"data")
        extractor = FigmaAssetExtractor(tmp_path / "design.fig", tmp_path)

        with patch("figma_asset_extractor.extractor.detect_file_type",
                   side_effect=PermissionError("denied")):
            result = extractor.process_asset(asset)

        assert result.action is AssetAction.FAILED
        assert result.error_category == "io"
        assert "denied" in result.error
        assert asset.exists()
        assert "Failed to process abc" in caplog.text

    def test_png_renamed(self, tmp_path, make_image):
        """Test a PNG asset is renamed with the detected extension."""
        asset = tmp_path / "abc"
        asset.write_bytes(make_image())
        extractor = FigmaAssetExtractor(tmp_path / "design.fig", tmp_path)

        result = extractor.process_asset(asset)

        assert result.action is AssetAction.RENAMED
        assert result.output == tmp_path / "abc.png"
        assert result.describe() == "abc -> abc.png"
