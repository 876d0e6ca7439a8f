"""Tests for the per-image pipeline."""
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from conftest import BLUE, RED, load_png, make_grid, save_png
from pixelfix.pipeline import FixPipeline, fix_grid
from pixelfix.size_policy import LargeImagePolicy
from pixelfix.types import CodecError, FixConfig, PolicyRejection, ProcessResult


class TestFixGrid:
    """Test in-memory processing properties."""

    @pytest.mark.parametrize("alpha", [0, 255])
    def test_uniform_alpha_skipped_unchanged(self, alpha):
        grid = make_grid(8, 8, alpha=alpha)
        before = grid.copy()

        result, anomalies = fix_grid(grid)

        assert result is ProcessResult.SKIPPED
        assert anomalies == 0
        assert grid.tobytes() == before.tobytes()

    def test_single_opaque_pixel_skipped(self):
        grid = make_grid(1, 1, color=RED, alpha=255)

        result, _ = fix_grid(grid)

        assert result is ProcessResult.SKIPPED

    def test_ring_scenario(self, ring_grid):
        result, anomalies = fix_grid(ring_grid)

        assert result is ProcessResult.SUCCESS
        assert anomalies == 0
        # Ring alpha stays transparent
        assert ring_grid[0, :, 3].tolist() == [0, 0, 0, 0]
        assert tuple(ring_grid[0, 0, :3]) == RED

    def test_deterministic(self, random_grid):
        first = random_grid.copy()
        second = random_grid.copy()

        fix_grid(first)
        fix_grid(second)

        assert first.tobytes() == second.tobytes()

    def test_idempotent(self, random_grid):
        fix_grid(random_grid)
        once = random_grid.copy()

        fix_grid(random_grid)

        assert random_grid.tobytes() == once.tobytes()

    def test_visualize_only_changes_alpha(self, random_grid):
        normal = random_grid.copy()
        visual = random_grid.copy()
        transparent = random_grid[..., 3] == 0

        fix_grid(normal, FixConfig(visualize=False))
        fix_grid(visual, FixConfig(visualize=True))

        np.testing.assert_array_equal(normal[..., :3], visual[..., :3])
        assert np.all(normal[transparent, 3] == 0)
        assert np.all(visual[transparent, 3] == 255)

    def test_equidistant_tie(self, tie_grid):
        """The middle pixel resolves to the first border pixel on every run."""
        for _ in range(3):
            grid = tie_grid.copy()
            fix_grid(grid)

            assert tuple(grid[0, 1, :3]) == RED
            assert tuple(grid[0, 2, :3]) == RED
            assert tuple(grid[0, 3, :3]) == BLUE

    def test_executor_matches_inline(self, random_grid):
        inline = random_grid.copy()
        threaded = random_grid.copy()
        config = FixConfig(min_parallel_rows=1)

        fix_grid(inline, config)
        with ThreadPoolExecutor(max_workers=4) as executor:
            fix_grid(threaded, config, executor=executor)

        assert threaded.tobytes() == inline.tobytes()


class TestFixPipeline:
    """Test file-level processing."""

    def test_fixes_file_in_place(self, tmp_path, ring_grid):
        path = save_png(ring_grid, tmp_path / "ring.png")

        result = FixPipeline().process(path)

        assert result is ProcessResult.SUCCESS
        fixed = load_png(path)
        assert tuple(fixed[0, 0, :3]) == RED
        assert fixed[0, 0, 3] == 0

    def test_skipped_file_untouched(self, tmp_path):
        path = save_png(make_grid(5, 5, color=RED, alpha=255), tmp_path / "opaque.png")
        before = path.read_bytes()

        result = FixPipeline().process(path)

        assert result is ProcessResult.SKIPPED
        assert path.read_bytes() == before

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FixPipeline().process(tmp_path / "missing.png")

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")

        with pytest.raises(CodecError):
            FixPipeline().process(path)

    def test_over_ceiling_rejected(self, tmp_path, ring_grid):
        path = save_png(ring_grid, tmp_path / "ring.png")
        policy = LargeImagePolicy(threshold=2, max_dimension=3)

        with pytest.raises(PolicyRejection) as excinfo:
            FixPipeline(policy=policy).process(path)

        assert not excinfo.value.declined

    def test_declined_large_image(self, tmp_path, ring_grid):
        path = save_png(ring_grid, tmp_path / "ring.png")
        before = path.read_bytes()
        policy = LargeImagePolicy(threshold=2, confirm=lambda prompt: False)

        with pytest.raises(PolicyRejection) as excinfo:
            FixPipeline(policy=policy).process(path)

        assert excinfo.value.declined
        assert path.read_bytes() == before

    def test_reports_anomalies(self, tmp_path, ring_grid):
        path = save_png(ring_grid, tmp_path / "ring.png")

        result, anomalies = FixPipeline().process_with_anomalies(path)

        assert result is ProcessResult.SUCCESS
        assert anomalies == 0


class TestFixConfig:
    """Test worker resolution."""

    def test_auto_uses_cpu_count(self, monkeypatch):
        monkeypatch.setattr("pixelfix.types.os.cpu_count", lambda: 6)
        assert FixConfig(max_workers=-1).resolve_workers() == 6

    def test_auto_without_cpu_count(self, monkeypatch):
        monkeypatch.setattr("pixelfix.types.os.cpu_count", lambda: None)
        assert FixConfig().resolve_workers() == 1

    def test_explicit_workers(self):
        assert FixConfig(max_workers=3).resolve_workers() == 3
        assert FixConfig(max_workers=0).resolve_workers() == 1
