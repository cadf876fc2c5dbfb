"""
Tests for the render driver.

Renders small synthetic datasets end to end and checks per-job isolation
in batches.
"""

import json

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from windlines.dataset import DatasetError
from visualization.render_driver import RenderDriver, caption_for, output_name


TRACER_OPTIONS = {
    "seed": (3.0, 3.0),
    "d_sep": 1.0,
    "d_test": 0.5,
    "time_step": 0.5,
    "steps_per_iteration": 500,
}


def wind_record(ni=12, nj=8):
    """Smooth swirling wind on an ni x nj grid, physical units."""
    y, x = np.mgrid[0:nj, 0:ni]
    u = 6.0 + 3.0 * np.sin(2 * np.pi * y / nj)
    v = 2.0 * np.cos(2 * np.pi * x / ni)

    def component(values):
        flat = values.ravel()
        return {
            "values": flat.tolist(),
            "Ni": ni,
            "Nj": nj,
            "minimum": float(flat.min()),
            "maximum": float(flat.max()),
        }

    return {"u": component(u), "v": component(v)}


@pytest.fixture
def data_dir(tmp_path):
    directory = tmp_path / "data"
    directory.mkdir()
    (directory / "20180102.json").write_text(json.dumps(wind_record()))
    (directory / "20180103.json").write_text(json.dumps(wind_record(16, 9)))
    (directory / "broken.json").write_text(json.dumps({"u": {"values": []}}))
    return directory


def make_driver(data_dir, output_dir=None, **kwargs):
    return RenderDriver(
        data_dir=str(data_dir),
        output_dir=None if output_dir is None else str(output_dir),
        width=96,
        height=54,
        tracer_options=TRACER_OPTIONS,
        **kwargs
    )


class TestCaption:

    def test_date_names(self):
        assert caption_for("20180102.json") == "2018-01-02"
        assert caption_for("2018010218.json") == "2018-01-02"
        assert caption_for("data/20180102.json") == "2018-01-02"

    def test_other_names_are_opaque(self):
        assert caption_for("gfs-latest.json") == "gfs-latest"
        assert caption_for("wind") == "wind"

    def test_output_name(self):
        assert output_name("20180102.json") == "20180102.json.png"


class TestRenderOne:

    def test_returns_finalized_surface(self, data_dir):
        surface = make_driver(data_dir).render_one("20180102.json")

        assert surface.finalized
        assert surface.segment_count > 0
        assert surface.to_array().shape == (54, 96, 4)

    def test_deterministic(self, data_dir):
        first = make_driver(data_dir).render_one("20180102.json").to_array()
        second = make_driver(data_dir).render_one("20180102.json").to_array()

        np.testing.assert_array_equal(first, second)

    def test_errors_propagate(self, data_dir):
        with pytest.raises(DatasetError):
            make_driver(data_dir).render_one("broken.json")

    def test_missing_file(self, data_dir):
        with pytest.raises(OSError):
            make_driver(data_dir).render_one("nope.json")

    def test_custom_loader(self, data_dir):
        seen = []

        def loader(path, dataset_id):
            seen.append((path, dataset_id))
            raise DatasetError("unavailable")

        driver = make_driver(data_dir, loader=loader)
        with pytest.raises(DatasetError):
            driver.render_one("20180102.json")

        assert seen == [(os.path.join(str(data_dir), "20180102.json"), "20180102.json")]

    def test_seed_outside_field_gives_empty_image(self, data_dir):
        driver = make_driver(data_dir)
        driver.tracer_options["seed"] = (500.0, 500.0)

        surface = driver.render_one("20180102.json")

        assert surface.segment_count == 0


class TestRun:
    """Batch processing."""

    def test_writes_pngs(self, data_dir, tmp_path):
        out = tmp_path / "out"
        results = make_driver(data_dir, out).run(["20180102.json", "20180103.json"])

        assert [r.dataset_id for r in results] == ["20180102.json", "20180103.json"]
        assert all(r.error is None for r in results)
        for result in results:
            assert os.path.exists(result.output_path)
        assert (out / "20180102.json.png").read_bytes()[:4] == b"\x89PNG"

    def test_failures_are_isolated(self, data_dir, tmp_path):
        """Bad jobs are recorded and later jobs still run."""
        out = tmp_path / "out"
        results = make_driver(data_dir, out).run(
            ["broken.json", "nope.json", "20180102.json"]
        )

        assert [r.dataset_id for r in results] == ["broken.json", "nope.json", "20180102.json"]
        assert isinstance(results[0].error, DatasetError)
        assert isinstance(results[1].error, OSError)
        assert results[2].error is None
        assert os.path.exists(results[2].output_path)
        assert not (out / "broken.json.png").exists()

    def test_without_output_dir(self, data_dir):
        results = make_driver(data_dir).run(["20180102.json"])

        assert results[0].error is None
        assert results[0].output_path is None

    def test_empty_queue(self, data_dir):
        assert make_driver(data_dir).run([]) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
