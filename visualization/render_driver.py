"""
Render Driver

One dataset in, one streamline image out; and a queue of datasets processed
one job at a time.

A job loads the field, clears a surface, traces the field with the
streamline tracer while painting every accepted line as soon as it is
produced, then writes a caption and finalizes the surface. Paths are
painted in tracing order since blending is order dependent.

In a batch, a failing job is logged and recorded; the remaining jobs still
run.
"""

import logging
import os
import time
from collections import deque, namedtuple

from windlines.constants import (
    CANVAS_WIDTH, CANVAS_HEIGHT, BACKGROUND_COLOR, BASE_ALPHA,
    CAPTION_COLOR, CAPTION_FONT_SIZE_PX, CAPTION_OFFSET,
    D_SEP, D_TEST, TIME_STEP, STEPS_PER_ITERATION, MAX_TIME_PER_ITERATION, SEED
)
from windlines.dataset import load_dataset
from windlines.gradient import default_gradient
from windlines.tracer import StreamlineTracer

from .streamlines import SegmentRasterizer
from .surface import RasterSurface


logger = logging.getLogger(__name__)

JobResult = namedtuple("JobResult", ["dataset_id", "output_path", "error"])


def caption_for(dataset_id):
    """
    Caption text for a dataset.

    '20180102.json' -> '2018-01-02'; names not starting with a date are
    used as they are (up to the first dot).
    """
    name = os.path.basename(str(dataset_id)).split(".")[0]
    if len(name) >= 8 and name[:8].isdigit():
        return "-".join([name[:4], name[4:6], name[6:8]])
    return name


def output_name(dataset_id):
    return os.path.basename(str(dataset_id)) + ".png"


class RenderDriver:
    """
    Renders wind datasets to streamline images.

    Parameters
    ----------
    data_dir : str
        Directory dataset ids are resolved against
    output_dir : str, optional
        Where run() writes PNG files; nothing is written when None
    gradient : Gradient, optional
        Speed colors; defaults to constants.GRADIENT_STOPS
    width, height : int
        Output size in pixels
    loader : callable, optional
        Maps a file path and dataset id to a Dataset; defaults to
        load_dataset
    tracer_options : dict, optional
        Overrides for the StreamlineTracer settings
    """

    def __init__(self, data_dir=".", output_dir=None, gradient=None,
                 width=CANVAS_WIDTH, height=CANVAS_HEIGHT, loader=None,
                 tracer_options=None):
        self.data_dir = data_dir
        self.output_dir = output_dir
        self.gradient = gradient if gradient is not None else default_gradient()
        self.width = width
        self.height = height
        self.loader = loader if loader is not None else load_dataset

        self.tracer_options = {
            "seed": SEED,
            "d_sep": D_SEP,
            "d_test": D_TEST,
            "time_step": TIME_STEP,
            "steps_per_iteration": STEPS_PER_ITERATION,
            "max_time_per_iteration": MAX_TIME_PER_ITERATION,
        }
        if tracer_options:
            self.tracer_options.update(tracer_options)

    def new_surface(self):
        return RasterSurface(
            self.width, self.height, background=BACKGROUND_COLOR, base_alpha=BASE_ALPHA
        )

    def render_field(self, field, caption=None):
        """
        Trace and paint a field onto a fresh, finalized surface.

        Parameters
        ----------
        field : VectorField
        caption : str, optional
            Text written in the bottom right corner

        Returns
        -------
        surface : RasterSurface
        """
        surface = self.new_surface()
        box = field.bounding_box

        rasterizer = SegmentRasterizer(surface, field, self.gradient, box)
        tracer = StreamlineTracer(
            field.sample_fast,
            box,
            on_streamline_added=rasterizer.on_path,
            **self.tracer_options
        )
        count = tracer.run()

        if caption:
            dx, dy = CAPTION_OFFSET
            surface.fill_text(
                caption, self.width - dx, self.height - dy,
                CAPTION_COLOR, CAPTION_FONT_SIZE_PX
            )
        surface.finalize()

        logger.debug("Painted %d lines, %d segments", count, surface.segment_count)
        return surface

    def render_one(self, dataset_id):
        """
        Render one dataset.

        Errors from loading or tracing propagate to the caller.

        Returns
        -------
        surface : RasterSurface
            Finalized surface ready to be saved
        """
        path = os.path.join(self.data_dir, str(dataset_id))
        dataset = self.loader(path, dataset_id)
        return self.render_field(dataset.field, caption_for(dataset_id))

    def save(self, surface, dataset_id):
        os.makedirs(self.output_dir, exist_ok=True)
        path = os.path.join(self.output_dir, output_name(dataset_id))
        surface.save(path)
        return path

    def run(self, dataset_ids):
        """
        Render a queue of datasets in order, one at a time.

        Parameters
        ----------
        dataset_ids : iterable of str

        Returns
        -------
        results : list of JobResult
            One per dataset, in queue order; error is None on success
        """
        queue = deque(dataset_ids)
        results = []

        while queue:
            dataset_id = queue.popleft()
            logger.info("Processing %s", dataset_id)
            started = time.perf_counter()

            try:
                surface = self.render_one(dataset_id)
                output_path = None
                if self.output_dir is not None:
                    output_path = self.save(surface, dataset_id)
            except Exception as e:
                logger.exception("Job %s failed", dataset_id)
                results.append(JobResult(dataset_id, None, e))
                continue

            logger.info(
                "Finished %s in %.2fs -> %s",
                dataset_id, time.perf_counter() - started, output_path
            )
            results.append(JobResult(dataset_id, output_path, None))

        return results
