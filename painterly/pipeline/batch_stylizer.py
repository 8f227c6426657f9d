"""
Batch Stylizer
Stylizes every image of a folder into an output folder.  Failures while
decoding, encoding or writing are logged and reported per file; one bad
image never stops the batch.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import numpy as np
from tqdm import tqdm

from ..models.errors import StylizationError
from .stylizer import StylizationPipeline

logger = logging.getLogger(__name__)

_EXTENSIONS = {"JPEG": ".jpg", "JPG": ".jpg", "PNG": ".png"}


@dataclass(frozen=True)
class BatchOutcome:
    source: Path
    output: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def output_path_for(source: Path, input_dir: Path, output_dir: Path, output_format: str) -> Path:
    """
    Mirror the source's sub-folder under output_dir and keep its extension in
    the name, so ``a.png`` and ``a.jpg`` (or ``x/a.jpg`` and ``a.jpg``) never
    land on the same file.
    """
    ext = _EXTENSIONS.get(output_format.upper(), ".jpg")
    relative = source.relative_to(input_dir)
    source_ext = source.suffix.lstrip(".")
    return output_dir / relative.parent / f"{source.stem}_{source_ext}_painterly{ext}"


def _stylize_one(
    source: Path,
    input_dir: Path,
    output_dir: Path,
    pipeline: StylizationPipeline,
    seed: int | None,
) -> BatchOutcome:
    rng = np.random.default_rng(seed) if seed is not None else None
    image_service = pipeline.image_service
    target = output_path_for(source, input_dir, output_dir, image_service.OUTPUT_FORMAT)
    try:
        data = pipeline.stylize(source.read_bytes(), rng=rng)
        image_service.save(data, target)
    except (StylizationError, OSError) as err:
        logger.error(f"Skipping {source.name}: {err}")
        return BatchOutcome(source, error=str(err))

    return BatchOutcome(source, output=target)


def stylize_folder(
    input_dir: str | Path,
    output_dir: str | Path,
    *,
    pipeline: StylizationPipeline | None = None,
    recursive: bool = False,
    workers: int = 1,
    seed: int | None = None,
    show_progress: bool = True,
) -> List[BatchOutcome]:
    """
    Args:
        input_dir: folder with .jpg / .jpeg / .png files.
        output_dir: created if missing; sub-folders are mirrored.
        pipeline: pipeline to use, a default one otherwise.
        recursive: also walk sub-folders.
        workers: >1 stylizes that many images concurrently.
        seed: seed the texture layer of every image for reproducible output.

    Returns:
        One BatchOutcome per input file, in input order.
    """
    pipeline = pipeline or StylizationPipeline()
    input_dir = Path(input_dir)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    sources = list(pipeline.image_service.stream_paths(input_dir, recursive=recursive))
    if not sources:
        logger.warning(f"No images found in {input_dir}")
        return []

    logger.info(f"Stylizing {len(sources)} images with {workers} worker(s)")

    def job(src: Path) -> BatchOutcome:
        return _stylize_one(src, input_dir, output_dir, pipeline, seed)

    progress = dict(total=len(sources), desc="stylize", ncols=70, disable=not show_progress)
    if workers <= 1:
        outcomes = [job(src) for src in tqdm(sources, **progress)]
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(tqdm(pool.map(job, sources), **progress))

    failed = sum(not o.ok for o in outcomes)
    logger.info(f"Batch complete: {len(outcomes) - failed} stylized, {failed} failed")
    return outcomes
