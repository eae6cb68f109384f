"""
Batch Processor

Walks a source folder, trims every image it recognises and writes the result
into the destination folder under the same name. Images without a border are
copied byte for byte instead of being re-encoded.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .codec import copy_file, decode_image, encode_image
from .color import DEFAULT_THRESHOLD, clamp_threshold, reference_color
from .errors import ConfigError, CopyError, DecodeError, DirectoryReadError, EncodeError
from .trimmer import trim_borders

logger = logging.getLogger(__name__)

IMAGE_EXTS = (".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tiff")


# ---------------------------------------------------------------------------
# Run state
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TransferConfig:
    src_dir: str
    dst_dir: str
    allow_color: bool = False
    threshold: int = DEFAULT_THRESHOLD

    def __post_init__(self):
        object.__setattr__(self, "threshold", clamp_threshold(self.threshold))

    @property
    def can_transfer(self):
        return bool(self.src_dir) and bool(self.dst_dir) and self.src_dir != self.dst_dir

    def validate(self):
        if not self.src_dir or not self.dst_dir:
            raise ConfigError("Both source and destination folders are required")
        if self.src_dir == self.dst_dir:
            raise ConfigError("Source and destination folders must differ")


@dataclass
class TransferResult:
    total: int = 0
    images: int = 0
    updated: int = 0
    results: list = field(default_factory=list)
    log: list = field(default_factory=list)
    cancelled: bool = False
    error: str = None

    @property
    def summary(self):
        return f"{self.updated}/{self.total}"

    @property
    def text(self):
        return "\n".join(self.log)


class TransferLog:
    """Collects the log lines of one run and mirrors them to `logging`."""

    def __init__(self, lines):
        self.lines = lines

    def write(self, message, level=logging.INFO):
        self.lines.append(message)
        logger.log(level, message)

    def extend(self, messages):
        # already sent to the logger by the code that produced them
        self.lines.extend(messages)


# ---------------------------------------------------------------------------
# Directory listing
# ---------------------------------------------------------------------------
def is_image_file(name):
    return os.path.splitext(name)[1].lower() in IMAGE_EXTS


def list_entries(src_dir):
    """Names of every entry in `src_dir`, sorted. Not recursive."""
    try:
        return sorted(os.listdir(src_dir))
    except OSError as exc:
        raise DirectoryReadError(f"{src_dir}: {exc}") from exc


# ---------------------------------------------------------------------------
# Single file
# ---------------------------------------------------------------------------
def process_single_image(input_path, output_path, allow_color=False, threshold=DEFAULT_THRESHOLD):
    """
    Trim one image file into `output_path`.

    Never raises for per-file problems; they are reported in the result.

    Returns:
        dict with keys: success, strategy, filename, original_size,
        cropped_size, trimmed, log
    """
    filename = os.path.basename(input_path)
    threshold = clamp_threshold(threshold)
    notes = []

    def note(message, level=logging.INFO):
        notes.append(message)
        logger.log(level, message)

    result = {
        "success": False,
        "strategy": None,
        "filename": filename,
        "original_size": None,
        "cropped_size": None,
        "trimmed": None,
        "log": notes,
    }

    note(f"Processing {filename}")
    try:
        decoded = decode_image(input_path)
    except DecodeError as exc:
        note(f"Failed to open source image: {exc}", logging.ERROR)
        result["strategy"] = "read_error"
        return result

    color = reference_color(decoded.pixels, allow_color)
    w, h = result["original_size"] = decoded.size
    note(f"Original image: size={w}x{h}, target colour={color}")

    img, trimmed, cropped = trim_borders(decoded.pixels, color, threshold)
    result["trimmed"] = trimmed

    if not cropped:
        note("No border found, copying file")
        try:
            copy_file(input_path, output_path)
        except CopyError as exc:
            note(f"Failed to copy file: {exc}", logging.ERROR)
            result["strategy"] = "copy_error"
            return result
        result.update(success=True, strategy="copied", cropped_size=decoded.size)
        return result

    ch, cw = img.shape[:2]
    note(f"Trimmed size={cw}x{ch}, trimmed={trimmed}")
    try:
        encode_image(img, output_path, has_alpha=decoded.has_alpha)
    except EncodeError as exc:
        note(f"Failed to save image: {exc}", logging.ERROR)
        result["strategy"] = "write_error"
        result["cropped_size"] = (cw, ch)
        return result

    result.update(success=True, strategy="trimmed", cropped_size=(cw, ch))
    return result


# ---------------------------------------------------------------------------
# Whole folder
# ---------------------------------------------------------------------------
def _pool_size(workers):
    return max(1, min(int(workers), os.cpu_count() or 1))


def run_batch(config, cancel_event=None, workers=1, progress=None):
    """
    Trim every image of `config.src_dir` into `config.dst_dir`.

    Args:
        config: TransferConfig for this run
        cancel_event: optional threading.Event; checked before each file
        workers: files processed at once, capped at the CPU count
        progress: optional callable(done, total) fired after each entry

    Returns:
        TransferResult. Outcomes are reported in listing order whatever the
        worker count.

    Raises:
        ConfigError: if the config does not allow a run.
    """
    config.validate()
    result = TransferResult()
    log = TransferLog(result.log)

    try:
        names = list_entries(config.src_dir)
    except DirectoryReadError as exc:
        log.write(f"Failed to open source folder: {exc}", logging.ERROR)
        result.error = str(exc)
        return result

    try:
        os.makedirs(config.dst_dir, exist_ok=True)
    except OSError as exc:
        log.write(f"Failed to create output folder: {exc}", logging.ERROR)
        result.error = str(exc)
        return result

    total = result.total = len(names)
    log.write(f"Start processing {total} files: {config.src_dir} -> {config.dst_dir}")

    def handle(name):
        if cancel_event is not None and cancel_event.is_set():
            return None
        return process_single_image(
            os.path.join(config.src_dir, name),
            os.path.join(config.dst_dir, name),
            config.allow_color,
            config.threshold,
        )

    pool_size = _pool_size(workers)
    executor = ThreadPoolExecutor(max_workers=pool_size) if pool_size > 1 else None

    if executor is None:
        outcomes = ((name, handle(name) if is_image_file(name) else False) for name in names)
    else:
        futures = [(name, executor.submit(handle, name) if is_image_file(name) else None)
                   for name in names]
        outcomes = ((name, fut.result() if fut is not None else False) for name, fut in futures)

    try:
        for idx, (name, outcome) in enumerate(outcomes, 1):
            if outcome is False:
                log.write(f"Skipping {name}")
            elif outcome is None:
                result.cancelled = True
                log.write(f"Cancelled at ({idx}/{total}) {name}", logging.WARNING)
                break
            else:
                result.images += 1
                result.results.append(outcome)
                log.extend(outcome["log"])
                if outcome["success"]:
                    result.updated += 1
                log.write(f"Finished ({idx}/{total}) {name}")

            if progress is not None:
                progress(idx, total)
    finally:
        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)

    log.write(f"Done, converted {result.updated}/{total}")
    return result
