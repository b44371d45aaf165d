"""
Snapshot pipeline for the Lightning Strike Mapper
Runs one fetch -> parse -> transform -> filter -> serialize cycle at a time
"""

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from .config import DEFAULTS, get_bounds, get_frame
from .exceptions import CycleCancelled, FetchError, ParseError
from .extractor import MarkerExtractor
from .models import CycleResult, CycleState, GeoStrike
from .snapshot import write_snapshot
from .source import LightningSource
from .timeslug import time_slug, to_utc
from .transform import transform_markers
from .validators import filter_strikes, frame_to_strikes, validate_snapshot_records

logger = logging.getLogger(__name__)

MODES = ('batch', 'client')
SOURCE_KINDS = ('live', 'snapshot')


class CancelToken:
    """Set by whoever wants the cycle holding this token abandoned"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: str) -> None:
        if self.cancelled:
            raise CycleCancelled(f"Cycle cancelled before {stage}")


class SnapshotPipeline:
    def __init__(
        self,
        settings: Optional[Dict] = None,
        mode: str = 'batch',
        source_kind: str = 'live',
        source: Optional[LightningSource] = None,
        extractor: Optional[MarkerExtractor] = None,
        on_update: Optional[Callable[[CycleResult], None]] = None,
        output_path: Optional[Union[str, Path]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the pipeline

        Args:
            settings: Settings from config.load_settings(); defaults when omitted
            mode: 'batch' writes the snapshot file, 'client' only hands results on
            source_kind: 'live' scrapes the upstream page, 'snapshot' reads a published snapshot
            source: Optional LightningSource (e.g. with a prepared session)
            extractor: Optional MarkerExtractor
            on_update: Called once with every finished, non-superseded CycleResult
            output_path: Snapshot file; defaults to the configured well-known path
            clock: Returns the current time; defaults to the system UTC clock
        """
        if mode not in MODES:
            raise ValueError(f"Unknown mode {mode!r}, expected one of {MODES}")
        if source_kind not in SOURCE_KINDS:
            raise ValueError(f"Unknown source {source_kind!r}, expected one of {SOURCE_KINDS}")
        if mode == 'batch' and source_kind == 'snapshot':
            raise ValueError("Batch mode builds the snapshot and cannot read it as its source")

        self.settings = settings or DEFAULTS
        self.mode = mode
        self.source_kind = source_kind
        self.source = source or LightningSource(self.settings)
        self.extractor = extractor or MarkerExtractor(self.settings)
        self.on_update = on_update
        self.output_path = Path(output_path or self.settings['output']['snapshot_file'])
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        # Calibration is fixed for the lifetime of the pipeline
        self.bounds = get_bounds(self.settings)
        self.frame = get_frame(self.settings)
        self.minutes_per_bucket = self.settings['age']['minutes_per_bucket']
        self.precision = self.settings['precision']

        self.state = CycleState.IDLE
        self.last_result: Optional[CycleResult] = None
        self._cycle_lock = threading.Lock()
        self._id_lock = threading.Lock()
        self._last_id = 0
        self._published_id = 0

    def next_cycle_id(self) -> int:
        """Reserve the next cycle sequence number"""
        with self._id_lock:
            self._last_id += 1
            return self._last_id

    @property
    def latest_cycle_id(self) -> int:
        return self._last_id

    def _enter(self, result: CycleResult, state: CycleState) -> None:
        logger.debug(f"Cycle {result.cycle_id}: {self.state.value} -> {state.value}")
        self.state = state
        result.state = state

    def _run_live(self, result: CycleResult, cancel: Optional[CancelToken]) -> List[GeoStrike]:
        self._enter(result, CycleState.FETCHING)
        result.source = self.source.build_url(result.slug)
        html = self.source.fetch_html(result.slug, cancel=cancel)

        if cancel:
            cancel.raise_if_cancelled('parsing')
        self._enter(result, CycleState.PARSING)
        markers = self.extractor.extract(html)
        result.total_markers = len(markers)

        if cancel:
            cancel.raise_if_cancelled('transforming')
        self._enter(result, CycleState.TRANSFORMING)
        return transform_markers(
            markers, self.frame, self.bounds, self.minutes_per_bucket, self.precision
        )

    def _run_snapshot(self, result: CycleResult, cancel: Optional[CancelToken]) -> List[GeoStrike]:
        self._enter(result, CycleState.FETCHING)
        result.source = str(self.source.config.get('snapshot_url'))
        records = self.source.fetch_snapshot(cancel=cancel)

        if cancel:
            cancel.raise_if_cancelled('parsing')
        self._enter(result, CycleState.PARSING)
        try:
            df, stats = validate_snapshot_records(records)
        except ValueError as e:
            raise ParseError(str(e)) from e
        if stats.get('invalid_rows'):
            logger.debug(f"Dropped {stats['invalid_rows']} invalid snapshot records")
        result.total_markers = stats['original_rows']

        self._enter(result, CycleState.TRANSFORMING)
        return frame_to_strikes(df)

    def _publish(self, result: CycleResult) -> None:
        if result.cycle_id < self._published_id:
            raise CycleCancelled(
                f"Cycle {result.cycle_id} superseded by published cycle {self._published_id}"
            )
        if self.mode == 'batch':
            write_snapshot(result.strikes, self.output_path)
        self._published_id = result.cycle_id
        self._enter(result, CycleState.SERIALIZED)
        self.last_result = result

    def run_cycle(self, cancel: Optional[CancelToken] = None, cycle_id: Optional[int] = None) -> CycleResult:
        """
        Run one complete cycle

        Cycles are serialized: a call made while another cycle is in flight
        waits for it to finish. Errors never escape; they are recorded on the
        returned result and the previous snapshot is left untouched.

        Args:
            cancel: Token that abandons this cycle when cancelled
            cycle_id: Sequence number reserved with next_cycle_id(); reserved here when omitted

        Returns:
            CycleResult in the SERIALIZED or FAILED state
        """
        if cycle_id is None:
            cycle_id = self.next_cycle_id()

        with self._cycle_lock:
            started = to_utc(self.clock())
            result = CycleResult(cycle_id=cycle_id, slug=time_slug(started), started_at=started)
            logger.info(f"Starting cycle {cycle_id} ({self.mode}/{self.source_kind}, slug {result.slug})")

            try:
                if self.source_kind == 'live':
                    strikes = self._run_live(result, cancel)
                else:
                    strikes = self._run_snapshot(result, cancel)

                if cancel:
                    cancel.raise_if_cancelled('filtering')
                self._enter(result, CycleState.FILTERING)
                result.strikes, stats = filter_strikes(strikes, self.bounds)
                result.out_of_bounds = stats['out_of_bounds']
                if result.out_of_bounds:
                    logger.debug(f"Dropped {result.out_of_bounds} strikes outside the calibration bounds")

                if cancel:
                    cancel.raise_if_cancelled('publishing')
                self._publish(result)
                logger.info(
                    f"Cycle {cycle_id} complete: {result.valid_count} valid strikes "
                    f"of {result.total_markers} markers"
                )

            except CycleCancelled as e:
                result.cancelled = True
                result.error = str(e)
                self._enter(result, CycleState.FAILED)
                logger.info(f"Cycle {cycle_id} discarded: {e}")

            except (FetchError, ParseError, OSError) as e:
                result.error = f"{type(e).__name__}: {e}"
                self._enter(result, CycleState.FAILED)
                logger.error(f"Cycle {cycle_id} failed: {result.error}")

            finally:
                result.finished_at = to_utc(self.clock())
                self.state = CycleState.IDLE

            # Failures of cycles older than the published one are not reported either
            if (self.on_update is not None and not result.cancelled
                    and result.cycle_id >= self._published_id):
                try:
                    self.on_update(result)
                except Exception:
                    logger.exception(f"Update callback failed for cycle {cycle_id}")

        return result
