"""
Coordinate Extractor
====================

Turns an uploaded photo or video (plus whatever the user typed into the
form) into a coordinate pair, or reports that manual entry is needed.

Strategies run in a fixed order and the first one that finds a valid pair
wins:

1. :class:`ExifGpsStrategy`      GPS IFD of an image
2. :class:`OcrStrategy`          Tesseract over the full image
3. :class:`TextOverlayStrategy`  coordinate text stored in image metadata
4. :class:`ManualStrategy`       numeric override, then override text

Each strategy returns one of three outcomes instead of raising:
:class:`Found`, :class:`NotFound` (nothing there, which is normal) or
:class:`ExtractionError` (something was there but unusable, or the step
failed). Blocking work runs in a worker thread under a per-step timeout.
The extractor has no persistence side effects.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Union

from mediamap.geo.coordinates import CoordinatePair
from mediamap.geo.errors import LocationPipelineError
from mediamap.geo.exif import open_image, read_gps, read_text_fields
from mediamap.geo.ocr import TesseractRecognizer, TextRecognizer
from mediamap.geo.parser import CoordinateParser, default_parser, ocr_parser
from mediamap.geo.regional import HemispherePolicy, NoHemisphereGuess, get_policy

logger = logging.getLogger(__name__)


# =============================================================================
# INPUTS AND OUTCOMES
# =============================================================================

class MediaKind(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"

    @classmethod
    def from_content_type(cls, content_type: Optional[str]) -> Optional["MediaKind"]:
        if not content_type:
            return None
        if content_type.startswith("image/"):
            return cls.IMAGE
        if content_type.startswith("video/"):
            return cls.VIDEO
        return None


@dataclass(frozen=True)
class MediaInput:
    filename: str
    content: bytes = field(repr=False)
    kind: MediaKind
    content_type: Optional[str] = None


@dataclass(frozen=True)
class CoordinateOverride:
    """Coordinates supplied by the caller.

    Covers the manual form fields, a map click, device geolocation (all as
    ``latitude``/``longitude``) and pasted free text (``text``).
    """

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    text: Optional[str] = None

    @property
    def has_numeric(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_empty(self) -> bool:
        return self.latitude is None and self.longitude is None and not (self.text or "").strip()


@dataclass(frozen=True)
class Found:
    source: str
    pair: CoordinatePair
    detail: Optional[str] = None


@dataclass(frozen=True)
class NotFound:
    source: str
    reason: str


@dataclass(frozen=True)
class ExtractionError:
    source: str
    error: str


Outcome = Union[Found, NotFound, ExtractionError]


@dataclass
class ExtractionReport:
    """Result of one extraction run.

    Attributes:
        found: The winning outcome, or None.
        attempts: Every outcome in the order the strategies ran.
    """

    found: Optional[Found] = None
    attempts: List[Outcome] = field(default_factory=list)

    @property
    def needs_manual_entry(self) -> bool:
        return self.found is None

    @property
    def pair(self) -> Optional[CoordinatePair]:
        return self.found.pair if self.found else None

    @property
    def source(self) -> Optional[str]:
        return self.found.source if self.found else None


# =============================================================================
# STRATEGIES
# =============================================================================

class ExtractionStrategy(Protocol):
    name: str
    timeout: Optional[float]

    def applies_to(self, media: MediaInput, override: CoordinateOverride) -> bool:
        ...

    def run(self, media: MediaInput, override: CoordinateOverride) -> Outcome:
        ...


class ExifGpsStrategy:
    """Read the GPS IFD and convert it through the DMS normalizer."""

    name = "exif"

    def __init__(self, policy: HemispherePolicy = NoHemisphereGuess(), timeout: Optional[float] = None):
        self.policy = policy
        self.timeout = timeout

    def applies_to(self, media: MediaInput, override: CoordinateOverride) -> bool:
        return media.kind == MediaKind.IMAGE

    def run(self, media: MediaInput, override: CoordinateOverride) -> Outcome:
        try:
            reading = read_gps(open_image(media.content))
        except LocationPipelineError as exc:
            return ExtractionError(self.name, str(exc))

        if reading is None:
            return NotFound(self.name, "no GPS data in image EXIF")

        try:
            pair = CoordinatePair.validated(reading.latitude, reading.longitude)
        except LocationPipelineError as exc:
            return ExtractionError(self.name, str(exc))

        pair = self.policy.apply(
            pair,
            latitude_explicit=reading.latitude_ref is not None,
            longitude_explicit=reading.longitude_ref is not None,
        )
        return Found(self.name, pair)


class OcrStrategy:
    """Recognise text in the whole image and parse it with the OCR templates."""

    name = "ocr"

    def __init__(
        self,
        recognizer: TextRecognizer,
        parser: CoordinateParser = ocr_parser,
        policy: HemispherePolicy = NoHemisphereGuess(),
        timeout: Optional[float] = None,
    ):
        self.recognizer = recognizer
        self.parser = parser
        self.policy = policy
        self.timeout = timeout

    def applies_to(self, media: MediaInput, override: CoordinateOverride) -> bool:
        return media.kind == MediaKind.IMAGE

    def run(self, media: MediaInput, override: CoordinateOverride) -> Outcome:
        try:
            text = self.recognizer.recognize(open_image(media.content))
        except LocationPipelineError as exc:
            return ExtractionError(self.name, str(exc))

        result = self.parser.parse_detailed(text)
        if result is None:
            return NotFound(self.name, "no coordinates in recognised text")

        pair = self.policy.apply(
            result.pair,
            latitude_explicit=result.latitude_explicit,
            longitude_explicit=result.longitude_explicit,
        )
        return Found(self.name, pair, detail=result.template)


class TextOverlayStrategy:
    """Scan textual metadata fields for a coordinate string."""

    name = "text_overlay"

    def __init__(self, parser: CoordinateParser = default_parser, timeout: Optional[float] = None):
        self.parser = parser
        self.timeout = timeout

    def applies_to(self, media: MediaInput, override: CoordinateOverride) -> bool:
        return media.kind == MediaKind.IMAGE

    def run(self, media: MediaInput, override: CoordinateOverride) -> Outcome:
        try:
            texts = read_text_fields(open_image(media.content))
        except LocationPipelineError as exc:
            return ExtractionError(self.name, str(exc))

        for text in texts:
            result = self.parser.parse_detailed(text)
            if result is not None:
                return Found(self.name, result.pair, detail=result.template)
        return NotFound(self.name, "no coordinate text in metadata")


class ManualStrategy:
    """Use the caller's coordinates: numeric fields first, then free text."""

    name = "manual"
    timeout = None

    def __init__(self, parser: CoordinateParser = default_parser):
        self.parser = parser

    def applies_to(self, media: MediaInput, override: CoordinateOverride) -> bool:
        return True

    def run(self, media: MediaInput, override: CoordinateOverride) -> Outcome:
        if override.has_numeric:
            try:
                return Found(self.name, CoordinatePair.validated(override.latitude, override.longitude))
            except LocationPipelineError as exc:
                if not override.text:
                    return ExtractionError(self.name, str(exc))
                logger.debug(f"Numeric override rejected, trying text: {exc}")

        if override.text and override.text.strip():
            result = self.parser.parse_detailed(override.text)
            if result is None:
                return ExtractionError(self.name, f"could not parse coordinates from {override.text!r}")
            return Found(self.name, result.pair, detail=result.template)

        return NotFound(self.name, "no manual coordinates supplied")


# =============================================================================
# EXTRACTOR
# =============================================================================

class CoordinateExtractor:
    """Run the strategy chain for one media payload.

    Args:
        strategies: Strategies in priority order.
        step_timeout: Default per-step timeout in seconds for strategies
            that do not set their own.
    """

    def __init__(self, strategies: Sequence[ExtractionStrategy], step_timeout: float = 10.0):
        self.strategies = list(strategies)
        self.step_timeout = step_timeout

    @classmethod
    def from_settings(cls, settings, recognizer: Optional[TextRecognizer] = None) -> "CoordinateExtractor":
        """Build the default chain from application settings.

        Raises:
            ValueError: If ``HEMISPHERE_POLICY`` names an unknown policy.
        """
        policy = get_policy(settings.HEMISPHERE_POLICY)
        strategies: List[ExtractionStrategy] = [ExifGpsStrategy(policy=policy)]

        if settings.OCR_ENABLED or recognizer is not None:
            strategies.append(
                OcrStrategy(
                    recognizer or TesseractRecognizer(settings.OCR_LANGUAGE, timeout=settings.OCR_TIMEOUT),
                    policy=policy,
                    timeout=settings.OCR_TIMEOUT,
                )
            )

        strategies.append(TextOverlayStrategy())
        strategies.append(ManualStrategy())
        return cls(strategies, step_timeout=settings.EXTRACTION_STEP_TIMEOUT)

    async def extract(self, media: MediaInput, override: Optional[CoordinateOverride] = None) -> ExtractionReport:
        """Try each applicable strategy until one finds coordinates.

        Never raises for extraction problems; they are recorded in the
        report's ``attempts``.
        """
        override = override or CoordinateOverride()
        report = ExtractionReport()

        for strategy in self.strategies:
            if not strategy.applies_to(media, override):
                continue

            outcome = await self._run_step(strategy, media, override)
            report.attempts.append(outcome)

            if isinstance(outcome, Found):
                logger.info(
                    f"Coordinates for '{media.filename}' found by {outcome.source}: "
                    f"{outcome.pair.format()}"
                )
                report.found = outcome
                return report
            if isinstance(outcome, NotFound):
                logger.debug(f"{outcome.source}: {outcome.reason} ({media.filename})")
            else:
                logger.warning(f"{outcome.source} failed for '{media.filename}': {outcome.error}")

        logger.info(f"No coordinates found for '{media.filename}', manual entry needed")
        return report

    async def _run_step(self, strategy: ExtractionStrategy, media: MediaInput, override: CoordinateOverride) -> Outcome:
        timeout = strategy.timeout or self.step_timeout
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(strategy.run, media, override),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            return ExtractionError(strategy.name, f"timed out after {timeout}s")
        except Exception as exc:
            logger.exception(f"Unexpected error in {strategy.name} strategy")
            return ExtractionError(strategy.name, f"{type(exc).__name__}: {exc}")
