"""Generation pipeline: request in, nine named artifacts out.

encode → layout per backend → canonical raster + SVG → derived
resolutions → encoded artifacts → (optionally) files on disk.
"""

import json
from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path

from dotqr.assets import LogoAsset, load_logo, resolve_logo_path
from dotqr.codec import ENCODERS
from dotqr.encoder import QRMatrix, encode
from dotqr.geometry import DEFAULT_DOT_SIZE_FACTOR, DEFAULT_PIXELS_PER_MODULE, DEFAULT_RESOLUTIONS
from dotqr.layout import layout
from dotqr.logging import audit, get_logger, trace
from dotqr.raster import RasterRendering, raster_surface, render_raster
from dotqr.resize import DerivedArtifact, derive_resolutions
from dotqr.style import StyleConfig, resolve_style
from dotqr.vector import VectorDocument, render_vector, vector_surface

log = get_logger("generator")

DEFAULT_OUTPUT_DIR = "qr_codes"
RASTER_FORMATS = ("jpeg", "png")
VECTOR_FORMAT = "svg"


class ConfigurationError(ValueError):
    """A required request field is missing; raised before any rendering."""


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

@dataclass
class GenerationRequest:
    """One QR code to produce, with its record metadata and style fields."""

    qr_id: str = ""
    short_url: str = ""
    department_id: str = ""
    title: str = ""
    active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    last_request_type: str = ""

    module_color: str = "black"
    eye_frame_color: str = "black"
    pixels_per_module: int = DEFAULT_PIXELS_PER_MODULE
    dot_size_factor: float = DEFAULT_DOT_SIZE_FACTOR
    dot_size_variance: float = 0.0
    batch_seed: int | None = None
    eye_frame_mid_radius: float | None = None
    eye_frame_pupil_radius: float | None = None
    logo_path: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "GenerationRequest":
        """Build from a mapping; accepts snake_case or camelCase keys, ignores unknown ones."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _snake_case(key)
            if name not in known:
                continue
            if name in ("created_at", "updated_at") and isinstance(value, str):
                value = datetime.fromisoformat(value)
            kwargs[name] = value
        return cls(**kwargs)

    def validate(self) -> None:
        if not self.short_url:
            raise ConfigurationError("short_url is required")
        if not self.qr_id:
            raise ConfigurationError("qr_id is required")

    def style(self) -> StyleConfig:
        return resolve_style(
            module_color=self.module_color,
            eye_frame_color=self.eye_frame_color,
            pixels_per_module=self.pixels_per_module,
            dot_size_factor=self.dot_size_factor,
            dot_size_variance=self.dot_size_variance,
            batch_seed=self.batch_seed,
            eye_mid_radius=self.eye_frame_mid_radius,
            eye_pupil_radius=self.eye_frame_pupil_radius,
            logo_path=self.logo_path,
        )


def _snake_case(key: str) -> str:
    out = []
    for ch in key:
        if ch.isupper():
            if out:
                out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out)


def load_request(path: str | Path) -> GenerationRequest:
    """Read a ``GenerationRequest`` from a JSON file."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a JSON object")
    return GenerationRequest.from_dict(data)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OutputArtifact:
    """An encoded file ready for the sink."""

    qr_id: str
    resolution: int
    format: str
    width: int
    height: int
    payload: bytes

    @property
    def filename(self) -> str:
        return f"{self.qr_id}_{self.resolution}.{self.format}"


@dataclass
class GenerationResult:
    raster: RasterRendering
    vector: VectorDocument
    artifacts: list[OutputArtifact]

    def by_format(self, fmt: str) -> list[OutputArtifact]:
        return [a for a in self.artifacts if a.format == fmt]


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def render_canonical(
    matrix: QRMatrix,
    style: StyleConfig,
    caption: str = "",
    logo: LogoAsset | None = None,
) -> tuple[RasterRendering, VectorDocument]:
    """Lay out and render both canonical artifacts for one matrix."""
    raster = render_raster(layout(matrix, style, raster_surface(style), caption=caption, logo=logo))
    vector = render_vector(layout(matrix, style, vector_surface(), caption=caption, logo=logo))
    return raster, vector


def _raster_artifacts(qr_id: str, derived: list[DerivedArtifact]) -> list[OutputArtifact]:
    out = []
    for fmt in RASTER_FORMATS:
        encoder = ENCODERS[fmt]
        for d in derived:
            out.append(OutputArtifact(qr_id, d.resolution, fmt, d.width, d.height,
                                      encoder(d.rendering.image)))
    return out


def _vector_artifacts(qr_id: str, derived: list[DerivedArtifact]) -> list[OutputArtifact]:
    return [
        OutputArtifact(qr_id, d.resolution, VECTOR_FORMAT, d.width, d.height, d.rendering.to_bytes())
        for d in derived
    ]


@trace
def generate(
    request: GenerationRequest,
    resolutions: tuple[int, ...] | list[int] = DEFAULT_RESOLUTIONS,
    matrix: QRMatrix | None = None,
    logo_base_dir: str | Path | None = None,
) -> GenerationResult:
    """Produce every artifact for *request* (no files are written).

    Args:
        request: What to encode and how to style it.
        resolutions: Output widths in pixels.
        matrix: Pre-encoded matrix; by default ``short_url`` is encoded at ECC H.
        logo_base_dir: Application directory for logo lookup.

    Raises:
        ConfigurationError: ``short_url`` or ``qr_id`` is empty.
    """
    request.validate()
    style = request.style()
    logo = load_logo(resolve_logo_path(style.logo_path, base_dir=logo_base_dir))
    if matrix is None:
        matrix = encode(request.short_url, ecc="High")

    raster, vector = render_canonical(matrix, style, caption=request.short_url, logo=logo)

    raster_derived = derive_resolutions(raster, resolutions)
    vector_derived = derive_resolutions(vector, resolutions, fallback_aspect_ratio=raster.aspect_ratio)

    artifacts = _raster_artifacts(request.qr_id, raster_derived)
    artifacts.extend(_vector_artifacts(request.qr_id, vector_derived))

    audit("generation.done", logger=log,
          qr_id=request.qr_id, modules=matrix.size, logo=logo is not None,
          raster=f"{raster.width}x{raster.height}",
          vector=f"{vector.width:g}x{vector.height:g}",
          artifacts=len(artifacts))
    return GenerationResult(raster=raster, vector=vector, artifacts=artifacts)


@trace
def write_artifacts(artifacts: list[OutputArtifact], output_dir: str | Path = DEFAULT_OUTPUT_DIR) -> list[Path]:
    """Write each artifact to ``<output_dir>/<format>/<qrId>_<width>.<ext>``."""
    base = Path(output_dir)
    written = []
    for artifact in artifacts:
        target_dir = base / artifact.format
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / artifact.filename
        path.write_bytes(artifact.payload)
        audit("artifact.saved", logger=log, path=str(path), bytes=len(artifact.payload))
        written.append(path)
    return written
