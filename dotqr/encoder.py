"""QR symbol encoding: text in, square module matrix out."""

from dataclasses import dataclass
from enum import Enum

import qrcode
import qrcode.constants

from dotqr.logging import audit, get_logger, trace

log = get_logger("encoder")


class ECCLevel(Enum):
    L = qrcode.constants.ERROR_CORRECT_L  # 7%
    M = qrcode.constants.ERROR_CORRECT_M  # 15%
    Q = qrcode.constants.ERROR_CORRECT_Q  # 25%
    H = qrcode.constants.ERROR_CORRECT_H  # 30%


ECC_NAMES = {
    "L": ECCLevel.L, "LOW": ECCLevel.L,
    "M": ECCLevel.M, "MEDIUM": ECCLevel.M,
    "Q": ECCLevel.Q, "QUARTILE": ECCLevel.Q,
    "H": ECCLevel.H, "HIGH": ECCLevel.H,
}


@dataclass(frozen=True)
class QRMatrix:
    """Read-only square grid of modules, indexed ``rows[y][x]``."""

    rows: tuple[tuple[bool, ...], ...]
    version: int | None = None

    @classmethod
    def from_rows(cls, rows, version: int | None = None) -> "QRMatrix":
        return cls(rows=tuple(tuple(bool(v) for v in row) for row in rows), version=version)

    @property
    def size(self) -> int:
        return len(self.rows)

    def module_at(self, x: int, y: int) -> bool:
        return self.rows[y][x]

    def is_square(self) -> bool:
        return self.size > 0 and all(len(row) == self.size for row in self.rows)


@trace
def encode(content: str, ecc: str = "High", version: int | None = None) -> QRMatrix:
    """Encode *content* into a module matrix with no quiet zone.

    Args:
        content: Text to encode (usually a short URL).
        ecc: Error correction level: L/M/Q/H or Low/Medium/Quartile/High.
        version: QR version 1-40; None picks the smallest that fits.
    """
    level = ECC_NAMES[ecc.upper()]
    qr = qrcode.QRCode(
        version=version,
        error_correction=level.value,
        box_size=1,
        border=0,
    )
    qr.add_data(content)
    qr.make(fit=(version is None))

    matrix = QRMatrix.from_rows(qr.modules, version=qr.version)
    audit("qr.encoded", logger=log,
          data=content[:80], version=qr.version,
          size=f"{matrix.size}x{matrix.size}", ecc=level.name)
    return matrix
