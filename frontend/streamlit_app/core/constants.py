# frontend/streamlit_app/core/constants.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Network constants and upload rules for the DocuTrade console.

This module centralizes:
  1) **Network facts** used across the UI (Sepolia chain id, provider error
     codes, token maximums).
  2) **Upload rules**: the file types a seller may list and the size cap,
     plus small helpers to check an upload against them.
  3) **Journal statuses** for the dual-write journal.

Design notes
------------
- Constants are typed `Final` to communicate immutability and to help static
  analyzers catch accidental reassignment.
- Helpers are pure and allocation-light; no I/O.
"""

from typing import Final, NamedTuple

# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------

#: Sepolia test network chain id, as a hex string (EIP-695 format).
SEPOLIA_CHAIN_ID_HEX: Final[str] = "0xaa36a7"

#: EIP-1193 error code for a user rejecting a request.
USER_REJECTED: Final[int] = 4001

#: Wallet error code for `wallet_switchEthereumChain` on an unknown chain.
UNRECOGNIZED_CHAIN: Final[int] = 4902

#: 2**256 - 1, used for "unlimited" ERC-20 approvals.
MAX_UINT256: Final[int] = 2**256 - 1

# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


class FileKind(NamedTuple):
    label: str
    icon: str
    mime_types: tuple[str, ...]


#: Extension → accepted kind. Keys are lower-case, without the dot.
ALLOWED_EXTENSIONS: Final[dict[str, FileKind]] = {
    "pdf": FileKind("PDF", "📄", ("application/pdf",)),
    "docx": FileKind(
        "Word (.docx)",
        "📝",
        (
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/msword",
        ),
    ),
    "xlsx": FileKind(
        "Excel (.xlsx)",
        "📊",
        (
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "application/vnd.ms-excel",
        ),
    ),
    "txt": FileKind("Text (.txt)", "📃", ("text/plain",)),
    "pptx": FileKind(
        "PowerPoint (.pptx)",
        "🎨",
        (
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "application/vnd.ms-powerpoint",
        ),
    ),
    "png": FileKind("PNG image", "🖼️", ("image/png",)),
    "jpg": FileKind("JPG image", "🖼️", ("image/jpeg",)),
    "jpeg": FileKind("JPG image", "🖼️", ("image/jpeg",)),
}

#: Upload size cap in bytes (50 MB).
MAX_FILE_SIZE: Final[int] = 50 * 1024 * 1024

# ---------------------------------------------------------------------------
# Dual-write journal statuses
# ---------------------------------------------------------------------------

JOURNAL_PENDING: Final[str] = "pending"
JOURNAL_CHAIN_CONFIRMED: Final[str] = "chain_confirmed"
JOURNAL_CONFIRMED: Final[str] = "confirmed"
JOURNAL_FAILED: Final[str] = "failed"

#: Status written on purchase rows.
PURCHASE_COMPLETED: Final[str] = "completed"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def file_extension(filename: str) -> str:
    """Return the lower-cased extension of `filename` without the dot ('' if none).

    Examples:
        >>> file_extension("Guide.PDF")
        'pdf'
        >>> file_extension("README")
        ''
    """
    name = (filename or "").strip()
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def check_upload(filename: str, size: int, mime_type: str | None = None) -> FileKind:
    """Validate an upload against the allowed types and size cap.

    An empty MIME type is accepted (browsers and OSes do not always report
    one); a non-empty MIME type must match the extension.

    Raises:
        ValueError: unsupported type, mismatched MIME type, or file too large.
    """
    kind = ALLOWED_EXTENSIONS.get(file_extension(filename))
    if kind is None or (mime_type and mime_type not in kind.mime_types):
        supported = ", ".join(sorted({k.label for k in ALLOWED_EXTENSIONS.values()}))
        raise ValueError(f"Unsupported file type. Supported: {supported}")
    if int(size) > MAX_FILE_SIZE:
        raise ValueError(
            f"File must be {MAX_FILE_SIZE // (1024 * 1024)}MB or smaller."
        )
    return kind
