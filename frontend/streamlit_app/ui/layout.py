# frontend/streamlit_app/ui/layout.py
# SPDX-License-Identifier: Apache-2.0
"""Layout helpers for the DocuTrade console.

- `configure_page`: browser title, wide layout, branded H1. Call it once,
  before any other Streamlit element.
- `panels`: guided mode stacks panels one under the other; compact mode puts
  them side by side. Upload uses it for its two form halves.
- `card_grid`: yields one bordered card per item, laid out `per_row` wide in
  compact mode and one per row in guided mode (the market listing).
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import TypeVar

import streamlit as st
from streamlit.delta_generator import DeltaGenerator

T = TypeVar("T")


def configure_page(title: str) -> None:
    st.set_page_config(page_title=title, page_icon="📚", layout="wide")
    st.title(f"📚 {title}")


def panels(widths: Sequence[float], guided: bool) -> list[DeltaGenerator]:
    """One container per entry of `widths`; widths only apply side by side."""
    if guided:
        return [st.container() for _ in widths]
    return list(st.columns(list(widths), gap="medium"))


def card_grid(items: Iterable[T], per_row: int, guided: bool) -> Iterator[T]:
    """Yield each item while its bordered card container is active."""
    row: list[DeltaGenerator] = []
    for i, item in enumerate(items):
        if guided:
            slot = st.container()
        else:
            if i % per_row == 0:
                row = list(st.columns(per_row, gap="medium"))
            slot = row[i % per_row]
        with slot, st.container(border=True):
            yield item
