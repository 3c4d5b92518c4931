# frontend/streamlit_app/ui/keys.py
# SPDX-License-Identifier: Apache-2.0
"""Widget key helper.

Every tab renders its own buttons (several "Remove", "Deactivate" and "Buy"
buttons per list), so Streamlit needs explicit, stable keys. Keys are
namespaced by page and, for list rows, by the row's document id:

    st.button("Add to cart", key=k("market", "add", doc["doc_id"]))
"""

from __future__ import annotations


def k(page: str, name: str, *parts: object) -> str:
    """Return a stable key of the form "<page>:<name>[:<part>...]".

    Args:
      page: Short namespace, normally the tab module name ("market", "cart").
      name: Widget identifier within the page.
      *parts: Optional row discriminators (document id, journal id, ...).
    """
    return ":".join([page, name, *(str(p) for p in parts)])
