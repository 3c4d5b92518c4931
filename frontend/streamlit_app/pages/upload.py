# frontend/streamlit_app/pages/upload.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Streamlit page: Upload

List a document for sale in one submit:
  1) Upload the file to the bucket            (33%)
  2) registerDocument on the registry          (66%)
  3) Mirror the listing into the store         (90%)
  4) Done                                      (100%)

The chain write and the store write are separate. If step 3 fails the
document is on-chain but not listed; the error names the transaction and the
pending entry is left for `backend/scripts/reconcile_pending.py`.

Accepted files: pdf, docx, xlsx, pptx, txt, png, jpg/jpeg, up to 50 MB.
"""

import streamlit as st

from core.constants import ALLOWED_EXTENSIONS, MAX_FILE_SIZE
from core.state import busy, is_busy, mark_busy, reset_upload_form, set_notice
from services.marketplace import UploadRequest
from ui.components import service_missing, show_notice, wallet_required
from ui.keys import k
from ui.layout import panels


def _submit(
    ctx: dict, title: str, description: str, price: str, amount: str, upload
) -> tuple[str, str]:
    """Validate and upload the submitted form; returns the notice to show."""
    ss = st.session_state
    ss["UPLOAD_FORM"] = {
        "title": title,
        "description": description,
        "price_per_token": price,
        "amount": amount,
    }
    req = UploadRequest(
        title=title.strip(),
        description=description.strip(),
        price_per_token=price.strip(),
        amount=amount,
        filename=upload.name if upload else "",
        content=upload.getvalue() if upload else b"",
        mime_type=upload.type if upload else None,
    )
    try:
        req.validate()
    except ValueError as e:
        return "error", f"⚠️ {e}"

    bar = st.progress(0, text="Starting…")
    try:
        result = ctx["marketplace"].upload_document(
            ctx["account"], req, progress=lambda pct, msg: bar.progress(pct, text=msg)
        )
    except Exception as e:
        bar.empty()
        return "error", f"Upload failed: {e}"

    reset_upload_form()
    return "success", (
        f"✅ Listed “{req.title}” as document #{result.doc_id}  \n"
        f"Tx: `{result.tx_hash}`  \n"
        f"File: {result.file_url}"
    )


def render(ctx: dict) -> None:
    """Render the Upload tab.

    Args:
        ctx: Sidebar/app context; uses `marketplace`, `account`, `GUIDED_MODE`.
    """
    st.header("📤 Upload a document")
    if wallet_required(ctx) or service_missing(ctx, "marketplace"):
        return

    show_notice("upload")
    ss = st.session_state
    draft = ss["UPLOAD_FORM"]
    accepted = ", ".join(ext.upper() for ext in ALLOWED_EXTENSIONS)
    st.caption(f"Accepted: {accepted} · max {MAX_FILE_SIZE // (1024 * 1024)} MB")

    with st.form(k("upload", "form")):
        left, right = panels([3, 2], ctx.get("GUIDED_MODE", True))
        with left:
            title = st.text_input("Title *", value=draft["title"])
            description = st.text_area("Description", value=draft["description"])
        with right:
            price = st.text_input(
                "Price per token (ETH) *", value=draft["price_per_token"], placeholder="0.01"
            )
            amount = st.text_input("Amount (tokens) *", value=draft["amount"])
            upload = st.file_uploader(
                "File *", type=list(ALLOWED_EXTENSIONS), accept_multiple_files=False
            )
        st.form_submit_button(
            "Register & list",
            type="primary",
            disabled=is_busy("upload"),
            on_click=mark_busy,
            args=("upload",),
        )

    if not is_busy("upload"):
        return
    with busy("upload"):
        level, message = _submit(ctx, title, description, price, amount, upload)
    set_notice("upload", level, message)
    st.rerun()
