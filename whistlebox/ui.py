import asyncio

import requests
import streamlit as st

from whistlebox.config import Settings, configure_logging
from whistlebox.envelopes import Attachment
from whistlebox.errors import SubmissionEncryptionError, SubmissionRejected
from whistlebox.keys import KeyDirectory
from whistlebox.pipeline import SubmissionPipeline

settings = Settings.from_env()
configure_logging(settings.log_level)

# ---------------------------
# Streamlit Page Settings
# ---------------------------
st.set_page_config(page_title="Confidential Report", layout="centered")

st.title("Submit a Confidential Report")
st.caption("Sealed to the reviewers' public key before it leaves this session")

st.markdown("""
**1. Your report and any attachment are encrypted here, before upload**
**2. Each item carries a checksum of the original content**
**3. The server stores ciphertext only and cannot read it**
""")

# One key directory per session; the key is fetched once and reused.
if "key_directory" not in st.session_state:
    st.session_state["key_directory"] = KeyDirectory(
        settings.public_key_url, timeout=settings.request_timeout
    )
keys = st.session_state["key_directory"]

pipeline = SubmissionPipeline(keys, submit_url=settings.submit_url, timeout=settings.request_timeout)

# -----------------------------------------------------
# REPORT FORM
# -----------------------------------------------------
with st.form("report"):
    message = st.text_area(
        "Your report",
        placeholder="Describe what happened...",
        help="Encrypted before it is sent.",
    )
    uploaded = st.file_uploader(
        "Supporting file (optional)",
        help=f"Up to {settings.max_file_bytes // (1024 * 1024)} MB. Name, type and size are sent unencrypted.",
    )
    hospital_trust = st.text_input("Hospital or trust (optional)")
    reply_email = st.text_input(
        "Anonymous reply email (optional)",
        help="Sent unencrypted. Leave blank to stay fully anonymous.",
    )
    submitted = st.form_submit_button("Encrypt & Submit")

if submitted:
    if not message.strip():
        st.warning("Please enter your report.")
    elif uploaded is not None and uploaded.size > settings.max_file_bytes:
        st.warning("That file is too large.")
    else:
        attachment = Attachment.from_upload(uploaded) if uploaded is not None else None

        async def _send():
            req = await pipeline.build_submission(
                message, attachment, reply_email=reply_email.strip(),
                hospital_trust=hospital_trust.strip(),
            )
            return await pipeline.submit(req)

        try:
            receipt = asyncio.run(_send())
            st.success(f"Report received. Reference #{receipt.id}")
        except SubmissionEncryptionError as e:
            st.error(str(e))
        except SubmissionRejected as e:
            st.error(f"Submission failed: {e.error}")
        except requests.RequestException:
            st.error("Could not reach the server. Please try again.")

with st.expander("Encryption status"):
    st.json(keys.status().model_dump())
