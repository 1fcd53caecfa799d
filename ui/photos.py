"""
Photo upload and gallery widgets
"""
import base64
import streamlit as st
from datetime import date
from typing import List

from models.case import EvidencePhoto
from utils.helpers import format_long_date

IMAGE_TYPES = ["png", "jpg", "jpeg", "gif", "webp"]


def photo_uploader(label: str, key: str) -> List[EvidencePhoto]:
    """File uploader that returns the selected images as evidence photos"""
    files = st.file_uploader(label, type=IMAGE_TYPES, accept_multiple_files=True, key=key)
    taken = format_long_date(date.today())
    return [EvidencePhoto.from_upload(f.getvalue(), f.type, date=taken) for f in files or []]


def _image_source(url: str):
    # st.image takes raw bytes for embedded images
    if url.startswith("data:") and ";base64," in url:
        return base64.b64decode(url.split(";base64,", 1)[1])
    return url


def render_gallery(photos: List[EvidencePhoto], columns: int = 4):
    if not photos:
        st.caption("No photos.")
        return

    cols = st.columns(columns)
    for i, photo in enumerate(photos):
        with cols[i % columns]:
            st.image(_image_source(photo.url), caption=photo.date or None, use_container_width=True)
