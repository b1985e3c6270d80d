# utils/file_handler.py

import os
from uuid import uuid4

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from config import UPLOAD_DIR


def _write_file(file_location: str, content: bytes) -> None:
    with open(file_location, "wb+") as file_object:
        file_object.write(content)


async def save_upload_file(upload_file: UploadFile, upload_dir: str = UPLOAD_DIR) -> str:
    """ Writes the uploaded resume to a uniquely named temp file and returns its path. """
    os.makedirs(upload_dir, exist_ok=True)
    extension = os.path.splitext(upload_file.filename or "")[1].lower()
    file_location = os.path.join(upload_dir, f"{uuid4().hex}{extension}")
    await run_in_threadpool(_write_file, file_location, await upload_file.read())
    return file_location


def remove_file(file_path: str) -> None:
    if file_path and os.path.exists(file_path):
        os.remove(file_path)
